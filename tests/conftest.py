"""
Test Configuration
==================

Pytest fixtures for Regscreen tests.
"""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import date
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"


SCREENING_DATE = date(2025, 7, 1)


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def applicability_client() -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Applicability Service with an empty corpus."""
    from services.applicability.corpus import CorpusStore
    from services.applicability.main import app

    app.state.corpus_store = CorpusStore()
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def screening_date() -> date:
    """Fixed screening clock."""
    return SCREENING_DATE


@pytest.fixture
def tables():
    """Bundled lookup tables."""
    from services.applicability.tables import load_lookup_tables

    return load_lookup_tables()


@pytest.fixture
def engine(tables):
    """Engine with default weights over the bundled tables."""
    from services.applicability.engine import ApplicabilityEngine

    return ApplicabilityEngine(tables)


@pytest.fixture
def make_record() -> Callable[..., Any]:
    """Factory for in-force regulation records with overridable fields."""
    from shared.models.regulation import RegulationRecord

    def _make(record_id: str = "UK_uksi_2015_51", **overrides: Any) -> RegulationRecord:
        data: dict[str, Any] = {
            "id": record_id,
            "title": "Construction (Design and Management) Regulations",
            "year": 2015,
            "family": "CONSTRUCTION",
            "live_status": "in_force",
            "effective_from": "2015-04-06",
            "geo_extent": "England and Wales",
            "duty_holder": ["Employer"],
            "description": "Duties for construction site safety and planning.",
        }
        data.update(overrides)
        return RegulationRecord.model_validate(data)

    return _make


@pytest.fixture
def make_profile() -> Callable[..., Any]:
    """Factory for organization profiles with overridable fields."""
    from shared.models.organization import OrganizationProfile

    def _make(profile_id: str = "org-001", **overrides: Any) -> OrganizationProfile:
        data: dict[str, Any] = {
            "id": profile_id,
            "industry_sector": "construction",
            "operational_jurisdictions": ["England"],
            "employee_count": 75,
        }
        data.update(overrides)
        return OrganizationProfile.model_validate(data)

    return _make


@pytest.fixture
def sample_profile_data() -> dict[str, Any]:
    """Well populated profile payload for API tests."""
    return {
        "id": "org-001",
        "name": "Acme Builders Ltd",
        "domain": "acme-builders.co.uk",
        "organization_type": "limited_company",
        "sector_code": "41201",
        "industry_sector": "construction",
        "headquarters": "England",
        "operational_jurisdictions": ["England", "Wales"],
        "employee_count": 75,
        "annual_turnover": 8_000_000,
        "extended": {
            "roles": ["Employer", "Site Manager"],
            "activities": ["building construction", "demolition", "scaffolding"],
            "work_at_height": True,
        },
    }


@pytest.fixture
def sample_corpus_rows() -> list[dict[str, Any]]:
    """Raw corpus rows using legacy display values."""
    return [
        {
            "id": "UK_uksi_2015_51",
            "title": "Construction (Design and Management) Regulations",
            "family": "💙 CONSTRUCTION",
            "live": "✔ In force",
            "geo_extent": "E+W",
            "effective_from": "2015-04-06",
            "duty_holder": ["Org: Employer", "Org: Principal Contractor"],
            "md_description": "Duties for building construction and demolition work.",
        },
        {
            "id": "UK_uksi_2005_735",
            "title": "Work at Height Regulations",
            "family": "💙 CONSTRUCTION",
            "live": "✔ In force",
            "geo_extent": "E+W+S",
            "effective_from": "2005-04-06",
            "latest_amend_date": "2007-04-06",
            "duty_holder": {"Org: Employer": True},
            "description": "Work at height, scaffolding and fall prevention.",
        },
        {
            "id": "UK_uksi_1996_1592",
            "title": "Construction (Health, Safety and Welfare) Regulations",
            "family": "💙 CONSTRUCTION",
            "live": "❌ Revoked / Repealed / Abolished",
            "geo_extent": "E+W+S",
            "rescinded_by": ["UK_uksi_2015_51"],
        },
        {
            "id": "UK_ssi_2006_123",
            "title": "Scottish Building Standards",
            "family": "BUILDINGS",
            "live": "✔ In force",
            "geo_extent": "S",
        },
    ]
