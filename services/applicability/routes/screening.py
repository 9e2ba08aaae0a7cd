"""
Screening Routes
================

API endpoint for screening a profile against the live corpus snapshot.

Version: 0.1.0
"""

from datetime import UTC, date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from services.applicability.corpus import CorpusStore
from services.applicability.dependencies import get_corpus_store, get_engine
from services.applicability.engine import ApplicabilityEngine
from shared.logging import bind_context, get_logger
from shared.models.matching import MatchResult
from shared.models.organization import OrganizationProfile


logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Request/Response Models
# =============================================================================


class ScreeningRequest(BaseModel):
    """Request to screen one organization."""

    profile: OrganizationProfile
    screening_date: date | None = Field(
        None, description="Screening clock; defaults to today (UTC)"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "profile": {
                        "id": "org-001",
                        "industry_sector": "construction",
                        "sector_code": "41201",
                        "headquarters": "England",
                        "operational_jurisdictions": ["England"],
                        "employee_count": 75,
                        "extended": {"roles": ["Employer", "Site Manager"]},
                    },
                    "screening_date": "2025-07-01",
                }
            ]
        }
    }


class FilterTraceEntry(BaseModel):
    """Effect of one filter layer."""

    layer: str
    applied: bool
    records_in: int
    records_out: int


class ScreeningResponse(BaseModel):
    """Ranked results and how they were produced."""

    profile_id: str
    corpus_version: str
    corpus_size: int
    complexity: str
    completeness: float
    screened_on: date
    result_count: int
    review_count: int
    degraded: int
    duration_ms: float
    filter_trace: list[FilterTraceEntry]
    results: list[MatchResult]


# =============================================================================
# Routes
# =============================================================================


@router.post("", response_model=ScreeningResponse)
async def screen_profile(
    request: ScreeningRequest,
    engine: ApplicabilityEngine = Depends(get_engine),
    store: CorpusStore = Depends(get_corpus_store),
) -> ScreeningResponse:
    """
    Screen a profile against the current corpus snapshot.

    Returns 422 when the profile has neither sector nor jurisdiction and
    503 when no corpus snapshot is loaded.
    """
    bind_context(profile_id=request.profile.id)
    now = request.screening_date or datetime.now(UTC).date()

    report = engine.screen_with_report(request.profile, store.snapshot(), now)

    return ScreeningResponse(
        profile_id=report.profile_id,
        corpus_version=report.corpus_version,
        corpus_size=report.corpus_size,
        complexity=report.complexity.value,
        completeness=report.completeness,
        screened_on=report.screened_on,
        result_count=len(report.results),
        review_count=report.review_count,
        degraded=report.degraded,
        duration_ms=report.duration_ms,
        filter_trace=[
            FilterTraceEntry(
                layer=step.layer.value,
                applied=step.applied,
                records_in=step.records_in,
                records_out=step.records_out,
            )
            for step in report.filter_trace
        ],
        results=report.results,
    )
