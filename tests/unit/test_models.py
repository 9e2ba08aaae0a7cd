"""
Unit tests for shared regulation, organization and matching models.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from shared.models import (
    ConfidenceInterval,
    DimensionScores,
    FlagValue,
    GeoExtent,
    LiveStatus,
    MatchResult,
    OrganizationProfile,
    RegulationRecord,
    SizeCategory,
    TextSetValue,
    as_extended_value,
    employee_size_category,
    normalize_family,
    normalize_role,
    turnover_size_category,
)


class TestLegacyValues:
    """Tests for parsing legacy corpus display strings."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("✔ In force", LiveStatus.IN_FORCE),
            ("in_force", LiveStatus.IN_FORCE),
            ("❌ Revoked / Repealed / Abolished", LiveStatus.REVOKED),
            ("⭕ Part Revocation / Repeal", LiveStatus.PARTIALLY_REVOKED),
            ("superseded", LiveStatus.SUPERSEDED),
            ("pending", None),
            ("", None),
            (None, None),
        ],
    )
    def test_live_status(self, raw, expected) -> None:
        assert LiveStatus.parse(raw) == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("E+W+S+NI", GeoExtent.UNITED_KINGDOM),
            ("E + W", GeoExtent.ENGLAND_AND_WALES),
            ("GB", GeoExtent.GREAT_BRITAIN),
            ("northern_ireland", GeoExtent.NORTHERN_IRELAND),
            ("Scotland", GeoExtent.SCOTLAND),
            ("Atlantis", None),
        ],
    )
    def test_geo_extent(self, raw, expected) -> None:
        assert GeoExtent.parse(raw) == expected

    def test_normalize_family(self) -> None:
        assert normalize_family("💙 CONSTRUCTION") == "CONSTRUCTION"
        assert normalize_family("  oh&s:   fire ") == "OH&S: FIRE"

    def test_normalize_role(self) -> None:
        assert normalize_role("Org: Employer") == "employer"
        assert normalize_role("Ind: Person in  Control") == "person in control"
        assert normalize_role("Principal Contractor") == "principal contractor"


class TestRegulationRecord:
    """Tests for regulation records."""

    def test_holders_union(self) -> None:
        """Test that holders merge every stakeholder field."""
        record = RegulationRecord.model_validate(
            {
                "id": "r1",
                "live_status": "in_force",
                "geo_extent": "UK",
                "duty_holder": {"items": ["Org: Employer"]},
                "power_holder": ["Gvt: Minister"],
                "role": "Ind: Worker",
            }
        )
        assert record.holders() == frozenset({"employer", "minister", "worker"})

    def test_tags_from_string(self) -> None:
        record = RegulationRecord.model_validate(
            {"id": "r1", "live_status": "in_force", "geo_extent": "UK", "tags": "safety, ,height"}
        )
        assert record.tags == ("safety", "height")

    def test_effective_window(self) -> None:
        """Test in-force checks against the effective window."""
        record = RegulationRecord.model_validate(
            {
                "id": "r1",
                "live_status": "in_force",
                "geo_extent": "UK",
                "effective_from": "2020-01-01",
                "effective_to": "2025-01-01",
            }
        )
        assert record.is_in_force(date(2019, 12, 31)) is False
        assert record.is_in_force(date(2020, 1, 1)) is True
        assert record.is_in_force(date(2025, 1, 1)) is False

    def test_latest_activity_date(self) -> None:
        record = RegulationRecord.model_validate(
            {
                "id": "r1",
                "live_status": "in_force",
                "geo_extent": "UK",
                "effective_from": "2015-04-06",
                "latest_amend_date": "2021-10-01",
            }
        )
        assert record.latest_activity_date == date(2021, 10, 1)

    def test_missing_values_recorded(self) -> None:
        record = RegulationRecord.model_validate({"id": "r1"})
        assert record.data_issues == ("missing live_status", "missing geo_extent")
        assert record.live_status == LiveStatus.UNKNOWN

    def test_records_are_immutable(self) -> None:
        record = RegulationRecord.model_validate({"id": "r1", "live_status": "in_force", "geo_extent": "UK"})
        with pytest.raises(ValidationError):
            record.title = "changed"


class TestOrganizationProfile:
    """Tests for organization profiles."""

    def test_completeness_score(self) -> None:
        """Test weighted completeness of a minimal profile."""
        profile = OrganizationProfile(
            id="org-1",
            industry_sector="Construction",
            operational_jurisdictions=["England"],
            employee_count=75,
        )
        assert profile.industry_sector == "construction"
        assert profile.completeness_score == 0.5

    def test_zero_employees_not_populated(self) -> None:
        profile = OrganizationProfile(id="org-1", industry_sector="construction", employee_count=0)
        assert "employee_count" in profile.missing_fields()
        assert profile.completeness_score == 0.2

    def test_enrich_updates_completeness(self) -> None:
        profile = OrganizationProfile(id="org-1", industry_sector="construction")
        before = profile.updated_at

        profile.enrich("roles", ["Employer", "Site Manager"])

        assert profile.roles == frozenset({"Employer", "Site Manager"})
        assert profile.completeness_score == 0.3
        assert profile.updated_at >= before

    def test_update_core(self) -> None:
        profile = OrganizationProfile(id="org-1", employee_count=20)
        profile.update_core(employee_count=300)
        assert profile.size_category == SizeCategory.LARGE

    def test_update_core_rejects_identity(self) -> None:
        profile = OrganizationProfile(id="org-1")
        with pytest.raises(ValueError, match="cannot update"):
            profile.update_core(id="org-2")

    def test_update_core_validates(self) -> None:
        profile = OrganizationProfile(id="org-1")
        with pytest.raises(ValidationError):
            profile.update_core(employee_count=-1)

    def test_unknown_jurisdiction_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OrganizationProfile(id="org-1", operational_jurisdictions=["Atlantis"])

    def test_sector_code_digits(self) -> None:
        assert OrganizationProfile(id="org-1", sector_code="41.20/1").sector_code == "41201"

    def test_primary_jurisdiction(self) -> None:
        profile = OrganizationProfile(id="org-1", operational_jurisdictions=["Wales", "England"])
        assert profile.primary_jurisdiction == GeoExtent.ENGLAND

        profile.update_core(headquarters="scotland")
        assert profile.primary_jurisdiction == GeoExtent.SCOTLAND
        assert GeoExtent.SCOTLAND in profile.jurisdictions

    def test_identity_domain(self) -> None:
        assert OrganizationProfile(id="o", domain="www.Acme.co.uk").identity_domain == "acme.co.uk"
        assert (
            OrganizationProfile(id="o", contact_email="ops@Acme.co.uk").identity_domain
            == "acme.co.uk"
        )
        assert OrganizationProfile(id="o").identity_domain is None

    def test_risk_indicators(self) -> None:
        profile = OrganizationProfile(
            id="o",
            extended={"work_at_height": True, "night_work": False, "notes": "n/a"},
        )
        assert profile.risk_indicators == {"work_at_height": True, "night_work": False}


class TestExtendedValues:
    """Tests for tagged extended attribute variants."""

    def test_plain_values_wrapped(self) -> None:
        assert isinstance(as_extended_value(True), FlagValue)
        assert as_extended_value(3).value == 3.0
        assert as_extended_value("text").kind == "string"
        assert as_extended_value(["a", " b "]) == TextSetValue(value=frozenset({"a", "b"}))

    def test_tagged_dict(self) -> None:
        assert as_extended_value({"kind": "boolean", "value": True}) == FlagValue(value=True)

    def test_mixed_list_rejected(self) -> None:
        with pytest.raises(ValueError):
            as_extended_value(["a", 1])

    def test_unsupported_value_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OrganizationProfile(id="o", extended={"bad": object()})


class TestSizeCategories:
    """Tests for size bucketing."""

    @pytest.mark.parametrize(
        ("count", "expected"),
        [
            (None, None),
            (9, SizeCategory.MICRO),
            (10, SizeCategory.SMALL),
            (249, SizeCategory.MEDIUM),
            (250, SizeCategory.LARGE),
            (1000, SizeCategory.ENTERPRISE),
        ],
    )
    def test_employee_buckets(self, count, expected) -> None:
        assert employee_size_category(count) == expected

    def test_turnover_buckets(self) -> None:
        assert turnover_size_category(99_999) == SizeCategory.MICRO
        assert turnover_size_category(8_000_000) == SizeCategory.MEDIUM
        assert turnover_size_category(50_000_000) == SizeCategory.ENTERPRISE


class TestMatchingModels:
    """Tests for matching result models."""

    def test_interval_ordering(self) -> None:
        with pytest.raises(ValidationError):
            ConfidenceInterval(lower=0.7, upper=0.6)

    def test_composite_within_interval(self) -> None:
        with pytest.raises(ValidationError):
            MatchResult(
                regulation_id="r1",
                composite_score=0.9,
                breakdown=DimensionScores(),
                confidence=ConfidenceInterval(lower=0.1, upper=0.5),
            )

    def test_dimension_spread(self) -> None:
        scores = DimensionScores(sector=1.0, role=0.2, geography=0.8, size=0.5, content=0.4)
        assert scores.spread == pytest.approx(0.8)

    def test_dimension_bounds(self) -> None:
        with pytest.raises(ValidationError):
            DimensionScores(sector=1.2)
