"""
Profile Analyzer Tests
======================

Tests for completeness categories, quality checks and screening levels.

Version: 0.1.0
"""

import pytest

from services.applicability.profile import (
    CompletenessLevel,
    ProfileAnalyzer,
    ScreeningLevel,
    completeness_level,
)
from shared.models.organization import OrganizationProfile


@pytest.fixture
def analyzer() -> ProfileAnalyzer:
    return ProfileAnalyzer()


class TestCompleteness:
    """Tests for category scoring."""

    def test_full_profile(self, analyzer, sample_profile_data):
        analysis = analyzer.analyze(OrganizationProfile.model_validate(sample_profile_data))

        assert analysis.weighted_completeness == 1.0
        assert analysis.level == CompletenessLevel.EXCELLENT
        assert analysis.recommended_screening == ScreeningLevel.COMPREHENSIVE
        assert analysis.missing_fields == []
        assert analysis.recommendations == []

    def test_sparse_profile(self, analyzer, make_profile):
        analysis = analyzer.analyze(make_profile())

        assert analysis.category_scores == {
            "basic_identification": 0.25,
            "operational_details": 0.5,
            "compliance_context": 0.0,
            "risk_assessment": 0.0,
        }
        assert analysis.weighted_completeness == 0.25
        assert analysis.level == CompletenessLevel.INSUFFICIENT
        assert analysis.recommended_screening == ScreeningLevel.INSUFFICIENT_DATA
        assert analysis.missing_fields[0] == "name"
        assert "employee_count" not in analysis.missing_fields
        assert len(analysis.recommendations) == len(analysis.missing_fields)

    def test_completeness_matches_profile(self, analyzer, make_profile):
        profile = make_profile()
        assert analyzer.analyze(profile).completeness == profile.completeness_score

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (0.95, CompletenessLevel.EXCELLENT),
            (0.9, CompletenessLevel.EXCELLENT),
            (0.7, CompletenessLevel.GOOD),
            (0.5, CompletenessLevel.ADEQUATE),
            (0.3, CompletenessLevel.BASIC),
            (0.29, CompletenessLevel.INSUFFICIENT),
        ],
    )
    def test_completeness_level(self, score, expected):
        assert completeness_level(score) == expected


class TestScreeningLevel:
    """Tests for recommended screening depth."""

    def test_enhanced(self, analyzer, make_profile):
        profile = make_profile(
            name="Acme",
            organization_type="limited_company",
            headquarters="England",
        )
        assert analyzer.analyze(profile).recommended_screening == ScreeningLevel.ENHANCED

    def test_basic(self, analyzer, make_profile):
        profile = make_profile(
            name="Acme",
            organization_type="limited_company",
            operational_jurisdictions=[],
            employee_count=None,
        )
        assert analyzer.analyze(profile).recommended_screening == ScreeningLevel.BASIC


class TestQualityChecks:
    """Tests for data-quality consistency checks."""

    def test_consistent_profile_passes(self, analyzer, sample_profile_data):
        analysis = analyzer.analyze(OrganizationProfile.model_validate(sample_profile_data))
        assert [c.name for c in analysis.quality_checks] == [
            "turnover_per_employee",
            "size_consistency",
            "headquarters_operational",
        ]
        assert analysis.quality_issues == []
        assert analysis.data_quality == 1.0

    def test_implausible_turnover(self, analyzer, make_profile):
        analysis = analyzer.analyze(make_profile(annual_turnover=100_000))
        assert analysis.quality_issues == ["Turnover per employee (1,333) looks implausible"]
        assert analysis.data_quality == 0.5
        assert "Review and correct: Turnover per employee (1,333) looks implausible" in (
            analysis.recommendations
        )

    def test_size_mismatch(self, analyzer, make_profile):
        analysis = analyzer.analyze(make_profile(employee_count=5, annual_turnover=60_000_000))
        failed = {c.name for c in analysis.quality_checks if not c.passed}
        assert failed == {"turnover_per_employee", "size_consistency"}

    def test_headquarters_outside_operations(self, analyzer, make_profile):
        analysis = analyzer.analyze(make_profile(headquarters="Scotland"))
        assert analysis.quality_issues == [
            "Headquarters jurisdiction not included in operational jurisdictions"
        ]

    def test_checks_skip_unknown_values(self, analyzer, make_profile):
        analysis = analyzer.analyze(make_profile(employee_count=None))
        assert analysis.quality_checks == []
        assert analysis.data_quality == 1.0
