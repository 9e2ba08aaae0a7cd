"""
Profile Analyzer
================

Completeness, data quality and screening readiness for an organization
profile, with plain-text suggestions for improving it.

Completeness categories (weights):
- Basic identification (0.4): name, type, headquarters, industry sector
- Operational details (0.3): employees, turnover, jurisdictions, activities
- Compliance context (0.2): risk indicators, roles, SIC code
- Risk assessment (0.1): risk indicators, activities

Version: 0.1.0
"""

from dataclasses import dataclass, field
from enum import Enum

from shared.logging import get_logger
from shared.models.organization import (
    OrganizationProfile,
    SizeCategory,
    turnover_size_category,
)


logger = get_logger(__name__)


class CompletenessLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ADEQUATE = "adequate"
    BASIC = "basic"
    INSUFFICIENT = "insufficient"


class ScreeningLevel(str, Enum):
    """Screening depth a profile can support."""

    COMPREHENSIVE = "comprehensive"
    ENHANCED = "enhanced"
    BASIC = "basic"
    INSUFFICIENT_DATA = "insufficient_data"


CATEGORY_WEIGHTS: dict[str, float] = {
    "basic_identification": 0.4,
    "operational_details": 0.3,
    "compliance_context": 0.2,
    "risk_assessment": 0.1,
}

CATEGORY_FIELDS: dict[str, tuple[str, ...]] = {
    "basic_identification": ("name", "organization_type", "headquarters", "industry_sector"),
    "operational_details": (
        "employee_count",
        "annual_turnover",
        "operational_jurisdictions",
        "activities",
    ),
    "compliance_context": ("risk_indicators", "roles", "sector_code"),
    "risk_assessment": ("risk_indicators", "activities"),
}

# Minimum category scores for comprehensive screening
COMPREHENSIVE_MINIMUMS: dict[str, float] = {
    "basic_identification": 0.9,
    "operational_details": 0.7,
    "compliance_context": 0.5,
    "risk_assessment": 0.3,
}

FIELD_SUGGESTIONS: dict[str, str] = {
    "name": "Add the organization name",
    "organization_type": "Specify the organization type (e.g. limited company, charity)",
    "headquarters": "Add the headquarters jurisdiction",
    "industry_sector": "Select an industry sector to enable sector filtering",
    "employee_count": "Provide the employee count to resolve size-threshold regulations",
    "annual_turnover": "Provide annual turnover to resolve turnover-threshold regulations",
    "operational_jurisdictions": "List every jurisdiction the organization operates in",
    "activities": "Describe business activities to improve content relevance",
    "risk_indicators": "Answer the risk indicator questions (hazardous substances, work at height, ...)",
    "roles": "Name key roles (e.g. Employer, Site Manager) to enable role matching",
    "sector_code": "Add the SIC code for precise sector mapping",
}

_SIZE_ORDER = list(SizeCategory)


def completeness_level(score: float) -> CompletenessLevel:
    if score >= 0.9:
        return CompletenessLevel.EXCELLENT
    if score >= 0.7:
        return CompletenessLevel.GOOD
    if score >= 0.5:
        return CompletenessLevel.ADEQUATE
    if score >= 0.3:
        return CompletenessLevel.BASIC
    return CompletenessLevel.INSUFFICIENT


@dataclass
class QualityCheck:
    """Outcome of one data-quality check."""

    name: str
    passed: bool
    message: str | None = None


@dataclass
class ProfileAnalysis:
    """Full profile analysis."""

    profile_id: str
    completeness: float
    weighted_completeness: float
    category_scores: dict[str, float]
    level: CompletenessLevel
    missing_fields: list[str]
    quality_checks: list[QualityCheck]
    recommended_screening: ScreeningLevel
    recommendations: list[str] = field(default_factory=list)

    @property
    def quality_issues(self) -> list[str]:
        return [c.message for c in self.quality_checks if not c.passed and c.message]

    @property
    def data_quality(self) -> float:
        """Share of passed quality checks."""
        if not self.quality_checks:
            return 1.0
        return round(sum(c.passed for c in self.quality_checks) / len(self.quality_checks), 4)


class ProfileAnalyzer:
    """Analyzes organization profiles for screening readiness."""

    def analyze(self, profile: OrganizationProfile) -> ProfileAnalysis:
        """
        Analyze a profile.

        Args:
            profile: Organization profile

        Returns:
            ProfileAnalysis
        """
        present = self._present_fields(profile)
        category_scores = {
            category: self._category_score(present, fields)
            for category, fields in CATEGORY_FIELDS.items()
        }
        weighted = round(
            sum(category_scores[c] * w for c, w in CATEGORY_WEIGHTS.items()), 4
        )
        checks = self.quality_checks(profile)
        missing = [f for f in FIELD_SUGGESTIONS if f not in present]

        analysis = ProfileAnalysis(
            profile_id=profile.id,
            completeness=profile.completeness_score,
            weighted_completeness=weighted,
            category_scores=category_scores,
            level=completeness_level(weighted),
            missing_fields=missing,
            quality_checks=checks,
            recommended_screening=self.recommend_screening_level(category_scores),
        )
        analysis.recommendations = self._recommendations(analysis)

        logger.info(
            "profile_analyzed",
            profile_id=profile.id,
            weighted_completeness=weighted,
            level=analysis.level.value,
            screening_level=analysis.recommended_screening.value,
            quality_issues=len(analysis.quality_issues),
        )
        return analysis

    def quality_checks(self, profile: OrganizationProfile) -> list[QualityCheck]:
        """Consistency checks that only run when both sides are known."""
        checks: list[QualityCheck] = []
        employees = profile.employee_count
        turnover = profile.annual_turnover

        if employees and turnover is not None:
            per_employee = turnover / employees
            plausible = 5_000 < per_employee < 500_000
            checks.append(
                QualityCheck(
                    name="turnover_per_employee",
                    passed=plausible,
                    message=None if plausible else (
                        f"Turnover per employee ({per_employee:,.0f}) looks implausible"
                    ),
                )
            )

            by_staff = profile.size_category
            by_turnover = turnover_size_category(turnover)
            if by_staff is not None and by_turnover is not None:
                gap = abs(_SIZE_ORDER.index(by_staff) - _SIZE_ORDER.index(by_turnover))
                checks.append(
                    QualityCheck(
                        name="size_consistency",
                        passed=gap <= 1,
                        message=None if gap <= 1 else (
                            "Employee count and turnover suggest different company sizes"
                        ),
                    )
                )

        if profile.headquarters is not None and profile.operational_jurisdictions:
            included = profile.headquarters in profile.operational_jurisdictions
            checks.append(
                QualityCheck(
                    name="headquarters_operational",
                    passed=included,
                    message=None if included else (
                        "Headquarters jurisdiction not included in operational jurisdictions"
                    ),
                )
            )
        return checks

    def recommend_screening_level(self, category_scores: dict[str, float]) -> ScreeningLevel:
        basic = category_scores["basic_identification"]
        operational = category_scores["operational_details"]

        mean = sum(category_scores.values()) / len(category_scores)
        meets_minimums = all(
            category_scores[c] >= minimum for c, minimum in COMPREHENSIVE_MINIMUMS.items()
        )
        if meets_minimums and mean >= 0.7:
            return ScreeningLevel.COMPREHENSIVE
        if basic >= 0.75 and basic * 0.6 + operational * 0.4 >= 0.6:
            return ScreeningLevel.ENHANCED
        if basic >= 0.75:
            return ScreeningLevel.BASIC
        return ScreeningLevel.INSUFFICIENT_DATA

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _present_fields(profile: OrganizationProfile) -> set[str]:
        present = profile.populated_fields()
        if profile.name and profile.name.strip():
            present.add("name")
        return present

    @staticmethod
    def _category_score(present: set[str], fields: tuple[str, ...]) -> float:
        return round(sum(1 for f in fields if f in present) / len(fields), 4)

    @staticmethod
    def _recommendations(analysis: ProfileAnalysis) -> list[str]:
        recommendations = [FIELD_SUGGESTIONS[f] for f in analysis.missing_fields]
        recommendations.extend(
            f"Review and correct: {issue}" for issue in analysis.quality_issues
        )
        return recommendations
