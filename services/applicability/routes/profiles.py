"""
Profile Routes
==============

Profile completeness and data-quality analysis.

Version: 0.1.0
"""

from fastapi import APIRouter
from pydantic import BaseModel

from services.applicability.profile import ProfileAnalyzer
from shared.logging import get_logger
from shared.models.organization import OrganizationProfile


logger = get_logger(__name__)

router = APIRouter()

profile_analyzer = ProfileAnalyzer()


class QualityCheckResponse(BaseModel):
    name: str
    passed: bool
    message: str | None = None


class ProfileAnalysisResponse(BaseModel):
    """Response for profile analysis."""

    profile_id: str
    completeness: float
    weighted_completeness: float
    completeness_level: str
    category_scores: dict[str, float]
    missing_fields: list[str]
    data_quality: float
    quality_checks: list[QualityCheckResponse]
    recommended_screening: str
    recommendations: list[str]


@router.post("/analyze", response_model=ProfileAnalysisResponse)
async def analyze_profile(profile: OrganizationProfile) -> ProfileAnalysisResponse:
    """Analyze completeness, quality and screening readiness of a profile."""
    analysis = profile_analyzer.analyze(profile)
    return ProfileAnalysisResponse(
        profile_id=analysis.profile_id,
        completeness=analysis.completeness,
        weighted_completeness=analysis.weighted_completeness,
        completeness_level=analysis.level.value,
        category_scores=analysis.category_scores,
        missing_fields=analysis.missing_fields,
        data_quality=analysis.data_quality,
        quality_checks=[
            QualityCheckResponse(name=c.name, passed=c.passed, message=c.message)
            for c in analysis.quality_checks
        ],
        recommended_screening=analysis.recommended_screening.value,
        recommendations=analysis.recommendations,
    )
