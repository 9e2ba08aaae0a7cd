"""
Similarity Routes
=================

Anonymized similar-organization lookup over caller-supplied candidates.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from services.applicability.dependencies import get_engine
from services.applicability.engine import ApplicabilityEngine
from services.applicability.similarity import OrganizationWithResults, SimilarityMatcher
from shared.logging import get_logger
from shared.models.matching import SimilarityMatch
from shared.models.organization import OrganizationProfile


logger = get_logger(__name__)

router = APIRouter()


class SimilarityRequest(BaseModel):
    """Profile to match and the organizations to compare it with."""

    profile: OrganizationProfile
    candidates: list[OrganizationWithResults] = Field(default_factory=list)


class SimilarityResponse(BaseModel):
    """Anonymized matches and per-category priors."""

    matches: list[SimilarityMatch]
    category_priors: dict[str, float]


@router.post("", response_model=SimilarityResponse)
async def find_similar_organizations(
    request: SimilarityRequest,
    engine: ApplicabilityEngine = Depends(get_engine),
) -> SimilarityResponse:
    """
    Find up to three similar organizations.

    Candidates sharing the profile's domain are never compared, and no
    identifying attribute of a candidate is returned.
    """
    matches = engine.find_similar(request.profile, request.candidates)
    return SimilarityResponse(
        matches=matches,
        category_priors=SimilarityMatcher.category_priors(matches),
    )
