"""
Organization Similarity Matcher
===============================

Finds already-screened organizations with similar non-confidential
attributes and returns anonymized aggregates of their results, to prime
screening for a new profile.

Criteria and weights:
- Sector classification exact match: 0.35 (SIC codes when both carry one,
  otherwise the industry sector)
- Sector group match: 0.25
- Size category match: 0.20
- Geography: 0.15 x Jaccard overlap of covered base regions
- Organization type match: 0.05

Organizations sharing the queried organization's domain are never
candidates. Output never carries names, domains, ids or raw figures.

Version: 0.1.0
"""

from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel, Field

from services.applicability.tables import LookupTables
from shared.logging import get_logger
from shared.models.matching import AnonymizedProfile, MatchResult, SimilarityMatch
from shared.models.organization import OrganizationProfile
from shared.models.regulation import GeoExtent


logger = get_logger(__name__)

UNCATEGORIZED = "UNCATEGORIZED"

SIMILARITY_WEIGHTS: dict[str, float] = {
    "sector_code": 0.35,
    "sector_group": 0.25,
    "size_category": 0.20,
    "geography": 0.15,
    "organization_type": 0.05,
}


class OrganizationWithResults(BaseModel):
    """A previously screened organization and its match results."""

    profile: OrganizationProfile
    results: list[MatchResult] = Field(default_factory=list)


class SimilarityMatcher:
    """
    Read-only similarity search over other organizations' results.

    Usage:
        matcher = SimilarityMatcher(tables)
        matches = matcher.find_similar(profile, others)
    """

    def __init__(
        self,
        tables: LookupTables,
        threshold: float = 0.8,
        max_results: int = 3,
    ):
        self.tables = tables
        self.threshold = threshold
        self.max_results = max_results

    def find_similar(
        self,
        profile: OrganizationProfile,
        candidates: Iterable[OrganizationWithResults],
    ) -> list[SimilarityMatch]:
        """
        Top similar organizations at or above the threshold.

        Args:
            profile: Organization being onboarded
            candidates: Other organizations with their prior results

        Returns:
            At most `max_results` anonymized matches, best first
        """
        own_domain = profile.identity_domain
        scored: list[tuple[float, str, tuple[str, ...], OrganizationWithResults]] = []
        excluded = 0
        considered = 0

        for candidate in candidates:
            other = candidate.profile
            considered += 1
            if other.id == profile.id or (
                own_domain is not None and other.identity_domain == own_domain
            ):
                excluded += 1
                continue

            score, matched_on = self.similarity(profile, other)
            if score >= self.threshold:
                scored.append((score, other.id, matched_on, candidate))

        scored.sort(key=lambda item: (-item[0], item[1]))
        matches = [
            self._anonymize(score, matched_on, candidate)
            for score, _, matched_on, candidate in scored[: self.max_results]
        ]

        logger.info(
            "similar_organizations_found",
            profile_id=profile.id,
            considered=considered,
            excluded_siblings=excluded,
            above_threshold=len(scored),
            returned=len(matches),
        )
        return matches

    def similarity(
        self,
        profile: OrganizationProfile,
        other: OrganizationProfile,
    ) -> tuple[float, tuple[str, ...]]:
        """Weighted similarity in [0, 1] and the criteria that matched."""
        score = 0.0
        matched: list[str] = []

        if profile.sector_code and other.sector_code:
            same_sector = profile.sector_code == other.sector_code
        else:
            same_sector = _same(profile.industry_sector, other.industry_sector)
        if same_sector:
            score += SIMILARITY_WEIGHTS["sector_code"]
            matched.append("sector_code")

        if self._sector_groups(profile) & self._sector_groups(other):
            score += SIMILARITY_WEIGHTS["sector_group"]
            matched.append("sector_group")

        if _same(profile.size_category, other.size_category):
            score += SIMILARITY_WEIGHTS["size_category"]
            matched.append("size_category")

        overlap = self._geography_overlap(profile.jurisdictions, other.jurisdictions)
        if overlap > 0:
            score += SIMILARITY_WEIGHTS["geography"] * overlap
            matched.append("geography")

        if _same(profile.organization_type, other.organization_type):
            score += SIMILARITY_WEIGHTS["organization_type"]
            matched.append("organization_type")

        return round(min(score, 1.0), 4), tuple(matched)

    @staticmethod
    def category_priors(matches: Iterable[SimilarityMatch]) -> dict[str, float]:
        """Share of similar organizations whose results include each category."""
        matches = list(matches)
        if not matches:
            return {}
        seen: Counter[str] = Counter()
        for match in matches:
            seen.update(c for c, n in match.law_categories.items() if n > 0)
        return {
            category: round(count / len(matches), 4)
            for category, count in sorted(seen.items())
        }

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _sector_groups(self, profile: OrganizationProfile) -> frozenset[str]:
        return self.tables.groups_for(self.tables.families_for(profile))

    def _regions(self, jurisdictions: frozenset[GeoExtent]) -> frozenset[GeoExtent]:
        regions: set[GeoExtent] = set()
        for extent in jurisdictions:
            regions.update(self.tables.components(extent))
        return frozenset(regions)

    def _geography_overlap(
        self,
        left: frozenset[GeoExtent],
        right: frozenset[GeoExtent],
    ) -> float:
        a, b = self._regions(left), self._regions(right)
        if not a or not b:
            return 0.0
        return len(a & b) / len(a | b)

    def _anonymize(
        self,
        score: float,
        matched_on: tuple[str, ...],
        candidate: OrganizationWithResults,
    ) -> SimilarityMatch:
        other = candidate.profile
        categories = Counter(r.family or UNCATEGORIZED for r in candidate.results)
        return SimilarityMatch(
            similarity_score=score,
            matched_on=matched_on,
            profile_summary=AnonymizedProfile(
                industry_sector=other.industry_sector,
                sector_groups=tuple(sorted(self._sector_groups(other))),
                size_category=other.size_category,
                operational_jurisdictions=tuple(
                    sorted(j.value for j in other.jurisdictions)
                ),
                organization_type=other.organization_type,
            ),
            law_categories=dict(sorted(categories.items())),
            applicable_regulation_count=len(candidate.results),
            risk_indicators=dict(sorted(other.risk_indicators.items())),
        )


def _same(left: object | None, right: object | None) -> bool:
    return left is not None and left == right
