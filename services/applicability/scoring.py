"""
Applicability Scoring Engine
============================

Weighted multi-dimensional score for every candidate that survived the
filter pipeline.

Dimensions (each in [0, 1]):
- Sector: exact family 1.0, same sector group partial credit
- Role: exact designation 1.0, hierarchy-generalized partial credit
- Geography: primary jurisdiction named 1.0, containing extent partial
  credit, other operated jurisdiction lower credit
- Size: threshold satisfied 1.0, unknown neutral, unmet 0.0
- Content: keyword overlap between activities and record text

Composite is a convex combination of the dimensions, so it always lies
between the lowest and highest dimension score.

Version: 0.1.0
"""

import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from services.applicability.filters import (
    ThresholdStatus,
    expand_roles,
    primary_jurisdiction,
    screening_jurisdictions,
)
from services.applicability.tables import LookupTables, family_base
from shared.config import MatchingSettings
from shared.logging import get_logger
from shared.models.matching import DimensionScores
from shared.models.organization import OrganizationProfile
from shared.models.regulation import RegulationRecord


logger = get_logger(__name__)


# =============================================================================
# Score Configuration
# =============================================================================


@dataclass
class ScoreWeights:
    """Composite weights per dimension. Must sum to 1.0."""

    sector: float = 0.30
    role: float = 0.25
    geography: float = 0.20
    size: float = 0.15
    content: float = 0.10

    def __post_init__(self) -> None:
        values = self.as_dict()
        if any(w < 0 for w in values.values()):
            raise ValueError("score weights must be non-negative")
        total = sum(values.values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"score weights must sum to 1.0, got {total:.4f}")

    @classmethod
    def from_settings(cls, matching: MatchingSettings) -> "ScoreWeights":
        return cls(
            sector=matching.sector_weight,
            role=matching.role_weight,
            geography=matching.geography_weight,
            size=matching.size_weight,
            content=matching.content_weight,
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "sector": self.sector,
            "role": self.role,
            "geography": self.geography,
            "size": self.size,
            "content": self.content,
        }


@dataclass
class PartialCredit:
    """Scores awarded for near matches."""

    sector_group: float = 0.5
    role_hierarchy: float = 0.7
    containing_jurisdiction: float = 0.8
    operational_jurisdiction: float = 0.5
    unknown_size: float = 0.5

    @classmethod
    def from_settings(cls, matching: MatchingSettings) -> "PartialCredit":
        return cls(
            sector_group=matching.sector_group_credit,
            role_hierarchy=matching.role_hierarchy_credit,
            containing_jurisdiction=matching.containing_jurisdiction_credit,
            operational_jurisdiction=matching.operational_jurisdiction_credit,
            unknown_size=matching.unknown_size_credit,
        )


# =============================================================================
# Keyword extraction
# =============================================================================


_TOKEN = re.compile(r"[a-z0-9]+")

STOPWORDS = frozenset(
    {
        "a", "an", "and", "any", "are", "as", "at", "be", "by", "for", "from",
        "has", "have", "in", "into", "is", "it", "its", "may", "must", "not",
        "of", "on", "or", "other", "shall", "such", "that", "the", "their",
        "this", "to", "under", "use", "used", "where", "which", "who", "with",
        "act", "order", "regulation", "regulations", "amendment", "uk",
    }
)


def extract_keywords(text: str) -> frozenset[str]:
    """Lower-cased, de-pluralized content words of three or more letters."""
    keywords: set[str] = set()
    for token in _TOKEN.findall(text.casefold()):
        if len(token) < 3 or token in STOPWORDS or token.isdigit():
            continue
        if len(token) > 4 and token.endswith("s") and not token.endswith("ss"):
            token = token[:-1]
        keywords.add(token)
    return frozenset(keywords)


def overlap_coefficient(left: frozenset[str], right: frozenset[str]) -> float:
    """|A ∩ B| / min(|A|, |B|); 0.0 when either side is empty."""
    if not left or not right:
        return 0.0
    return len(left & right) / min(len(left), len(right))


# =============================================================================
# Results
# =============================================================================


@dataclass
class ScoredCandidate:
    """A candidate with its dimension scores and explanation."""

    record: RegulationRecord
    breakdown: DimensionScores
    composite: float
    threshold_status: ThresholdStatus = ThresholdStatus.NOT_APPLICABLE
    matched_roles: tuple[str, ...] = ()
    matched_keywords: tuple[str, ...] = ()

    # Dimensions the organization could not inform
    missing_dimensions: frozenset[str] = field(default_factory=frozenset)


def ranking_key(candidate: ScoredCandidate) -> tuple:
    """
    Composite descending, then most recent activity date descending
    (undated last), then record id ascending.
    """
    activity = candidate.record.latest_activity_date
    return (
        -candidate.composite,
        activity is None,
        -activity.toordinal() if activity is not None else 0,
        candidate.record.id,
    )


def rank(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    return sorted(candidates, key=ranking_key)


# =============================================================================
# Scoring Engine
# =============================================================================


class ScoringEngine:
    """Per-dimension and composite scoring for one profile at a time."""

    def __init__(
        self,
        tables: LookupTables,
        weights: ScoreWeights | None = None,
        credit: PartialCredit | None = None,
    ):
        self.tables = tables
        self.weights = weights or ScoreWeights()
        self.credit = credit or PartialCredit()

    def score(
        self,
        profile: OrganizationProfile,
        record: RegulationRecord,
        threshold_status: ThresholdStatus = ThresholdStatus.NOT_APPLICABLE,
    ) -> ScoredCandidate:
        """
        Score one candidate.

        Args:
            profile: Organization being screened
            record: Candidate that passed the filter pipeline
            threshold_status: Size threshold evaluation from the pipeline

        Returns:
            ScoredCandidate with breakdown and composite
        """
        families = self.tables.families_for(profile)
        declared, generalized = expand_roles(profile.roles, self.tables)
        activity_keywords = extract_keywords(" ".join(sorted(profile.activities)))

        role, matched_roles = self.role_score(record, declared, generalized)
        content, matched_keywords = self.content_score(activity_keywords, record)

        breakdown = DimensionScores(
            sector=round(self.sector_score(record, families), 4),
            role=round(role, 4),
            geography=round(self.geography_score(profile, record), 4),
            size=round(self.size_score(threshold_status), 4),
            content=round(content, 4),
        )

        missing: set[str] = set()
        if not families:
            missing.add("sector")
        if not declared:
            missing.add("role")
        if not profile.jurisdictions:
            missing.add("geography")
        if threshold_status == ThresholdStatus.UNKNOWN:
            missing.add("size")
        if not activity_keywords:
            missing.add("content")

        return ScoredCandidate(
            record=record,
            breakdown=breakdown,
            composite=self.composite(breakdown),
            threshold_status=threshold_status,
            matched_roles=matched_roles,
            matched_keywords=matched_keywords,
            missing_dimensions=frozenset(missing),
        )

    def composite(self, breakdown: DimensionScores) -> float:
        """Weighted sum, kept inside [min, max] of the breakdown."""
        scores = breakdown.as_dict()
        weights = self.weights.as_dict()
        total = round(sum(weights[name] * value for name, value in scores.items()), 4)
        return min(max(total, min(scores.values())), max(scores.values()))

    # -------------------------------------------------------------------------
    # Dimensions
    # -------------------------------------------------------------------------

    def sector_score(self, record: RegulationRecord, families: frozenset[str]) -> float:
        if record.family is None or not families:
            return 0.0
        if record.family in families:
            return 1.0
        groups = self.tables.groups_for(families)
        if family_base(record.family) in families or self.tables.group_of(record.family) in groups:
            return self.credit.sector_group
        return 0.0

    def role_score(
        self,
        record: RegulationRecord,
        declared: frozenset[str],
        generalized: frozenset[str],
    ) -> tuple[float, tuple[str, ...]]:
        if not declared:
            return 0.0, ()
        holders = record.holders()
        exact = holders & declared
        if exact:
            return 1.0, tuple(sorted(exact))
        general = holders & generalized
        if general:
            return self.credit.role_hierarchy, tuple(sorted(general))
        return 0.0, ()

    def geography_score(self, profile: OrganizationProfile, record: RegulationRecord) -> float:
        primary = primary_jurisdiction(profile)
        if record.geo_extent == primary:
            return 1.0
        if self.tables.contains(record.geo_extent, primary):
            return self.credit.containing_jurisdiction
        if self.tables.overlaps(record.geo_extent, screening_jurisdictions(profile)):
            return self.credit.operational_jurisdiction
        return 0.0

    def size_score(self, status: ThresholdStatus) -> float:
        if status == ThresholdStatus.UNMET:
            return 0.0
        if status == ThresholdStatus.UNKNOWN:
            return self.credit.unknown_size
        return 1.0

    def content_score(
        self,
        activity_keywords: frozenset[str],
        record: RegulationRecord,
    ) -> tuple[float, tuple[str, ...]]:
        record_keywords = extract_keywords(record.content_text)
        score = overlap_coefficient(activity_keywords, record_keywords)
        return score, tuple(sorted(activity_keywords & record_keywords))
