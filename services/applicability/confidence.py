"""
Confidence Scorer
=================

Turns a composite score and data-quality signals into a confidence
interval and a manual-review flag.

The interval half-width grows with:
- missing profile data (1 - completeness)
- the weight of dimensions the organization could not inform
- disagreement between dimension scores
- the historical correction rate of the record's family

Bounds are clamped to [0, 1] and always bracket the composite. Invalid
inputs, and records with unreadable fields, yield the widest interval and
a review flag instead of an error.

Version: 0.1.0
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from services.applicability.scoring import ScoreWeights
from services.applicability.tables import family_base
from shared.config import MatchingSettings
from shared.logging import get_logger
from shared.models.matching import ConfidenceInterval, DimensionScores
from shared.models.regulation import normalize_family


logger = get_logger(__name__)


class ReviewReason:
    """Reason codes attached to review-flagged results."""

    LOW_SCORE = "low_score"
    LOW_COMPLETENESS = "low_profile_completeness"
    DIMENSION_DISAGREEMENT = "dimension_disagreement"
    HIGH_CORRECTION_RATE = "high_correction_rate"
    RECORD_DATA_ISSUES = "record_data_issues"
    INVALID_INPUT = "invalid_input"


@dataclass
class ConfidenceConfig:
    """Interval and review thresholds."""

    score_threshold: float = 0.8
    completeness_threshold: float = 0.5
    spread_threshold: float = 0.6
    correction_rate_threshold: float = 0.3

    base_width: float = 0.05
    completeness_factor: float = 0.30
    missing_dimension_factor: float = 0.20
    spread_factor: float = 0.10
    correction_factor: float = 0.20
    max_half_width: float = 0.5

    @classmethod
    def from_settings(cls, matching: MatchingSettings) -> "ConfidenceConfig":
        return cls(
            score_threshold=matching.review_score_threshold,
            completeness_threshold=matching.review_completeness_threshold,
            spread_threshold=matching.review_spread_threshold,
            correction_rate_threshold=matching.review_correction_rate_threshold,
        )


@dataclass(frozen=True)
class ConfidenceAssessment:
    """Interval, review flag and the reasons behind it."""

    interval: ConfidenceInterval
    requires_review: bool
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def widest(cls, reason: str = ReviewReason.INVALID_INPUT) -> "ConfidenceAssessment":
        return cls(
            interval=ConfidenceInterval(lower=0.0, upper=1.0),
            requires_review=True,
            reasons=(reason,),
        )


def _unit(value: float) -> bool:
    return isinstance(value, int | float) and math.isfinite(value) and 0.0 <= value <= 1.0


class ConfidenceScorer:
    """
    Deterministic confidence intervals for match results.

    Usage:
        scorer = ConfidenceScorer(correction_rates={"FIRE": 0.4})
        assessment = scorer.assess(0.72, breakdown, completeness=0.6)
    """

    def __init__(
        self,
        config: ConfidenceConfig | None = None,
        weights: ScoreWeights | None = None,
        correction_rates: Mapping[str, float] | None = None,
    ):
        self.config = config or ConfidenceConfig()
        self.weights = weights or ScoreWeights()
        self.correction_rates = {
            normalize_family(family): rate
            for family, rate in (correction_rates or {}).items()
        }

    def correction_rate(self, family: str | None) -> float:
        """Historical correction rate for a family, 0.0 when none recorded."""
        if not family:
            return 0.0
        family = normalize_family(family)
        rate = self.correction_rates.get(family)
        if rate is None:
            rate = self.correction_rates.get(family_base(family), 0.0)
        return rate

    def half_width(
        self,
        completeness: float,
        spread: float,
        missing_dimensions: Iterable[str] = (),
        correction_rate: float = 0.0,
    ) -> float:
        weights = self.weights.as_dict()
        missing_weight = sum(weights.get(name, 0.0) for name in set(missing_dimensions))
        cfg = self.config
        width = (
            cfg.base_width
            + cfg.completeness_factor * (1.0 - completeness)
            + cfg.missing_dimension_factor * missing_weight
            + cfg.spread_factor * spread
            + cfg.correction_factor * correction_rate
        )
        return min(width, cfg.max_half_width)

    def assess(
        self,
        composite: float,
        breakdown: DimensionScores | None,
        completeness: float,
        missing_dimensions: Iterable[str] = (),
        family: str | None = None,
        data_issues: Iterable[str] = (),
    ) -> ConfidenceAssessment:
        """
        Interval and review flag for one scored candidate.

        Args:
            composite: Composite applicability score
            breakdown: Dimension scores behind the composite
            completeness: Profile completeness in [0, 1]
            missing_dimensions: Dimensions the organization could not inform
            family: Record family, for correction-rate lookup
            data_issues: Problems found while reading the record

        Returns:
            ConfidenceAssessment; the widest interval when inputs are invalid
            or the record could not be read cleanly
        """
        if breakdown is None or not _unit(composite) or not _unit(completeness):
            logger.warning(
                "confidence_input_invalid",
                composite=composite,
                completeness=completeness,
                has_breakdown=breakdown is not None,
            )
            return ConfidenceAssessment.widest()

        issues = tuple(data_issues)
        if issues:
            logger.warning("confidence_record_data_issues", family=family, issues=issues)
            return ConfidenceAssessment.widest(ReviewReason.RECORD_DATA_ISSUES)

        rate = self.correction_rate(family)
        if not _unit(rate):
            rate = 1.0
        spread = breakdown.spread
        half = self.half_width(completeness, spread, missing_dimensions, rate)

        lower = min(composite, max(0.0, round(composite - half, 4)))
        upper = max(composite, min(1.0, round(composite + half, 4)))

        cfg = self.config
        reasons: list[str] = []
        if composite < cfg.score_threshold:
            reasons.append(ReviewReason.LOW_SCORE)
        if completeness < cfg.completeness_threshold:
            reasons.append(ReviewReason.LOW_COMPLETENESS)
        if spread > cfg.spread_threshold:
            reasons.append(ReviewReason.DIMENSION_DISAGREEMENT)
        if rate >= cfg.correction_rate_threshold and rate > 0:
            reasons.append(ReviewReason.HIGH_CORRECTION_RATE)

        return ConfidenceAssessment(
            interval=ConfidenceInterval(lower=lower, upper=upper),
            requires_review=bool(reasons),
            reasons=tuple(reasons),
        )
