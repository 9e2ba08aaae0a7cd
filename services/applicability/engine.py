"""
Applicability Engine
====================

Entry points for screening and similarity:

- screen(profile, corpus, now) -> ranked MatchResults
- screen_with_report(profile, corpus, now) -> results plus filter trace,
  corpus version, complexity level and timing
- find_similar(profile, others) -> up to three anonymized SimilarityMatches

Screening is a pure function of its inputs. The engine holds only
immutable configuration, so one instance can serve concurrent calls.

Version: 0.1.0
"""

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from services.applicability.confidence import (
    ConfidenceAssessment,
    ConfidenceConfig,
    ConfidenceScorer,
)
from services.applicability.corpus import CorpusSnapshot
from services.applicability.errors import CorpusUnavailable, InvalidProfile
from services.applicability.filters import FilterPipeline, LayerTrace, ThresholdStatus
from services.applicability.scoring import (
    PartialCredit,
    ScoredCandidate,
    ScoreWeights,
    ScoringEngine,
    rank,
)
from services.applicability.similarity import OrganizationWithResults, SimilarityMatcher
from services.applicability.tables import LookupTables, load_lookup_tables
from shared.config import Settings, get_settings
from shared.logging import get_logger
from shared.models.matching import DimensionScores, MatchResult, SimilarityMatch
from shared.models.organization import OrganizationProfile
from shared.models.regulation import RegulationRecord


logger = get_logger(__name__)


class ComplexityLevel(str, Enum):
    """Screening depth chosen from profile completeness."""

    BASIC = "basic"
    ENHANCED = "enhanced"
    COMPREHENSIVE = "comprehensive"

    @classmethod
    def for_completeness(cls, completeness: float) -> "ComplexityLevel":
        if completeness >= 0.8:
            return cls.COMPREHENSIVE
        if completeness >= 0.5:
            return cls.ENHANCED
        return cls.BASIC


@dataclass
class ScreeningReport:
    """Results of one screening call with how they were produced."""

    profile_id: str
    corpus_version: str
    corpus_size: int
    complexity: ComplexityLevel
    completeness: float
    screened_on: date
    results: list[MatchResult] = field(default_factory=list)
    filter_trace: list[LayerTrace] = field(default_factory=list)
    degraded: int = 0
    duration_ms: float = 0.0

    @property
    def review_count(self) -> int:
        return sum(1 for r in self.results if r.requires_review)


class ApplicabilityEngine:
    """
    Layered filter-and-score applicability matching.

    Usage:
        engine = build_engine()
        results = engine.screen(profile, store.snapshot(), now=date.today())
    """

    def __init__(
        self,
        tables: LookupTables,
        weights: ScoreWeights | None = None,
        credit: PartialCredit | None = None,
        confidence: ConfidenceConfig | None = None,
        correction_rates: Mapping[str, float] | None = None,
        similarity_threshold: float = 0.8,
        similarity_max_results: int = 3,
    ):
        self.tables = tables
        self.weights = weights or ScoreWeights()
        self.pipeline = FilterPipeline(tables)
        self.scoring = ScoringEngine(tables, self.weights, credit)
        self.confidence = ConfidenceScorer(confidence, self.weights, correction_rates)
        self.similarity = SimilarityMatcher(
            tables,
            threshold=similarity_threshold,
            max_results=similarity_max_results,
        )

    # -------------------------------------------------------------------------
    # Screening
    # -------------------------------------------------------------------------

    def validate_profile(self, profile: OrganizationProfile) -> None:
        """
        Raises:
            InvalidProfile: If the profile has neither sector nor jurisdiction
        """
        if not profile.has_sector and not profile.jurisdictions:
            raise InvalidProfile(profile.id, ["sector", "jurisdiction"])

    def screen(
        self,
        profile: OrganizationProfile,
        corpus: CorpusSnapshot | None,
        now: date | datetime,
    ) -> list[MatchResult]:
        """
        Ranked applicable regulations for a profile.

        Args:
            profile: Organization profile, treated as final for this call
            corpus: Corpus snapshot to screen against
            now: Screening clock

        Returns:
            MatchResults, best first; possibly empty

        Raises:
            InvalidProfile: If the profile carries no sector and no jurisdiction
            CorpusUnavailable: If no corpus snapshot was supplied
        """
        return self.screen_with_report(profile, corpus, now).results

    def screen_with_report(
        self,
        profile: OrganizationProfile,
        corpus: CorpusSnapshot | None,
        now: date | datetime,
    ) -> ScreeningReport:
        """Screen and keep the filter trace, corpus version and timing."""
        if corpus is None:
            raise CorpusUnavailable("no corpus snapshot supplied to screening")
        self.validate_profile(profile)

        started = time.perf_counter()
        completeness = profile.completeness_score
        complexity = ComplexityLevel.for_completeness(completeness)

        outcome = self.pipeline.run(profile, corpus.records, now)

        scored: list[ScoredCandidate] = []
        assessments: dict[str, ConfidenceAssessment] = {}
        degraded = 0
        for record in outcome.candidates:
            status = outcome.threshold_for(record.id)
            try:
                candidate = self.scoring.score(profile, record, status)
                assessment = self.confidence.assess(
                    candidate.composite,
                    candidate.breakdown,
                    completeness,
                    missing_dimensions=candidate.missing_dimensions,
                    family=record.family,
                    data_issues=record.data_issues,
                )
            except (ValueError, TypeError, KeyError) as e:
                degraded += 1
                logger.warning(
                    "record_scoring_degraded",
                    profile_id=profile.id,
                    regulation_id=record.id,
                    error=str(e),
                )
                candidate = _degraded_candidate(record, status)
                assessment = ConfidenceAssessment.widest()
            scored.append(candidate)
            assessments[record.id] = assessment

        results = [
            _to_result(candidate, assessments[candidate.record.id])
            for candidate in rank(scored)
        ]

        report = ScreeningReport(
            profile_id=profile.id,
            corpus_version=corpus.version,
            corpus_size=len(corpus),
            complexity=complexity,
            completeness=completeness,
            screened_on=now.date() if isinstance(now, datetime) else now,
            results=results,
            filter_trace=outcome.trace,
            degraded=degraded,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        logger.info(
            "screening_completed",
            profile_id=profile.id,
            corpus_version=corpus.version,
            complexity=complexity.value,
            candidates=len(outcome.candidates),
            results=len(results),
            review=report.review_count,
            degraded=degraded,
            duration_ms=report.duration_ms,
        )
        return report

    # -------------------------------------------------------------------------
    # Similarity
    # -------------------------------------------------------------------------

    def find_similar(
        self,
        profile: OrganizationProfile,
        others: Iterable[OrganizationWithResults],
    ) -> list[SimilarityMatch]:
        """Anonymized similar organizations, best first (at most three by default)."""
        return self.similarity.find_similar(profile, others)


def _degraded_candidate(record: RegulationRecord, status: ThresholdStatus) -> ScoredCandidate:
    return ScoredCandidate(
        record=record,
        breakdown=DimensionScores(),
        composite=0.0,
        threshold_status=status,
    )


def _to_result(candidate: ScoredCandidate, assessment: ConfidenceAssessment) -> MatchResult:
    record = candidate.record
    return MatchResult(
        regulation_id=record.id,
        title=record.title,
        family=record.family,
        composite_score=candidate.composite,
        breakdown=candidate.breakdown,
        confidence=assessment.interval,
        requires_review=assessment.requires_review,
        review_reasons=assessment.reasons,
        matched_roles=candidate.matched_roles,
        matched_keywords=candidate.matched_keywords,
        threshold_status=candidate.threshold_status.value,
    )


def build_engine(
    settings: Settings | None = None,
    correction_rates: Mapping[str, float] | None = None,
) -> ApplicabilityEngine:
    """
    Create an engine from application settings.

    Raises:
        LookupTableError: If the configured lookup tables are invalid
    """
    settings = settings or get_settings()
    matching = settings.matching
    engine = ApplicabilityEngine(
        tables=load_lookup_tables(settings.corpus.lookup_tables_path),
        weights=ScoreWeights.from_settings(matching),
        credit=PartialCredit.from_settings(matching),
        confidence=ConfidenceConfig.from_settings(matching),
        correction_rates=correction_rates,
        similarity_threshold=matching.similarity_threshold,
        similarity_max_results=matching.similarity_max_results,
    )
    logger.info(
        "applicability_engine_built",
        tables_version=engine.tables.version,
        weights=engine.weights.as_dict(),
    )
    return engine
