"""
Filter Pipeline
===============

Narrows the corpus to a candidate set before scoring.

Layers run in a fixed order, each on the survivors of the previous one:

1. Status (hard): in force on the screening date
2. Geography (hard): extent shares a base region with the organization
3. Sector (soft): family (or its top-level base) is a mapped family; no-op when unmapped
4. Size (soft): drop records whose known threshold is explicitly unmet
5. Role (soft): a declared designation, or a generalization, holds a role

Soft layers pass everything through when the organization lacks the data
they need. An empty candidate set is a valid outcome.

Version: 0.1.0
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from services.applicability.tables import LookupTables, SizeThresholdRule, family_base
from shared.logging import get_logger
from shared.models.organization import OrganizationProfile
from shared.models.regulation import GeoExtent, RegulationRecord, normalize_role


logger = get_logger(__name__)


class FilterLayer(str, Enum):
    """Pipeline layers in execution order."""

    STATUS = "status"
    GEOGRAPHY = "geography"
    SECTOR = "sector"
    SIZE = "size"
    ROLE = "role"


class ThresholdStatus(str, Enum):
    """How an organization stands against a record's size thresholds."""

    SATISFIED = "satisfied"
    UNMET = "unmet"
    UNKNOWN = "unknown"
    NOT_APPLICABLE = "not_applicable"


# =============================================================================
# Helpers shared with scoring
# =============================================================================


def screening_date(now: date | datetime) -> date:
    """Calendar day used for in-force checks."""
    return now.date() if isinstance(now, datetime) else now


def screening_jurisdictions(profile: OrganizationProfile) -> frozenset[GeoExtent]:
    """Jurisdictions to screen against; UK-wide when none are declared."""
    return profile.jurisdictions or frozenset({GeoExtent.UNITED_KINGDOM})


def primary_jurisdiction(profile: OrganizationProfile) -> GeoExtent:
    return profile.primary_jurisdiction or GeoExtent.UNITED_KINGDOM


def expand_roles(roles: Iterable[str], tables: LookupTables) -> tuple[frozenset[str], frozenset[str]]:
    """
    Normalize declared designations and their generalizations.

    Returns:
        (declared, generalized) where generalized excludes declared names
    """
    declared = frozenset(r for r in (normalize_role(role) for role in roles) if r)
    generalized: set[str] = set()
    for role in declared:
        generalized.update(tables.generalizations(role))
    return declared, frozenset(generalized - declared)


def _rule_status(rule: SizeThresholdRule, profile: OrganizationProfile) -> ThresholdStatus:
    checks: list[bool | None] = []
    if rule.min_employees is not None:
        checks.append(
            None if profile.employee_count is None
            else profile.employee_count >= rule.min_employees
        )
    if rule.min_turnover is not None:
        checks.append(
            None if profile.annual_turnover is None
            else profile.annual_turnover >= rule.min_turnover
        )

    # Any satisfied measure meets the rule
    if any(c is True for c in checks):
        return ThresholdStatus.SATISFIED
    if any(c is None for c in checks):
        return ThresholdStatus.UNKNOWN
    return ThresholdStatus.UNMET


def evaluate_threshold(
    rules: Iterable[SizeThresholdRule],
    profile: OrganizationProfile,
) -> ThresholdStatus:
    """
    Combine every threshold rule implied by a record.

    Unmet wins over unknown, unknown over satisfied. Records with no rule
    are not threshold regulations.
    """
    statuses = {_rule_status(rule, profile) for rule in rules}
    if not statuses:
        return ThresholdStatus.NOT_APPLICABLE
    if ThresholdStatus.UNMET in statuses:
        return ThresholdStatus.UNMET
    if ThresholdStatus.UNKNOWN in statuses:
        return ThresholdStatus.UNKNOWN
    return ThresholdStatus.SATISFIED


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class LayerTrace:
    """Effect of one pipeline layer."""

    layer: FilterLayer
    applied: bool
    records_in: int
    records_out: int

    @property
    def excluded(self) -> int:
        return self.records_in - self.records_out


@dataclass
class FilterOutcome:
    """Candidates that survived every layer, with per-layer trace."""

    candidates: list[RegulationRecord] = field(default_factory=list)
    trace: list[LayerTrace] = field(default_factory=list)
    thresholds: dict[str, ThresholdStatus] = field(default_factory=dict)

    def threshold_for(self, record_id: str) -> ThresholdStatus:
        return self.thresholds.get(record_id, ThresholdStatus.NOT_APPLICABLE)


# =============================================================================
# Pipeline
# =============================================================================


class FilterPipeline:
    """
    Ordered constraint layers over a corpus snapshot.

    Every layer is a public method so its effect can be exercised alone.
    """

    def __init__(self, tables: LookupTables):
        self.tables = tables

    def run(
        self,
        profile: OrganizationProfile,
        records: Iterable[RegulationRecord],
        now: date | datetime,
    ) -> FilterOutcome:
        """
        Apply every layer in order.

        Args:
            profile: Organization being screened
            records: Corpus snapshot records
            now: Screening clock

        Returns:
            FilterOutcome with candidates, trace and threshold statuses
        """
        outcome = FilterOutcome()
        current = list(records)

        steps = (
            (FilterLayer.STATUS, lambda rs: self.status_layer(rs, now)),
            (FilterLayer.GEOGRAPHY, lambda rs: self.geography_layer(rs, profile)),
            (FilterLayer.SECTOR, lambda rs: self.sector_layer(rs, profile)),
            (FilterLayer.SIZE, lambda rs: self.size_layer(rs, profile, outcome.thresholds)),
            (FilterLayer.ROLE, lambda rs: self.role_layer(rs, profile)),
        )
        for layer, apply in steps:
            survivors, applied = apply(current)
            trace = LayerTrace(
                layer=layer,
                applied=applied,
                records_in=len(current),
                records_out=len(survivors),
            )
            outcome.trace.append(trace)
            logger.debug(
                "filter_layer_applied",
                layer=layer.value,
                applied=applied,
                records_in=trace.records_in,
                records_out=trace.records_out,
            )
            current = survivors

        outcome.candidates = current
        return outcome

    # -------------------------------------------------------------------------
    # Layers
    # -------------------------------------------------------------------------

    def status_layer(
        self,
        records: list[RegulationRecord],
        now: date | datetime,
    ) -> tuple[list[RegulationRecord], bool]:
        """Keep records in force on the screening date. Always applied."""
        day = screening_date(now)
        return [r for r in records if r.is_in_force(day)], True

    def geography_layer(
        self,
        records: list[RegulationRecord],
        profile: OrganizationProfile,
    ) -> tuple[list[RegulationRecord], bool]:
        """Keep records whose extent overlaps an operated jurisdiction. Always applied."""
        jurisdictions = screening_jurisdictions(profile)
        return [r for r in records if self.tables.overlaps(r.geo_extent, jurisdictions)], True

    def sector_layer(
        self,
        records: list[RegulationRecord],
        profile: OrganizationProfile,
    ) -> tuple[list[RegulationRecord], bool]:
        """
        Keep records in the mapped families; no-op when unmapped.

        Sub-families ("CONSTRUCTION: SITES") pass on their top-level base.
        Same-group siblings are left out here and only earn partial credit
        in the sector score.
        """
        families = self.tables.families_for(profile)
        if not families:
            return records, False

        kept = [
            r for r in records
            if r.family is not None
            and (r.family in families or family_base(r.family) in families)
        ]
        return kept, True

    def size_layer(
        self,
        records: list[RegulationRecord],
        profile: OrganizationProfile,
        thresholds: dict[str, ThresholdStatus] | None = None,
    ) -> tuple[list[RegulationRecord], bool]:
        """
        Drop records whose size threshold is explicitly unmet.

        Unknown size fails open. Statuses for every inspected record are
        written into `thresholds` when given.
        """
        statuses = thresholds if thresholds is not None else {}
        for record in records:
            statuses[record.id] = evaluate_threshold(
                self.tables.threshold_rules_for(record), profile
            )

        if profile.employee_count is None and profile.annual_turnover is None:
            return records, False
        kept = [r for r in records if statuses[r.id] != ThresholdStatus.UNMET]
        return kept, True

    def role_layer(
        self,
        records: list[RegulationRecord],
        profile: OrganizationProfile,
    ) -> tuple[list[RegulationRecord], bool]:
        """Keep records naming a declared role or one of its generalizations."""
        declared, generalized = expand_roles(profile.roles, self.tables)
        if not declared:
            return records, False

        wanted = declared | generalized
        return [r for r in records if r.holders() & wanted], True
