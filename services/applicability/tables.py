"""
Lookup Tables
=============

Versioned, data-driven mapping tables used by the filter pipeline and the
scoring engine:

- sector -> regulation families, SIC division -> sector
- family -> sector group
- jurisdiction containment (base region -> extents that contain it)
- role hierarchy (designation -> generalizations, transitively closed)
- size threshold rules keyed by family and topic keywords

Tables are loaded once and treated as immutable configuration.

Version: 0.1.0
"""

import json
from collections import deque
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    field_validator,
    model_validator,
)

from services.applicability.errors import LookupTableError
from shared.logging import get_logger
from shared.models.organization import OrganizationProfile
from shared.models.regulation import (
    GeoExtent,
    RegulationRecord,
    normalize_family,
    normalize_role,
)


logger = get_logger(__name__)

DEFAULT_TABLES_PATH = Path(__file__).parent / "data" / "lookup_tables.json"


def family_base(family: str) -> str:
    """Top-level part of a family label ("OH&S: FIRE" -> "OH&S")."""
    return family.split(":", 1)[0].strip()


class SizeThresholdRule(BaseModel):
    """Employee/turnover threshold implied by a regulation's topic."""

    model_config = ConfigDict(frozen=True)

    name: str
    family: str | None = None
    keywords: tuple[str, ...] = Field(..., min_length=1)
    min_employees: int | None = Field(default=None, ge=0)
    min_turnover: float | None = Field(default=None, ge=0)

    @field_validator("family", mode="before")
    @classmethod
    def clean_family(cls, v: Any) -> str | None:
        return normalize_family(v) if v else None

    @field_validator("keywords", mode="before")
    @classmethod
    def lower_keywords(cls, v: Any) -> tuple[str, ...]:
        return tuple(str(k).casefold() for k in v)

    @model_validator(mode="after")
    def requires_threshold(self) -> "SizeThresholdRule":
        if self.min_employees is None and self.min_turnover is None:
            raise ValueError(f"threshold rule {self.name!r} sets no threshold")
        return self

    def applies_to(self, record: RegulationRecord) -> bool:
        """True when the record's family and text match this rule."""
        if self.family is not None:
            if record.family is None or family_base(record.family) != self.family:
                return False
        text = record.content_text.casefold()
        return any(keyword in text for keyword in self.keywords)


class LookupTables(BaseModel):
    """Validated, immutable lookup tables."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(..., min_length=1)
    sector_families: dict[str, tuple[str, ...]]
    sic_divisions: dict[str, str] = Field(default_factory=dict)
    family_groups: dict[str, str] = Field(default_factory=dict)
    jurisdiction_containment: dict[GeoExtent, tuple[GeoExtent, ...]]
    role_hierarchy: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    size_thresholds: tuple[SizeThresholdRule, ...] = ()

    _components: dict[GeoExtent, frozenset[GeoExtent]] = PrivateAttr(default_factory=dict)
    _generalizations: dict[str, frozenset[str]] = PrivateAttr(default_factory=dict)

    @field_validator("sector_families", mode="before")
    @classmethod
    def normalize_sector_families(cls, v: dict[str, list[str]]) -> dict[str, tuple[str, ...]]:
        return {
            key.strip().lower(): tuple(normalize_family(f) for f in families)
            for key, families in v.items()
        }

    @field_validator("sic_divisions")
    @classmethod
    def check_sic_divisions(cls, v: dict[str, str]) -> dict[str, str]:
        for division in v:
            if len(division) != 2 or not division.isdigit():
                raise ValueError(f"SIC division must be two digits: {division!r}")
        return {k: s.strip().lower() for k, s in v.items()}

    @field_validator("family_groups", mode="before")
    @classmethod
    def normalize_family_groups(cls, v: dict[str, str]) -> dict[str, str]:
        return {normalize_family(k): normalize_family(g) for k, g in v.items()}

    @field_validator("jurisdiction_containment", mode="before")
    @classmethod
    def parse_containment(cls, v: dict[str, list[str]]) -> dict[GeoExtent, tuple[GeoExtent, ...]]:
        parsed: dict[GeoExtent, tuple[GeoExtent, ...]] = {}
        for region, containers in v.items():
            base = GeoExtent.parse(region)
            if base is None:
                raise ValueError(f"unknown jurisdiction in containment table: {region!r}")
            resolved = []
            for container in containers:
                extent = GeoExtent.parse(container)
                if extent is None:
                    raise ValueError(f"unknown jurisdiction in containment table: {container!r}")
                resolved.append(extent)
            if base not in resolved:
                resolved.insert(0, base)
            parsed[base] = tuple(resolved)
        return parsed

    @field_validator("role_hierarchy", mode="before")
    @classmethod
    def normalize_roles(cls, v: dict[str, list[str]]) -> dict[str, tuple[str, ...]]:
        return {
            normalize_role(child): tuple(normalize_role(p) for p in parents)
            for child, parents in v.items()
        }

    @model_validator(mode="after")
    def sic_sectors_known(self) -> "LookupTables":
        unknown = {
            s for s in self.sic_divisions.values() if s not in self.sector_families
        }
        if unknown:
            raise ValueError(f"SIC divisions map to unknown sectors: {sorted(unknown)}")
        return self

    def model_post_init(self, __context: Any) -> None:
        components: dict[GeoExtent, set[GeoExtent]] = {e: set() for e in GeoExtent}
        for base, containers in self.jurisdiction_containment.items():
            for container in containers:
                components[container].add(base)
        self._components = {e: frozenset(c) for e, c in components.items()}

        self._generalizations = {
            role: self._close(role) for role in self.role_hierarchy
        }

    def _close(self, role: str) -> frozenset[str]:
        seen: set[str] = set()
        queue = deque(self.role_hierarchy.get(role, ()))
        while queue:
            parent = queue.popleft()
            if parent in seen or parent == role:
                continue
            seen.add(parent)
            queue.extend(self.role_hierarchy.get(parent, ()))
        return frozenset(seen)

    # -------------------------------------------------------------------------
    # Sector
    # -------------------------------------------------------------------------

    def sectors_for(self, profile: OrganizationProfile) -> frozenset[str]:
        """Known sectors implied by the industry sector and SIC code."""
        sectors: set[str] = set()
        if profile.industry_sector and profile.industry_sector in self.sector_families:
            sectors.add(profile.industry_sector)
        if profile.sector_code:
            sector = self.sic_divisions.get(profile.sector_code[:2])
            if sector:
                sectors.add(sector)
        return frozenset(sectors)

    def families_for(self, profile: OrganizationProfile) -> frozenset[str]:
        """Regulation families mapped from the profile; empty when unmapped."""
        families: set[str] = set()
        for sector in self.sectors_for(profile):
            families.update(self.sector_families[sector])
        return frozenset(families)

    def group_of(self, family: str) -> str:
        """Sector group of a family, falling back to its top-level label."""
        base = family_base(family)
        return self.family_groups.get(family, self.family_groups.get(base, base))

    def groups_for(self, families: frozenset[str]) -> frozenset[str]:
        return frozenset(self.group_of(f) for f in families)

    # -------------------------------------------------------------------------
    # Geography
    # -------------------------------------------------------------------------

    def components(self, extent: GeoExtent) -> frozenset[GeoExtent]:
        """Base regions covered by an extent."""
        return self._components.get(extent, frozenset())

    def contains(self, outer: GeoExtent, inner: GeoExtent) -> bool:
        """True when `outer` covers every base region of `inner`."""
        inner_regions = self.components(inner)
        return bool(inner_regions) and inner_regions <= self.components(outer)

    def overlaps(self, extent: GeoExtent, jurisdictions: frozenset[GeoExtent]) -> bool:
        """True when the extent shares a base region with any jurisdiction."""
        regions = self.components(extent)
        return any(regions & self.components(j) for j in jurisdictions)

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    def generalizations(self, role: str) -> frozenset[str]:
        """Normalized designations that `role` generalizes to (excluding itself)."""
        return self._generalizations.get(normalize_role(role), frozenset())

    # -------------------------------------------------------------------------
    # Size thresholds
    # -------------------------------------------------------------------------

    def threshold_rules_for(self, record: RegulationRecord) -> list[SizeThresholdRule]:
        return [rule for rule in self.size_thresholds if rule.applies_to(record)]


@lru_cache
def load_lookup_tables(path: Path | None = None) -> LookupTables:
    """
    Load and validate lookup tables once per path.

    Args:
        path: Tables document; defaults to the bundled tables

    Raises:
        LookupTableError: If the document is unreadable or invalid
    """
    source = path or DEFAULT_TABLES_PATH
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise LookupTableError(f"cannot read lookup tables from {source}: {e}") from e

    try:
        tables = LookupTables.model_validate(raw)
    except (ValidationError, ValueError) as e:
        raise LookupTableError(f"invalid lookup tables in {source}: {e}") from e

    logger.info(
        "lookup_tables_loaded",
        version=tables.version,
        path=str(source),
        sectors=len(tables.sector_families),
        threshold_rules=len(tables.size_thresholds),
    )
    return tables
