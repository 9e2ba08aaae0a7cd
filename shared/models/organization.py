"""
Organization Models
===================

Organization profiles consumed (read-only) by the applicability matcher.

Core attributes are typed fields. Extended attributes discovered over time
(risk indicators, roles, activities) live in a tagged-variant map so their
shapes are validated once at the boundary.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    computed_field,
    field_validator,
)

from shared.models.regulation import GeoExtent


# =============================================================================
# Extended attribute variants
# =============================================================================


class FlagValue(BaseModel):
    """Boolean extended attribute (e.g. a risk indicator)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["boolean"] = "boolean"
    value: bool


class NumberValue(BaseModel):
    """Numeric extended attribute."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    value: float


class TextValue(BaseModel):
    """Free-text extended attribute."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    value: str


class TextSetValue(BaseModel):
    """Set-of-strings extended attribute (roles, activities)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string_set"] = "string_set"
    value: frozenset[str]


ExtendedValue = Annotated[
    FlagValue | NumberValue | TextValue | TextSetValue,
    Field(discriminator="kind"),
]

_extended_adapter: TypeAdapter[Any] = TypeAdapter(ExtendedValue)


def as_extended_value(raw: Any) -> FlagValue | NumberValue | TextValue | TextSetValue:
    """
    Wrap a plain value in its tagged variant.

    Raises:
        ValueError: If the value has no supported shape.
    """
    if isinstance(raw, FlagValue | NumberValue | TextValue | TextSetValue):
        return raw
    if isinstance(raw, bool):
        return FlagValue(value=raw)
    if isinstance(raw, int | float):
        return NumberValue(value=float(raw))
    if isinstance(raw, str):
        return TextValue(value=raw)
    if isinstance(raw, dict) and "kind" in raw:
        return _extended_adapter.validate_python(raw)
    if isinstance(raw, list | tuple | set | frozenset):
        if not all(isinstance(item, str) for item in raw):
            raise ValueError("extended string sets may only contain strings")
        return TextSetValue(value=frozenset(item.strip() for item in raw if item.strip()))
    raise ValueError(f"unsupported extended attribute value: {type(raw).__name__}")


ROLES_KEY = "roles"
ACTIVITIES_KEY = "activities"

RISK_INDICATORS = (
    "hazardous_substances",
    "work_at_height",
    "night_work",
    "confined_spaces",
    "lone_working",
    "manual_handling",
    "noise_exposure",
    "vehicle_operations",
    "public_access",
    "food_handling",
)


# =============================================================================
# Size categories
# =============================================================================


class SizeCategory(str, Enum):
    """Bucketed organization size."""

    MICRO = "micro"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"


def employee_size_category(count: int | None) -> SizeCategory | None:
    """Bucket an employee count."""
    if count is None:
        return None
    if count < 10:
        return SizeCategory.MICRO
    if count < 50:
        return SizeCategory.SMALL
    if count < 250:
        return SizeCategory.MEDIUM
    if count < 1000:
        return SizeCategory.LARGE
    return SizeCategory.ENTERPRISE


def turnover_size_category(turnover: float | None) -> SizeCategory | None:
    """Bucket an annual turnover (GBP)."""
    if turnover is None:
        return None
    if turnover < 100_000:
        return SizeCategory.MICRO
    if turnover < 1_000_000:
        return SizeCategory.SMALL
    if turnover < 10_000_000:
        return SizeCategory.MEDIUM
    if turnover < 50_000_000:
        return SizeCategory.LARGE
    return SizeCategory.ENTERPRISE


# =============================================================================
# Profile
# =============================================================================


# Weighted toward the fields that move applicability the most.
COMPLETENESS_WEIGHTS: dict[str, float] = {
    "industry_sector": 0.20,
    "operational_jurisdictions": 0.15,
    "employee_count": 0.15,
    "headquarters": 0.10,
    "sector_code": 0.10,
    "roles": 0.10,
    "activities": 0.10,
    "annual_turnover": 0.05,
    "organization_type": 0.03,
    "risk_indicators": 0.02,
}


def _parse_jurisdiction(raw: Any) -> GeoExtent:
    extent = GeoExtent.parse(raw)
    if extent is None:
        raise ValueError(f"unknown jurisdiction: {raw!r}")
    return extent


class OrganizationProfile(BaseModel):
    """
    Structured organization profile.

    Owned and persisted by the calling system. Mutations go through
    `update_core` / `enrich` so the recency stamp stays current;
    `completeness_score` is always derived from the current fields.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1)

    # Identifying attributes (never surfaced to other organizations)
    name: str | None = None
    domain: str | None = None
    contact_email: str | None = None

    # Core attributes
    organization_type: str | None = None
    sector_code: str | None = Field(default=None, description="SIC classification code")
    industry_sector: str | None = None
    headquarters: GeoExtent | None = None
    operational_jurisdictions: frozenset[GeoExtent] = frozenset()
    employee_count: int | None = Field(default=None, ge=0)
    annual_turnover: float | None = Field(default=None, ge=0)

    # Extended attributes
    extended: dict[str, ExtendedValue] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("industry_sector", "organization_type", mode="before")
    @classmethod
    def slugify(cls, v: Any) -> str | None:
        """Store enum-like strings as lower_snake slugs."""
        if v is None:
            return None
        text = "_".join(str(v).strip().lower().replace("-", " ").split())
        return text or None

    @field_validator("sector_code", mode="before")
    @classmethod
    def clean_sector_code(cls, v: Any) -> str | None:
        """Keep only the digits of a SIC code."""
        if v is None:
            return None
        digits = "".join(ch for ch in str(v) if ch.isdigit())
        return digits or None

    @field_validator("headquarters", mode="before")
    @classmethod
    def parse_headquarters(cls, v: Any) -> GeoExtent | None:
        """Accept region slugs ("northern_ireland") as well as enum values."""
        if v is None or v == "":
            return None
        return _parse_jurisdiction(v)

    @field_validator("operational_jurisdictions", mode="before")
    @classmethod
    def parse_operational(cls, v: Any) -> frozenset[GeoExtent]:
        """Accept any iterable of jurisdiction names or slugs."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = [v]
        return frozenset(_parse_jurisdiction(item) for item in v)

    @field_validator("extended", mode="before")
    @classmethod
    def wrap_extended(cls, v: Any) -> dict[str, Any]:
        """Wrap plain values in their tagged variants."""
        if v is None:
            return {}
        return {str(key): as_extended_value(value) for key, value in dict(v).items()}

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    @property
    def jurisdictions(self) -> frozenset[GeoExtent]:
        """Operational jurisdictions plus headquarters."""
        if self.headquarters is None:
            return self.operational_jurisdictions
        return self.operational_jurisdictions | {self.headquarters}

    @property
    def primary_jurisdiction(self) -> GeoExtent | None:
        """Headquarters, else the first operational jurisdiction in enum order."""
        if self.headquarters is not None:
            return self.headquarters
        for extent in GeoExtent:
            if extent in self.operational_jurisdictions:
                return extent
        return None

    @property
    def roles(self) -> frozenset[str]:
        """Declared role/personnel designations."""
        return self._string_set(ROLES_KEY)

    @property
    def activities(self) -> frozenset[str]:
        """Declared business activities."""
        return self._string_set(ACTIVITIES_KEY)

    @property
    def risk_indicators(self) -> dict[str, bool]:
        """Known boolean risk indicators that have been answered."""
        return {
            key: value.value
            for key, value in self.extended.items()
            if key in RISK_INDICATORS and isinstance(value, FlagValue)
        }

    @property
    def identity_domain(self) -> str | None:
        """Organizational domain, taken from `domain` or the contact email."""
        if self.domain:
            return self.domain.strip().lower().removeprefix("www.") or None
        if self.contact_email and "@" in self.contact_email:
            return self.contact_email.rsplit("@", 1)[1].strip().lower() or None
        return None

    @property
    def size_category(self) -> SizeCategory | None:
        """Employee-count bucket."""
        return employee_size_category(self.employee_count)

    @property
    def has_sector(self) -> bool:
        """True when either sector classification is known."""
        return bool(self.industry_sector or self.sector_code)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def completeness_score(self) -> float:
        """Weighted share of populated fields, in [0, 1]."""
        populated = self.populated_fields()
        score = sum(w for name, w in COMPLETENESS_WEIGHTS.items() if name in populated)
        return round(max(0.0, min(1.0, score)), 4)

    def populated_fields(self) -> set[str]:
        """Names of the completeness fields that carry a meaningful value."""
        populated: set[str] = set()
        if self.industry_sector:
            populated.add("industry_sector")
        if self.operational_jurisdictions:
            populated.add("operational_jurisdictions")
        if self.employee_count is not None and self.employee_count > 0:
            populated.add("employee_count")
        if self.headquarters is not None:
            populated.add("headquarters")
        if self.sector_code:
            populated.add("sector_code")
        if self.roles:
            populated.add("roles")
        if self.activities:
            populated.add("activities")
        if self.annual_turnover is not None and self.annual_turnover > 0:
            populated.add("annual_turnover")
        if self.organization_type:
            populated.add("organization_type")
        if self.risk_indicators:
            populated.add("risk_indicators")
        return populated

    def missing_fields(self) -> list[str]:
        """Completeness fields still to be collected, most predictive first."""
        populated = self.populated_fields()
        return [name for name in COMPLETENESS_WEIGHTS if name not in populated]

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def update_core(self, **changes: Any) -> None:
        """
        Update core attributes and stamp recency.

        Raises:
            ValueError: If a change names an unknown or derived field.
        """
        allowed = set(type(self).model_fields) - {"id", "extended", "created_at", "updated_at"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"cannot update fields: {sorted(unknown)}")
        for field_name, value in changes.items():
            setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)

    def enrich(self, key: str, value: Any) -> None:
        """Set one extended attribute and stamp recency."""
        self.extended = {**self.extended, key: as_extended_value(value)}
        self.updated_at = datetime.now(UTC)

    def _string_set(self, key: str) -> frozenset[str]:
        value = self.extended.get(key)
        if isinstance(value, TextSetValue):
            return value.value
        if isinstance(value, TextValue) and value.value.strip():
            return frozenset({value.value.strip()})
        return frozenset()
