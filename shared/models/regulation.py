"""
Regulation Models
=================

Models for regulation records held in the screening corpus.

Corpus rows arrive with legacy display strings ("✔ In force", "E+W+S+NI",
"💙 CONSTRUCTION", "Org: Employer"). Records normalize these on the way in
and note anything they could not interpret in `data_issues` instead of
failing, so a single malformed row never aborts a screening batch.

Version: 0.1.0
"""

import re
from datetime import date
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)


_LEADING_SYMBOLS = re.compile(r"^[^\w]+")
_ROLE_PREFIX = re.compile(r"^[A-Za-z]{2,4}:\s*")
_WHITESPACE = re.compile(r"\s+")


def normalize_family(value: str) -> str:
    """Strip decorative prefixes and upper-case a family label."""
    cleaned = _LEADING_SYMBOLS.sub("", value.strip())
    return _WHITESPACE.sub(" ", cleaned).upper()


def normalize_role(value: str) -> str:
    """Canonical form for role designations ("Org: Employer" -> "employer")."""
    cleaned = _ROLE_PREFIX.sub("", value.strip())
    return _WHITESPACE.sub(" ", cleaned).casefold()


class LiveStatus(str, Enum):
    """Legal status of a regulation record."""

    IN_FORCE = "in_force"
    REVOKED = "revoked"
    PARTIALLY_REVOKED = "partially_revoked"
    SUPERSEDED = "superseded"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: Any) -> "LiveStatus | None":
        """Interpret enum values and legacy display strings."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        text = _LEADING_SYMBOLS.sub("", raw.strip()).casefold().replace("_", " ")
        if not text:
            return None
        if "in force" in text:
            return cls.IN_FORCE
        if text.startswith("part") and ("revo" in text or "repeal" in text):
            return cls.PARTIALLY_REVOKED
        if "supersed" in text:
            return cls.SUPERSEDED
        if any(word in text for word in ("revoked", "repealed", "abolished")):
            return cls.REVOKED
        if text == "unknown":
            return cls.UNKNOWN
        return None


class GeoExtent(str, Enum):
    """UK jurisdictions a regulation (or an organization) can cover."""

    ENGLAND = "England"
    WALES = "Wales"
    SCOTLAND = "Scotland"
    NORTHERN_IRELAND = "Northern Ireland"
    ENGLAND_AND_WALES = "England and Wales"
    GREAT_BRITAIN = "Great Britain"
    UNITED_KINGDOM = "United Kingdom"

    @classmethod
    def parse(cls, raw: Any) -> "GeoExtent | None":
        """Interpret enum values, region slugs and legacy extent codes."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        key = re.sub(r"\s*\+\s*", "+", raw.strip().casefold().replace("_", " "))
        return _GEO_ALIASES.get(key)


_GEO_ALIASES: dict[str, GeoExtent] = {
    "e": GeoExtent.ENGLAND,
    "england": GeoExtent.ENGLAND,
    "w": GeoExtent.WALES,
    "wales": GeoExtent.WALES,
    "s": GeoExtent.SCOTLAND,
    "scotland": GeoExtent.SCOTLAND,
    "ni": GeoExtent.NORTHERN_IRELAND,
    "northern ireland": GeoExtent.NORTHERN_IRELAND,
    "e+w": GeoExtent.ENGLAND_AND_WALES,
    "england and wales": GeoExtent.ENGLAND_AND_WALES,
    "e+w+s": GeoExtent.GREAT_BRITAIN,
    "gb": GeoExtent.GREAT_BRITAIN,
    "great britain": GeoExtent.GREAT_BRITAIN,
    "e+w+s+ni": GeoExtent.UNITED_KINGDOM,
    "uk": GeoExtent.UNITED_KINGDOM,
    "united kingdom": GeoExtent.UNITED_KINGDOM,
}


ROLE_FIELDS = (
    "duty_holder",
    "power_holder",
    "rights_holder",
    "responsibility_holder",
    "role",
)


def _coerce_role_set(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw.strip() else []
    if isinstance(raw, dict):
        # JSONB holder maps: {"items": [...]} or {"Org: Employer": true, ...}
        items = raw.get("items")
        if isinstance(items, list):
            return [str(i) for i in items if str(i).strip()]
        return [str(k) for k, v in raw.items() if v]
    return [str(i) for i in raw if str(i).strip()]


class RegulationRecord(BaseModel):
    """An immutable regulation record from the corpus."""

    model_config = ConfigDict(frozen=True)

    # Identity
    id: str = Field(..., min_length=1, description="Stable record identifier")
    title: str = ""
    year: int | None = None
    number: str | None = None

    # Classification
    family: str | None = Field(default=None, description="Top-level sector tag")
    secondary_class: str | None = None
    tags: tuple[str, ...] = ()

    # Status
    live_status: LiveStatus = LiveStatus.UNKNOWN
    effective_from: date | None = None
    effective_to: date | None = None
    latest_amend_date: date | None = None

    # Geography
    geo_extent: GeoExtent = GeoExtent.UNITED_KINGDOM

    # Stakeholder roles
    duty_holder: frozenset[str] = frozenset()
    power_holder: frozenset[str] = frozenset()
    rights_holder: frozenset[str] = frozenset()
    responsibility_holder: frozenset[str] = frozenset()
    role: frozenset[str] = frozenset()

    # Content
    description: str = ""

    # Provenance (read-only, never traversed for scoring)
    amending: tuple[str, ...] = ()
    amended_by: tuple[str, ...] = ()
    rescinding: tuple[str, ...] = ()
    rescinded_by: tuple[str, ...] = ()

    # Problems found while interpreting the raw row
    data_issues: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def coerce_legacy_values(cls, data: Any) -> Any:
        """Map legacy status/extent strings, recording what could not be read."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        issues = list(data.get("data_issues") or [])

        raw_status = data.get("live_status", data.get("live"))
        status = LiveStatus.parse(raw_status)
        if status is None:
            issues.append(
                "missing live_status" if raw_status in (None, "")
                else f"unrecognized live_status {raw_status!r}"
            )
            status = LiveStatus.UNKNOWN
        data["live_status"] = status
        data.pop("live", None)

        raw_extent = data.get("geo_extent")
        extent = GeoExtent.parse(raw_extent)
        if extent is None:
            issues.append(
                "missing geo_extent" if raw_extent in (None, "")
                else f"unrecognized geo_extent {raw_extent!r}"
            )
            extent = GeoExtent.UNITED_KINGDOM
        data["geo_extent"] = extent

        for field_name in ROLE_FIELDS:
            if field_name in data:
                data[field_name] = _coerce_role_set(data[field_name])

        if "title" not in data and data.get("title_en"):
            data["title"] = data.pop("title_en")
        if "description" not in data and data.get("md_description"):
            data["description"] = data.pop("md_description")

        data["data_issues"] = tuple(issues)
        return data

    @field_validator("family", "secondary_class", mode="before")
    @classmethod
    def clean_family(cls, v: Any) -> str | None:
        """Normalize family labels; blank labels become None."""
        if v is None:
            return None
        text = normalize_family(str(v))
        return text or None

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: Any) -> tuple[str, ...]:
        """Accept a list or a comma separated string of tags."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = v.split(",")
        return tuple(t.strip() for t in v if t and t.strip())

    @field_serializer(*ROLE_FIELDS)
    def sorted_roles(self, v: frozenset[str]) -> list[str]:
        return sorted(v)

    @property
    def is_malformed(self) -> bool:
        """True when the raw row could not be fully interpreted."""
        return bool(self.data_issues)

    @property
    def latest_activity_date(self) -> date | None:
        """Most recent of the effective and amendment dates."""
        dates = [d for d in (self.latest_amend_date, self.effective_from) if d is not None]
        return max(dates) if dates else None

    @property
    def content_text(self) -> str:
        """Descriptive text used for content relevance."""
        parts = [self.title, self.description, *self.tags]
        if self.secondary_class:
            parts.append(self.secondary_class)
        return " ".join(p for p in parts if p)

    def is_in_force(self, on: date) -> bool:
        """Check status and effective window on a given day."""
        if self.live_status != LiveStatus.IN_FORCE:
            return False
        if self.effective_from is not None and self.effective_from > on:
            return False
        if self.effective_to is not None and self.effective_to <= on:
            return False
        return True

    def holders(self) -> frozenset[str]:
        """Normalized union of every stakeholder role field."""
        names: set[str] = set()
        for field_name in ROLE_FIELDS:
            names.update(normalize_role(n) for n in getattr(self, field_name))
        names.discard("")
        return frozenset(names)

