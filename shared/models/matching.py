"""
Matching Models
===============

Ephemeral results produced by applicability screening and organization
similarity matching. Nothing here is persisted by the matcher itself.

Version: 0.1.0
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.models.organization import SizeCategory


class DimensionScores(BaseModel):
    """Per-dimension applicability scores, each in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    sector: float = Field(default=0.0, ge=0, le=1)
    role: float = Field(default=0.0, ge=0, le=1)
    geography: float = Field(default=0.0, ge=0, le=1)
    size: float = Field(default=0.0, ge=0, le=1)
    content: float = Field(default=0.0, ge=0, le=1)

    def as_dict(self) -> dict[str, float]:
        """Dimension name to score."""
        return {
            "sector": self.sector,
            "role": self.role,
            "geography": self.geography,
            "size": self.size,
            "content": self.content,
        }

    @property
    def spread(self) -> float:
        """Max minus min dimension score."""
        values = self.as_dict().values()
        return max(values) - min(values)


class ConfidenceInterval(BaseModel):
    """Lower/upper confidence bounds, both in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    lower: float = Field(..., ge=0, le=1)
    upper: float = Field(..., ge=0, le=1)

    @model_validator(mode="after")
    def ordered(self) -> "ConfidenceInterval":
        if self.lower > self.upper:
            raise ValueError("lower bound exceeds upper bound")
        return self

    @property
    def width(self) -> float:
        return self.upper - self.lower


class MatchResult(BaseModel):
    """A scored, explained candidate regulation."""

    model_config = ConfigDict(frozen=True)

    regulation_id: str
    title: str = ""
    family: str | None = Field(default=None, description="Law category of the record")

    composite_score: float = Field(..., ge=0, le=1)
    breakdown: DimensionScores
    confidence: ConfidenceInterval
    requires_review: bool = False
    review_reasons: tuple[str, ...] = ()

    # Explanation
    matched_roles: tuple[str, ...] = ()
    matched_keywords: tuple[str, ...] = ()
    threshold_status: str = "not_applicable"

    @model_validator(mode="after")
    def composite_within_interval(self) -> "MatchResult":
        if not self.confidence.lower <= self.composite_score <= self.confidence.upper:
            raise ValueError("composite score must lie within its confidence interval")
        return self


class AnonymizedProfile(BaseModel):
    """Non-identifying attributes of a compared organization."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    industry_sector: str | None = None
    sector_groups: tuple[str, ...] = ()
    size_category: SizeCategory | None = None
    operational_jurisdictions: tuple[str, ...] = ()
    organization_type: str | None = None


class SimilarityMatch(BaseModel):
    """Anonymized summary of a similar organization's applicability profile."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    similarity_score: float = Field(..., ge=0, le=1)
    matched_on: tuple[str, ...] = ()
    profile_summary: AnonymizedProfile
    law_categories: dict[str, int] = Field(default_factory=dict)
    applicable_regulation_count: int = Field(default=0, ge=0)
    risk_indicators: dict[str, bool] = Field(default_factory=dict)

    def summary(self) -> dict[str, Any]:
        """Plain-dict rendering for API responses."""
        return self.model_dump(mode="json")
