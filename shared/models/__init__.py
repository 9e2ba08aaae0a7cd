"""
Shared Models
=============

Pydantic models shared across screening services.

Models:
- Regulation models (RegulationRecord, LiveStatus, GeoExtent)
- Organization models (OrganizationProfile, extended attribute variants)
- Matching models (MatchResult, DimensionScores, SimilarityMatch)
- Common models (ErrorResponse, HealthResponse, ComponentHealth)
"""

from shared.models.common import (
    ComponentHealth,
    ComponentStatus,
    ErrorResponse,
    HealthResponse,
)
from shared.models.matching import (
    AnonymizedProfile,
    ConfidenceInterval,
    DimensionScores,
    MatchResult,
    SimilarityMatch,
)
from shared.models.organization import (
    FlagValue,
    NumberValue,
    OrganizationProfile,
    SizeCategory,
    TextSetValue,
    TextValue,
    as_extended_value,
    employee_size_category,
    turnover_size_category,
)
from shared.models.regulation import (
    GeoExtent,
    LiveStatus,
    RegulationRecord,
    normalize_family,
    normalize_role,
)

__all__ = [
    # Regulation
    "RegulationRecord",
    "LiveStatus",
    "GeoExtent",
    "normalize_family",
    "normalize_role",
    # Organization
    "OrganizationProfile",
    "FlagValue",
    "NumberValue",
    "TextValue",
    "TextSetValue",
    "SizeCategory",
    "as_extended_value",
    "employee_size_category",
    "turnover_size_category",
    # Matching
    "MatchResult",
    "DimensionScores",
    "ConfidenceInterval",
    "AnonymizedProfile",
    "SimilarityMatch",
    # Common
    "ErrorResponse",
    "HealthResponse",
    "ComponentHealth",
    "ComponentStatus",
]
