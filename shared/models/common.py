"""
Common Models
=============

Error and health envelopes shared by the screening API.

Version: 0.1.0
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Structured error body; `error_code` names the failed precondition."""

    success: bool = False
    error: str
    error_code: str | None = None
    details: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ComponentStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNAVAILABLE = "unavailable"


class ComponentHealth(BaseModel):
    """State of one dependency (lookup tables, corpus snapshot)."""

    status: ComponentStatus
    version: str | None = None
    records: int | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Service health check response."""

    status: ComponentStatus = ComponentStatus.HEALTHY
    service: str
    version: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    components: dict[str, ComponentHealth] = Field(default_factory=dict)

    @classmethod
    def from_components(
        cls,
        service: str,
        version: str,
        components: Mapping[str, ComponentHealth],
    ) -> "HealthResponse":
        """Degraded unless every component is healthy."""
        healthy = all(c.status == ComponentStatus.HEALTHY for c in components.values())
        return cls(
            status=ComponentStatus.HEALTHY if healthy else ComponentStatus.DEGRADED,
            service=service,
            version=version,
            components=dict(components),
        )
