"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

import math
from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class MatchingSettings(BaseSettings):
    """Applicability matching weights and thresholds."""

    model_config = SettingsConfigDict(env_prefix="MATCHING_")

    # Composite weights (must sum to 1.0)
    sector_weight: float = Field(default=0.30, ge=0, le=1)
    role_weight: float = Field(default=0.25, ge=0, le=1)
    geography_weight: float = Field(default=0.20, ge=0, le=1)
    size_weight: float = Field(default=0.15, ge=0, le=1)
    content_weight: float = Field(default=0.10, ge=0, le=1)

    # Partial credit
    sector_group_credit: float = Field(default=0.5, ge=0, le=1)
    role_hierarchy_credit: float = Field(default=0.7, ge=0, le=1)
    containing_jurisdiction_credit: float = Field(default=0.8, ge=0, le=1)
    operational_jurisdiction_credit: float = Field(default=0.5, ge=0, le=1)
    unknown_size_credit: float = Field(default=0.5, ge=0, le=1)

    # Review thresholds
    review_score_threshold: float = Field(default=0.8, ge=0, le=1)
    review_completeness_threshold: float = Field(default=0.5, ge=0, le=1)
    review_spread_threshold: float = Field(default=0.6, ge=0, le=1)
    review_correction_rate_threshold: float = Field(default=0.3, ge=0, le=1)

    # Similarity
    similarity_threshold: float = Field(default=0.8, ge=0, le=1)
    similarity_max_results: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "MatchingSettings":
        """Reject weight sets that are not a convex combination."""
        total = (
            self.sector_weight
            + self.role_weight
            + self.geography_weight
            + self.size_weight
            + self.content_weight
        )
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"matching weights must sum to 1.0, got {total:.4f}")
        return self


class CorpusSettings(BaseSettings):
    """Regulation corpus and lookup table locations."""

    model_config = SettingsConfigDict(env_prefix="CORPUS_")

    path: Path | None = Field(
        default=None,
        description="JSON file with regulation records loaded at service start",
    )
    lookup_tables_path: Path | None = Field(
        default=None,
        description="Override for the bundled lookup tables document",
    )


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    applicability: int = Field(default=8010, alias="APPLICABILITY_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Project paths
    project_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent.parent)

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Matching engine
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    corpus: CorpusSettings = Field(default_factory=CorpusSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
