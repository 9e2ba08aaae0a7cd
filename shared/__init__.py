"""
Regscreen Shared Library
========================

Common utilities, configurations, and domain models shared by the
applicability screening services.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - models: Shared Pydantic models (regulations, organizations, match results)

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "Regscreen Team"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
