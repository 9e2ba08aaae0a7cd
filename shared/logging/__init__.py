"""
Logging Module
==============

structlog over stdlib logging: JSON lines in production, rich console
output in development. Organization emails and domains are redacted.

Usage:
    from shared.logging import bind_context, get_logger, setup_logging

    setup_logging(service_name="applicability")
    logger = get_logger(__name__)

    bind_context(profile_id="org-1")
    logger.info("screening_completed", results=42)
"""

from shared.logging.logger import bind_context, clear_context, get_logger, setup_logging


__all__ = [
    "get_logger",
    "setup_logging",
    "bind_context",
    "clear_context",
]
