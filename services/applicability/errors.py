"""
Screening Errors
================

Only profile- and corpus-level failures are raised to callers. Problems
with individual regulation records degrade that record's confidence and
never abort a batch.

Version: 0.1.0
"""


class ScreeningError(Exception):
    """Base error for applicability screening."""


class InvalidProfile(ScreeningError):
    """Profile lacks the minimal identity needed to screen."""

    def __init__(self, profile_id: str, missing: list[str]) -> None:
        self.profile_id = profile_id
        self.missing = missing
        super().__init__(
            f"profile {profile_id!r} cannot be screened; missing: {', '.join(missing)}"
        )


class CorpusUnavailable(ScreeningError):
    """No regulation corpus snapshot could be obtained."""


class LookupTableError(ScreeningError):
    """Lookup tables could not be read or failed validation."""
