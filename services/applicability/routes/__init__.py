"""
Applicability Routes
====================

API route handlers for the Applicability Service.
"""

from services.applicability.routes import corpus, profiles, screening, similarity


__all__ = ["corpus", "profiles", "screening", "similarity"]
