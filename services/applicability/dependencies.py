"""
Route Dependencies
==================

FastAPI dependencies shared by the applicability routes.

Version: 0.1.0
"""

from functools import lru_cache

from fastapi import Request

from services.applicability.corpus import CorpusStore
from services.applicability.engine import ApplicabilityEngine, build_engine


@lru_cache
def get_engine() -> ApplicabilityEngine:
    """Engine built once from application settings."""
    return build_engine()


def get_corpus_store(request: Request) -> CorpusStore:
    """Corpus store attached to the running application."""
    return request.app.state.corpus_store
