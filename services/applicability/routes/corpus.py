"""
Corpus Routes
=============

Replace and inspect the regulation corpus snapshot.

Version: 0.1.0
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from services.applicability.corpus import CorpusSnapshot, CorpusStore
from services.applicability.dependencies import get_corpus_store
from shared.logging import get_logger


logger = get_logger(__name__)

router = APIRouter()


class CorpusReplaceRequest(BaseModel):
    """Full replacement corpus."""

    version: str | None = Field(None, description="Defaults to a content hash")
    records: list[dict[str, Any]] = Field(..., description="Raw regulation rows")


class CorpusInfoResponse(BaseModel):
    """Snapshot metadata."""

    version: str
    records: int
    rejected_rows: int
    malformed_records: int
    loaded_at: datetime


class SupersedingResponse(BaseModel):
    regulation_id: str
    superseded_by: list[str]


def _info(snapshot: CorpusSnapshot) -> CorpusInfoResponse:
    return CorpusInfoResponse(
        version=snapshot.version,
        records=len(snapshot),
        rejected_rows=snapshot.rejected_rows,
        malformed_records=sum(1 for r in snapshot if r.is_malformed),
        loaded_at=snapshot.loaded_at,
    )


@router.put("", response_model=CorpusInfoResponse)
async def replace_corpus(
    request: CorpusReplaceRequest,
    store: CorpusStore = Depends(get_corpus_store),
) -> CorpusInfoResponse:
    """
    Atomically replace the corpus snapshot.

    Screening calls already in flight keep the snapshot they started with.
    """
    snapshot = CorpusSnapshot.from_records(request.records, version=request.version)
    store.replace(snapshot)
    return _info(snapshot)


@router.get("", response_model=CorpusInfoResponse)
async def get_corpus_info(
    store: CorpusStore = Depends(get_corpus_store),
) -> CorpusInfoResponse:
    """Metadata of the current snapshot; 503 when none is loaded."""
    return _info(store.snapshot())


@router.get("/records/{regulation_id}/superseding", response_model=SupersedingResponse)
async def get_superseding_records(
    regulation_id: str,
    store: CorpusStore = Depends(get_corpus_store),
) -> SupersedingResponse:
    """Records that amend or rescind a regulation, directly or transitively."""
    snapshot = store.snapshot()
    if snapshot.get(regulation_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Regulation not found: {regulation_id}",
        )
    return SupersedingResponse(
        regulation_id=regulation_id,
        superseded_by=snapshot.amendments.superseding(regulation_id),
    )
