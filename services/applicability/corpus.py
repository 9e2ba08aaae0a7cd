"""
Regulation Corpus
=================

Immutable corpus snapshots and the store that swaps them.

A screening call reads exactly one snapshot. Refreshing the corpus builds
a new snapshot and replaces the store's reference in one step, so a call
that already holds a snapshot keeps a consistent view.

Version: 0.1.0
"""

import hashlib
import json
import threading
from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import cached_property
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from services.applicability.errors import CorpusUnavailable
from shared.logging import get_logger
from shared.models.regulation import RegulationRecord


logger = get_logger(__name__)


# =============================================================================
# Amendment index
# =============================================================================


@dataclass(frozen=True)
class AmendmentIndex:
    """Id-indexed adjacency lists over amendment/rescission links."""

    amends: dict[str, tuple[str, ...]]
    amended_by: dict[str, tuple[str, ...]]
    rescinds: dict[str, tuple[str, ...]]
    rescinded_by: dict[str, tuple[str, ...]]

    @classmethod
    def build(cls, records: Iterable[RegulationRecord]) -> "AmendmentIndex":
        """Build forward and reverse adjacency from every record's own links."""
        amends: dict[str, set[str]] = {}
        amended_by: dict[str, set[str]] = {}
        rescinds: dict[str, set[str]] = {}
        rescinded_by: dict[str, set[str]] = {}

        for record in records:
            for target in record.amending:
                amends.setdefault(record.id, set()).add(target)
                amended_by.setdefault(target, set()).add(record.id)
            for source in record.amended_by:
                amended_by.setdefault(record.id, set()).add(source)
                amends.setdefault(source, set()).add(record.id)
            for target in record.rescinding:
                rescinds.setdefault(record.id, set()).add(target)
                rescinded_by.setdefault(target, set()).add(record.id)
            for source in record.rescinded_by:
                rescinded_by.setdefault(record.id, set()).add(source)
                rescinds.setdefault(source, set()).add(record.id)

        def freeze(adjacency: dict[str, set[str]]) -> dict[str, tuple[str, ...]]:
            return {k: tuple(sorted(v)) for k, v in adjacency.items()}

        return cls(
            amends=freeze(amends),
            amended_by=freeze(amended_by),
            rescinds=freeze(rescinds),
            rescinded_by=freeze(rescinded_by),
        )

    def superseding(self, record_id: str) -> list[str]:
        """
        Every record that amends or rescinds `record_id`, directly or
        through a chain, in breadth-first order. Cycles are visited once.
        """
        seen: set[str] = {record_id}
        order: list[str] = []
        queue = deque([record_id])
        while queue:
            current = queue.popleft()
            for neighbour in (*self.amended_by.get(current, ()), *self.rescinded_by.get(current, ())):
                if neighbour in seen:
                    continue
                seen.add(neighbour)
                order.append(neighbour)
                queue.append(neighbour)
        return order


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True)
class CorpusSnapshot:
    """A consistent, read-only view of the regulation corpus."""

    version: str
    records: tuple[RegulationRecord, ...]
    loaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    rejected_rows: int = 0

    @classmethod
    def from_records(
        cls,
        records: Iterable[RegulationRecord | Mapping[str, Any]],
        version: str | None = None,
    ) -> "CorpusSnapshot":
        """
        Build a snapshot from records or raw rows.

        Rows that cannot form a record at all (no id) are counted in
        `rejected_rows` and logged; rows with uninterpretable values become
        records carrying `data_issues`. Duplicate ids keep the last row.

        Args:
            records: Records or raw row mappings
            version: Snapshot version; defaults to a content hash
        """
        by_id: dict[str, RegulationRecord] = {}
        rejected = 0
        for row in records:
            if isinstance(row, RegulationRecord):
                record = row
            else:
                try:
                    record = RegulationRecord.model_validate(dict(row))
                except ValidationError as e:
                    rejected += 1
                    logger.warning(
                        "corpus_row_rejected",
                        row_id=row.get("id"),
                        errors=e.error_count(),
                    )
                    continue
            by_id[record.id] = record

        ordered = tuple(sorted(by_id.values(), key=lambda r: r.id))
        snapshot = cls(
            version=version or _content_version(ordered),
            records=ordered,
            rejected_rows=rejected,
        )
        malformed = sum(1 for r in ordered if r.is_malformed)
        if malformed:
            logger.warning(
                "corpus_records_malformed",
                version=snapshot.version,
                malformed=malformed,
            )
        return snapshot

    @classmethod
    def from_json_file(cls, path: Path, version: str | None = None) -> "CorpusSnapshot":
        """
        Load a snapshot from a JSON array (or {"records": [...]}) file.

        Raises:
            CorpusUnavailable: If the file cannot be read or parsed
        """
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CorpusUnavailable(f"cannot load corpus from {path}: {e}") from e

        if isinstance(payload, dict):
            version = version or payload.get("version")
            payload = payload.get("records")
        if not isinstance(payload, list):
            raise CorpusUnavailable(f"corpus file {path} holds no record list")
        return cls.from_records(payload, version=version)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[RegulationRecord]:
        return iter(self.records)

    @cached_property
    def by_id(self) -> dict[str, RegulationRecord]:
        return {r.id: r for r in self.records}

    @cached_property
    def amendments(self) -> AmendmentIndex:
        """Amendment graph, built once per snapshot on first use."""
        return AmendmentIndex.build(self.records)

    def get(self, record_id: str) -> RegulationRecord | None:
        return self.by_id.get(record_id)


def _content_version(records: tuple[RegulationRecord, ...]) -> str:
    digest = hashlib.sha256()
    for record in records:
        digest.update(record.model_dump_json().encode("utf-8"))
    return digest.hexdigest()[:12]


# =============================================================================
# Store
# =============================================================================


class CorpusStore:
    """
    Holds the current corpus snapshot.

    Readers take the snapshot reference and keep using it; `replace`
    installs a complete new snapshot atomically.
    """

    def __init__(self, snapshot: CorpusSnapshot | None = None) -> None:
        self._snapshot = snapshot
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    def snapshot(self) -> CorpusSnapshot:
        """
        Get the current snapshot.

        Raises:
            CorpusUnavailable: If no snapshot has been loaded
        """
        current = self._snapshot
        if current is None:
            raise CorpusUnavailable("no regulation corpus snapshot has been loaded")
        return current

    def replace(self, snapshot: CorpusSnapshot) -> CorpusSnapshot | None:
        """Install a new snapshot, returning the one it replaced."""
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        logger.info(
            "corpus_snapshot_replaced",
            version=snapshot.version,
            records=len(snapshot),
            previous_version=previous.version if previous else None,
        )
        return previous
