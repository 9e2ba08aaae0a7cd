"""
Corpus Store Tests
==================

Tests for corpus snapshots, atomic replacement and the amendment index.

Version: 0.1.0
"""

import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from services.applicability.corpus import AmendmentIndex, CorpusSnapshot, CorpusStore
from services.applicability.errors import CorpusUnavailable
from shared.models.regulation import GeoExtent, LiveStatus


class TestCorpusSnapshot:
    """Tests for building snapshots from raw rows."""

    def test_legacy_rows_normalized(self, sample_corpus_rows):
        snapshot = CorpusSnapshot.from_records(sample_corpus_rows, version="v1")

        cdm = snapshot.get("UK_uksi_2015_51")
        assert cdm.live_status == LiveStatus.IN_FORCE
        assert cdm.geo_extent == GeoExtent.ENGLAND_AND_WALES
        assert cdm.family == "CONSTRUCTION"
        assert cdm.holders() == frozenset({"employer", "principal contractor"})
        assert "demolition" in cdm.description

        assert snapshot.get("UK_uksi_1996_1592").live_status == LiveStatus.REVOKED
        assert snapshot.get("UK_ssi_2006_123").geo_extent == GeoExtent.SCOTLAND

    def test_rows_without_id_rejected(self, sample_corpus_rows):
        rows = [*sample_corpus_rows, {"title": "No identifier"}, {"id": ""}]
        snapshot = CorpusSnapshot.from_records(rows)
        assert len(snapshot) == 4
        assert snapshot.rejected_rows == 2

    def test_unknown_values_kept_with_issues(self):
        snapshot = CorpusSnapshot.from_records(
            [{"id": "x", "live_status": "pending royal assent", "geo_extent": "Atlantis"}]
        )
        record = snapshot.get("x")
        assert record.live_status == LiveStatus.UNKNOWN
        assert record.geo_extent == GeoExtent.UNITED_KINGDOM
        assert record.is_malformed
        assert len(record.data_issues) == 2

    def test_duplicate_ids_keep_last(self):
        snapshot = CorpusSnapshot.from_records(
            [
                {"id": "x", "title": "First", "live_status": "in_force", "geo_extent": "UK"},
                {"id": "x", "title": "Second", "live_status": "in_force", "geo_extent": "UK"},
            ]
        )
        assert len(snapshot) == 1
        assert snapshot.get("x").title == "Second"

    def test_records_sorted_by_id(self, sample_corpus_rows):
        snapshot = CorpusSnapshot.from_records(sample_corpus_rows)
        ids = [r.id for r in snapshot]
        assert ids == sorted(ids)

    def test_content_version_stable(self, sample_corpus_rows):
        first = CorpusSnapshot.from_records(sample_corpus_rows)
        second = CorpusSnapshot.from_records(list(reversed(sample_corpus_rows)))
        assert first.version == second.version
        assert len(first.version) == 12

    def test_from_json_file(self, tmp_path, sample_corpus_rows):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps({"version": "2025-07", "records": sample_corpus_rows}))
        snapshot = CorpusSnapshot.from_json_file(path)
        assert snapshot.version == "2025-07"
        assert len(snapshot) == 4

    def test_from_json_file_plain_list(self, tmp_path, sample_corpus_rows):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps(sample_corpus_rows))
        assert len(CorpusSnapshot.from_json_file(path)) == 4

    def test_from_missing_file(self, tmp_path):
        with pytest.raises(CorpusUnavailable):
            CorpusSnapshot.from_json_file(tmp_path / "missing.json")

    def test_from_file_without_records(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text(json.dumps({"version": "x"}))
        with pytest.raises(CorpusUnavailable):
            CorpusSnapshot.from_json_file(path)


class TestCorpusStore:
    """Tests for snapshot replacement."""

    def test_empty_store_unavailable(self):
        store = CorpusStore()
        assert store.is_loaded is False
        with pytest.raises(CorpusUnavailable):
            store.snapshot()

    def test_replace_returns_previous(self, sample_corpus_rows):
        store = CorpusStore()
        first = CorpusSnapshot.from_records(sample_corpus_rows, version="v1")
        second = CorpusSnapshot.from_records(sample_corpus_rows[:1], version="v2")

        assert store.replace(first) is None
        assert store.replace(second) is first
        assert store.snapshot() is second

    def test_reader_keeps_its_snapshot(self, sample_corpus_rows):
        store = CorpusStore(CorpusSnapshot.from_records(sample_corpus_rows, version="v1"))
        held = store.snapshot()
        store.replace(CorpusSnapshot.from_records([], version="v2"))
        assert held.version == "v1"
        assert len(held) == 4

    def test_concurrent_readers_see_whole_snapshots(self, sample_corpus_rows):
        store = CorpusStore(CorpusSnapshot.from_records(sample_corpus_rows, version="v1"))
        replacement = CorpusSnapshot.from_records(sample_corpus_rows[:2], version="v2")
        expected = {"v1": 4, "v2": 2}

        def read() -> tuple[str, int]:
            snapshot = store.snapshot()
            return snapshot.version, len(snapshot)

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [pool.submit(read) for _ in range(20)]
            store.replace(replacement)
            futures += [pool.submit(read) for _ in range(20)]

        for future in futures:
            version, size = future.result()
            assert expected[version] == size


class TestAmendmentIndex:
    """Tests for the supersession graph."""

    def test_reverse_links_built(self, sample_corpus_rows):
        snapshot = CorpusSnapshot.from_records(sample_corpus_rows)
        index = snapshot.amendments
        assert index.rescinds["UK_uksi_2015_51"] == ("UK_uksi_1996_1592",)
        assert snapshot.amendments.superseding("UK_uksi_1996_1592") == ["UK_uksi_2015_51"]

    def test_transitive_chain(self, make_record):
        index = AmendmentIndex.build(
            [
                make_record("a", amended_by=["b"]),
                make_record("b", amended_by=["c"]),
                make_record("c"),
            ]
        )
        assert index.superseding("a") == ["b", "c"]

    def test_cycles_visited_once(self, make_record):
        index = AmendmentIndex.build(
            [
                make_record("a", amended_by=["b"]),
                make_record("b", amended_by=["a"]),
            ]
        )
        assert index.superseding("a") == ["b"]
        assert index.superseding("b") == ["a"]

    def test_unlinked_record(self, make_record):
        index = AmendmentIndex.build([make_record("a")])
        assert index.superseding("a") == []
