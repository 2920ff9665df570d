"""
Store access rules: upsert idempotence, insert-only snapshots, ordering,
delete cascade and list-column decoding.
"""

import pytest

from core.codec import decode_list, encode_list
from core.errors import ConflictError, ValidationError
from core.models import SnapshotCreate
from storage import projects as store
from storage.db import db_conn


def _add_snapshot(project_id, snapshot):
    store.insert_snapshot(SnapshotCreate.for_project(project_id, snapshot))


class TestListColumns:

    def test_round_trips_strings(self):
        assert decode_list(encode_list(["a", "b c"])) == ["a", "b c"]

    def test_null_column_is_empty(self):
        assert decode_list(None) == []

    @pytest.mark.parametrize("raw", ["not json", '{"a": 1}', "[1, 2]", '["ok", null]'])
    def test_malformed_column_raises(self, raw):
        with pytest.raises(ValidationError):
            decode_list(raw, "alt_texts")


class TestProjects:

    def test_upsert_twice_keeps_one_record_with_latest_name(self, db_path, make_project):
        store.upsert_project(make_project("p1", name="First"))
        store.upsert_project(make_project("p1", name="Second"))

        projects = store.list_projects()
        assert [p.id for p in projects] == ["p1"]
        assert projects[0].name == "Second"

    def test_upsert_keeps_existing_history(self, db_path, make_project, make_snapshot):
        store.upsert_project(make_project("p1"))
        _add_snapshot("p1", make_snapshot("s1"))

        store.upsert_project(make_project("p1", name="Renamed", last_checked=500))

        assert store.count_snapshots("p1") == 1

    def test_projects_ordered_by_last_checked_desc(self, db_path, make_project):
        store.upsert_project(make_project("old", last_checked=100))
        store.upsert_project(make_project("new", last_checked=200))
        store.upsert_project(make_project("mid", last_checked=150))

        assert [p.id for p in store.list_projects()] == ["new", "mid", "old"]

    def test_tracked_keywords_stored(self, db_path, make_project):
        store.upsert_project(make_project("p1", tracked_keywords=["widgets", "blue widgets"]))

        assert store.get_project("p1").tracked_keywords == ["widgets", "blue widgets"]

    def test_get_unknown_project(self, db_path):
        assert store.get_project("missing") is None


class TestSnapshots:

    def test_history_newest_first(self, db_path, make_project, make_snapshot):
        store.upsert_project(make_project("p1"))
        for sid, ts in [("a", 1_000), ("c", 3_000), ("b", 2_000)]:
            _add_snapshot("p1", make_snapshot(sid, ts))

        history = store.list_projects()[0].history
        assert [s.timestamp for s in history] == [3_000, 2_000, 1_000]

    def test_lists_decoded(self, db_path, make_project, make_snapshot):
        store.upsert_project(make_project("p1"))
        _add_snapshot("p1", make_snapshot("s1", alt_texts=["x"], top_keywords=["k1", "k2"]))

        snap = store.get_project("p1").history[0]
        assert snap.alt_texts == ["x"]
        assert snap.top_keywords == ["k1", "k2"]

    def test_duplicate_id_conflicts_and_count_unchanged(self, db_path, make_project, make_snapshot):
        store.upsert_project(make_project("p1"))
        _add_snapshot("p1", make_snapshot("s1", 1_000))

        with pytest.raises(ConflictError):
            _add_snapshot("p1", make_snapshot("s1", 2_000, score=10))

        assert store.count_snapshots("p1") == 1
        assert store.get_project("p1").history[0].score == 72

    def test_unknown_project_rejected(self, db_path, make_snapshot):
        with pytest.raises(ValidationError):
            _add_snapshot("ghost", make_snapshot("s1"))
        assert store.count_snapshots() == 0

    def test_corrupt_column_fails_listing(self, db_path, make_project, make_snapshot):
        store.upsert_project(make_project("p1"))
        _add_snapshot("p1", make_snapshot("s1"))
        with db_conn() as conn:
            conn.execute("UPDATE snapshots SET top_keywords = 'oops' WHERE id = 's1'")

        with pytest.raises(ValidationError):
            store.list_projects()


class TestDelete:

    def test_delete_cascades_to_snapshots(self, db_path, make_project, make_snapshot):
        store.upsert_project(make_project("p1", last_checked=200))
        store.upsert_project(make_project("p2", last_checked=100))
        _add_snapshot("p1", make_snapshot("s1"))
        _add_snapshot("p2", make_snapshot("s2"))

        assert store.delete_project("p1") is True

        assert [p.id for p in store.list_projects()] == ["p2"]
        assert store.count_snapshots("p1") == 0
        assert store.count_snapshots() == 1

    def test_delete_unknown_is_noop(self, db_path):
        assert store.delete_project("missing") is False
