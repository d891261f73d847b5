"""Tests for the SQLAlchemy-backed key-value store."""

from meditimer.database.db import get_session
from meditimer.database.models import KeyValue


class TestKeyValueStore:

    def test_missing_key_is_none(self, store):
        assert store.get("nothing") is None

    def test_set_then_get(self, store):
        store.set("timer_state", '{"a": 1}')
        assert store.get("timer_state") == '{"a": 1}'

    def test_set_overwrites(self, store):
        store.set("background_timestamp", "1")
        store.set("background_timestamp", "2")
        assert store.get("background_timestamp") == "2"
        with get_session() as db:
            assert db.query(KeyValue).count() == 1

    def test_remove(self, store):
        store.set("k", "v")
        store.remove("k")
        assert store.get("k") is None

    def test_remove_missing_is_noop(self, store):
        store.remove("never-set")
        assert store.get("never-set") is None
