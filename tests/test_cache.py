"""Tests for the single-slot card store."""

import json
import sqlite3
from dataclasses import replace
from unittest.mock import patch

import pytest

from cardbalance.store.cache import MemoryCardStore, SQLiteCardStore, open_store
from cardbalance.utils.config import Settings
from cardbalance.utils.error_handler import CacheError


class TestSQLiteCardStore:
    """Test SQLiteCardStore."""

    @pytest.fixture
    def db_path(self, tmp_path):
        """Path for a throwaway database."""
        return tmp_path / "cache" / "card_balance.db"

    @pytest.fixture
    def store(self, db_path):
        """Create a store backed by a temporary database."""
        return SQLiteCardStore(db_path)

    def test_database_initialization(self, store, db_path):
        """Test that the database file and table are created."""
        assert db_path.exists()
        with sqlite3.connect(db_path) as conn:
            tables = [r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
        assert "kv" in tables

    def test_empty_store(self, store):
        """Test reading an empty slot."""
        assert store.read() is None
        assert store.updated_at() is None

    def test_write_then_read(self, store, sample_card):
        """Test that the written record is read back unchanged."""
        store.write(sample_card)

        assert store.read() == sample_card
        assert store.updated_at() is not None

    def test_write_overwrites(self, store, sample_card):
        """Test single-slot overwrite semantics."""
        store.write(sample_card)
        newer = replace(sample_card, card_number="4000123412349876", balance="1.00")
        store.write(newer)

        assert store.read() == newer
        with sqlite3.connect(store.db_path) as conn:
            count = conn.execute("SELECT COUNT(*) FROM kv").fetchone()[0]
        assert count == 1

    def test_persists_across_instances(self, db_path, sample_card):
        """Test durability across process restarts."""
        SQLiteCardStore(db_path).write(sample_card)

        assert SQLiteCardStore(db_path).read() == sample_card

    def test_clear(self, store, sample_card):
        """Test clearing the slot."""
        store.write(sample_card)
        store.clear()

        assert store.read() is None
        assert store.updated_at() is None

    def test_clear_empty_store(self, store):
        """Test that clearing an empty slot is harmless."""
        store.clear()
        assert store.read() is None

    def test_stored_as_camel_case_json(self, store, sample_card):
        """Test the persisted JSON shape under the well-known key."""
        store.write(sample_card)

        with sqlite3.connect(store.db_path) as conn:
            value = conn.execute(
                "SELECT value FROM kv WHERE key = ?", ("cardbalance_card_data",)
            ).fetchone()[0]
        data = json.loads(value)
        assert data["cardNumber"] == "1234567890123456"
        assert data["balance"] == "45.67"
        assert [t["id"] for t in data["lastTransactions"]] == ["t1", "t2"]

    def test_separate_keys_are_independent(self, db_path, sample_card):
        """Test that two storage keys do not see each other's slot."""
        SQLiteCardStore(db_path, storage_key="a").write(sample_card)

        assert SQLiteCardStore(db_path, storage_key="b").read() is None

    def test_corrupt_value_reads_as_empty(self, store):
        """Test that unparseable stored data is treated as no data."""
        with sqlite3.connect(store.db_path) as conn:
            conn.execute(
                "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (store.storage_key, "{not json", "2024-01-01T00:00:00+00:00"),
            )
            conn.commit()

        assert store.read() is None

    def test_incomplete_record_reads_as_empty(self, store):
        """Test that a stored record missing required fields is treated as no data."""
        with sqlite3.connect(store.db_path) as conn:
            conn.execute(
                "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (store.storage_key, json.dumps({"balance": "1.00"}), "2024-01-01T00:00:00+00:00"),
            )
            conn.commit()

        assert store.read() is None

    def test_write_failure_raises_cache_error(self, store, sample_card):
        """Test that a database error on write becomes CacheError."""
        with patch("cardbalance.store.cache.sqlite3.connect", side_effect=sqlite3.OperationalError("disk I/O error")):
            with pytest.raises(CacheError):
                store.write(sample_card)

    def test_clear_failure_raises_cache_error(self, store):
        """Test that a database error on clear becomes CacheError."""
        with patch("cardbalance.store.cache.sqlite3.connect", side_effect=sqlite3.OperationalError("locked")):
            with pytest.raises(CacheError):
                store.clear()

    def test_read_failure_reads_as_empty(self, store, sample_card):
        """Test that a database error on read is logged and treated as no data."""
        store.write(sample_card)
        with patch("cardbalance.store.cache.sqlite3.connect", side_effect=sqlite3.OperationalError("locked")):
            assert store.read() is None


class TestMemoryCardStore:
    """Test the in-memory store."""

    def test_roundtrip_and_clear(self, sample_card):
        """Test read/write/clear."""
        store = MemoryCardStore()
        assert store.read() is None

        store.write(sample_card)
        assert store.read() == sample_card
        assert store.updated_at() is not None

        store.clear()
        assert store.read() is None
        assert store.updated_at() is None

    def test_preloaded(self, sample_card):
        """Test constructing with a record already cached."""
        store = MemoryCardStore(sample_card)
        assert store.read() == sample_card


class TestOpenStore:
    """Test the settings-driven factory."""

    def test_open_store_uses_settings(self, tmp_path, sample_card):
        """Test that path and key come from settings."""
        settings = Settings(CACHE_DB_PATH=str(tmp_path / "nested" / "cards.db"), STORAGE_KEY="custom_key")
        store = open_store(settings)

        assert store.db_path == tmp_path / "nested" / "cards.db"
        assert store.storage_key == "custom_key"
        store.write(sample_card)
        assert open_store(settings).read() == sample_card
