"""Tests for the SQLite TTL cache store.

Tests follow the Failure-First pattern:
1. Test failure cases first
2. Test edge cases
3. Test happy path
"""

from __future__ import annotations

import sqlite3
from datetime import timedelta
from pathlib import Path

import pytest

from shipvault.config import CacheSettings
from shipvault.services.cache_models import CacheCategory
from shipvault.services.sqlite_cache import SQLiteCacheDB
from shipvault.shared.errors import CacheUnavailableError, InfrastructureError

RATE = CacheCategory.SHIPPING_RATE
CITY = CacheCategory.ADDRESS_CITY


class TestCacheStoreFailures:
    """A broken backend degrades instead of raising."""

    def test_unopenable_path_raises_infrastructure_error(self, tmp_path: Path) -> None:
        # Given a directory where the database file should be
        db_path = tmp_path / "taken"
        db_path.mkdir()

        # When / Then
        with pytest.raises(InfrastructureError):
            SQLiteCacheDB(db_path)

    def test_get_after_close_is_a_miss(self, cache: SQLiteCacheDB) -> None:
        # Given
        cache.set(RATE, "607_114_1000_jne", b'{"rates": []}', 3600)
        cache.close()

        # When
        entry = cache.get(RATE, "607_114_1000_jne")

        # Then
        assert entry is None
        assert cache.statistics.get_summary()["cache_errors"] == 1

    def test_set_after_close_is_skipped(self, cache: SQLiteCacheDB) -> None:
        cache.close()

        assert cache.set(RATE, "607_114_1000_jne", b"{}", 3600) is False

    def test_backend_error_on_read_is_a_miss(self, cache: SQLiteCacheDB, mocker) -> None:
        # Given
        mocker.patch.object(
            cache._query_ops, "get", side_effect=sqlite3.OperationalError("disk I/O error")
        )

        # When / Then
        assert cache.get(RATE, "607_114_1000_jne") is None

    def test_backend_error_on_write_is_skipped(self, cache: SQLiteCacheDB, mocker) -> None:
        mocker.patch.object(
            cache._insert_ops, "insert", side_effect=sqlite3.OperationalError("database is locked")
        )

        assert cache.set(RATE, "607_114_1000_jne", b"{}", 3600) is False

    @pytest.mark.parametrize("ttl", [0, -5])
    def test_non_positive_ttl_is_rejected(self, cache: SQLiteCacheDB, ttl: int) -> None:
        assert cache.set(RATE, "607_114_1000_jne", b"{}", ttl) is False
        assert cache.get(RATE, "607_114_1000_jne") is None

    def test_admin_operations_raise_when_closed(self, cache: SQLiteCacheDB) -> None:
        cache.close()

        with pytest.raises(CacheUnavailableError):
            cache.list_by_category(RATE)
        with pytest.raises(CacheUnavailableError):
            cache.delete_expired()


class TestCacheStoreExpiry:
    """Expiry is judged against the clock at read time."""

    def test_entry_live_until_expiry(self, cache: SQLiteCacheDB, clock) -> None:
        # Given
        cache.set(RATE, "k", b"{}", 3600)

        # When
        clock.advance(seconds=3599)

        # Then
        assert cache.get(RATE, "k") is not None

    def test_entry_absent_at_expiry_instant(self, cache: SQLiteCacheDB, clock) -> None:
        cache.set(RATE, "k", b"{}", 3600)

        clock.advance(seconds=3600)

        assert cache.get(RATE, "k") is None

    def test_entry_expired_one_millisecond_ago(self, cache: SQLiteCacheDB, clock) -> None:
        # Given
        cache.set(RATE, "k", b"{}", 60)

        # When
        clock.advance(seconds=60, milliseconds=1)

        # Then: still stored, but never returned
        assert cache.get(RATE, "k") is None
        assert len(cache.list_by_category(RATE)) == 1

    def test_delete_expired_removes_only_expired(self, cache: SQLiteCacheDB, clock) -> None:
        # Given
        cache.set(RATE, "short", b"{}", 60)
        cache.set(RATE, "long", b"{}", 7200)
        cache.set(CITY, "cities_6", b"{}", 60)
        clock.advance(minutes=5)

        # When
        removed = cache.delete_expired(RATE)

        # Then
        assert removed == 1
        assert [e.cache_key for e in cache.list_by_category(RATE)] == ["long"]
        assert cache.delete_expired() == 1

    def test_startup_sweep_purges_expired(self, tmp_path: Path, clock) -> None:
        # Given
        db_path = tmp_path / "sweep.db"
        with SQLiteCacheDB(db_path, clock=clock) as first:
            first.set(RATE, "old", b"{}", 60)
            first.set(RATE, "fresh", b"{}", 86_400)
        clock.advance(hours=1)

        # When
        with SQLiteCacheDB(db_path, clock=clock) as reopened:
            keys = [entry.cache_key for entry in reopened.list_by_category(RATE)]

        # Then
        assert keys == ["fresh"]

    def test_startup_sweep_can_be_disabled(self, tmp_path: Path, clock) -> None:
        db_path = tmp_path / "nosweep.db"
        with SQLiteCacheDB(db_path, clock=clock) as first:
            first.set(RATE, "old", b"{}", 60)
        clock.advance(hours=1)

        with SQLiteCacheDB(db_path, clock=clock, auto_cleanup_expired=False) as reopened:
            assert len(reopened.list_by_category(RATE)) == 1
            assert reopened.list_by_category(RATE, include_expired=False) == []


class TestCacheStoreReadWrite:
    def test_round_trip_keeps_payload_bytes(self, cache: SQLiteCacheDB, clock) -> None:
        # Given
        payload = b'{"rates":[{"service":"REG","cost":18000}]}'

        # When
        assert cache.set(RATE, "607_114_1000_jne", payload, 3600) is True
        entry = cache.get(RATE, "607_114_1000_jne")

        # Then
        assert entry is not None
        assert entry.payload == payload
        assert entry.category is RATE
        assert entry.created_at == clock.now
        assert entry.expires_at == clock.now + timedelta(hours=1)

    def test_categories_are_separate_namespaces(self, cache: SQLiteCacheDB) -> None:
        cache.set(RATE, "same-key", b'"rate"', 3600)
        cache.set(CITY, "same-key", b'"city"', 3600)

        assert cache.get(RATE, "same-key").decode() == "rate"
        assert cache.get(CITY, "same-key").decode() == "city"

    def test_last_write_wins(self, cache: SQLiteCacheDB, clock) -> None:
        # Given
        cache.set(RATE, "k", b"1", 60)
        cache.get(RATE, "k")
        clock.advance(seconds=30)

        # When
        cache.set(RATE, "k", b"2", 3600)

        # Then
        entry = cache.get(RATE, "k")
        assert entry.payload == b"2"
        assert entry.created_at == clock.now
        assert entry.hit_count == 1

    def test_hits_are_counted(self, cache: SQLiteCacheDB) -> None:
        cache.set(RATE, "k", b"{}", 3600)

        cache.get(RATE, "k")
        entry = cache.get(RATE, "k")

        assert entry.hit_count == 2
        assert entry.last_accessed_at is not None
        summary = cache.statistics.get_summary()
        assert summary["cache_hits"] == 2
        assert summary["cache_writes"] == 1

    def test_missing_key_is_a_miss(self, cache: SQLiteCacheDB) -> None:
        assert cache.get(RATE, "nope") is None
        assert cache.statistics.get_summary()["cache_misses"] == 1


class TestCacheStoreAdmin:
    def test_list_newest_first(self, cache: SQLiteCacheDB, clock) -> None:
        cache.set(RATE, "first", b"{}", 3600)
        clock.advance(seconds=1)
        cache.set(RATE, "second", b"{}", 3600)

        keys = [entry.cache_key for entry in cache.list_by_category(RATE)]

        assert keys == ["second", "first"]

    def test_delete_key(self, cache: SQLiteCacheDB) -> None:
        cache.set(RATE, "k", b"{}", 3600)

        assert cache.delete_key(RATE, "k") is True
        assert cache.delete_key(RATE, "k") is False
        assert cache.get(RATE, "k") is None

    def test_clear_one_category(self, cache: SQLiteCacheDB) -> None:
        cache.set(RATE, "a", b"{}", 3600)
        cache.set(RATE, "b", b"{}", 3600)
        cache.set(CITY, "cities_6", b"{}", 3600)

        assert cache.clear(RATE) == 2
        assert cache.get(CITY, "cities_6") is not None
        assert cache.clear() == 1

    def test_cache_info_counts(self, cache: SQLiteCacheDB, clock) -> None:
        # Given
        cache.set(RATE, "expiring", b"12345", 60)
        cache.set(RATE, "active", b"123", 3600)
        clock.advance(minutes=2)

        # When
        info = cache.get_cache_info()

        # Then
        assert info["total"] == 2
        assert info["active"] == 1
        assert info["expired"] == 1
        assert info["total_size_bytes"] == 8
        assert info["db_path"].endswith("provider_cache.db")

    def test_from_settings(self, tmp_path: Path) -> None:
        settings = CacheSettings(db_path=tmp_path / "from_settings.db", auto_cleanup_expired=False)

        with SQLiteCacheDB.from_settings(settings) as store:
            assert store.db_path == settings.db_path
            assert store.auto_cleanup_expired is False
