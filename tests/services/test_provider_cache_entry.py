"""Tests for the CacheEntry model."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import orjson
import pytest

from shipvault.services.cache_models import CacheCategory, CacheEntry

CREATED = datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)


def _entry(**overrides) -> CacheEntry:
    fields = {
        "cache_key": "607_114_1000_jne",
        "category": CacheCategory.SHIPPING_RATE,
        "payload": orjson.dumps({"rates": []}),
        "created_at": CREATED,
        "expires_at": CREATED + timedelta(days=30),
    }
    fields.update(overrides)
    return CacheEntry(**fields)


class TestCacheEntryValidation:
    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="cache_key"):
            _entry(cache_key="   ")

    def test_payload_must_be_bytes(self) -> None:
        with pytest.raises(TypeError, match="bytes"):
            _entry(payload='{"rates": []}')

    def test_naive_timestamps_rejected(self) -> None:
        with pytest.raises(ValueError, match="timezone-aware"):
            _entry(created_at=datetime(2025, 1, 15, 8, 0))

    def test_expiry_must_follow_creation(self) -> None:
        with pytest.raises(ValueError, match="expires_at"):
            _entry(expires_at=CREATED)

    def test_negative_hit_count_rejected(self) -> None:
        with pytest.raises(ValueError, match="hit_count"):
            _entry(hit_count=-1)

    def test_category_string_coerced(self) -> None:
        assert _entry(category="address_city").category is CacheCategory.ADDRESS_CITY


class TestCacheEntryBehaviour:
    def test_expiry_boundary(self) -> None:
        entry = _entry()

        assert not entry.is_expired(entry.expires_at - timedelta(microseconds=1))
        assert entry.is_expired(entry.expires_at)

    def test_age_days(self) -> None:
        entry = _entry()

        assert entry.age_days(CREATED + timedelta(days=3, hours=5)) == 3

    def test_summary_omits_payload(self) -> None:
        summary = _entry().summary(CREATED + timedelta(days=1))

        assert "payload" not in summary
        assert summary["payload_size"] == len(orjson.dumps({"rates": []}))
        assert summary["is_expired"] is False
        assert summary["category"] == "shipping_rate"

    def test_decode(self) -> None:
        assert _entry().decode() == {"rates": []}
