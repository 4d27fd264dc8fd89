"""Tests for ReferenceLookupService."""

from __future__ import annotations

from datetime import timedelta

import pytest

from shipvault.config import CacheSettings
from shipvault.core.cache_keys import ReferenceType
from shipvault.services.cache_models import CacheCategory
from shipvault.services.provider.provider_client import ProviderClient
from shipvault.services.reference_lookup import ReferenceLookupService, category_for
from shipvault.services.sqlite_cache import SQLiteCacheDB
from shipvault.shared.errors import ErrorCode, InvalidRequestError, ReferenceLookupError

PROVINCES = {
    "meta": {"status": "success", "code": 200},
    "data": [{"id": 6, "name": "DKI JAKARTA"}, {"id": 9, "name": "JAWA BARAT"}],
}
CITIES = {
    "meta": {"status": "success", "code": 200},
    "data": [{"id": 152, "name": "JAKARTA PUSAT"}],
}


@pytest.fixture
def service(cache: SQLiteCacheDB, client: ProviderClient) -> ReferenceLookupService:
    return ReferenceLookupService(cache, client, CacheSettings())


class TestReferenceLookupFailures:
    @pytest.mark.asyncio
    async def test_missing_parent_rejected_before_io(
        self, service: ReferenceLookupService, client: ProviderClient, mocker
    ) -> None:
        send = mocker.patch.object(client, "_send")

        with pytest.raises(InvalidRequestError):
            await service.lookup_reference(ReferenceType.CITIES)

        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_upstream_failure_surfaces_kind(
        self, service: ReferenceLookupService, client: ProviderClient, mocker
    ) -> None:
        mocker.patch.object(client, "_send", side_effect=[(500, None)] * 3)

        with pytest.raises(ReferenceLookupError) as exc_info:
            await service.lookup_reference("provinces")

        assert exc_info.value.code == ErrorCode.REFERENCE_LOOKUP_FAILED
        assert exc_info.value.kind == ErrorCode.UPSTREAM_UNAVAILABLE
        assert exc_info.value.user_message == "Location list unavailable, please try again."


class TestReferenceLookupCaching:
    @pytest.mark.asyncio
    async def test_provinces_miss_then_hit(
        self, service: ReferenceLookupService, client: ProviderClient, mocker
    ) -> None:
        # Given
        send = mocker.patch.object(client, "_send", side_effect=[(200, PROVINCES)])

        # When
        first = await service.lookup_reference("provinces")
        second = await service.lookup_reference(ReferenceType.PROVINCES)

        # Then
        assert first.cached is False
        assert second.cached is True
        assert second.cache_key == "provinces"
        assert second.items == first.items
        assert second.items[0] == {"province_id": "6", "province": "DKI JAKARTA"}
        assert send.call_count == 1
        assert send.call_args.args[1:3] == ("/destination/province", "GET")

    @pytest.mark.asyncio
    async def test_cities_scoped_by_parent(
        self, service: ReferenceLookupService, client: ProviderClient, mocker
    ) -> None:
        send = mocker.patch.object(client, "_send", side_effect=[(200, CITIES)] * 2)

        jakarta = await service.lookup_reference("cities", 6)
        west_java = await service.lookup_reference("cities", "9")

        assert jakarta.cache_key == "cities_6"
        assert west_java.cache_key == "cities_9"
        assert jakarta.items[0]["province_id"] == "6"
        assert [call.args[1] for call in send.call_args_list] == [
            "/destination/city/6",
            "/destination/city/9",
        ]

    @pytest.mark.asyncio
    async def test_reference_ttl_is_longer(
        self,
        service: ReferenceLookupService,
        client: ProviderClient,
        cache: SQLiteCacheDB,
        mocker,
    ) -> None:
        mocker.patch.object(client, "_send", side_effect=[(200, PROVINCES)])

        await service.lookup_reference("provinces")

        entry = cache.get(CacheCategory.ADDRESS_PROVINCE, "provinces")
        assert entry.expires_at - entry.created_at == timedelta(hours=4320)

    @pytest.mark.asyncio
    async def test_empty_list_not_cached(
        self, service: ReferenceLookupService, client: ProviderClient, mocker
    ) -> None:
        empty = {"meta": {"status": "success"}, "data": []}
        send = mocker.patch.object(client, "_send", side_effect=[(200, empty)] * 2)

        await service.lookup_reference("districts", "152")
        result = await service.lookup_reference("districts", "152")

        assert result.items == []
        assert result.cached is False
        assert send.call_count == 2

    def test_category_per_level(self) -> None:
        assert category_for(ReferenceType.PROVINCES) is CacheCategory.ADDRESS_PROVINCE
        assert category_for(ReferenceType.SUBDISTRICTS) is CacheCategory.ADDRESS_SUBDISTRICT
