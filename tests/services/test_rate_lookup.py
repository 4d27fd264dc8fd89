"""Tests for RateLookupService read-through caching."""

from __future__ import annotations

from datetime import timedelta

import pytest

from shipvault.config import CacheSettings
from shipvault.services.cache_models import CacheCategory
from shipvault.services.provider.provider_client import ProviderClient
from shipvault.services.rate_lookup import RateLookupService, RateRequest
from shipvault.services.sqlite_cache import SQLiteCacheDB
from shipvault.shared.errors import (
    ErrorCode,
    InvalidRequestError,
    RateLookupError,
)


@pytest.fixture
def service(cache: SQLiteCacheDB, client: ProviderClient) -> RateLookupService:
    return RateLookupService(cache, client, CacheSettings())


class TestRateRequest:
    def test_values_are_normalized(self) -> None:
        request = RateRequest(" 607 ", 114, 1200, " JNE ", " Highest ")  # type: ignore[arg-type]

        assert request.origin_id == "607"
        assert request.destination_id == "114"
        assert request.courier == "jne"
        assert request.price_tier == "highest"

    def test_form_data_sends_billable_weight(self) -> None:
        data = RateRequest("607", "114", 1300, "jne").form_data()

        assert data == {
            "origin": "607",
            "destination": "114",
            "weight": "2000",
            "courier": "jne",
            "price": "lowest",
        }

    def test_all_tier_omits_price(self) -> None:
        assert "price" not in RateRequest("607", "114", 1300, "jne", "all").form_data()

    def test_validate_rejects_bad_weight(self) -> None:
        with pytest.raises(InvalidRequestError):
            RateRequest("607", "114", -5, "jne").validate()


class TestRateLookupFailures:
    @pytest.mark.asyncio
    async def test_invalid_request_never_calls_upstream(
        self, service: RateLookupService, client: ProviderClient, mocker
    ) -> None:
        send = mocker.patch.object(client, "_send")

        with pytest.raises(InvalidRequestError):
            await service.lookup_rate(RateRequest("607", "", 1000, "jne"))

        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_exhausted_upstream_surfaces_kind(
        self,
        service: RateLookupService,
        client: ProviderClient,
        cache: SQLiteCacheDB,
        mocker,
        make_rate_limited_body,
    ) -> None:
        # Given every key is rate limited
        mocker.patch.object(
            client, "_send", side_effect=[(429, make_rate_limited_body())] * 3
        )

        # When
        with pytest.raises(RateLookupError) as exc_info:
            await service.lookup_rate(RateRequest("607", "114", 1200, "jne"))

        # Then
        error = exc_info.value
        assert error.code == ErrorCode.RATE_LOOKUP_FAILED
        assert error.kind == ErrorCode.UPSTREAM_EXHAUSTED
        assert error.user_message == "Shipping cost unavailable, please try again."
        assert cache.list_by_category(CacheCategory.SHIPPING_RATE) == []

    @pytest.mark.asyncio
    async def test_rejected_response_surfaces_kind(
        self, service: RateLookupService, client: ProviderClient, mocker
    ) -> None:
        mocker.patch.object(
            client,
            "_send",
            side_effect=[(200, {"meta": {"status": "error", "message": "Invalid destination"}})],
        )

        with pytest.raises(RateLookupError) as exc_info:
            await service.lookup_rate(RateRequest("607", "999999", 1200, "jne"))

        assert exc_info.value.kind == ErrorCode.PROVIDER_REJECTED

    @pytest.mark.asyncio
    async def test_broken_cache_still_answers(
        self, service: RateLookupService, client: ProviderClient, cache: SQLiteCacheDB, mocker, make_rate_body
    ) -> None:
        # Given the cache backend is gone
        cache.close()
        send = mocker.patch.object(
            client, "_send", side_effect=[(200, make_rate_body(("REG", 18000)))] * 2
        )

        # When
        first = await service.lookup_rate(RateRequest("607", "114", 1200, "jne"))
        second = await service.lookup_rate(RateRequest("607", "114", 1200, "jne"))

        # Then both came from upstream
        assert first.cached is False
        assert second.cached is False
        assert send.call_count == 2


class TestRateLookupCaching:
    @pytest.mark.asyncio
    async def test_miss_then_hit(
        self, service: RateLookupService, client: ProviderClient, mocker, make_rate_body
    ) -> None:
        # Given
        send = mocker.patch.object(
            client, "_send", side_effect=[(200, make_rate_body(("REG", 18000), ("YES", 27000)))]
        )
        request = RateRequest("607", "114", 1200, "jne")

        # When
        first = await service.lookup_rate(request)
        second = await service.lookup_rate(request)

        # Then
        assert first.cached is False
        assert second.cached is True
        assert first.cache_key == second.cache_key == "607_114_1000_jne"
        assert second.rates == first.rates
        assert second.cheapest.cost == 18000
        assert second.cached_at is not None
        assert send.call_count == 1

    @pytest.mark.asyncio
    async def test_rounded_up_weight_uses_its_own_bucket(
        self, service: RateLookupService, client: ProviderClient, mocker, make_rate_body
    ) -> None:
        send = mocker.patch.object(
            client, "_send", side_effect=[(200, make_rate_body(("REG", 36000)))]
        )

        result = await service.lookup_rate(RateRequest("607", "114", 1300, "jne"))

        assert result.cache_key == "607_114_2000_jne"
        assert result.weight_info.billable_kg == 2
        assert send.call_args.args[3]["weight"] == "2000"

    @pytest.mark.asyncio
    async def test_lighter_parcel_in_same_bucket_hits_cache(
        self, service: RateLookupService, client: ProviderClient, mocker, make_rate_body
    ) -> None:
        # Given a cached 1200 g lookup
        send = mocker.patch.object(
            client, "_send", side_effect=[(200, make_rate_body(("REG", 18000)))]
        )
        await service.lookup_rate(RateRequest("607", "114", 1200, "jne"))

        # When a 1000 g parcel is priced
        result = await service.lookup_rate(RateRequest("607", "114", 1000, "jne"))

        # Then
        assert result.cached is True
        assert result.weight_info.actual_grams == 1000
        assert send.call_count == 1

    @pytest.mark.asyncio
    async def test_expired_entry_calls_upstream_again(
        self, service: RateLookupService, client: ProviderClient, clock, mocker, make_rate_body
    ) -> None:
        send = mocker.patch.object(
            client, "_send", side_effect=[(200, make_rate_body(("REG", 18000)))] * 2
        )
        request = RateRequest("607", "114", 1200, "jne")
        await service.lookup_rate(request)

        clock.advance(hours=720)
        result = await service.lookup_rate(request)

        assert result.cached is False
        assert send.call_count == 2

    @pytest.mark.asyncio
    async def test_empty_result_is_not_cached(
        self, service: RateLookupService, client: ProviderClient, mocker
    ) -> None:
        empty = {"meta": {"status": "success"}, "data": []}
        send = mocker.patch.object(client, "_send", side_effect=[(200, empty)] * 2)
        request = RateRequest("607", "114", 1200, "jne")

        first = await service.lookup_rate(request)
        second = await service.lookup_rate(request)

        assert first.rates == []
        assert second.cached is False
        assert send.call_count == 2

    @pytest.mark.asyncio
    async def test_stored_document(
        self,
        service: RateLookupService,
        client: ProviderClient,
        cache: SQLiteCacheDB,
        clock,
        mocker,
        make_rate_body,
    ) -> None:
        mocker.patch.object(client, "_send", side_effect=[(200, make_rate_body(("REG", 18000)))])

        await service.lookup_rate(RateRequest("607", "114", 1200, "JNE"))

        entry = cache.get(CacheCategory.SHIPPING_RATE, "607_114_1000_jne")
        document = entry.decode()
        assert document["weight"] == 1000
        assert document["courier"] == "jne"
        assert document["price_tier"] == "lowest"
        assert document["rates"][0]["cost"] == 18000
        assert entry.expires_at - entry.created_at == timedelta(hours=720)

    @pytest.mark.asyncio
    async def test_price_tier_gets_own_entry(
        self, service: RateLookupService, client: ProviderClient, mocker, make_rate_body
    ) -> None:
        send = mocker.patch.object(
            client, "_send", side_effect=[(200, make_rate_body(("REG", 18000)))] * 2
        )

        lowest = await service.lookup_rate(RateRequest("607", "114", 1200, "jne"))
        every = await service.lookup_rate(RateRequest("607", "114", 1200, "jne", "all"))

        assert lowest.cache_key == "607_114_1000_jne"
        assert every.cache_key == "607_114_1000_jne_all"
        assert every.cached is False
        assert "price" not in send.call_args.args[3]


class TestAllCouriersLookup:
    @pytest.mark.asyncio
    async def test_merges_sorts_and_reports_failures(
        self, service: RateLookupService, client: ProviderClient, mocker, make_rate_body, make_rate_limited_body
    ) -> None:
        # Given pos is rate limited on every key
        async def fake_send(credential, endpoint, method, data):
            if data["courier"] == "pos":
                return 429, make_rate_limited_body()
            costs = {"jne": 18000, "tiki": 15000}
            return 200, make_rate_body(("REG", costs[data["courier"]]), courier=data["courier"])

        mocker.patch.object(client, "_send", side_effect=fake_send)

        # When
        result = await service.lookup_all_couriers("607", "114", 1200, ["JNE", "pos", "tiki", "jne"])

        # Then
        assert [rate.courier_code for rate in result.rates] == ["tiki", "jne"]
        assert result.failed_couriers == {"pos": "UPSTREAM_EXHAUSTED"}
        assert result.cache_keys == {"jne": "607_114_1000_jne", "tiki": "607_114_1000_tiki"}
        assert result.cached is False
        assert result.to_dict()["total_results"] == 2

    @pytest.mark.asyncio
    async def test_second_call_is_fully_cached(
        self, service: RateLookupService, client: ProviderClient, mocker, make_rate_body
    ) -> None:
        async def fake_send(credential, endpoint, method, data):
            return 200, make_rate_body(("REG", 10000), courier=data["courier"])

        send = mocker.patch.object(client, "_send", side_effect=fake_send)

        await service.lookup_all_couriers("607", "114", 1200, ["jne", "pos"])
        result = await service.lookup_all_couriers("607", "114", 1200, ["jne", "pos"])

        assert result.cached is True
        assert sorted(result.cached_couriers) == ["jne", "pos"]
        assert send.call_count == 2

    @pytest.mark.asyncio
    async def test_every_courier_failing_raises(
        self, service: RateLookupService, client: ProviderClient, mocker
    ) -> None:
        async def fake_send(credential, endpoint, method, data):
            return 503, None

        mocker.patch.object(client, "_send", side_effect=fake_send)

        with pytest.raises(RateLookupError) as exc_info:
            await service.lookup_all_couriers("607", "114", 1200, ["jne", "pos"])

        assert exc_info.value.kind == ErrorCode.UPSTREAM_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_default_couriers_used(
        self, cache: SQLiteCacheDB, client: ProviderClient, mocker, make_rate_body
    ) -> None:
        service = RateLookupService(cache, client, default_couriers=("jne", "sicepat"))

        async def fake_send(credential, endpoint, method, data):
            return 200, make_rate_body(("REG", 10000), courier=data["courier"])

        send = mocker.patch.object(client, "_send", side_effect=fake_send)

        result = await service.lookup_all_couriers("607", "114", 500)

        assert sorted(result.cache_keys) == ["jne", "sicepat"]
        assert send.call_count == 2

    @pytest.mark.asyncio
    async def test_invalid_weight_rejected_before_fan_out(
        self, service: RateLookupService, client: ProviderClient, mocker
    ) -> None:
        send = mocker.patch.object(client, "_send")

        with pytest.raises(InvalidRequestError):
            await service.lookup_all_couriers("607", "114", 0, ["jne"])

        send.assert_not_called()
