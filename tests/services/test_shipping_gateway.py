"""Tests for the ShippingGateway facade."""

from __future__ import annotations

from pathlib import Path

import pytest

from shipvault.config import Settings
from shipvault.services.cache_models import CacheCategory
from shipvault.services.gateway import ShippingGateway


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        provider={"api_keys": ["gw-key-one", "gw-key-two"], "default_couriers": ["jne", "pos"]},
        cache={"db_path": str(tmp_path / "gateway.db")},
    )


class TestShippingGateway:
    @pytest.mark.asyncio
    async def test_from_settings_wires_components(self, settings: Settings) -> None:
        async with ShippingGateway.from_settings(settings) as gateway:
            assert len(gateway.client.pool) == 2
            assert gateway.cache.db_path == settings.cache.db_path
            assert gateway.rates.default_couriers == ("jne", "pos")
            # Cache and client report into one collector
            assert gateway.client.statistics is gateway.cache.statistics

        assert gateway.cache.conn is None

    @pytest.mark.asyncio
    async def test_rate_lookup_and_cache_admin(
        self, settings: Settings, mocker, make_rate_body
    ) -> None:
        async with ShippingGateway.from_settings(settings) as gateway:
            send = mocker.patch.object(
                gateway.client, "_send", side_effect=[(200, make_rate_body(("REG", 18000)))]
            )

            first = await gateway.lookup_rate("607", "114", 1200, "jne")
            second = await gateway.lookup_rate("607", "114", 1100, "jne")
            entries = await gateway.list_cached(CacheCategory.SHIPPING_RATE)
            info = await gateway.cache_info()

        assert first.cached is False
        assert second.cached is True
        assert send.call_count == 1
        assert [entry.cache_key for entry in entries] == ["607_114_1000_jne"]
        assert info["total"] == 1
        assert info["statistics"]["cache_hits"] == 1

    @pytest.mark.asyncio
    async def test_all_couriers_uses_configured_defaults(
        self, settings: Settings, mocker, make_rate_body
    ) -> None:
        async def fake_send(credential, endpoint, method, data):
            return 200, make_rate_body(("REG", 9000), courier=data["courier"])

        async with ShippingGateway.from_settings(settings) as gateway:
            mocker.patch.object(gateway.client, "_send", side_effect=fake_send)
            result = await gateway.lookup_all_couriers("607", "114", 800)

        assert sorted(result.cache_keys) == ["jne", "pos"]

    @pytest.mark.asyncio
    async def test_reference_lookup(self, settings: Settings, mocker) -> None:
        body = {"meta": {"status": "success"}, "data": [{"id": 6, "name": "DKI JAKARTA"}]}

        async with ShippingGateway.from_settings(settings) as gateway:
            mocker.patch.object(gateway.client, "_send", side_effect=[(200, body)])
            result = await gateway.lookup_reference("provinces")
            purged = await gateway.purge_expired()

        assert result.items[0]["province"] == "DKI JAKARTA"
        assert purged == 0
