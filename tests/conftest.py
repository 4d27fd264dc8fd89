"""
Pytest configuration and shared fixtures for ShipVault tests.

Every test runs in its own working directory with SHIPVAULT_* variables
removed, so no developer config file or .env leaks in.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from shipvault.cli.common.context import clear_cli_context
from shipvault.config import CacheSettings, reset_config
from shipvault.core.statistics import StatisticsCollector
from shipvault.services.provider.credential_pool import CredentialPool
from shipvault.services.provider.provider_client import ProviderClient
from shipvault.services.sqlite_cache import SQLiteCacheDB


class FakeClock:
    """Controllable UTC clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Run each test in an empty directory with a clean environment."""
    for name in list(os.environ):
        if name.startswith("SHIPVAULT_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    reset_config()
    clear_cli_context()

    yield tmp_path

    reset_config()
    clear_cli_context()
    # CLI runs install handlers and stop propagation; undo for caplog
    app_logger = logging.getLogger("shipvault")
    app_logger.handlers.clear()
    app_logger.propagate = True
    app_logger.setLevel(logging.NOTSET)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def statistics() -> StatisticsCollector:
    return StatisticsCollector()


@pytest.fixture
def cache(
    tmp_path: Path, clock: FakeClock, statistics: StatisticsCollector
) -> Generator[SQLiteCacheDB, None, None]:
    """SQLite cache store driven by the fake clock."""
    store = SQLiteCacheDB(tmp_path / "cache" / "provider_cache.db", statistics, clock=clock)
    yield store
    store.close()


@pytest.fixture
def cache_settings() -> CacheSettings:
    return CacheSettings()


@pytest.fixture
def client(statistics: StatisticsCollector) -> ProviderClient:
    """Provider client with three keys; tests patch ``_send``."""
    pool = CredentialPool(["key-alpha-0001", "key-bravo-0002", "key-charlie-0003"])
    return ProviderClient(pool, base_url="https://provider.test/api/v1", statistics=statistics)


def rate_body(*services: tuple[str, int], courier: str = "jne") -> dict[str, Any]:
    """Current-shape domestic-cost body with one item per (service, cost)."""
    return {
        "meta": {"message": "Success Calculate Domestic Shipping cost", "code": 200, "status": "success"},
        "data": [
            {
                "name": f"{courier.upper()} Express",
                "code": courier,
                "service": service,
                "description": f"{service} service",
                "cost": cost,
                "etd": "2-3 day",
            }
            for service, cost in services
        ],
    }


def rate_limited_body(message: str = "Daily request limit exceeded") -> dict[str, Any]:
    return {"meta": {"message": message, "code": 429, "status": "error"}, "data": None}


@pytest.fixture
def make_rate_body():
    return rate_body


@pytest.fixture
def make_rate_limited_body():
    return rate_limited_body
