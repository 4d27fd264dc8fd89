"""Shipping rate lookup service.

Read-through, write-through caching in front of the provider client:

    BUILD_KEY -> CHECK_CACHE -> CACHE_HIT -> DONE
                             -> CACHE_MISS -> CALL_UPSTREAM -> NORMALIZE
                                           -> WRITE_CACHE -> DONE
                                           (or FAILED on upstream errors)

The cache key embeds the billable weight bucket, and the provider is asked
for that same bucketed weight, so a cached price is exactly what a fresh
call for any weight in the bucket would return.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import orjson

from shipvault.config.models.cache_settings import CacheSettings
from shipvault.core.cache_keys import build_rate_cache_key
from shipvault.core.weight_bucket import WeightInfo, describe_weight
from shipvault.services.cache_models import CacheCategory, CacheEntry
from shipvault.services.provider.provider_client import ProviderClient
from shipvault.services.provider.provider_models import (
    CourierRate,
    normalize_rate_response,
)
from shipvault.shared.constants import Couriers, PriceTiers, ProviderEndpoints
from shipvault.shared.errors import (
    ErrorCode,
    ErrorContext,
    InvalidRequestError,
    RateLookupError,
    ShipVaultError,
)
from shipvault.shared.logging import (
    log_operation_error,
    log_operation_start,
    log_operation_success,
)
from shipvault.shared.protocols import CacheStoreProtocol

logger = logging.getLogger(__name__)


class LookupState(str, Enum):
    """Stages of one rate lookup, reported in debug logs."""

    BUILD_KEY = "build_key"
    CHECK_CACHE = "check_cache"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    CALL_UPSTREAM = "call_upstream"
    NORMALIZE = "normalize"
    WRITE_CACHE = "write_cache"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RateRequest:
    """A shipping rate query.

    Attributes:
        origin_id: Origin location id
        destination_id: Destination location id
        actual_weight_grams: Real package weight in grams (positive)
        courier: Courier code, stored lowercase
        price_tier: Provider price tier (None means the service default)
    """

    origin_id: str
    destination_id: str
    actual_weight_grams: int
    courier: str
    price_tier: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin_id", str(self.origin_id).strip())
        object.__setattr__(self, "destination_id", str(self.destination_id).strip())
        object.__setattr__(self, "courier", str(self.courier).strip().lower())
        if self.price_tier is not None:
            object.__setattr__(self, "price_tier", self.price_tier.strip().lower())

    def validate(self) -> None:
        """Reject the request before any I/O.

        Raises:
            InvalidRequestError: On empty ids or courier, or a non-positive weight
        """
        # Key construction checks every component
        _ = self.cache_key

    @property
    def weight_info(self) -> WeightInfo:
        return describe_weight(self.actual_weight_grams)

    @property
    def billable_weight_kg(self) -> int:
        return self.weight_info.billable_kg

    @property
    def billable_weight_grams(self) -> int:
        return self.weight_info.billable_grams

    @property
    def cache_key(self) -> str:
        return build_rate_cache_key(
            self.origin_id,
            self.destination_id,
            self.actual_weight_grams,
            self.courier,
            self.price_tier,
        )

    def form_data(self) -> dict[str, str]:
        """Form fields for the domestic-cost endpoint.

        The billable weight is sent, not the actual weight. The ``price``
        field is omitted for the "all" tier.
        """
        data = {
            "origin": self.origin_id,
            "destination": self.destination_id,
            "weight": str(self.billable_weight_grams),
            "courier": self.courier,
        }
        tier = self.price_tier or PriceTiers.DEFAULT
        if tier != PriceTiers.ALL:
            data["price"] = tier
        return data


@dataclass(frozen=True)
class RateLookupResult:
    """Rates for one courier and where they came from."""

    rates: list[CourierRate]
    cached: bool
    cache_key: str
    weight_info: WeightInfo
    courier: str
    cached_at: datetime | None = None

    @property
    def cheapest(self) -> CourierRate | None:
        return min(self.rates, key=lambda rate: rate.cost, default=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "courier": self.courier,
            "cached": self.cached,
            "cache_key": self.cache_key,
            "cached_at": self.cached_at.isoformat() if self.cached_at else None,
            "weight_info": self.weight_info.to_dict(),
            "rates": [rate.to_dict() for rate in self.rates],
        }


@dataclass(frozen=True)
class AllCouriersResult:
    """Rates across several couriers, cheapest first.

    Attributes:
        rates: Every courier's rates merged and sorted by cost
        cache_keys: Cache key per courier that returned rates
        cached_couriers: Couriers answered from cache
        failed_couriers: Courier code -> error code of couriers that failed
        weight_info: Billable weight explanation
    """

    rates: list[CourierRate]
    cache_keys: dict[str, str]
    cached_couriers: list[str]
    failed_couriers: dict[str, str]
    weight_info: WeightInfo
    results: list[RateLookupResult] = field(default_factory=list, repr=False)

    @property
    def cached(self) -> bool:
        """True when every successful courier was served from cache."""
        return bool(self.cache_keys) and len(self.cached_couriers) == len(self.cache_keys)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cached": self.cached,
            "cache_keys": self.cache_keys,
            "cached_couriers": self.cached_couriers,
            "failed_couriers": self.failed_couriers,
            "weight_info": self.weight_info.to_dict(),
            "total_results": len(self.rates),
            "rates": [rate.to_dict() for rate in self.rates],
        }


class RateLookupService:
    """Cached shipping rate lookups.

    Args:
        cache: TTL cache store
        client: Provider client
        cache_settings: TTL configuration (defaults apply when omitted)
        default_couriers: Couriers queried by ``lookup_all_couriers``
        default_price_tier: Tier used when a request does not name one
    """

    def __init__(
        self,
        cache: CacheStoreProtocol,
        client: ProviderClient,
        cache_settings: CacheSettings | None = None,
        *,
        default_couriers: Sequence[str] = Couriers.DEFAULT_SET,
        default_price_tier: str = PriceTiers.DEFAULT,
    ) -> None:
        self.cache = cache
        self.client = client
        self.cache_settings = cache_settings or CacheSettings()
        self.default_couriers = tuple(default_couriers)
        self.default_price_tier = default_price_tier.strip().lower()

    def _resolve(self, request: RateRequest) -> RateRequest:
        if request.price_tier is None:
            request = dataclasses.replace(request, price_tier=self.default_price_tier)
        request.validate()
        return request

    async def lookup_rate(self, request: RateRequest) -> RateLookupResult:
        """Look up rates for one courier, from cache when possible.

        Args:
            request: The rate query

        Returns:
            RateLookupResult with ``cached`` telling whether the provider was called

        Raises:
            InvalidRequestError: Before any I/O, for malformed requests
            RateLookupError: When the provider could not produce rates; ``kind``
                carries the underlying error code
        """
        started = time.monotonic()
        state = LookupState.BUILD_KEY
        request = self._resolve(request)
        key = request.cache_key
        context = ErrorContext(
            operation="lookup_rate",
            additional_data={"cache_key": key, "courier": request.courier},
        )
        log_operation_start(logger, "lookup_rate", context.additional_data)

        state = LookupState.CHECK_CACHE
        cached = await self._read_cached(key)
        if cached is not None:
            rates, entry = cached
            state = LookupState.CACHE_HIT
            logger.debug("Rate lookup %s: %s", key, state.value)
            return RateLookupResult(
                rates=rates,
                cached=True,
                cache_key=key,
                weight_info=request.weight_info,
                courier=request.courier,
                cached_at=entry.created_at,
            )

        state = LookupState.CACHE_MISS
        logger.debug("Rate lookup %s: %s", key, state.value)

        state = LookupState.CALL_UPSTREAM
        try:
            response = await self.client.request(
                ProviderEndpoints.DOMESTIC_COST,
                method="POST",
                data=request.form_data(),
            )
            state = LookupState.NORMALIZE
            rates = normalize_rate_response(response.body, request.courier)
        except ShipVaultError as e:
            error = RateLookupError(
                f"Rate lookup failed for {key} at {state.value}: {e.message}",
                kind=e.code,
                context=context,
                original_error=e,
            )
            logger.debug("Rate lookup %s: %s", key, LookupState.FAILED.value)
            log_operation_error(logger=logger, error=error, operation="lookup_rate")
            raise error from e

        state = LookupState.WRITE_CACHE
        written = await self._write_cached(request, key, rates)

        state = LookupState.DONE
        log_operation_success(
            logger=logger,
            operation="lookup_rate",
            duration_ms=round((time.monotonic() - started) * 1000, 2),
            result_info={
                "rates": len(rates),
                "cached": False,
                "written": written,
                "state": state.value,
            },
            context=context,
        )
        return RateLookupResult(
            rates=rates,
            cached=False,
            cache_key=key,
            weight_info=request.weight_info,
            courier=request.courier,
        )

    async def _read_cached(self, key: str) -> tuple[list[CourierRate], CacheEntry] | None:
        entry = await asyncio.to_thread(self.cache.get, CacheCategory.SHIPPING_RATE, key)
        if entry is None:
            return None
        try:
            document = entry.decode()
            rates = [CourierRate.from_dict(item) for item in document["rates"]]
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring unreadable cache entry %s: %s", key, e)
            return None
        return rates, entry

    async def _write_cached(
        self, request: RateRequest, key: str, rates: list[CourierRate]
    ) -> bool:
        # Empty answers are not cached; routes often gain services later
        if not rates:
            logger.debug("Not caching empty rate result for %s", key)
            return False

        payload = orjson.dumps(
            {
                "origin": request.origin_id,
                "destination": request.destination_id,
                "weight": request.billable_weight_grams,
                "courier": request.courier,
                "price_tier": request.price_tier,
                "rates": [rate.to_dict() for rate in rates],
            }
        )
        ttl_seconds = self.cache_settings.ttl_seconds_for(CacheCategory.SHIPPING_RATE)
        return await asyncio.to_thread(
            self.cache.set, CacheCategory.SHIPPING_RATE, key, payload, ttl_seconds
        )

    async def lookup_all_couriers(
        self,
        origin_id: str,
        destination_id: str,
        weight_grams: int,
        couriers: Sequence[str] | None = None,
        price_tier: str | None = None,
    ) -> AllCouriersResult:
        """Look up several couriers and merge their rates, cheapest first.

        Couriers are looked up concurrently and independently. A failing
        courier is reported in ``failed_couriers`` instead of failing the
        whole lookup.

        Raises:
            InvalidRequestError: Before any I/O, for malformed requests
            RateLookupError: Only when every courier failed
        """
        requested = couriers or self.default_couriers
        courier_codes = list(dict.fromkeys(c.strip().lower() for c in requested if c.strip()))
        if not courier_codes:
            msg = "At least one courier is required"
            raise InvalidRequestError(msg, field="couriers")

        requests = [
            self._resolve(
                RateRequest(origin_id, destination_id, weight_grams, courier, price_tier)
            )
            for courier in courier_codes
        ]

        outcomes = await asyncio.gather(
            *(self.lookup_rate(request) for request in requests),
            return_exceptions=True,
        )

        results: list[RateLookupResult] = []
        failed: dict[str, str] = {}
        errors: list[RateLookupError] = []
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, RateLookupError):
                failed[request.courier] = outcome.kind.value
                errors.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        weight_info = describe_weight(weight_grams)
        if not results:
            kinds = {error.kind for error in errors}
            kind = kinds.pop() if len(kinds) == 1 else ErrorCode.UPSTREAM_UNAVAILABLE
            raise RateLookupError(
                f"All {len(courier_codes)} couriers failed",
                kind=kind,
                context=ErrorContext(
                    operation="lookup_all_couriers",
                    additional_data={"couriers": ",".join(courier_codes)},
                ),
                original_error=errors[-1] if errors else None,
            )

        rates = sorted(
            (rate for result in results for rate in result.rates),
            key=lambda rate: rate.cost,
        )
        return AllCouriersResult(
            rates=rates,
            cache_keys={result.courier: result.cache_key for result in results},
            cached_couriers=[result.courier for result in results if result.cached],
            failed_couriers=failed,
            weight_info=weight_info,
            results=results,
        )
