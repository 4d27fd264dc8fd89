"""Resilient client for the shipping provider API.

Each request walks the credential pool sequentially. A rate-limited or
failed attempt moves on to the next credential; the request ends at the
first success or when every credential has been tried once. There are no
retries beyond that walk and no backoff, since rate-limit windows are
usually daily quotas.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import aiohttp
import orjson

from shipvault.core.statistics import StatisticsCollector
from shipvault.services.provider.credential_pool import Credential, CredentialPool
from shipvault.services.provider.response_classifier import (
    ResponseClass,
    classify_response,
    envelope_message,
)
from shipvault.shared.constants import ContentTypes, HTTPHeaders, ProviderEndpoints
from shipvault.shared.errors import (
    ErrorContext,
    UpstreamExhaustedError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)
from shipvault.shared.logging import (
    log_api_call,
    log_operation_error,
    log_operation_success,
)

if TYPE_CHECKING:
    from shipvault.config.models.provider_settings import ProviderSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderResult:
    """Successful provider response.

    Attributes:
        body: Decoded JSON body (None if the body was not JSON)
        credential_ordinal: Ordinal of the credential that succeeded
        status: HTTP status code
        attempts: Number of attempts the request took
    """

    body: Any
    credential_ordinal: int
    status: int
    attempts: int = 1


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of one credential attempt, kept for error reporting."""

    ordinal: int
    outcome: ResponseClass
    status: int | None
    detail: str


class ProviderClient:
    """Provider API client with sequential credential fallback.

    Args:
        pool: Ordered credential pool
        base_url: Provider API base URL
        timeout: Per-attempt timeout in seconds; a timeout counts as a
            failed attempt and consumes that credential
        session: Optional shared aiohttp session (not closed by the client)
        statistics: Optional statistics collector

    Example:
        >>> async with ProviderClient(CredentialPool(["key-a", "key-b"])) as client:
        ...     result = await client.request("/destination/province")
    """

    def __init__(
        self,
        pool: CredentialPool,
        *,
        base_url: str = ProviderEndpoints.DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: aiohttp.ClientSession | None = None,
        statistics: StatisticsCollector | None = None,
    ) -> None:
        self.pool = pool
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.statistics = statistics or StatisticsCollector()
        self._session = session
        self._owns_session = session is None
        self._session_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: ProviderSettings,
        *,
        session: aiohttp.ClientSession | None = None,
        statistics: StatisticsCollector | None = None,
    ) -> ProviderClient:
        return cls(
            CredentialPool.from_settings(settings),
            base_url=settings.base_url,
            timeout=settings.timeout,
            session=session,
            statistics=statistics,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    headers={HTTPHeaders.ACCEPT: ContentTypes.JSON},
                )
                self._owns_session = True
            return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        async with self._session_lock:
            if self._owns_session and self._session and not self._session.closed:
                await self._session.close()
            self._session = None

    async def __aenter__(self) -> ProviderClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        data: Mapping[str, str] | None = None,
    ) -> ProviderResult:
        """Send a request, walking the credential pool until one succeeds.

        Args:
            endpoint: Path relative to the base URL (e.g. "/destination/province")
            method: HTTP method
            data: Form fields for POST requests

        Returns:
            ProviderResult of the first successful attempt

        Raises:
            UpstreamExhaustedError: The last credential was rate-limited
            UpstreamUnavailableError: The last credential failed another way
            ApplicationError: No credentials are configured
        """
        context = ErrorContext(
            operation="provider_request",
            additional_data={"endpoint": endpoint, "method": method},
        )
        order = self.pool.attempt_order()
        attempts: list[AttemptRecord] = []
        last_error: Exception | None = None

        for index, credential in enumerate(order):
            is_last = index == len(order) - 1
            attempt_context = {
                "credential_ordinal": credential.ordinal,
                "attempt": index + 1,
            }
            started = time.monotonic()

            try:
                status, body = await self._send(credential, endpoint, method, data)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                duration = time.monotonic() - started
                self.statistics.record_api_call(success=False, duration=duration)
                last_error = e
                detail = str(e) or type(e).__name__
                attempts.append(
                    AttemptRecord(credential.ordinal, ResponseClass.FAILED, None, detail)
                )
                logger.warning(
                    "Transport error on %s with credential #%d: %s",
                    endpoint,
                    credential.ordinal,
                    detail,
                )
                if not is_last:
                    self.statistics.record_credential_fallback()
                continue

            duration = time.monotonic() - started
            outcome = classify_response(status, body)
            log_api_call(
                logger=logger,
                endpoint=endpoint,
                method=method,
                status_code=status,
                duration_ms=round(duration * 1000, 2),
                context=attempt_context,
            )
            self.statistics.record_api_call(
                success=outcome is ResponseClass.SUCCESS, duration=duration
            )

            if outcome is ResponseClass.SUCCESS:
                self.pool.mark_success(credential.ordinal)
                log_operation_success(
                    logger=logger,
                    operation="provider_request",
                    duration_ms=round(duration * 1000, 2),
                    result_info={"status": status, **attempt_context},
                    context=context,
                )
                return ProviderResult(
                    body=body,
                    credential_ordinal=credential.ordinal,
                    status=status,
                    attempts=index + 1,
                )

            if outcome is ResponseClass.RATE_LIMITED:
                self.statistics.record_rate_limit_hit()
                last_error = UpstreamRateLimitedError(
                    envelope_message(body) or f"HTTP {status}",
                    credential_ordinal=credential.ordinal,
                    status_code=status,
                    context=ErrorContext(
                        operation="provider_request",
                        additional_data={"endpoint": endpoint, **attempt_context},
                    ),
                )
                logger.warning(
                    "Credential #%d rate limited on %s%s",
                    credential.ordinal,
                    endpoint,
                    ", trying next credential" if not is_last else "",
                )
            attempts.append(
                AttemptRecord(
                    credential.ordinal,
                    outcome,
                    status,
                    envelope_message(body) or f"HTTP {status}",
                )
            )
            if not is_last:
                self.statistics.record_credential_fallback()

        error = self._build_final_error(endpoint, attempts, context, last_error)
        log_operation_error(logger=logger, error=error, operation="provider_request")
        raise error

    def _build_final_error(
        self,
        endpoint: str,
        attempts: list[AttemptRecord],
        context: ErrorContext,
        last_error: Exception | None,
    ) -> UpstreamExhaustedError | UpstreamUnavailableError:
        ordinals = [attempt.ordinal for attempt in attempts]
        error_context = ErrorContext(
            operation=context.operation,
            additional_data={
                **(context.additional_data or {}),
                "attempted_ordinals": ",".join(str(o) for o in ordinals),
            },
        )

        final = attempts[-1]
        if final.outcome is ResponseClass.RATE_LIMITED:
            return UpstreamExhaustedError(
                f"All {len(attempts)} API keys exhausted for {endpoint}: {final.detail}",
                attempted_ordinals=ordinals,
                context=error_context,
                original_error=last_error,
            )

        return UpstreamUnavailableError(
            f"Provider unavailable for {endpoint}: {final.detail}",
            attempted_ordinals=ordinals,
            status_code=final.status,
            context=error_context,
            original_error=last_error if final.status is None else None,
        )

    async def _send(
        self,
        credential: Credential,
        endpoint: str,
        method: str,
        data: Mapping[str, str] | None,
    ) -> tuple[int, Any]:
        """Perform one HTTP attempt.

        Returns:
            Tuple of (status, decoded JSON body or None)

        Raises:
            aiohttp.ClientError: On transport failures
            asyncio.TimeoutError: When the attempt exceeds the timeout
        """
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"
        headers = {
            HTTPHeaders.API_KEY: credential.secret,
            HTTPHeaders.API_KEY_ALT: credential.secret,
        }

        async with session.request(
            method,
            url,
            headers=headers,
            data=dict(data) if data is not None else None,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            raw = await response.read()
            return response.status, _decode_body(raw)


def _decode_body(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        return None
