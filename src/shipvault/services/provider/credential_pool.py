"""Ordered pool of provider API credentials.

Credentials are tried strictly in priority order. The pool remembers the
ordinal of the last credential that worked as a soft-affinity hint; the
hint is process-local, never persisted, and a stale value only changes
which credential is tried first.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from shipvault.shared.errors import ApplicationError, ErrorCode, ErrorContext

if TYPE_CHECKING:
    from shipvault.config.models.provider_settings import ProviderSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """One provider API key and its position in the priority order."""

    secret: str = field(repr=False)
    ordinal: int

    def __post_init__(self) -> None:
        if not self.secret or not self.secret.strip():
            msg = "Credential secret must be non-empty"
            raise ValueError(msg)
        if self.ordinal < 0:
            msg = f"Credential ordinal must be non-negative, got {self.ordinal}"
            raise ValueError(msg)

    @property
    def masked(self) -> str:
        """Secret with all but the last four characters hidden."""
        return "****" + self.secret[-4:] if len(self.secret) > 4 else "****"


class CredentialPool:
    """Fixed, ordered set of credentials with a last-known-good hint.

    Args:
        secrets: API keys in priority order; blank entries are ignored
        sticky: Start attempt order at the last-known-good credential
            instead of always at ordinal 0

    Example:
        >>> pool = CredentialPool(["key-a", "key-b", "key-c"])
        >>> [c.ordinal for c in pool.attempt_order()]
        [0, 1, 2]
        >>> pool.mark_success(1)
        >>> pool.last_known_good_ordinal
        1
    """

    def __init__(self, secrets: Sequence[str], *, sticky: bool = False) -> None:
        cleaned = [secret.strip() for secret in secrets if secret and secret.strip()]
        self._credentials = tuple(
            Credential(secret=secret, ordinal=ordinal)
            for ordinal, secret in enumerate(cleaned)
        )
        self.sticky = sticky
        self._last_known_good: int | None = None

    @classmethod
    def from_settings(cls, settings: ProviderSettings) -> CredentialPool:
        return cls(settings.api_keys, sticky=settings.sticky_credentials)

    def __len__(self) -> int:
        return len(self._credentials)

    def __repr__(self) -> str:
        return (
            f"CredentialPool(size={len(self)}, sticky={self.sticky}, "
            f"last_known_good={self._last_known_good})"
        )

    @property
    def credentials(self) -> tuple[Credential, ...]:
        return self._credentials

    @property
    def last_known_good_ordinal(self) -> int | None:
        return self._last_known_good

    def attempt_order(self) -> list[Credential]:
        """Credentials in the order one request should try them.

        Every credential appears exactly once. Without stickiness the
        order is always 0..N-1. With stickiness it starts at the hint and
        wraps around.

        Raises:
            ApplicationError: If the pool is empty
        """
        if not self._credentials:
            raise ApplicationError(
                code=ErrorCode.NO_CREDENTIALS,
                message="No provider API keys configured",
                context=ErrorContext(operation="attempt_order"),
            )

        start = 0
        if self.sticky and self._last_known_good is not None:
            start = self._last_known_good % len(self._credentials)

        return [
            *self._credentials[start:],
            *self._credentials[:start],
        ]

    def mark_success(self, ordinal: int) -> None:
        """Record the credential that served the latest successful call."""
        if not 0 <= ordinal < len(self._credentials):
            msg = f"Unknown credential ordinal: {ordinal}"
            raise ValueError(msg)
        if ordinal != self._last_known_good:
            logger.debug("Last known good credential is now ordinal %d", ordinal)
        self._last_known_good = ordinal

    def current(self) -> Credential | None:
        """The credential a sticky request would try first, if any are configured."""
        if not self._credentials:
            return None
        return self._credentials[self._last_known_good or 0]

    def reset_to_first(self) -> None:
        """Forget the last-known-good hint."""
        self._last_known_good = None
