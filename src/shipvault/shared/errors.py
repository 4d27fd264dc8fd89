"""ShipVault Error Handling Module

This module defines the error handling system for ShipVault, providing
structured error classes with context information and user-friendly messages.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved

Lookup failures surfaced to callers (RateLookupError, ReferenceLookupError)
carry the upstream failure kind and a message safe to show to shoppers.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]


class ErrorCode(str, Enum):
    """Error codes for ShipVault.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # Request Errors
    INVALID_REQUEST = "INVALID_REQUEST"

    # Upstream Provider Errors
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    UPSTREAM_EXHAUSTED = "UPSTREAM_EXHAUSTED"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    PROVIDER_REJECTED = "PROVIDER_REJECTED"
    PROVIDER_INVALID_RESPONSE = "PROVIDER_INVALID_RESPONSE"
    NO_CREDENTIALS = "NO_CREDENTIALS"

    # Lookup Errors
    RATE_LOOKUP_FAILED = "RATE_LOOKUP_FAILED"
    REFERENCE_LOOKUP_FAILED = "REFERENCE_LOOKUP_FAILED"

    # Cache Errors
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"

    # Configuration Errors
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # CLI Errors
    CLI_COMMAND_FAILED = "CLI_COMMAND_FAILED"
    CLI_INVALID_ARGUMENTS = "CLI_INVALID_ARGUMENTS"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        elif val is None:
            continue
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data so contexts serialize safely and never carry secrets
    such as API keys by accident.

    Attributes:
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self, *, mask_keys: tuple[str, ...] = ()) -> dict[str, Any]:
        """Export context as a dict for logs and JSON output.

        Args:
            mask_keys: Fields to leave out of the output

        Returns:
            Dictionary of the set fields, always with an additional_data key.

        Example:
            >>> context = ErrorContextModel(operation="lookup_rate")
            >>> context.safe_dict()
            {'operation': 'lookup_rate', 'additional_data': {}}
        """
        data: dict[str, Any] = {}
        if self.operation is not None and "operation" not in mask_keys:
            data["operation"] = self.operation

        if self.additional_data is not None and "additional_data" not in mask_keys:
            data["additional_data"] = self.additional_data
        else:
            data["additional_data"] = {}

        return data


ErrorContext = ErrorContextModel


class ShipVaultError(Exception):
    """Base exception class for all ShipVault errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize ShipVaultError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        formatted_message = f"{code.value}: {message}"
        super().__init__(formatted_message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging and JSON output.

        Returns:
            Dictionary representation of the error with code, message,
            masked context, and original_error (if present)
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(ShipVaultError):
    """Domain-specific errors.

    These errors occur when business rules are violated, for example a
    package weight that is not a positive number of grams.
    """


class InfrastructureError(ShipVaultError):
    """Infrastructure-related errors.

    These errors occur when interacting with external systems
    like the shipping provider or the cache database.
    """


class ApplicationError(ShipVaultError):
    """Application-level errors.

    Configuration problems, missing credentials and command handling
    failures.
    """


class InvalidRequestError(DomainError):
    """A lookup request was rejected before any I/O.

    Raised for non-positive weights, empty or non-alphanumeric identifiers
    and a missing parent id on scoped reference types.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        if context is None:
            context = ErrorContext(
                operation="validate_request",
                additional_data={"field": field} if field else None,
            )
        super().__init__(ErrorCode.INVALID_REQUEST, message, context)
        self.field = field


class UpstreamRateLimitedError(InfrastructureError):
    """A single attempt was refused because its credential hit a quota.

    Internal to the upstream client; it is never surfaced on its own.
    """

    def __init__(
        self,
        message: str,
        credential_ordinal: int,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(ErrorCode.UPSTREAM_RATE_LIMITED, message, context)
        self.credential_ordinal = credential_ordinal
        self.status_code = status_code


class UpstreamExhaustedError(InfrastructureError):
    """Every credential was tried and the last one was rate-limited."""

    def __init__(
        self,
        message: str,
        attempted_ordinals: list[int],
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.UPSTREAM_EXHAUSTED, message, context, original_error)
        self.attempted_ordinals = attempted_ordinals


class UpstreamUnavailableError(InfrastructureError):
    """A non-rate-limit failure (HTTP error, transport error, timeout)
    happened on the last remaining credential."""

    def __init__(
        self,
        message: str,
        attempted_ordinals: list[int],
        status_code: int | None = None,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.UPSTREAM_UNAVAILABLE, message, context, original_error
        )
        self.attempted_ordinals = attempted_ordinals
        self.status_code = status_code


class CacheUnavailableError(InfrastructureError):
    """The cache backend could not be read or written.

    Absorbed by the cache store: reads become misses and writes are skipped.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(ErrorCode.CACHE_UNAVAILABLE, message, context, original_error)


class LookupFailedError(ShipVaultError):
    """Base for failures surfaced by the lookup services.

    Attributes:
        kind: Error code of the underlying failure (for example
            UPSTREAM_EXHAUSTED or UPSTREAM_UNAVAILABLE)
        user_message: Message suitable for showing to a shopper
    """

    default_user_message = "Lookup unavailable, please try again."

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        kind: ErrorCode,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(code, message, context, original_error)
        self.kind = kind
        self.user_message = user_message or self.default_user_message

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["kind"] = self.kind.value
        data["user_message"] = self.user_message
        return data


class RateLookupError(LookupFailedError):
    """A shipping rate could not be produced from cache or provider."""

    default_user_message = "Shipping cost unavailable, please try again."

    def __init__(
        self,
        message: str,
        kind: ErrorCode,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.RATE_LOOKUP_FAILED, message, kind, context, original_error
        )


class ReferenceLookupError(LookupFailedError):
    """Administrative geography data could not be produced."""

    default_user_message = "Location list unavailable, please try again."

    def __init__(
        self,
        message: str,
        kind: ErrorCode,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.REFERENCE_LOOKUP_FAILED, message, kind, context, original_error
        )


class CliError(ApplicationError):
    """CLI-specific error with the exit code to terminate with."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


# Convenience functions for common error scenarios
def create_provider_rejected_error(
    message: str,
    endpoint: str,
    operation: str | None = None,
) -> InfrastructureError:
    """Create an error for a 2xx response carrying a provider error envelope."""
    context = ErrorContext(
        operation=operation,
        additional_data={"endpoint": endpoint},
    )
    return InfrastructureError(
        ErrorCode.PROVIDER_REJECTED,
        message,
        context,
    )


def create_invalid_response_error(
    message: str,
    endpoint: str,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> InfrastructureError:
    """Create an error for a provider body that cannot be normalized."""
    context = ErrorContext(
        operation=operation,
        additional_data={"endpoint": endpoint},
    )
    return InfrastructureError(
        ErrorCode.PROVIDER_INVALID_RESPONSE,
        message,
        context,
        original_error,
    )
