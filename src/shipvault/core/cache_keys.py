"""Cache key construction.

Rate keys embed the *bucketed* weight, never the raw grams, so every
request billed identically maps to the same entry. Reference keys are
scoped by their parent location id.
"""

from __future__ import annotations

from enum import Enum

from shipvault.core.weight_bucket import billable_weight_grams
from shipvault.shared.constants import PriceTiers
from shipvault.shared.errors import InvalidRequestError


class ReferenceType(str, Enum):
    """Administrative geography levels served by the provider."""

    PROVINCES = "provinces"
    CITIES = "cities"
    DISTRICTS = "districts"
    SUBDISTRICTS = "subdistricts"

    @property
    def requires_parent(self) -> bool:
        return self is not ReferenceType.PROVINCES


def _require_identifier(value: object, field: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        msg = f"{field} must not be empty"
        raise InvalidRequestError(msg, field=field)
    # Components are joined with "_" and must not contain a separator
    if not text.isalnum():
        msg = f"{field} must contain only letters and digits, got {text!r}"
        raise InvalidRequestError(msg, field=field)
    return text


def build_rate_cache_key(
    origin_id: str | int,
    destination_id: str | int,
    weight_grams: int,
    courier: str,
    price_tier: str | None = None,
) -> str:
    """Build the cache key of a shipping rate lookup.

    Format is ``{origin}_{destination}_{billable_grams}_{courier}``. A price
    tier other than the default is appended as ``_{tier}``.

    Args:
        origin_id: Origin location id
        destination_id: Destination location id
        weight_grams: Actual package weight in grams
        courier: Courier code (case-insensitive)
        price_tier: Optional provider price tier

    Returns:
        Cache key string

    Raises:
        InvalidRequestError: If any component is empty or not alphanumeric, or the
            weight is invalid

    Example:
        >>> build_rate_cache_key("607", "114", 1200, "jne")
        '607_114_1000_jne'
    """
    origin = _require_identifier(origin_id, "origin_id")
    destination = _require_identifier(destination_id, "destination_id")
    courier_code = _require_identifier(courier, "courier").lower()
    bucket_grams = billable_weight_grams(weight_grams)

    key = f"{origin}_{destination}_{bucket_grams}_{courier_code}"

    tier = (price_tier or "").strip().lower()
    if tier and tier != PriceTiers.DEFAULT:
        tier = _require_identifier(tier, "price_tier")
        key = f"{key}_{tier}"
    return key


def build_reference_cache_key(
    reference_type: ReferenceType | str,
    parent_id: str | int | None = None,
) -> str:
    """Build the cache key of a reference data lookup.

    Args:
        reference_type: Geography level
        parent_id: Parent location id, required for every level below provinces

    Returns:
        ``provinces`` or ``{type}_{parent_id}``

    Raises:
        InvalidRequestError: If the type is unknown or a required parent id is
            missing or not alphanumeric
    """
    try:
        ref_type = ReferenceType(reference_type)
    except ValueError as e:
        msg = f"Unknown reference type: {reference_type}"
        raise InvalidRequestError(msg, field="reference_type") from e

    if not ref_type.requires_parent:
        return ref_type.value

    parent = _require_identifier(parent_id, "parent_id")
    return f"{ref_type.value}_{parent}"
