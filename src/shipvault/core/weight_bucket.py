"""Billable weight bucketing.

Carriers bill whole kilograms. A package is rounded up to the next
kilogram only when it exceeds a whole kilogram by more than 250 g, and
every package is billed at least 1 kg. Rate caching keys on the bucket,
so all weights in one bucket share one cached price.
"""

from __future__ import annotations

from dataclasses import dataclass

from shipvault.shared.constants import WeightRules
from shipvault.shared.errors import InvalidRequestError


def _validate_weight(weight_grams: int) -> None:
    # bool is an int subclass but never a weight
    if isinstance(weight_grams, bool) or not isinstance(weight_grams, int):
        msg = f"Weight must be an integer number of grams, got {type(weight_grams).__name__}"
        raise InvalidRequestError(msg, field="weight_grams")
    if weight_grams <= 0:
        msg = f"Weight must be positive, got {weight_grams} g"
        raise InvalidRequestError(msg, field="weight_grams")


def billable_weight_kg(weight_grams: int) -> int:
    """Return the billable weight in whole kilograms.

    Computes ``max(1, ceil((weight_grams - 250) / 1000))`` in integer
    arithmetic so boundary values are exact.

    Args:
        weight_grams: Actual package weight in grams (positive)

    Returns:
        Billable kilograms, at least 1

    Raises:
        InvalidRequestError: If the weight is not a positive integer

    Example:
        >>> billable_weight_kg(1250)
        1
        >>> billable_weight_kg(1251)
        2
    """
    _validate_weight(weight_grams)

    over_tolerance = weight_grams - WeightRules.ROUNDING_TOLERANCE_GRAMS
    # Ceiling division; floor division of the negation rounds toward +inf
    rounded_kg = -(-over_tolerance // WeightRules.GRAMS_PER_KG)
    return max(WeightRules.MINIMUM_BILLABLE_KG, rounded_kg)


def billable_weight_grams(weight_grams: int) -> int:
    """Return the billable weight expressed in grams (a multiple of 1000)."""
    return billable_weight_kg(weight_grams) * WeightRules.GRAMS_PER_KG


@dataclass(frozen=True)
class WeightInfo:
    """How a package weight was turned into a billable weight.

    Attached to rate results so the storefront can show why a 1.3 kg
    parcel is charged as 2 kg.
    """

    actual_grams: int
    billable_kg: int

    @property
    def actual_kg(self) -> float:
        return self.actual_grams / WeightRules.GRAMS_PER_KG

    @property
    def billable_grams(self) -> int:
        return self.billable_kg * WeightRules.GRAMS_PER_KG

    @property
    def explanation(self) -> str:
        if self.actual_grams <= WeightRules.GRAMS_PER_KG:
            return f"{self.actual_kg:g} kg is billed at the {self.billable_kg} kg minimum"
        tolerance_kg = WeightRules.ROUNDING_TOLERANCE_GRAMS / WeightRules.GRAMS_PER_KG
        return (
            f"{self.actual_kg:g} kg is billed as {self.billable_kg} kg "
            f"(up to {tolerance_kg:g} kg over a whole kilogram is not charged)"
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "actual_grams": self.actual_grams,
            "actual_kg": self.actual_kg,
            "billable_grams": self.billable_grams,
            "billable_kg": self.billable_kg,
            "explanation": self.explanation,
        }


def describe_weight(weight_grams: int) -> WeightInfo:
    """Build a WeightInfo for a package weight.

    Raises:
        InvalidRequestError: If the weight is not a positive integer
    """
    return WeightInfo(
        actual_grams=weight_grams,
        billable_kg=billable_weight_kg(weight_grams),
    )
