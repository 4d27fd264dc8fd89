"""Shipping provider constants.

Endpoints, couriers and response markers of the carrier aggregation API.
"""

from __future__ import annotations


class ProviderEndpoints:
    """Provider endpoint paths relative to the base URL."""

    DEFAULT_BASE_URL = "https://rajaongkir.komerce.id/api/v1"

    DOMESTIC_COST = "/calculate/domestic-cost"
    PROVINCES = "/destination/province"
    CITIES = "/destination/city/{parent_id}"
    DISTRICTS = "/destination/district/{parent_id}"
    SUBDISTRICTS = "/destination/sub-district/{parent_id}"


class Couriers:
    """Courier codes supported by the domestic cost endpoint."""

    JNE = "jne"
    JNT = "jnt"
    POS = "pos"
    TIKI = "tiki"
    SICEPAT = "sicepat"
    WAHANA = "wahana"

    DEFAULT_SET: tuple[str, ...] = (JNE, JNT, POS, TIKI, SICEPAT, WAHANA)


class PriceTiers:
    """Values of the optional ``price`` form field."""

    LOWEST = "lowest"
    HIGHEST = "highest"
    ALL = "all"

    DEFAULT = LOWEST


class ResponseMarkers:
    """Fields and values used to recognise provider error envelopes."""

    META = "meta"
    STATUS = "status"
    MESSAGE = "message"
    ERROR_STATUS = "error"

    # Lowercase substrings of meta.message that mean a key hit its quota
    RATE_LIMIT_KEYWORDS: tuple[str, ...] = ("limit", "quota", "exceeded", "rate")


class WeightRules:
    """Billable weight rounding rules."""

    GRAMS_PER_KG = 1000
    # Fractional weight up to this many grams above a whole kilogram is free
    ROUNDING_TOLERANCE_GRAMS = 250
    MINIMUM_BILLABLE_KG = 1
