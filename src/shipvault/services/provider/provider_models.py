"""Normalized provider response models.

The provider has shipped two response shapes over time: the current flat
``{"meta": ..., "data": [...]}`` envelope and the legacy
``{"rajaongkir": {"results": [...]}}`` tree. Both are normalized here into
the shapes the storefront consumes, and only normalized data is cached.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from shipvault.core.cache_keys import ReferenceType
from shipvault.services.provider.response_classifier import (
    envelope_message,
    is_error_envelope,
)
from shipvault.shared.errors import (
    create_invalid_response_error,
    create_provider_rejected_error,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CourierRate:
    """One priced service of one courier.

    Attributes:
        courier_code: Courier code (e.g. "jne")
        courier_name: Display name of the courier
        service: Service code (e.g. "REG")
        description: Service description
        cost: Price in rupiah
        etd: Estimated delivery time as reported (e.g. "2-3 day")
    """

    courier_code: str
    courier_name: str
    service: str
    description: str
    cost: int
    etd: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CourierRate:
        return cls(
            courier_code=str(data["courier_code"]),
            courier_name=str(data.get("courier_name", "")),
            service=str(data["service"]),
            description=str(data.get("description", "")),
            cost=int(data["cost"]),
            etd=str(data.get("etd", "")),
        )


def _raise_if_rejected(body: Any, endpoint: str, operation: str) -> None:
    if is_error_envelope(body):
        message = envelope_message(body) or "Provider returned an error envelope"
        raise create_provider_rejected_error(message, endpoint, operation)


def _as_text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _parse_cost(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return None
    return None


def _flat_rate(item: dict[str, Any], courier: str) -> CourierRate | None:
    cost = _parse_cost(item.get("cost"))
    service = _as_text(item.get("service"))
    if cost is None or not service:
        return None
    return CourierRate(
        courier_code=_as_text(item.get("code")).lower() or courier,
        courier_name=_as_text(item.get("name")),
        service=service,
        description=_as_text(item.get("description")),
        cost=cost,
        etd=_as_text(item.get("etd")),
    )


def _legacy_rates(results: list[Any], courier: str) -> list[CourierRate]:
    rates: list[CourierRate] = []
    for result in results:
        if not isinstance(result, dict):
            continue
        code = _as_text(result.get("code")).lower() or courier
        name = _as_text(result.get("name"))
        for service_entry in result.get("costs") or []:
            if not isinstance(service_entry, dict):
                continue
            for price in service_entry.get("cost") or []:
                if not isinstance(price, dict):
                    continue
                cost = _parse_cost(price.get("value"))
                service = _as_text(service_entry.get("service"))
                if cost is None or not service:
                    continue
                rates.append(
                    CourierRate(
                        courier_code=code,
                        courier_name=name,
                        service=service,
                        description=_as_text(service_entry.get("description")),
                        cost=cost,
                        etd=_as_text(price.get("etd")),
                    )
                )
    return rates


def normalize_rate_response(
    body: Any,
    courier: str,
    endpoint: str = "/calculate/domestic-cost",
) -> list[CourierRate]:
    """Normalize a domestic-cost response into CourierRate items.

    Entries without a numeric cost or a service code are skipped.

    Args:
        body: Decoded provider body
        courier: Requested courier code, used when an entry omits its own
        endpoint: Endpoint the body came from (for error context)

    Returns:
        Rates in provider order (possibly empty)

    Raises:
        InfrastructureError: PROVIDER_REJECTED for an error envelope,
            PROVIDER_INVALID_RESPONSE for an unrecognized shape
    """
    _raise_if_rejected(body, endpoint, "normalize_rate_response")

    if isinstance(body, dict) and isinstance(body.get("data"), list):
        items = body["data"]
        rates = [
            rate
            for rate in (_flat_rate(item, courier) for item in items if isinstance(item, dict))
            if rate is not None
        ]
    elif isinstance(body, dict) and isinstance(body.get("rajaongkir"), dict):
        rates = _legacy_rates(body["rajaongkir"].get("results") or [], courier)
    elif isinstance(body, dict) and body.get("data") is None and "meta" in body:
        rates = []
    else:
        raise create_invalid_response_error(
            "Unrecognized shipping cost response shape",
            endpoint,
            "normalize_rate_response",
        )

    logger.debug("Normalized %d rate(s) for courier %s", len(rates), courier)
    return rates


# Output field -> input fields tried in order
_REFERENCE_FIELDS: dict[ReferenceType, dict[str, tuple[str, ...]]] = {
    ReferenceType.PROVINCES: {
        "province_id": ("province_id", "id"),
        "province": ("province", "name"),
    },
    ReferenceType.CITIES: {
        "city_id": ("city_id", "id"),
        "city_name": ("city_name", "name"),
        "province_id": ("province_id",),
        "province": ("province",),
        "type": ("type",),
    },
    ReferenceType.DISTRICTS: {
        "district_id": ("district_id", "id"),
        "district_name": ("district_name", "name"),
        "city_id": ("city_id",),
        "city_name": ("city_name",),
    },
    ReferenceType.SUBDISTRICTS: {
        "subdistrict_id": ("subdistrict_id", "id"),
        "subdistrict_name": ("subdistrict_name", "name"),
        "district_id": ("district_id",),
        "district_name": ("district_name",),
        "city_id": ("city_id",),
        "city_name": ("city_name",),
    },
}

# Field that holds the parent id, filled from the request when missing
_PARENT_FIELD: dict[ReferenceType, str] = {
    ReferenceType.CITIES: "province_id",
    ReferenceType.DISTRICTS: "city_id",
    ReferenceType.SUBDISTRICTS: "district_id",
}


def _extract_reference_list(body: Any) -> list[Any] | None:
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        if isinstance(body.get("data"), list):
            return body["data"]  # type: ignore[no-any-return]
        legacy = body.get("rajaongkir")
        if isinstance(legacy, dict) and isinstance(legacy.get("results"), list):
            return legacy["results"]  # type: ignore[no-any-return]
    return None


def _pick(item: dict[str, Any], candidates: tuple[str, ...]) -> str | None:
    for name in candidates:
        value = item.get(name)
        if value is not None and value != "":
            return str(value)
    return None


def normalize_reference_response(
    body: Any,
    reference_type: ReferenceType,
    parent_id: str | None = None,
    endpoint: str = "",
) -> list[dict[str, str | None]]:
    """Normalize a reference-data response into flat location records.

    Args:
        body: Decoded provider body (bare list, ``data`` list, or legacy tree)
        reference_type: Geography level requested
        parent_id: Parent id of the request, used where items omit it
        endpoint: Endpoint the body came from (for error context)

    Returns:
        Location records with the level's field names (possibly empty)

    Raises:
        InfrastructureError: PROVIDER_REJECTED for an error envelope,
            PROVIDER_INVALID_RESPONSE when no list can be found
    """
    _raise_if_rejected(body, endpoint, "normalize_reference_response")

    items = _extract_reference_list(body)
    if items is None:
        raise create_invalid_response_error(
            f"Unrecognized {reference_type.value} response shape",
            endpoint,
            "normalize_reference_response",
        )

    fields = _REFERENCE_FIELDS[reference_type]
    parent_field = _PARENT_FIELD.get(reference_type)

    records: list[dict[str, str | None]] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        record = {name: _pick(item, sources) for name, sources in fields.items()}
        if parent_field and record.get(parent_field) is None and parent_id:
            record[parent_field] = parent_id
        records.append(record)
    return records


__all__ = [
    "CourierRate",
    "normalize_rate_response",
    "normalize_reference_response",
]
