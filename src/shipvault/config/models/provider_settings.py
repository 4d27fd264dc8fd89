"""Shipping provider configuration models.

Settings for the carrier aggregation API: endpoint, credentials and
request timeouts.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import NoDecode

from shipvault.shared.constants import Couriers, PriceTiers, ProviderEndpoints


class ProviderSettings(BaseModel):
    """Shipping provider configuration.

    Credentials are tried in the order given. Each lookup starts from the
    first key unless ``sticky_credentials`` is enabled, in which case it
    starts from the last key that succeeded.

    Security: api_keys are masked in __repr__. They are still written to
    the TOML config file, which needs them to function.
    """

    base_url: str = Field(
        default=ProviderEndpoints.DEFAULT_BASE_URL,
        description="Provider API base URL",
    )

    # Accepts a JSON list or a comma-separated string from the environment
    api_keys: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        repr=False,
        description="Provider API keys in priority order",
    )

    timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per-attempt request timeout in seconds",
    )
    sticky_credentials: bool = Field(
        default=False,
        description="Start each lookup from the last credential that succeeded",
    )
    default_couriers: list[str] = Field(
        default_factory=lambda: list(Couriers.DEFAULT_SET),
        min_length=1,
        description="Couriers queried by all-courier lookups",
    )
    default_price_tier: str = Field(
        default=PriceTiers.DEFAULT,
        description="Price tier sent when a lookup does not specify one",
    )

    @field_validator("api_keys", mode="before")
    @classmethod
    def _split_api_keys(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                return json.loads(text)
            return [part for part in (p.strip() for p in text.split(",")) if part]
        return value

    @field_validator("api_keys")
    @classmethod
    def _drop_blank_keys(cls, value: list[str]) -> list[str]:
        return [key.strip() for key in value if key and key.strip()]

    @field_validator("default_couriers")
    @classmethod
    def _normalize_couriers(cls, value: list[str]) -> list[str]:
        return [courier.strip().lower() for courier in value if courier.strip()]

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    def __repr__(self) -> str:
        return (
            f"ProviderSettings("
            f"base_url={self.base_url!r}, "
            f"api_keys=[{len(self.api_keys)} masked], "
            f"timeout={self.timeout}, "
            f"sticky_credentials={self.sticky_credentials})"
        )


__all__ = ["ProviderSettings"]
