"""Shipping provider integration: credentials, classification and transport."""

from shipvault.services.provider.credential_pool import Credential, CredentialPool
from shipvault.services.provider.provider_client import ProviderClient, ProviderResult
from shipvault.services.provider.provider_models import (
    CourierRate,
    normalize_rate_response,
    normalize_reference_response,
)
from shipvault.services.provider.response_classifier import (
    ResponseClass,
    classify_response,
)

__all__ = [
    "CourierRate",
    "Credential",
    "CredentialPool",
    "ProviderClient",
    "ProviderResult",
    "ResponseClass",
    "classify_response",
    "normalize_rate_response",
    "normalize_reference_response",
]
