from __future__ import annotations  # Re-export provider_gateway public API

from .gateway import (
    HttpClient,
    HttpResponse,
    ProviderGateway,
    ProviderGatewayError,
    ProviderNotConfiguredError,
    ProviderResponseError,
    ProviderTransportError,
    build_messages,
)

__all__ = [
    "HttpClient",
    "HttpResponse",
    "ProviderGateway",
    "ProviderGatewayError",
    "ProviderNotConfiguredError",
    "ProviderResponseError",
    "ProviderTransportError",
    "build_messages",
]
