"""Exchange request signing and the HTTP leg that sends signed requests."""

from .client import ConnectionStatus, ExchangeClient
from .exchange import (
    EndpointKind,
    ExchangeConfig,
    ExchangeProfile,
    OrderRequest,
    OrderResult,
    OrderSide,
    OrderType,
    SupportedExchange,
    exchange_profile,
)
from .signing import (
    SignedRequest,
    build_query_string,
    generate_signature,
    is_private_endpoint,
    sign_exchange_request,
)

__all__ = [
    "ConnectionStatus",
    "EndpointKind",
    "ExchangeClient",
    "ExchangeConfig",
    "ExchangeProfile",
    "OrderRequest",
    "OrderResult",
    "OrderSide",
    "OrderType",
    "SignedRequest",
    "SupportedExchange",
    "build_query_string",
    "exchange_profile",
    "generate_signature",
    "is_private_endpoint",
    "sign_exchange_request",
]
