"""HMAC request signing for exchange REST calls."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from trading_core.errors import InvalidInput

from .exchange import SupportedExchange, exchange_profile

PRIVATE_ENDPOINT_MARKERS = ("account", "order", "withdraw")
SIGNATURE_PARAM = "signature"
_ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE")


@dataclass(frozen=True)
class SignedRequest:
    """Request ready for the HTTP leg. Holds the signature, never the secret."""

    method: str
    endpoint: str
    params: Mapping[str, Any]
    signature: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_signed(self) -> bool:
        return self.signature is not None

    @property
    def query_string(self) -> str:
        """Params as sent on the wire: the signed canonical string, then the signature."""
        unsigned = {key: value for key, value in self.params.items() if key != SIGNATURE_PARAM}
        query = build_query_string(unsigned)
        if self.signature is None:
            return query
        suffix = f"{SIGNATURE_PARAM}={self.signature}"
        return f"{query}&{suffix}" if query else suffix


def is_private_endpoint(endpoint: str) -> bool:
    """Endpoints touching the account, orders or withdrawals need a signature."""
    return any(marker in endpoint for marker in PRIVATE_ENDPOINT_MARKERS)


def build_query_string(params: Mapping[str, Any]) -> str:
    """Sort params by key and join them as ``key=value`` pairs with ``&``."""
    items = sorted(params.items(), key=lambda kv: str(kv[0]))
    return "&".join(f"{key}={value}" for key, value in items)


def generate_signature(params: Mapping[str, Any], api_secret: str) -> str:
    """Hex HMAC-SHA256 of the canonical query string."""
    if not api_secret:
        raise InvalidInput("API secret is required to sign a private request")
    return hmac.new(
        api_secret.encode("utf-8"),
        build_query_string(params).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def sign_exchange_request(
    method: str,
    endpoint: str,
    params: Optional[Mapping[str, Any]],
    api_key: str,
    api_secret: str,
    exchange: SupportedExchange = SupportedExchange.BINANCE,
) -> SignedRequest:
    """Build the request for ``endpoint``; private endpoints get a signature param.

    The result depends only on the arguments, so signing the same input twice
    yields the same signature.
    """
    method_upper = method.strip().upper()
    if method_upper not in _ALLOWED_METHODS:
        raise InvalidInput(f"Unsupported HTTP method: {method}")
    if not endpoint:
        raise InvalidInput("endpoint must not be empty")

    payload: Dict[str, Any] = dict(params or {})
    if SIGNATURE_PARAM in payload:
        raise InvalidInput(f"'{SIGNATURE_PARAM}' is reserved and cannot be passed as a parameter")

    profile = exchange_profile(exchange)
    headers = {"Content-Type": "application/x-www-form-urlencoded"}
    if api_key:
        headers[profile.api_key_header] = api_key

    signature: Optional[str] = None
    if is_private_endpoint(endpoint):
        signature = generate_signature(payload, api_secret)
        payload[SIGNATURE_PARAM] = signature

    return SignedRequest(
        method=method_upper,
        endpoint=endpoint,
        params=MappingProxyType(payload),
        signature=signature,
        headers=MappingProxyType(headers),
    )
