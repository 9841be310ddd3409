"""REST client performing the network leg of signed exchange requests."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

import requests

from trading_core.errors import (
    ExchangeError,
    ExchangeRequestFailed,
    NetworkTimeout,
    RequestCancelled,
)

from .exchange import EndpointKind, ExchangeConfig, OrderRequest, OrderResult
from .signing import SignedRequest, is_private_endpoint, sign_exchange_request

_SUCCESS_CODES = (None, 0, "0", 200, "200")


@dataclass(frozen=True)
class ConnectionStatus:
    connected: bool
    checked_at: datetime
    account_info: Optional[Any] = None
    error: Optional[str] = None


def _upstream_message(payload: Any) -> Optional[str]:
    """Pull the human readable error text out of an exchange payload."""
    if not isinstance(payload, dict):
        return None
    for key in ("msg", "ret_msg", "message"):
        value = payload.get(key)
        if value:
            return str(value)
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict):
            return str(first.get("message") or first.get("id") or first)
        return str(first)
    return None


def _is_error_payload(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return False
    if "code" in payload and payload.get("code") not in _SUCCESS_CODES:
        return True
    if "ret_code" in payload and payload.get("ret_code") not in _SUCCESS_CODES:
        return True
    errors = payload.get("errors")
    return isinstance(errors, list) and bool(errors)


class ExchangeClient:
    """Send signed requests to one exchange.

    No retries are attempted; a failed call surfaces as an
    :class:`~trading_core.errors.ExchangeError` subclass and the caller owns
    the retry policy.
    """

    def __init__(
        self,
        config: ExchangeConfig,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._profile = config.profile
        self._base_url = config.resolved_base_url
        self._log = logger or logging.getLogger(__name__)
        self._cancelled = threading.Event()

        self._session = session or requests.Session()
        if config.proxies:
            self._session.proxies.update(config.proxies)
            self._log.debug("Using proxies for %s requests", config.exchange.value)

        self._log.info(
            "Initialized exchange client: exchange=%s base_url=%s",
            config.exchange.value,
            self._base_url,
        )

    @property
    def config(self) -> ExchangeConfig:
        return self._config

    def cancel(self) -> None:
        """Abort the pending call and refuse further ones."""
        self._cancelled.set()
        self._session.close()

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ExchangeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def sign(self, method: str, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> SignedRequest:
        payload: Dict[str, Any] = dict(params or {})
        if is_private_endpoint(endpoint):
            if self._profile.timestamp_param:
                payload.setdefault(self._profile.timestamp_param, int(time.time() * 1000))
            if self._profile.recv_window_param and self._config.recv_window:
                payload.setdefault(self._profile.recv_window_param, self._config.recv_window)
        return sign_exchange_request(
            method,
            endpoint,
            payload,
            self._config.api_key,
            self._config.api_secret,
            exchange=self._config.exchange,
        )

    def send(self, signed: SignedRequest) -> Any:
        """Execute ``signed`` and return the decoded JSON body."""
        if self._cancelled.is_set():
            raise RequestCancelled(f"{signed.method} {signed.endpoint} cancelled before sending")

        url = f"{self._base_url}{signed.endpoint}"
        # The exchange verifies the HMAC over the string it receives.
        encoded = signed.query_string
        use_query = signed.method in ("GET", "DELETE")
        started = time.perf_counter()
        try:
            response = self._session.request(
                method=signed.method,
                url=url,
                params=encoded if use_query else None,
                data=None if use_query else encoded,
                headers=dict(signed.headers),
                timeout=self._config.timeout,
            )
        except requests.Timeout as exc:
            if self._cancelled.is_set():
                raise RequestCancelled(f"{signed.method} {signed.endpoint} cancelled") from exc
            self._log.warning(
                "Exchange request timed out after %.1fs: %s %s",
                self._config.timeout,
                signed.method,
                signed.endpoint,
            )
            raise NetworkTimeout(
                f"{signed.method} {signed.endpoint} timed out after {self._config.timeout}s"
            ) from exc
        except requests.RequestException as exc:
            if self._cancelled.is_set():
                raise RequestCancelled(f"{signed.method} {signed.endpoint} cancelled") from exc
            self._log.warning("Exchange connection error: %s %s: %s", signed.method, signed.endpoint, exc)
            raise ExchangeRequestFailed(f"Exchange API error: {exc}") from exc

        if self._cancelled.is_set():
            response.close()
            raise RequestCancelled(f"{signed.method} {signed.endpoint} cancelled while in flight")

        duration = time.perf_counter() - started
        if self._log.isEnabledFor(logging.DEBUG):
            self._log.debug(
                "%s %s completed in %.3fs status=%s",
                signed.method,
                signed.endpoint,
                duration,
                response.status_code,
            )
        return self._parse_response(signed, response)

    def request(
        self,
        method: str,
        kind: EndpointKind,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        endpoint = self._profile.endpoint(kind)
        return self.send(self.sign(method, endpoint, params))

    def test_connection(self) -> ConnectionStatus:
        """Fetch account info to verify the credentials."""
        checked_at = datetime.now(timezone.utc)
        try:
            account_info = self.request("GET", EndpointKind.ACCOUNT)
        except RequestCancelled:
            raise
        except ExchangeError as exc:
            self._log.warning("Connection check failed for %s: %s", self._config.exchange.value, exc)
            return ConnectionStatus(connected=False, checked_at=checked_at, error=str(exc))
        return ConnectionStatus(connected=True, checked_at=checked_at, account_info=account_info)

    def fetch_price(self, symbol: str) -> float:
        payload = self.request("GET", EndpointKind.TICKER, {"symbol": symbol.strip().upper()})
        try:
            return float(payload["price"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ExchangeRequestFailed(f"Unexpected ticker payload for {symbol}: {payload!r}") from exc

    def create_order(self, order: OrderRequest) -> OrderResult:
        payload = self.request("POST", EndpointKind.ORDER, order.as_params())
        if not isinstance(payload, dict):
            raise ExchangeRequestFailed(f"Unexpected order payload: {payload!r}")
        order_id = payload.get("orderId")
        result = OrderResult(
            order_id=str(order_id) if order_id is not None else None,
            symbol=str(payload.get("symbol") or order.symbol.upper()),
            status=payload.get("status"),
            executed_qty=float(payload.get("executedQty") or 0.0),
            cumulative_quote_qty=float(payload.get("cummulativeQuoteQty") or 0.0),
            raw=payload,
        )
        self._log.info(
            "Order accepted: %s %s %s qty=%s id=%s status=%s",
            order.symbol,
            order.side.value,
            order.order_type.value,
            order.quantity,
            result.order_id,
            result.status,
        )
        return result

    def _parse_response(self, signed: SignedRequest, response: requests.Response) -> Any:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            message = _upstream_message(payload) or response.text or response.reason or "Unknown error"
            self._log.error(
                "Exchange HTTP %s on %s %s: %s",
                response.status_code,
                signed.method,
                signed.endpoint,
                message,
            )
            raise ExchangeRequestFailed(
                f"Exchange API error: {message}",
                status_code=response.status_code,
                upstream_message=message,
            )

        if payload is None:
            raise ExchangeRequestFailed(
                "Exchange returned invalid JSON", status_code=response.status_code
            )

        if _is_error_payload(payload):
            message = _upstream_message(payload) or "Unknown error"
            self._log.error("Exchange rejected %s %s: %s", signed.method, signed.endpoint, message)
            raise ExchangeRequestFailed(
                f"Exchange API error: {message}",
                status_code=response.status_code,
                upstream_message=message,
            )
        return payload
