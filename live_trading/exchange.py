"""Exchange profiles, configuration and order types."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from trading_core.errors import InvalidInput


class SupportedExchange(Enum):
    """Exchanges the request signer knows how to address."""

    BINANCE = "binance"
    COINBASE = "coinbase"
    BYBIT = "bybit"

    @classmethod
    def parse(cls, value: str) -> "SupportedExchange":
        try:
            return cls(value.strip().lower())
        except ValueError as exc:
            raise InvalidInput(f"Unsupported exchange: {value}") from exc


class EndpointKind(Enum):
    ACCOUNT = "account"
    ORDER = "order"
    TICKER = "ticker"
    KLINES = "klines"
    POSITION = "position"


@dataclass(frozen=True)
class ExchangeProfile:
    """Static addressing data for one exchange."""

    exchange: SupportedExchange
    base_url: str
    endpoints: Mapping[EndpointKind, str]
    api_key_header: str
    futures_url: Optional[str] = None
    timestamp_param: Optional[str] = None
    recv_window_param: Optional[str] = None

    def endpoint(self, kind: EndpointKind) -> str:
        try:
            return self.endpoints[kind]
        except KeyError:
            raise InvalidInput(
                f"{self.exchange.value} does not expose a {kind.value} endpoint"
            ) from None


_BINANCE = ExchangeProfile(
    exchange=SupportedExchange.BINANCE,
    base_url="https://api.binance.com",
    futures_url="https://fapi.binance.com",
    endpoints=MappingProxyType(
        {
            EndpointKind.ACCOUNT: "/api/v3/account",
            EndpointKind.ORDER: "/api/v3/order",
            EndpointKind.TICKER: "/api/v3/ticker/price",
            EndpointKind.KLINES: "/api/v3/klines",
        }
    ),
    api_key_header="X-MBX-APIKEY",
    timestamp_param="timestamp",
    recv_window_param="recvWindow",
)

_COINBASE = ExchangeProfile(
    exchange=SupportedExchange.COINBASE,
    base_url="https://api.coinbase.com",
    endpoints=MappingProxyType(
        {
            EndpointKind.ACCOUNT: "/v2/accounts",
            EndpointKind.ORDER: "/v2/orders",
        }
    ),
    api_key_header="CB-ACCESS-KEY",
)

_BYBIT = ExchangeProfile(
    exchange=SupportedExchange.BYBIT,
    base_url="https://api.bybit.com",
    endpoints=MappingProxyType(
        {
            EndpointKind.ORDER: "/v2/private/order/create",
            EndpointKind.POSITION: "/v2/private/position/list",
        }
    ),
    api_key_header="X-BAPI-API-KEY",
    timestamp_param="timestamp",
    recv_window_param="recv_window",
)


def exchange_profile(exchange: SupportedExchange) -> ExchangeProfile:
    if exchange is SupportedExchange.BINANCE:
        return _BINANCE
    if exchange is SupportedExchange.COINBASE:
        return _COINBASE
    if exchange is SupportedExchange.BYBIT:
        return _BYBIT
    raise InvalidInput(f"Unsupported exchange: {exchange!r}")


@dataclass(frozen=True)
class ExchangeConfig:
    """Configuration for the exchange client. Build once, pass explicitly."""

    exchange: SupportedExchange
    api_key: str
    api_secret: str = field(repr=False)
    timeout: float = 10.0
    proxies: Optional[Dict[str, str]] = None
    base_url: Optional[str] = None
    recv_window: Optional[int] = 5000

    @property
    def profile(self) -> ExchangeProfile:
        return exchange_profile(self.exchange)

    @property
    def resolved_base_url(self) -> str:
        return (self.base_url or self.profile.base_url).rstrip("/")


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"
    STOP_LOSS = "STOP_LOSS"
    STOP_LOSS_LIMIT = "STOP_LOSS_LIMIT"
    TAKE_PROFIT = "TAKE_PROFIT"
    TAKE_PROFIT_LIMIT = "TAKE_PROFIT_LIMIT"


_PRICED_ORDER_TYPES = (OrderType.LIMIT, OrderType.STOP_LOSS_LIMIT, OrderType.TAKE_PROFIT_LIMIT)
_STOP_ORDER_TYPES = (
    OrderType.STOP_LOSS,
    OrderType.STOP_LOSS_LIMIT,
    OrderType.TAKE_PROFIT,
    OrderType.TAKE_PROFIT_LIMIT,
)


@dataclass(frozen=True)
class OrderRequest:
    """Order to submit to the exchange."""

    symbol: str
    side: OrderSide
    order_type: OrderType
    quantity: float
    price: Optional[float] = None
    stop_price: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.symbol.strip():
            raise InvalidInput("order symbol must not be empty")
        if not math.isfinite(self.quantity) or self.quantity <= 0:
            raise InvalidInput(f"order quantity must be positive, got {self.quantity}")
        if self.order_type in _PRICED_ORDER_TYPES and self.price is None:
            raise InvalidInput(f"{self.order_type.value} order requires a price")
        if self.order_type in _STOP_ORDER_TYPES and self.stop_price is None:
            raise InvalidInput(f"{self.order_type.value} order requires a stop price")

    def as_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "symbol": self.symbol.strip().upper(),
            "side": self.side.value,
            "type": self.order_type.value,
            "quantity": self.quantity,
        }
        if self.price is not None:
            params["price"] = self.price
        if self.stop_price is not None:
            params["stopPrice"] = self.stop_price
        return params


@dataclass(frozen=True)
class OrderResult:
    """Result of placing an order."""

    order_id: Optional[str]
    symbol: str
    status: Optional[str]
    executed_qty: float
    cumulative_quote_qty: float
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)
