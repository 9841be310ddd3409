import hashlib
import hmac

import pytest

from live_trading.exchange import (
    EndpointKind,
    ExchangeConfig,
    OrderRequest,
    OrderSide,
    OrderType,
    SupportedExchange,
    exchange_profile,
)
from live_trading.signing import (
    build_query_string,
    generate_signature,
    is_private_endpoint,
    sign_exchange_request,
)
from trading_core.errors import InvalidInput

SECRET = "s3cr3t"


@pytest.mark.parametrize(
    "endpoint",
    ["/api/v3/order", "/api/v3/account", "/sapi/v1/capital/withdraw/apply", "/v2/accounts", "/v2/private/order/create"],
)
def test_private_endpoints(endpoint):
    assert is_private_endpoint(endpoint)


@pytest.mark.parametrize("endpoint", ["/api/v3/ticker/price", "/api/v3/klines", "/v2/private/position/list"])
def test_public_endpoints(endpoint):
    assert not is_private_endpoint(endpoint)


def test_query_string_is_sorted_by_key():
    assert build_query_string({"symbol": "BTCUSDT", "quantity": 1, "side": "BUY"}) == "quantity=1&side=BUY&symbol=BTCUSDT"
    assert build_query_string({}) == ""


def test_signature_is_hmac_sha256_of_query_string():
    params = {"b": 2, "a": 1}
    expected = hmac.new(SECRET.encode(), b"a=1&b=2", hashlib.sha256).hexdigest()
    assert generate_signature(params, SECRET) == expected


def test_private_request_is_signed_deterministically():
    params = {"symbol": "BTCUSDT", "side": "BUY", "quantity": 0.5}
    first = sign_exchange_request("post", "/api/v3/order", params, "key", SECRET)
    second = sign_exchange_request("POST", "/api/v3/order", dict(reversed(list(params.items()))), "key", SECRET)
    assert first.signature == second.signature
    assert first.method == "POST"
    assert first.params["signature"] == first.signature
    assert first.headers["X-MBX-APIKEY"] == "key"
    assert "signature" not in params


def test_changing_a_value_changes_the_signature():
    base = sign_exchange_request("POST", "/api/v3/order", {"quantity": 1}, "key", SECRET)
    changed = sign_exchange_request("POST", "/api/v3/order", {"quantity": 2}, "key", SECRET)
    assert base.signature != changed.signature


def test_public_request_is_unsigned():
    signed = sign_exchange_request("GET", "/api/v3/ticker/price", {"symbol": "ETHUSDT"}, "key", SECRET)
    assert signed.signature is None
    assert not signed.is_signed
    assert dict(signed.params) == {"symbol": "ETHUSDT"}
    assert signed.query_string == "symbol=ETHUSDT"


def test_wire_query_string_matches_signed_payload():
    params = {"symbol": "BTCUSDT", "side": "BUY", "type": "MARKET", "quantity": 1}
    signed = sign_exchange_request("POST", "/api/v3/order", params, "key", SECRET)

    canonical = build_query_string(params)
    assert canonical == "quantity=1&side=BUY&symbol=BTCUSDT&type=MARKET"
    assert signed.query_string == f"{canonical}&signature={signed.signature}"


def test_empty_private_request_sends_only_signature():
    signed = sign_exchange_request("GET", "/api/v3/account", {}, "key", SECRET)
    assert signed.query_string == f"signature={signed.signature}"


def test_secret_never_appears_in_signed_request():
    signed = sign_exchange_request("GET", "/api/v3/account", {}, "key", SECRET)
    assert SECRET not in repr(signed)
    assert SECRET not in signed.params.values()


def test_signed_params_are_read_only():
    signed = sign_exchange_request("GET", "/api/v3/account", {}, "key", SECRET)
    with pytest.raises(TypeError):
        signed.params["extra"] = 1  # type: ignore[index]


def test_signing_validation():
    with pytest.raises(InvalidInput):
        sign_exchange_request("PATCH", "/api/v3/order", {}, "key", SECRET)
    with pytest.raises(InvalidInput):
        sign_exchange_request("GET", "/api/v3/account", {}, "key", "")
    with pytest.raises(InvalidInput):
        sign_exchange_request("GET", "/api/v3/account", {"signature": "x"}, "key", SECRET)


def test_exchange_profiles_resolve_by_enum():
    assert exchange_profile(SupportedExchange.BINANCE).endpoint(EndpointKind.KLINES) == "/api/v3/klines"
    assert exchange_profile(SupportedExchange.COINBASE).endpoint(EndpointKind.ACCOUNT) == "/v2/accounts"
    assert exchange_profile(SupportedExchange.BYBIT).endpoint(EndpointKind.ORDER) == "/v2/private/order/create"
    with pytest.raises(InvalidInput):
        exchange_profile(SupportedExchange.BYBIT).endpoint(EndpointKind.ACCOUNT)
    assert SupportedExchange.parse(" Binance ") is SupportedExchange.BINANCE
    with pytest.raises(InvalidInput):
        SupportedExchange.parse("kraken")


def test_exchange_config_hides_secret():
    config = ExchangeConfig(exchange=SupportedExchange.BINANCE, api_key="key", api_secret=SECRET)
    assert SECRET not in repr(config)
    assert config.resolved_base_url == "https://api.binance.com"


def test_order_request_params_and_validation():
    order = OrderRequest("btcusdt", OrderSide.BUY, OrderType.LIMIT, 0.1, price=30_000)
    assert order.as_params() == {"symbol": "BTCUSDT", "side": "BUY", "type": "LIMIT", "quantity": 0.1, "price": 30_000}
    with pytest.raises(InvalidInput):
        OrderRequest("BTCUSDT", OrderSide.BUY, OrderType.LIMIT, 0.1)
    with pytest.raises(InvalidInput):
        OrderRequest("BTCUSDT", OrderSide.SELL, OrderType.MARKET, 0)
    with pytest.raises(InvalidInput):
        OrderRequest("BTCUSDT", OrderSide.SELL, OrderType.STOP_LOSS, 1)
