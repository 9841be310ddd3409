from __future__ import annotations

import argparse
import json
import logging
import math
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from candle_downloader.binance import BinanceClient, BinanceClientConfig
from candle_downloader.models import to_milliseconds
from live_trading.exchange import SupportedExchange, exchange_profile
from live_trading.signing import sign_exchange_request

from .analysis import analyze_market
from .errors import InvalidInput, TradingCoreError
from .models import ClosedTrade, PriceSeries
from .params import AnalysisParams
from .performance import DEFAULT_RISK_FREE_RATE, calculate_performance_metrics

_log = logging.getLogger("trading_core.cli")


def load_env_config() -> Dict[str, str]:
    """Load configuration from environment variables."""
    return {
        "exchange": os.getenv("EXCHANGE_NAME", "binance"),
        "api_key": os.getenv("EXCHANGE_API_KEY", ""),
        "api_secret": os.getenv("EXCHANGE_API_SECRET", ""),
        "http_proxy": os.getenv("HTTP_PROXY") or os.getenv("http_proxy") or "",
        "https_proxy": os.getenv("HTTPS_PROXY") or os.getenv("https_proxy") or "",
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }


def parse_datetime(value: str) -> datetime:
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid datetime: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def build_parser() -> argparse.ArgumentParser:
    env = load_env_config()
    parser = argparse.ArgumentParser(
        description="Indicator analysis, trade sizing, performance reports and request signing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment variables (can be overridden by CLI args):
  EXCHANGE_NAME        binance, coinbase or bybit (default: binance)
  EXCHANGE_API_KEY     API key used by the sign command
  EXCHANGE_API_SECRET  API secret used by the sign command
  HTTP_PROXY           HTTP proxy URL
  HTTPS_PROXY          HTTPS proxy URL
  LOG_LEVEL            Logging level (default: INFO)
        """,
    )
    parser.add_argument("--log-level", default=env["log_level"], help="Logging level.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Compute indicators and a trade decision.")
    source = analyze.add_mutually_exclusive_group(required=True)
    source.add_argument("--symbol", help="Binance symbol to download, e.g. BTCUSDT.")
    source.add_argument("--prices-file", type=Path, help="JSON list of closing prices, oldest first.")
    analyze.add_argument("--interval", default="1h", help="Binance interval, e.g. 15m, 1h.")
    analyze.add_argument("--limit", type=int, default=200, help="Number of candles to download.")
    analyze.add_argument("--start", type=parse_datetime, help="Inclusive ISO8601 datetime (UTC) of the first candle.")
    analyze.add_argument("--end", type=parse_datetime, help="Exclusive ISO8601 datetime (UTC); defaults to now.")
    analyze.add_argument("--params-file", type=Path, help="JSON file with analysis parameters.")
    analyze.add_argument("--http-proxy", dest="http_proxy", default=env["http_proxy"], help="HTTP proxy URL.")
    analyze.add_argument("--https-proxy", dest="https_proxy", default=env["https_proxy"], help="HTTPS proxy URL.")

    performance = subparsers.add_parser("performance", help="Summarize a batch of closed trades.")
    performance.add_argument("--trades-file", type=Path, required=True, help="JSON list of closed trades.")
    performance.add_argument("--risk-free-rate", type=float, default=DEFAULT_RISK_FREE_RATE)

    sign = subparsers.add_parser("sign", help="Print a signed exchange request.")
    sign.add_argument("--exchange", default=env["exchange"], choices=[e.value for e in SupportedExchange])
    sign.add_argument("--method", default="GET")
    sign.add_argument("--endpoint", required=True, help="Request path, e.g. /api/v3/order.")
    sign.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Request parameter; may be repeated.",
    )
    sign.add_argument("--api-key", default=env["api_key"])
    sign.add_argument("--api-secret", default=env["api_secret"])
    return parser


def parse_key_values(pairs: List[str]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidInput(f"Invalid parameter '{pair}', expected KEY=VALUE")
        params[key] = value
    return params


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"{path} is not valid JSON: {exc}") from exc


def load_prices(path: Path) -> PriceSeries:
    payload = _read_json(path)
    if not isinstance(payload, list):
        raise InvalidInput(f"{path} must contain a JSON list")
    try:
        closes = [item["close"] if isinstance(item, dict) else item for item in payload]
    except KeyError as exc:
        raise InvalidInput(f"{path}: price objects need a 'close' field") from exc
    return PriceSeries(closes=tuple(closes))


def load_trades(path: Path) -> List[ClosedTrade]:
    payload = _read_json(path)
    if not isinstance(payload, list):
        raise InvalidInput(f"{path} must contain a JSON list")
    return [ClosedTrade.from_mapping(item) for item in payload]


def _resolve_proxies(args: argparse.Namespace) -> Dict[str, str]:
    proxies: Dict[str, str] = {}
    if args.http_proxy:
        proxies["http"] = args.http_proxy
    if args.https_proxy:
        proxies["https"] = args.https_proxy
    return proxies


def run_analyze(args: argparse.Namespace) -> Dict[str, object]:
    if (args.start or args.end) and not args.symbol:
        raise InvalidInput("--start and --end only apply to --symbol downloads")
    if args.end and not args.start:
        raise InvalidInput("--end requires --start")
    params = AnalysisParams.model_validate(_read_json(args.params_file)) if args.params_file else AnalysisParams()
    if args.prices_file:
        series = load_prices(args.prices_file)
    else:
        client = BinanceClient(
            BinanceClientConfig(proxies=_resolve_proxies(args) or None),
            logger=logging.getLogger("candle_downloader.binance"),
        )
        try:
            if args.start:
                end = args.end or datetime.now(timezone.utc)
                candles = client.fetch_klines(
                    symbol=args.symbol,
                    interval=args.interval,
                    start_ms=to_milliseconds(args.start),
                    end_ms=to_milliseconds(end),
                    limit=args.limit,
                )
            else:
                candles = client.fetch_recent_klines(args.symbol, args.interval, args.limit)
        finally:
            client.close()
        series = PriceSeries.from_candles(candles)
    return analyze_market(series, params).as_dict()


def run_performance(args: argparse.Namespace) -> Dict[str, object]:
    trades = load_trades(args.trades_file)
    return dict(calculate_performance_metrics(trades, args.risk_free_rate).as_dict())


def run_sign(args: argparse.Namespace) -> Dict[str, object]:
    exchange = SupportedExchange.parse(args.exchange)
    signed = sign_exchange_request(
        args.method,
        args.endpoint,
        parse_key_values(args.param),
        args.api_key,
        args.api_secret,
        exchange=exchange,
    )
    return {
        "exchange": exchange.value,
        "url": f"{exchange_profile(exchange).base_url}{signed.endpoint}",
        "method": signed.method,
        "params": dict(signed.params),
        "query": signed.query_string,
        "signed": signed.is_signed,
    }


def to_json_safe(value: Any) -> Any:
    """Replace non-finite floats (e.g. an all-wins profit factor) with None."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {key: to_json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(item) for item in value]
    return value


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    handlers = {"analyze": run_analyze, "performance": run_performance, "sign": run_sign}
    try:
        result = handlers[args.command](args)
    except (TradingCoreError, ValueError) as exc:
        _log.error("%s failed: %s", args.command, exc)
        return 1
    print(json.dumps(to_json_safe(result), indent=2, allow_nan=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
