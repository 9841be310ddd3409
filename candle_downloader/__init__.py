"""OHLCV candle model and the Binance kline source feeding price series."""

from .binance import BinanceClient, BinanceClientConfig, interval_to_milliseconds
from .models import Candle, normalize_symbol

__all__ = [
    "BinanceClient",
    "BinanceClientConfig",
    "Candle",
    "interval_to_milliseconds",
    "normalize_symbol",
]
