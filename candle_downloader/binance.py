from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import ProxyHandler, Request, build_opener

from .models import Candle, normalize_symbol

BINANCE_BASE_URL = "https://api.binance.com"
KLINES_PATH = "/api/v3/klines"
MAX_KLINES_LIMIT = 1000


def interval_to_milliseconds(interval: str) -> int:
    """Translate Binance interval strings into millisecond durations."""
    normalized = interval.strip()
    mapping = {
        "1m": 60_000,
        "3m": 180_000,
        "5m": 300_000,
        "15m": 900_000,
        "30m": 1_800_000,
        "1h": 3_600_000,
        "2h": 7_200_000,
        "4h": 14_400_000,
        "6h": 21_600_000,
        "8h": 28_800_000,
        "12h": 43_200_000,
        "1d": 86_400_000,
        "3d": 259_200_000,
        "1w": 604_800_000,
        "1M": 2_592_000_000,
    }
    if normalized not in mapping:
        raise ValueError(f"Unsupported interval: {interval}")
    return mapping[normalized]


@dataclass(frozen=True)
class BinanceClientConfig:
    base_url: str = BINANCE_BASE_URL
    timeout: float = 10.0
    proxies: Dict[str, str] | None = None
    max_retries: int = 5
    initial_retry_delay: float = 1.0  # seconds
    max_retry_delay: float = 60.0  # seconds
    retry_backoff_multiplier: float = 2.0


class BinanceClient:
    """Public Binance kline source with retry logic.

    Retries belong to this collaborator; the indicator core never retries.
    """

    def __init__(self, config: BinanceClientConfig, logger: logging.Logger | None = None) -> None:
        self._base_url = config.base_url.rstrip("/")
        self._timeout = config.timeout
        self._max_retries = max(config.max_retries, 1)
        self._initial_retry_delay = config.initial_retry_delay
        self._max_retry_delay = config.max_retry_delay
        self._retry_backoff_multiplier = config.retry_backoff_multiplier
        self._log = logger or logging.getLogger(__name__)
        handlers = []
        if config.proxies:
            handlers.append(ProxyHandler(config.proxies))
        self._opener = build_opener(*handlers)

    def fetch_klines(
        self,
        *,
        symbol: str,
        interval: str,
        start_ms: int,
        end_ms: int,
        limit: int = MAX_KLINES_LIMIT,
    ) -> List[Candle]:
        """Candles opening in ``[start_ms, end_ms)``, oldest first."""
        if end_ms <= start_ms:
            return []
        interval_to_milliseconds(interval)
        self._check_limit(limit)
        params: Dict[str, str | int] = {
            "symbol": normalize_symbol(symbol),
            "interval": interval,
            "startTime": start_ms,
            "endTime": end_ms - 1,
            "limit": limit,
        }
        payload = self._get_json(KLINES_PATH, params)
        return [Candle.from_binance(symbol, interval, kline) for kline in payload]

    def fetch_recent_klines(self, symbol: str, interval: str = "1h", limit: int = 100) -> List[Candle]:
        """The latest ``limit`` candles for ``symbol``, oldest first."""
        interval_to_milliseconds(interval)
        self._check_limit(limit)
        params: Dict[str, str | int] = {
            "symbol": normalize_symbol(symbol),
            "interval": interval,
            "limit": limit,
        }
        payload = self._get_json(KLINES_PATH, params)
        return [Candle.from_binance(symbol, interval, kline) for kline in payload]

    def close(self) -> None:
        # urllib opener does not require explicit closing; kept for symmetry.
        return

    @staticmethod
    def _check_limit(limit: int) -> None:
        if limit <= 0 or limit > MAX_KLINES_LIMIT:
            raise ValueError(f"limit must be in 1..{MAX_KLINES_LIMIT}")

    def _get_json(self, path: str, params: Dict[str, str | int]) -> Any:
        request = Request(f"{self._base_url}{path}?{urlencode(params)}")
        context = {"symbol": params.get("symbol"), "interval": params.get("interval")}
        delay = self._initial_retry_delay

        for attempt in range(1, self._max_retries + 1):
            last_attempt = attempt == self._max_retries
            try:
                with self._opener.open(request, timeout=self._timeout) as response:
                    body = response.read()
                return json.loads(body)

            except HTTPError as exc:
                # Client errors are final except rate limiting (429) and request timeout (408).
                if 400 <= exc.code < 500 and exc.code not in (429, 408):
                    raise RuntimeError(f"Binance request failed with status {exc.code}: {exc.reason}") from exc
                if last_attempt:
                    raise RuntimeError(
                        f"Binance request failed after {self._max_retries} attempts with status {exc.code}: {exc.reason}"
                    ) from exc
                self._log.warning(
                    "HTTP error %s on attempt %s/%s, retrying in %.1fs",
                    exc.code,
                    attempt,
                    self._max_retries,
                    delay,
                    extra={**context, "status": exc.code},
                )

            except URLError as exc:
                error_msg = str(exc.reason) if exc.reason else str(exc)
                if last_attempt:
                    raise RuntimeError(
                        f"Binance request failed after {self._max_retries} attempts: {error_msg}"
                    ) from exc
                self._log.warning(
                    "Connection error on attempt %s/%s, retrying in %.1fs: %s",
                    attempt,
                    self._max_retries,
                    delay,
                    error_msg,
                    extra=context,
                )

            except (TimeoutError, OSError) as exc:
                if last_attempt:
                    raise RuntimeError(
                        f"Binance request failed after {self._max_retries} attempts: {exc}"
                    ) from exc
                self._log.warning(
                    "Timeout/OS error on attempt %s/%s, retrying in %.1fs: %s",
                    attempt,
                    self._max_retries,
                    delay,
                    exc,
                    extra=context,
                )

            except json.JSONDecodeError as exc:
                raise RuntimeError("Binance returned invalid JSON") from exc

            time.sleep(delay)
            delay = min(delay * self._retry_backoff_multiplier, self._max_retry_delay)

        raise RuntimeError("Binance request failed for unknown reason")
