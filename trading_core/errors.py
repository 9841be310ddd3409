"""Error types raised by the trading core and the exchange leg."""

from __future__ import annotations

from typing import Optional


class TradingCoreError(Exception):
    """Base class for every error raised by this project."""


class InvalidInput(TradingCoreError, ValueError):
    """Input rejected before any computation took place."""


class InsufficientData(TradingCoreError, ValueError):
    """Series is shorter than the indicator's minimum window."""

    def __init__(self, indicator: str, required: int, actual: int) -> None:
        self.indicator = indicator
        self.required = required
        self.actual = actual
        super().__init__(
            f"Not enough data for {indicator} calculation. "
            f"Need at least {required} prices, got {actual}."
        )


class ExchangeError(TradingCoreError, RuntimeError):
    """Base class for failures on the exchange network leg."""


class ExchangeRequestFailed(ExchangeError):
    """Exchange answered with a non-2xx status or an error payload."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        upstream_message: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.upstream_message = upstream_message
        super().__init__(message)


class NetworkTimeout(ExchangeError):
    """The HTTP call did not complete within the configured timeout."""


class RequestCancelled(ExchangeError):
    """The caller cancelled the client while a call was pending."""
