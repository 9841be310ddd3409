from __future__ import annotations

from typing import Any, List, Sequence

from .errors import InsufficientData, InvalidInput
from .models import BollingerBands, IndicatorName, IndicatorResult, MacdResult
from .series import check_period, compute_ema, mean, population_std, rolling_windows


# ======================
# Indicator helpers
# ======================

def compute_rsi(prices: Sequence[float], period: int = 14) -> List[float]:
    """Relative Strength Index with Wilder smoothing.

    The first ``period`` deltas seed the average gain/loss; one RSI value is
    emitted for each delta after that, so the output has
    ``len(prices) - period - 1`` elements.
    """
    check_period(period)
    if len(prices) < period + 1:
        raise InsufficientData(IndicatorName.RSI.value, period + 1, len(prices))

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = prices[i] - prices[i - 1]
        if change >= 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    result: List[float] = []
    for i in range(period + 1, len(prices)):
        change = prices[i] - prices[i - 1]
        current_gain = change if change >= 0 else 0.0
        current_loss = -change if change < 0 else 0.0

        avg_gain = (avg_gain * (period - 1) + current_gain) / period
        avg_loss = (avg_loss * (period - 1) + current_loss) / period

        if avg_loss == 0:
            result.append(100.0)
        else:
            rs = avg_gain / avg_loss
            result.append(100.0 - (100.0 / (1.0 + rs)))

    return result


def compute_macd(
    prices: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MacdResult:
    """MACD line, signal line and histogram aligned on the same time index.

    Both EMAs span the whole series and are paired index by index. The first
    ``signal - 1`` values of every output are dropped as signal-line warm-up,
    leaving ``len(prices) - signal + 1`` elements in each.
    """
    check_period(fast, "fast period")
    check_period(slow, "slow period")
    check_period(signal, "signal period")
    if fast >= slow:
        raise InvalidInput(f"fast period ({fast}) must be shorter than slow period ({slow})")
    if len(prices) < slow:
        raise InsufficientData(IndicatorName.MACD.value, slow, len(prices))

    fast_ema = compute_ema(prices, fast)
    slow_ema = compute_ema(prices, slow)
    macd_full = [f - s for f, s in zip(fast_ema, slow_ema)]
    signal_full = compute_ema(macd_full, signal)

    offset = signal - 1
    macd_line = macd_full[offset:]
    signal_line = signal_full[offset:]
    histogram = [m - s for m, s in zip(macd_line, signal_line)]
    return MacdResult(
        macd_line=tuple(macd_line),
        signal_line=tuple(signal_line),
        histogram=tuple(histogram),
    )


def compute_bollinger_bands(
    prices: Sequence[float],
    period: int = 20,
    multiplier: float = 2.0,
) -> BollingerBands:
    """Bands at ``multiplier`` population standard deviations around the SMA.

    Output index 0 corresponds to price index ``period - 1``.
    """
    check_period(period)
    if multiplier < 0:
        raise InvalidInput(f"multiplier must not be negative, got {multiplier}")
    if len(prices) < period:
        raise InsufficientData(IndicatorName.BOLLINGER_BANDS.value, period, len(prices))

    upper: List[float] = []
    middle: List[float] = []
    lower: List[float] = []
    for window in rolling_windows(prices, period):
        avg = mean(window)
        width = multiplier * population_std(window)
        middle.append(avg)
        upper.append(avg + width)
        lower.append(avg - width)

    return BollingerBands(upper=tuple(upper), middle=tuple(middle), lower=tuple(lower))


def run_indicator(name: IndicatorName, prices: Sequence[float], **params: Any) -> IndicatorResult:
    """Compute ``name`` over ``prices`` and wrap it with its warm-up offset."""
    if name is IndicatorName.RSI:
        period = params.get("period", 14)
        values = compute_rsi(prices, period)
        return IndicatorResult(name=name, outputs={"rsi": tuple(values)}, warmup=period + 1)
    if name is IndicatorName.MACD:
        signal = params.get("signal", 9)
        macd = compute_macd(prices, params.get("fast", 12), params.get("slow", 26), signal)
        return IndicatorResult(
            name=name,
            outputs={
                "macd_line": macd.macd_line,
                "signal_line": macd.signal_line,
                "histogram": macd.histogram,
            },
            warmup=signal - 1,
        )
    if name is IndicatorName.BOLLINGER_BANDS:
        period = params.get("period", 20)
        bands = compute_bollinger_bands(prices, period, params.get("multiplier", 2.0))
        return IndicatorResult(
            name=name,
            outputs={"upper": bands.upper, "middle": bands.middle, "lower": bands.lower},
            warmup=period - 1,
        )
    if name is IndicatorName.EMA:
        values = compute_ema(prices, params.get("period", 20))
        return IndicatorResult(name=name, outputs={"ema": tuple(values)}, warmup=0)
    raise InvalidInput(f"Unsupported indicator: {name!r}")
