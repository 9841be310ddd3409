from __future__ import annotations

import math
from typing import Iterator, List, Sequence

from .errors import InvalidInput


def check_period(period: int, label: str = "period") -> None:
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise InvalidInput(f"{label} must be a positive integer, got {period!r}")


def compute_ema(prices: Sequence[float], period: int) -> List[float]:
    """Exponential moving average seeded with the first price.

    Output has the same length as ``prices``; ``ema[0] == prices[0]``.
    """
    check_period(period)
    if not prices:
        raise InvalidInput("cannot compute EMA of an empty series")

    k = 2.0 / (period + 1)
    result: List[float] = [float(prices[0])]
    ema_prev = result[0]
    for price in prices[1:]:
        ema_prev = price * k + ema_prev * (1 - k)
        result.append(ema_prev)
    return result


def mean(values: Sequence[float]) -> float:
    if not values:
        raise InvalidInput("cannot compute the mean of an empty window")
    return sum(values) / len(values)


def population_std(values: Sequence[float]) -> float:
    """Standard deviation dividing by N."""
    avg = mean(values)
    variance = sum((value - avg) ** 2 for value in values) / len(values)
    return math.sqrt(variance)


def rolling_windows(values: Sequence[float], size: int) -> Iterator[Sequence[float]]:
    """Yield each run of ``size`` consecutive values, oldest window first."""
    check_period(size, "window size")
    for end in range(size, len(values) + 1):
        yield values[end - size : end]


def standard_deviation(values: Sequence[float], window: int) -> List[float]:
    """Population standard deviation over a sliding window aligned to the window end."""
    check_period(window, "window")
    if len(values) < window:
        raise InvalidInput(f"need at least {window} values for a {window}-wide window, got {len(values)}")
    return [population_std(chunk) for chunk in rolling_windows(values, window)]
