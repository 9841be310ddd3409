import math
import random

import pytest

from trading_core.errors import InsufficientData, InvalidInput
from trading_core.indicators import compute_bollinger_bands, compute_macd, compute_rsi, run_indicator
from trading_core.models import IndicatorName
from trading_core.series import compute_ema


def _random_walk(length: int, seed: int = 7) -> list:
    rng = random.Random(seed)
    price = 100.0
    prices = []
    for _ in range(length):
        price = max(1.0, price + rng.uniform(-2.0, 2.0))
        prices.append(price)
    return prices


@pytest.mark.parametrize("length,period", [(15, 14), (16, 14), (50, 14), (30, 5)])
def test_rsi_length_and_bounds(length, period):
    values = compute_rsi(_random_walk(length), period)
    assert len(values) == length - period - 1
    assert all(0.0 <= v <= 100.0 for v in values)


def test_rsi_monotonic_increase_is_100():
    prices = [float(p) for p in range(1, 40)]
    assert compute_rsi(prices, 14) == [100.0] * (len(prices) - 15)


def test_rsi_monotonic_decrease_is_0():
    prices = [float(p) for p in range(60, 20, -1)]
    values = compute_rsi(prices, 14)
    assert values
    assert all(v == pytest.approx(0.0) for v in values)


def test_rsi_wilder_smoothing_matches_manual_calculation():
    prices = [10.0, 11.0, 10.0, 12.0, 11.0]
    period = 2
    # Seed: deltas +1, -1 -> avg gain 0.5, avg loss 0.5.
    avg_gain = (0.5 * 1 + 2.0) / 2
    avg_loss = (0.5 * 1 + 0.0) / 2
    first = 100 - 100 / (1 + avg_gain / avg_loss)
    avg_gain = (avg_gain * 1 + 0.0) / 2
    avg_loss = (avg_loss * 1 + 1.0) / 2
    second = 100 - 100 / (1 + avg_gain / avg_loss)
    assert compute_rsi(prices, period) == pytest.approx([first, second])


def test_rsi_insufficient_data_reports_minimum():
    with pytest.raises(InsufficientData) as excinfo:
        compute_rsi([1.0] * 10, 14)
    assert excinfo.value.required == 15
    assert excinfo.value.actual == 10


def test_macd_outputs_are_aligned():
    prices = _random_walk(60)
    macd = compute_macd(prices, 12, 26, 9)
    expected_len = len(prices) - 9 + 1
    assert len(macd.macd_line) == expected_len
    assert len(macd.signal_line) == expected_len
    assert len(macd.histogram) == expected_len
    for m, s, h in zip(macd.macd_line, macd.signal_line, macd.histogram):
        assert h == pytest.approx(m - s)


def test_macd_line_is_fast_minus_slow_on_same_index():
    prices = _random_walk(40)
    fast = compute_ema(prices, 12)
    slow = compute_ema(prices, 26)
    macd = compute_macd(prices, 12, 26, 9)
    assert macd.macd_line[-1] == pytest.approx(fast[-1] - slow[-1])
    assert macd.macd_line[0] == pytest.approx(fast[8] - slow[8])


def test_macd_validation():
    with pytest.raises(InsufficientData) as excinfo:
        compute_macd([1.0] * 25)
    assert excinfo.value.required == 26
    with pytest.raises(InvalidInput):
        compute_macd([1.0] * 40, fast=26, slow=12)


def test_bollinger_middle_is_window_mean_and_bands_are_symmetric():
    prices = _random_walk(45)
    period = 20
    bands = compute_bollinger_bands(prices, period, 2.0)
    assert len(bands.middle) == len(prices) - period + 1
    for i, middle in enumerate(bands.middle):
        window = prices[i : i + period]
        assert middle == pytest.approx(sum(window) / period)
        assert bands.upper[i] - middle == pytest.approx(middle - bands.lower[i])


def test_bollinger_uses_population_std():
    prices = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
    bands = compute_bollinger_bands(prices, period=8, multiplier=2)
    assert bands.middle == (5.0,)
    assert bands.upper[0] == pytest.approx(9.0)
    assert bands.lower[0] == pytest.approx(1.0)


def test_bollinger_flat_series_collapses_bands():
    bands = compute_bollinger_bands([5.0] * 20)
    assert bands.upper == bands.middle == bands.lower == (5.0,)


def test_bollinger_insufficient_data():
    with pytest.raises(InsufficientData):
        compute_bollinger_bands([1.0] * 19)


def test_run_indicator_reports_warmup():
    prices = _random_walk(50)
    rsi = run_indicator(IndicatorName.RSI, prices, period=14)
    assert rsi.warmup == 15
    assert len(rsi.outputs["rsi"]) + rsi.warmup == len(prices)

    bands = run_indicator(IndicatorName.BOLLINGER_BANDS, prices, period=20)
    assert len(bands.outputs["middle"]) + bands.warmup == len(prices)

    macd = run_indicator(IndicatorName.MACD, prices)
    assert len(macd.outputs["histogram"]) + macd.warmup == len(prices)

    ema = run_indicator(IndicatorName.EMA, prices, period=10)
    assert ema.warmup == 0
    assert ema.latest("ema") == pytest.approx(compute_ema(prices, 10)[-1])
    assert not math.isnan(macd.latest("macd_line"))
