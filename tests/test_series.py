import math

import pytest

from trading_core.errors import InvalidInput
from trading_core.series import compute_ema, mean, population_std, rolling_windows, standard_deviation


def test_ema_is_seeded_with_first_price():
    prices = [10.0, 11.0, 12.5, 11.75, 13.0]
    ema = compute_ema(prices, 3)
    assert ema[0] == prices[0]
    assert len(ema) == len(prices)


def test_ema_recurrence():
    prices = [10.0, 20.0, 30.0]
    ema = compute_ema(prices, 3)
    k = 2.0 / 4
    assert ema[1] == pytest.approx(20.0 * k + 10.0 * (1 - k))
    assert ema[2] == pytest.approx(30.0 * k + ema[1] * (1 - k))


def test_ema_rejects_empty_series_and_bad_period():
    with pytest.raises(InvalidInput):
        compute_ema([], 5)
    with pytest.raises(InvalidInput):
        compute_ema([1.0, 2.0], 0)


def test_population_std_divides_by_n():
    values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]
    assert mean(values) == 5.0
    assert population_std(values) == pytest.approx(2.0)


def test_standard_deviation_sliding_window():
    values = [1.0, 1.0, 3.0, 3.0]
    result = standard_deviation(values, 2)
    assert result == pytest.approx([0.0, 1.0, 0.0])


def test_standard_deviation_requires_full_window():
    with pytest.raises(InvalidInput):
        standard_deviation([1.0, 2.0], 3)


def test_rolling_windows_yields_consecutive_runs():
    windows = [list(w) for w in rolling_windows([1, 2, 3, 4], 3)]
    assert windows == [[1, 2, 3], [2, 3, 4]]
    assert math.isclose(sum(map(len, windows)), 6)
