import math

import pytest

from trading_core.errors import InvalidInput
from trading_core.models import ClosedTrade
from trading_core.performance import (
    calculate_max_drawdown,
    calculate_performance_metrics,
    calculate_sharpe_ratio,
)


def _trades(*pnls: float) -> list:
    return [ClosedTrade(quantity=1.0, price=1_000.0, profit_loss=pnl) for pnl in pnls]


def test_metrics_example_batch():
    metrics = calculate_performance_metrics(_trades(100, -50, 30))
    assert metrics.total_trades == 3
    assert metrics.profitable_trades == 2
    assert metrics.losing_trades == 1
    assert metrics.total_profit == pytest.approx(80)
    assert metrics.win_rate == pytest.approx(66.6667, rel=1e-4)
    assert metrics.profit_factor == pytest.approx(2.6)
    assert metrics.average_win == pytest.approx(65)
    assert metrics.average_loss == pytest.approx(50)
    assert metrics.expectancy == pytest.approx((2 / 3) * 65 - (1 / 3) * 50)
    assert metrics.max_drawdown == pytest.approx(50)


def test_profit_factor_sentinels():
    assert calculate_performance_metrics(_trades(10, 20)).profit_factor == math.inf
    assert calculate_performance_metrics(_trades(0, 0)).profit_factor == 0.0


def test_empty_batch_is_all_zero():
    metrics = calculate_performance_metrics([])
    assert metrics.total_trades == 0
    assert metrics.win_rate == 0.0
    assert metrics.profit_factor == 0.0
    assert metrics.expectancy == 0.0
    assert metrics.sharpe_ratio == 0.0
    assert metrics.max_drawdown == 0.0


def test_breakeven_trades_count_in_total_only():
    metrics = calculate_performance_metrics(_trades(10, 0, -5))
    assert metrics.profitable_trades == 1
    assert metrics.losing_trades == 1
    assert metrics.win_rate == pytest.approx(100 / 3)


def test_sharpe_ratio_population_std():
    trades = [
        ClosedTrade(quantity=1, price=100, profit_loss=10),  # 0.10
        ClosedTrade(quantity=2, price=100, profit_loss=-10),  # -0.05
    ]
    mean_return = 0.025
    std = 0.075
    assert calculate_sharpe_ratio(trades) == pytest.approx((mean_return - 0.02) / std)
    assert calculate_sharpe_ratio(trades, risk_free_rate=0.0) == pytest.approx(mean_return / std)


def test_sharpe_ratio_degenerate_cases():
    assert calculate_sharpe_ratio(_trades(10)) == 0.0
    flat = [ClosedTrade(quantity=1, price=2, profit_loss=1) for _ in range(3)]
    assert calculate_sharpe_ratio(flat) == 0.0


@pytest.mark.parametrize(
    "quantity, price, pnl",
    [
        (0, 100, 5),
        (-1, 100, 5),
        (1, 0, 5),
        (1, -100, 5),
        (1, 100, math.nan),
        (1, math.inf, 5),
        (True, 100, 5),
    ],
)
def test_closed_trade_rejects_malformed_values(quantity, price, pnl):
    with pytest.raises(InvalidInput):
        ClosedTrade(quantity, price, pnl)


def test_single_zero_quantity_record_is_rejected_before_metrics():
    with pytest.raises(InvalidInput):
        ClosedTrade.from_mapping({"quantity": 0, "price": 100, "profitLoss": 5})
    with pytest.raises(InvalidInput):
        ClosedTrade.from_mapping({"quantity": 1, "price": 100, "profitLoss": "nan"})


def test_max_drawdown_tracks_running_peak():
    assert calculate_max_drawdown(_trades(100, -50, 30, -120, 200)) == pytest.approx(140)
    assert calculate_max_drawdown(_trades(10, 20, 30)) == 0.0
    assert calculate_max_drawdown([]) == 0.0


def test_max_drawdown_peak_starts_at_first_cumulative_value():
    assert calculate_max_drawdown(_trades(-50, -25)) == pytest.approx(25)


def test_closed_trade_from_mapping_accepts_both_spellings():
    assert ClosedTrade.from_mapping({"quantity": 1, "price": 2, "profitLoss": 3}) == ClosedTrade(1.0, 2.0, 3.0)
    assert ClosedTrade.from_mapping({"quantity": "1", "price": "2", "profit_loss": "-3"}) == ClosedTrade(1.0, 2.0, -3.0)
    with pytest.raises(InvalidInput):
        ClosedTrade.from_mapping({"quantity": 1, "price": 2})
