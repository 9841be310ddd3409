from __future__ import annotations

import math
from typing import List, Sequence

from .models import ClosedTrade, PerformanceMetrics
from .series import mean, population_std

DEFAULT_RISK_FREE_RATE = 0.02


def _trade_returns(trades: Sequence[ClosedTrade]) -> List[float]:
    return [trade.profit_loss / (trade.quantity * trade.price) for trade in trades]


def calculate_sharpe_ratio(
    trades: Sequence[ClosedTrade],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> float:
    """Per-trade Sharpe ratio using returns on notional and population std."""
    if len(trades) < 2:
        return 0.0
    returns = _trade_returns(trades)
    std_dev = population_std(returns)
    if std_dev == 0:
        return 0.0
    return (mean(returns) - risk_free_rate) / std_dev


def calculate_max_drawdown(trades: Sequence[ClosedTrade]) -> float:
    """Largest peak-to-trough fall of the cumulative P&L, in input order."""
    peak = -math.inf
    running_total = 0.0
    max_drawdown = 0.0
    for trade in trades:
        running_total += trade.profit_loss
        if running_total > peak:
            peak = running_total
        max_drawdown = max(max_drawdown, peak - running_total)
    return max_drawdown


def calculate_performance_metrics(
    trades: Sequence[ClosedTrade],
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
) -> PerformanceMetrics:
    total = len(trades)
    winners = [trade.profit_loss for trade in trades if trade.profit_loss > 0]
    losers = [trade.profit_loss for trade in trades if trade.profit_loss < 0]

    total_wins = sum(winners)
    total_losses = abs(sum(losers))

    win_rate = (len(winners) / total) * 100 if total else 0.0
    if total_losses > 0:
        profit_factor = total_wins / total_losses
    elif total_wins > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    average_win = total_wins / len(winners) if winners else 0.0
    average_loss = total_losses / len(losers) if losers else 0.0
    expectancy = (win_rate / 100) * average_win - (1 - win_rate / 100) * average_loss

    return PerformanceMetrics(
        total_trades=total,
        profitable_trades=len(winners),
        losing_trades=len(losers),
        total_profit=sum(trade.profit_loss for trade in trades),
        win_rate=win_rate,
        profit_factor=profit_factor,
        average_win=average_win,
        average_loss=average_loss,
        expectancy=expectancy,
        sharpe_ratio=calculate_sharpe_ratio(trades, risk_free_rate),
        max_drawdown=calculate_max_drawdown(trades),
    )
