from __future__ import annotations

import logging
from typing import Optional

from .errors import InvalidInput
from .models import (
    OverallSignal,
    PositionSizing,
    RiskParameters,
    SignalDirection,
    TradeDecision,
    TradePlan,
)

_log = logging.getLogger(__name__)


def calculate_risk_reward_ratio(
    entry_price: float,
    stop_loss_price: float,
    take_profit_price: Optional[float] = None,
) -> float:
    """Reward over risk; without a target the reward defaults to twice the risk."""
    risk = abs(entry_price - stop_loss_price)
    if risk == 0:
        raise InvalidInput("entry price and stop loss price must differ")
    reward = abs(take_profit_price - entry_price) if take_profit_price is not None else risk * 2
    return reward / risk


def size_position(params: RiskParameters) -> PositionSizing:
    risk_amount = params.account_balance * (params.risk_percent / 100)
    price_delta = abs(params.entry_price - params.stop_loss_price)
    if price_delta == 0:
        raise InvalidInput("entry price and stop loss price must differ")
    return PositionSizing(
        position_size=risk_amount / price_delta,
        risk_amount=risk_amount,
        risk_reward_ratio=calculate_risk_reward_ratio(
            params.entry_price, params.stop_loss_price, params.take_profit_price
        ),
    )


def calculate_position_size(
    balance: float,
    risk_percent: float,
    entry_price: float,
    stop_loss_price: float,
    take_profit_price: Optional[float] = None,
) -> PositionSizing:
    """Units to trade so that hitting the stop loses ``risk_percent`` of ``balance``."""
    params = RiskParameters(
        account_balance=balance,
        risk_percent=risk_percent,
        entry_price=entry_price,
        stop_loss_price=stop_loss_price,
        take_profit_price=take_profit_price,
    )
    return size_position(params)


def build_trade_plan(
    decision: TradeDecision,
    entry_price: float,
    balance: float,
    risk_percent: float,
    stop_loss_pct: float,
    reward_ratio: float = 2.0,
) -> Optional[TradePlan]:
    """Turn a BUY/SELL decision into stop/target levels and an order size.

    ``stop_loss_pct`` is a fraction of the entry price (0.02 = 2%). HOLD
    decisions produce no plan.
    """
    if decision.overall_signal is OverallSignal.HOLD:
        return None
    if not 0 < stop_loss_pct < 1:
        raise InvalidInput(f"stop_loss_pct must be in (0, 1), got {stop_loss_pct}")
    if reward_ratio <= 0:
        raise InvalidInput(f"reward_ratio must be positive, got {reward_ratio}")

    stop_distance = entry_price * stop_loss_pct
    if decision.overall_signal is OverallSignal.BUY:
        side = SignalDirection.BUY
        stop_loss = entry_price - stop_distance
        take_profit = entry_price + stop_distance * reward_ratio
    else:
        side = SignalDirection.SELL
        stop_loss = entry_price + stop_distance
        take_profit = entry_price - stop_distance * reward_ratio
        if take_profit <= 0:
            raise InvalidInput(
                f"reward_ratio {reward_ratio} puts the short target at or below zero"
            )

    sizing = calculate_position_size(balance, risk_percent, entry_price, stop_loss, take_profit)
    _log.debug(
        "Trade plan built",
        extra={
            "side": side.value,
            "entry": entry_price,
            "stop_loss": stop_loss,
            "take_profit": take_profit,
            "size": sizing.position_size,
        },
    )
    return TradePlan(
        side=side,
        entry_price=entry_price,
        stop_loss_price=stop_loss,
        take_profit_price=take_profit,
        sizing=sizing,
    )
