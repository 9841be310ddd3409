from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from .models import IndicatorSnapshot, OverallSignal, Signal, SignalDirection, TradeDecision


@dataclass(frozen=True)
class SignalThresholds:
    """Fixed trigger levels and per-indicator vote strengths."""

    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    rsi_strength: float = 0.8
    macd_strength: float = 0.7
    bollinger_strength: float = 0.6


DEFAULT_THRESHOLDS = SignalThresholds()


def collect_signals(
    snapshot: IndicatorSnapshot,
    current_price: float,
    thresholds: SignalThresholds = DEFAULT_THRESHOLDS,
) -> List[Signal]:
    signals: List[Signal] = []

    if snapshot.rsi is not None:
        if snapshot.rsi < thresholds.rsi_oversold:
            signals.append(Signal("RSI", SignalDirection.BUY, thresholds.rsi_strength))
        elif snapshot.rsi > thresholds.rsi_overbought:
            signals.append(Signal("RSI", SignalDirection.SELL, thresholds.rsi_strength))

    if snapshot.macd_line is not None and snapshot.macd_signal is not None:
        macd, signal_line = snapshot.macd_line, snapshot.macd_signal
        if macd > signal_line and macd > 0:
            signals.append(Signal("MACD", SignalDirection.BUY, thresholds.macd_strength))
        elif macd < signal_line and macd < 0:
            signals.append(Signal("MACD", SignalDirection.SELL, thresholds.macd_strength))

    if snapshot.lower_band is not None and current_price < snapshot.lower_band:
        signals.append(Signal("BB", SignalDirection.BUY, thresholds.bollinger_strength))
    elif snapshot.upper_band is not None and current_price > snapshot.upper_band:
        signals.append(Signal("BB", SignalDirection.SELL, thresholds.bollinger_strength))

    return signals


def calculate_overall_signal(signals: Sequence[Signal]) -> OverallSignal:
    """Strict majority of summed strengths; a tie is HOLD."""
    buy_score = sum(s.strength for s in signals if s.direction is SignalDirection.BUY)
    sell_score = sum(s.strength for s in signals if s.direction is SignalDirection.SELL)
    if buy_score > sell_score:
        return OverallSignal.BUY
    if sell_score > buy_score:
        return OverallSignal.SELL
    return OverallSignal.HOLD


def calculate_confidence(signals: Sequence[Signal]) -> float:
    if not signals:
        return 0.0
    return sum(s.strength for s in signals) / len(signals)


def generate_trading_signal(
    snapshot: IndicatorSnapshot,
    current_price: float,
    thresholds: Optional[SignalThresholds] = None,
    timestamp: Optional[datetime] = None,
) -> TradeDecision:
    signals = collect_signals(snapshot, current_price, thresholds or DEFAULT_THRESHOLDS)
    return TradeDecision(
        overall_signal=calculate_overall_signal(signals),
        confidence=calculate_confidence(signals),
        signals=tuple(signals),
        timestamp=timestamp,
    )
