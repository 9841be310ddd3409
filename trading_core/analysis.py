"""Price series in, trade decision and sizing out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .indicators import compute_bollinger_bands, compute_macd, compute_rsi
from .models import (
    BollingerBands,
    IndicatorSnapshot,
    MacdResult,
    PriceSeries,
    TradeDecision,
    TradePlan,
)
from .params import AnalysisParams
from .risk import build_trade_plan
from .signals import generate_trading_signal

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketAnalysis:
    rsi: List[float]
    macd: MacdResult
    bands: BollingerBands
    snapshot: IndicatorSnapshot
    price: float
    decision: TradeDecision
    plan: Optional[TradePlan]

    def as_dict(self) -> Dict[str, object]:
        return {
            "price": self.price,
            "indicators": {
                "rsi": self.snapshot.rsi,
                "macd_line": self.snapshot.macd_line,
                "macd_signal": self.snapshot.macd_signal,
                "macd_histogram": self.macd.histogram[-1] if self.macd.histogram else None,
                "bollinger_upper": self.snapshot.upper_band,
                "bollinger_middle": self.bands.middle[-1] if self.bands.middle else None,
                "bollinger_lower": self.snapshot.lower_band,
            },
            "decision": self.decision.as_dict(),
            "plan": self.plan.as_dict() if self.plan else None,
        }


def analyze_market(series: PriceSeries, params: Optional[AnalysisParams] = None) -> MarketAnalysis:
    """Run every indicator on ``series`` and derive the decision for its last price.

    Raises ``InsufficientData`` when the series is shorter than the longest
    indicator window.
    """
    params = params or AnalysisParams()
    closes = series.closes

    rsi_values = compute_rsi(closes, params.rsi_period)
    macd = compute_macd(closes, params.macd_fast, params.macd_slow, params.macd_signal)
    bands = compute_bollinger_bands(closes, params.bollinger_period, params.bollinger_multiplier)

    snapshot = IndicatorSnapshot.latest(rsi_values, macd, bands)
    price = series.last_price
    decision = generate_trading_signal(
        snapshot,
        price,
        thresholds=params.thresholds(),
        timestamp=series.last_timestamp,
    )
    plan = build_trade_plan(
        decision,
        entry_price=price,
        balance=params.account_balance,
        risk_percent=params.risk_percent,
        stop_loss_pct=params.stop_loss_pct,
        reward_ratio=params.reward_ratio,
    )
    _log.info(
        "Analysis complete: signal=%s confidence=%.2f price=%s",
        decision.overall_signal.value,
        decision.confidence,
        price,
        extra={"candles": len(series)},
    )
    return MarketAnalysis(
        rsi=rsi_values,
        macd=macd,
        bands=bands,
        snapshot=snapshot,
        price=price,
        decision=decision,
        plan=plan,
    )
