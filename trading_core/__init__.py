"""Technical indicators, signal aggregation, risk sizing and performance analytics."""

from .analysis import MarketAnalysis, analyze_market
from .errors import (
    ExchangeError,
    ExchangeRequestFailed,
    InsufficientData,
    InvalidInput,
    NetworkTimeout,
    RequestCancelled,
    TradingCoreError,
)
from .indicators import compute_bollinger_bands, compute_macd, compute_rsi, run_indicator
from .models import (
    BollingerBands,
    ClosedTrade,
    IndicatorName,
    IndicatorResult,
    IndicatorSnapshot,
    MacdResult,
    OverallSignal,
    PerformanceMetrics,
    PositionSizing,
    PriceSeries,
    RiskParameters,
    Signal,
    SignalDirection,
    TradeDecision,
    TradePlan,
)
from .params import AnalysisParams
from .performance import (
    calculate_max_drawdown,
    calculate_performance_metrics,
    calculate_sharpe_ratio,
)
from .risk import (
    build_trade_plan,
    calculate_position_size,
    calculate_risk_reward_ratio,
    size_position,
)
from .series import compute_ema, population_std, standard_deviation
from .signals import SignalThresholds, generate_trading_signal

__all__ = [
    "AnalysisParams",
    "BollingerBands",
    "ClosedTrade",
    "ExchangeError",
    "ExchangeRequestFailed",
    "IndicatorName",
    "IndicatorResult",
    "IndicatorSnapshot",
    "InsufficientData",
    "InvalidInput",
    "MacdResult",
    "MarketAnalysis",
    "NetworkTimeout",
    "OverallSignal",
    "PerformanceMetrics",
    "PositionSizing",
    "PriceSeries",
    "RequestCancelled",
    "RiskParameters",
    "Signal",
    "SignalDirection",
    "SignalThresholds",
    "TradeDecision",
    "TradePlan",
    "TradingCoreError",
    "analyze_market",
    "build_trade_plan",
    "calculate_max_drawdown",
    "calculate_performance_metrics",
    "calculate_position_size",
    "calculate_risk_reward_ratio",
    "calculate_sharpe_ratio",
    "compute_bollinger_bands",
    "compute_ema",
    "compute_macd",
    "compute_rsi",
    "generate_trading_signal",
    "population_std",
    "run_indicator",
    "size_position",
    "standard_deviation",
]
