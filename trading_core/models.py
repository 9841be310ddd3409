"""Value types shared by the indicator, signal, risk and analytics modules."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidInput

if TYPE_CHECKING:
    from candle_downloader.models import Candle


def _as_float_tuple(values: Iterable[float], label: str) -> Tuple[float, ...]:
    out: List[float] = []
    for value in values:
        try:
            number = float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidInput(f"{label} contains a non-numeric value: {value!r}") from exc
        if not math.isfinite(number):
            raise InvalidInput(f"{label} contains a non-finite value: {value!r}")
        out.append(number)
    return tuple(out)


@dataclass(frozen=True)
class PriceSeries:
    """Chronological closing prices, oldest first, with optional OHLCV columns."""

    closes: Tuple[float, ...]
    timestamps: Optional[Tuple[datetime, ...]] = None
    opens: Optional[Tuple[float, ...]] = None
    highs: Optional[Tuple[float, ...]] = None
    lows: Optional[Tuple[float, ...]] = None
    volumes: Optional[Tuple[float, ...]] = None

    def __post_init__(self) -> None:
        closes = _as_float_tuple(self.closes, "closes")
        if not closes:
            raise InvalidInput("price series must not be empty")
        object.__setattr__(self, "closes", closes)

        for name in ("opens", "highs", "lows", "volumes"):
            column = getattr(self, name)
            if column is None:
                continue
            column = _as_float_tuple(column, name)
            if len(column) != len(closes):
                raise InvalidInput(f"{name} length {len(column)} does not match closes length {len(closes)}")
            object.__setattr__(self, name, column)

        if self.timestamps is not None:
            timestamps = tuple(self.timestamps)
            if len(timestamps) != len(closes):
                raise InvalidInput("timestamps length does not match closes length")
            for previous, current in zip(timestamps, timestamps[1:]):
                if current <= previous:
                    raise InvalidInput(
                        f"timestamps must be strictly increasing ({previous.isoformat()} >= {current.isoformat()})"
                    )
            object.__setattr__(self, "timestamps", timestamps)

    def __len__(self) -> int:
        return len(self.closes)

    @property
    def last_price(self) -> float:
        return self.closes[-1]

    @property
    def last_timestamp(self) -> Optional[datetime]:
        return self.timestamps[-1] if self.timestamps else None

    @classmethod
    def from_candles(cls, candles: Sequence["Candle"]) -> "PriceSeries":
        """Build a series from downloaded candles (timestamp = candle open time)."""
        return cls(
            closes=tuple(candle.close for candle in candles),
            timestamps=tuple(candle.open_time for candle in candles),
            opens=tuple(candle.open for candle in candles),
            highs=tuple(candle.high for candle in candles),
            lows=tuple(candle.low for candle in candles),
            volumes=tuple(candle.volume for candle in candles),
        )


class IndicatorName(Enum):
    """Indicators produced by the engine."""

    RSI = "RSI"
    MACD = "MACD"
    BOLLINGER_BANDS = "BollingerBands"
    EMA = "EMA"


@dataclass(frozen=True)
class IndicatorResult:
    """Named indicator output; ``warmup`` leading inputs have no output value."""

    name: IndicatorName
    outputs: Mapping[str, Tuple[float, ...]]
    warmup: int

    def latest(self, output: str) -> float:
        values = self.outputs[output]
        if not values:
            raise InvalidInput(f"{self.name.value} output '{output}' is empty")
        return values[-1]


@dataclass(frozen=True)
class MacdResult:
    macd_line: Tuple[float, ...]
    signal_line: Tuple[float, ...]
    histogram: Tuple[float, ...]


@dataclass(frozen=True)
class BollingerBands:
    upper: Tuple[float, ...]
    middle: Tuple[float, ...]
    lower: Tuple[float, ...]


class SignalDirection(Enum):
    BUY = "BUY"
    SELL = "SELL"


class OverallSignal(Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class Signal:
    """Directional vote from a single indicator."""

    indicator: str
    direction: SignalDirection
    strength: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.strength <= 1.0:
            raise InvalidInput(f"signal strength must be within [0, 1], got {self.strength}")


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Latest value of each indicator; ``None`` means the indicator is unavailable."""

    rsi: Optional[float] = None
    macd_line: Optional[float] = None
    macd_signal: Optional[float] = None
    upper_band: Optional[float] = None
    lower_band: Optional[float] = None

    @classmethod
    def latest(
        cls,
        rsi_values: Sequence[float] | None = None,
        macd: MacdResult | None = None,
        bands: BollingerBands | None = None,
    ) -> "IndicatorSnapshot":
        return cls(
            rsi=rsi_values[-1] if rsi_values else None,
            macd_line=macd.macd_line[-1] if macd and macd.macd_line else None,
            macd_signal=macd.signal_line[-1] if macd and macd.signal_line else None,
            upper_band=bands.upper[-1] if bands and bands.upper else None,
            lower_band=bands.lower[-1] if bands and bands.lower else None,
        )


@dataclass(frozen=True)
class TradeDecision:
    overall_signal: OverallSignal
    confidence: float
    signals: Tuple[Signal, ...] = field(default_factory=tuple)
    timestamp: Optional[datetime] = None

    def as_dict(self) -> Dict[str, object]:
        return {
            "overall_signal": self.overall_signal.value,
            "confidence": self.confidence,
            "signals": [
                {
                    "indicator": signal.indicator,
                    "signal": signal.direction.value,
                    "strength": signal.strength,
                }
                for signal in self.signals
            ],
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(frozen=True)
class RiskParameters:
    """Account risk budget for one trade. Validated on construction."""

    account_balance: float
    risk_percent: float
    entry_price: float
    stop_loss_price: float
    take_profit_price: Optional[float] = None

    def __post_init__(self) -> None:
        checks = {
            "account_balance": self.account_balance,
            "risk_percent": self.risk_percent,
            "entry_price": self.entry_price,
            "stop_loss_price": self.stop_loss_price,
        }
        if self.take_profit_price is not None:
            checks["take_profit_price"] = self.take_profit_price
        for name, value in checks.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInput(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidInput(f"{name} must be finite")
            if value <= 0:
                raise InvalidInput(f"{name} must be positive, got {value}")
        if self.risk_percent > 100:
            raise InvalidInput(f"risk_percent must be in (0, 100], got {self.risk_percent}")


@dataclass(frozen=True)
class PositionSizing:
    position_size: float
    risk_amount: float
    risk_reward_ratio: float


@dataclass(frozen=True)
class TradePlan:
    """Order size with protective stop and profit target for a BUY/SELL decision."""

    side: SignalDirection
    entry_price: float
    stop_loss_price: float
    take_profit_price: float
    sizing: PositionSizing

    def as_dict(self) -> Dict[str, object]:
        return {
            "side": self.side.value,
            "entry_price": self.entry_price,
            "stop_loss_price": self.stop_loss_price,
            "take_profit_price": self.take_profit_price,
            "position_size": self.sizing.position_size,
            "risk_amount": self.sizing.risk_amount,
            "risk_reward_ratio": self.sizing.risk_reward_ratio,
        }


@dataclass(frozen=True)
class ClosedTrade:
    quantity: float
    price: float
    profit_loss: float

    def __post_init__(self) -> None:
        for name in ("quantity", "price", "profit_loss"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInput(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidInput(f"{name} must be finite")
        if self.quantity <= 0:
            raise InvalidInput(f"quantity must be positive, got {self.quantity}")
        if self.price <= 0:
            raise InvalidInput(f"price must be positive, got {self.price}")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> "ClosedTrade":
        """Accept both ``profit_loss`` and ``profitLoss`` keys."""
        pnl = payload.get("profit_loss", payload.get("profitLoss"))
        try:
            return cls(
                quantity=float(payload["quantity"]),  # type: ignore[arg-type]
                price=float(payload["price"]),  # type: ignore[arg-type]
                profit_loss=float(pnl),  # type: ignore[arg-type]
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInput(f"malformed trade record: {dict(payload)!r}") from exc


@dataclass(frozen=True)
class PerformanceMetrics:
    total_trades: int
    profitable_trades: int
    losing_trades: int
    total_profit: float
    win_rate: float
    profit_factor: float
    average_win: float
    average_loss: float
    expectancy: float
    sharpe_ratio: float
    max_drawdown: float

    def as_dict(self) -> Dict[str, float | int]:
        return {
            "total_trades": self.total_trades,
            "profitable_trades": self.profitable_trades,
            "losing_trades": self.losing_trades,
            "total_profit": self.total_profit,
            "win_rate": self.win_rate,
            "profit_factor": self.profit_factor,
            "average_win": self.average_win,
            "average_loss": self.average_loss,
            "expectancy": self.expectancy,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
        }
