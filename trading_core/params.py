from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator  # type: ignore[import-not-found]

from .signals import SignalThresholds


class AnalysisParams(BaseModel):
    """User-provided parameters for a single market analysis run."""

    model_config = ConfigDict(extra="ignore")

    rsi_period: int = Field(default=14, ge=1)
    macd_fast: int = Field(default=12, ge=1)
    macd_slow: int = Field(default=26, ge=2)
    macd_signal: int = Field(default=9, ge=1)
    bollinger_period: int = Field(default=20, ge=1)
    bollinger_multiplier: float = Field(default=2.0, ge=0.0)

    rsi_oversold: float = Field(default=30.0, ge=0.0, le=100.0)
    rsi_overbought: float = Field(default=70.0, ge=0.0, le=100.0)

    account_balance: float = Field(default=10_000.0, gt=0.0)
    risk_percent: float = Field(default=2.0, gt=0.0, le=100.0)
    stop_loss_pct: float = Field(default=0.02, gt=0.0, lt=1.0)
    reward_ratio: float = Field(default=2.0, gt=0.0)

    @model_validator(mode="after")
    def _validate_combinations(self) -> "AnalysisParams":
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be shorter than macd_slow")
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be below rsi_overbought")
        if self.stop_loss_pct * self.reward_ratio >= 1:
            raise ValueError("stop_loss_pct * reward_ratio must be below 1 or short targets fall to zero")
        return self

    @property
    def min_history(self) -> int:
        """Shortest price series every configured indicator can handle."""
        return max(self.rsi_period + 1, self.macd_slow, self.bollinger_period)

    def thresholds(self) -> SignalThresholds:
        return SignalThresholds(rsi_oversold=self.rsi_oversold, rsi_overbought=self.rsi_overbought)
