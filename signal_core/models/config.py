"""Indicator configuration models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from signal_core.errors import ConfigurationError


def _check_periods(**periods: int) -> None:
    for name, value in periods.items():
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")


def _check_levels(oversold: float, overbought: float) -> None:
    if not (0 <= oversold < overbought <= 100):
        raise ValueError(
            f"levels must satisfy 0 <= oversold < overbought <= 100, "
            f"got oversold={oversold}, overbought={overbought}"
        )


class _ConfigModel(BaseModel):
    """Frozen config model whose validation failures raise ConfigurationError."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, /, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {type(self).__name__}: {e}") from e


class MomentumConfig(_ConfigModel):
    """RSI momentum oscillator."""

    period: int = 14
    overbought_level: float = 70
    oversold_level: float = 30

    @model_validator(mode="after")
    def _validate(self):
        _check_periods(period=self.period)
        _check_levels(self.oversold_level, self.overbought_level)
        return self


class TrendOscillatorConfig(_ConfigModel):
    """MACD trend-following oscillator with signal line."""

    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9

    @model_validator(mode="after")
    def _validate(self):
        _check_periods(
            fast_period=self.fast_period,
            slow_period=self.slow_period,
            signal_period=self.signal_period,
        )
        if self.fast_period >= self.slow_period:
            raise ValueError("fast_period must be smaller than slow_period")
        return self


class VolatilityBandsConfig(_ConfigModel):
    """Bollinger volatility bands."""

    period: int = 20
    std_dev_multiplier: float = 2.0

    @model_validator(mode="after")
    def _validate(self):
        _check_periods(period=self.period)
        if self.std_dev_multiplier <= 0:
            raise ValueError("std_dev_multiplier must be positive")
        return self


class StochasticConfig(_ConfigModel):
    """Stochastic oscillator (%K with %D signal line)."""

    period: int = 14
    signal_period: int = 3
    overbought_level: float = 80
    oversold_level: float = 20

    @model_validator(mode="after")
    def _validate(self):
        _check_periods(period=self.period, signal_period=self.signal_period)
        _check_levels(self.oversold_level, self.overbought_level)
        return self


class DualEmaConfig(_ConfigModel):
    """Short/long exponential moving average pair."""

    short_period: int = 9
    long_period: int = 21

    @model_validator(mode="after")
    def _validate(self):
        _check_periods(short_period=self.short_period, long_period=self.long_period)
        if self.short_period >= self.long_period:
            raise ValueError("short_period must be smaller than long_period")
        return self


class IndicatorConfig(_ConfigModel):
    """Configuration for all five indicators. Immutable once built.

    Invalid values or unknown keys raise ConfigurationError whether the
    model is built directly or through from_overrides.
    """

    momentum: MomentumConfig = MomentumConfig()
    trend_oscillator: TrendOscillatorConfig = TrendOscillatorConfig()
    volatility_bands: VolatilityBandsConfig = VolatilityBandsConfig()
    stochastic: StochasticConfig = StochasticConfig()
    dual_ema: DualEmaConfig = DualEmaConfig()

    @classmethod
    def from_overrides(cls, overrides: dict[str, Any] | None = None) -> IndicatorConfig:
        """Merge partial overrides over the built-in defaults.

        Each section is merged field by field, so ``{"momentum": {"period": 10}}``
        keeps the default overbought/oversold levels.

        Raises:
            ConfigurationError: If the merged configuration is invalid.
        """
        try:
            return cls.model_validate(overrides or {})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid indicator configuration: {e}") from e

    @property
    def min_bars(self) -> int:
        """Smallest window that yields a value for every indicator."""
        macd = self.trend_oscillator.slow_period + self.trend_oscillator.signal_period - 1
        stoch = self.stochastic.period + self.stochastic.signal_period - 1
        return max(
            self.momentum.period + 1,
            macd,
            self.volatility_bands.period,
            stoch,
            self.dual_ema.long_period,
        )
