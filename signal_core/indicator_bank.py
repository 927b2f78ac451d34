"""Indicator bank: one synchronized indicator snapshot per price window.

Every call recomputes all five indicators from the full window and keeps
only the latest value of each series. Nothing is carried between calls,
so resuming monitoring for an instrument has no state to restore.
"""

import math
from typing import Sequence

from signal_core.errors import InsufficientDataError
from signal_core.indicators import bollinger_bands, ema, macd, rsi, stochastic
from signal_core.models import (
    BandsValue,
    EmaPair,
    IndicatorConfig,
    IndicatorSnapshot,
    MacdValue,
    PriceBar,
    StochasticValue,
)

# Contiguous window the engine requires before evaluating an instrument
MIN_BARS = 100


class IndicatorBank:
    """Computes RSI, MACD, Bollinger bands, stochastic and dual EMA."""

    def __init__(self, config: IndicatorConfig | None = None, min_bars: int = MIN_BARS):
        self.config = config or IndicatorConfig()
        self.min_bars = max(min_bars, self.config.min_bars)

    def compute(self, bars: Sequence[PriceBar]) -> IndicatorSnapshot | None:
        """
        Compute the indicator snapshot for the last bar of the window.

        Args:
            bars: Price bars ordered ascending by time

        Returns:
            IndicatorSnapshot, or None if any indicator has no finite value
            for the last bar (e.g. stochastic over a flat range)

        Raises:
            InsufficientDataError: If the window is shorter than min_bars
        """
        if len(bars) < self.min_bars:
            raise InsufficientDataError(received=len(bars), required=self.min_bars)

        cfg = self.config
        closes = [b.close for b in bars]
        highs = [b.high for b in bars]
        lows = [b.low for b in bars]

        rsi_values = rsi(closes, cfg.momentum.period)
        macd_line, signal_line, histogram = macd(
            closes,
            cfg.trend_oscillator.fast_period,
            cfg.trend_oscillator.slow_period,
            cfg.trend_oscillator.signal_period,
        )
        upper, middle, lower = bollinger_bands(
            closes,
            cfg.volatility_bands.period,
            cfg.volatility_bands.std_dev_multiplier,
        )
        k_values, d_values = stochastic(
            highs,
            lows,
            closes,
            cfg.stochastic.period,
            cfg.stochastic.signal_period,
        )
        ema_short = ema(closes, cfg.dual_ema.short_period)
        ema_long = ema(closes, cfg.dual_ema.long_period)

        latest = [
            rsi_values[-1],
            macd_line[-1],
            signal_line[-1],
            histogram[-1],
            upper[-1],
            middle[-1],
            lower[-1],
            k_values[-1],
            d_values[-1],
            ema_short[-1],
            ema_long[-1],
        ]
        if not all(math.isfinite(v) for v in latest):
            return None

        return IndicatorSnapshot(
            rsi=rsi_values[-1],
            macd=MacdValue(
                macd=macd_line[-1],
                signal=signal_line[-1],
                histogram=histogram[-1],
            ),
            bands=BandsValue(upper=upper[-1], middle=middle[-1], lower=lower[-1]),
            stochastic=StochasticValue(k=k_values[-1], d=d_values[-1]),
            ema=EmaPair(short=ema_short[-1], long=ema_long[-1]),
        )
