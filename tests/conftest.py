"""Shared fixtures: price bar and signal factories."""

import math

import pytest

from signal_core.models import (
    BandsValue,
    EmaPair,
    IndicatorSnapshot,
    MacdValue,
    PriceBar,
    SignalType,
    StochasticValue,
    TradingSignal,
)

HOUR_MS = 60 * 60 * 1000
START_MS = 1_700_000_000_000


def _bars(closes, spread=1.0):
    return [
        PriceBar(
            time=START_MS + i * HOUR_MS,
            open=close,
            high=close + spread,
            low=close - spread,
            close=close,
            volume=10.0,
        )
        for i, close in enumerate(closes)
    ]


@pytest.fixture
def make_bars():
    """Bars with the given closes, one hour apart, high/low = close +/- spread."""
    return _bars


@pytest.fixture
def wave_bars():
    """120 hourly bars following a sine wave around 100."""
    return _bars([100 + 5 * math.sin(i / 4) for i in range(120)])


@pytest.fixture
def neutral_snapshot():
    """Snapshot on which no classifier rule fires for a close of 100."""
    return IndicatorSnapshot(
        rsi=50.0,
        macd=MacdValue(macd=0.0, signal=0.0, histogram=0.0),
        bands=BandsValue(upper=110.0, middle=100.0, lower=90.0),
        stochastic=StochasticValue(k=50.0, d=50.0),
        ema=EmaPair(short=100.0, long=100.0),
    )


@pytest.fixture
def make_signal(neutral_snapshot):
    def factory(instrument_id="BTCUSDT", price=100.0, timestamp=START_MS):
        return TradingSignal(
            type=SignalType.BUY,
            instrument_id=instrument_id,
            timestamp=timestamp,
            price=price,
            indicators=neutral_snapshot,
            reasons=("RSI oversold (25.00)", "MACD bullish crossover"),
        )

    return factory
