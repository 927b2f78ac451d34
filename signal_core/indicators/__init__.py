"""Technical indicators (pure math, no I/O)."""

from signal_core.indicators.indicators import (
    ema,
    sma,
    highest,
    lowest,
    stddev,
    rsi,
    macd,
    bollinger_bands,
    stochastic,
)

__all__ = [
    "ema",
    "sma",
    "highest",
    "lowest",
    "stddev",
    "rsi",
    "macd",
    "bollinger_bands",
    "stochastic",
]
