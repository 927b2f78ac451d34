"""Data models."""

from signal_core.models.bar import PriceBar
from signal_core.models.orderbook import OrderBookSnapshot
from signal_core.models.config import (
    DualEmaConfig,
    IndicatorConfig,
    MomentumConfig,
    StochasticConfig,
    TrendOscillatorConfig,
    VolatilityBandsConfig,
)
from signal_core.models.signal import (
    BandsValue,
    EmaPair,
    IndicatorSnapshot,
    MacdValue,
    SignalType,
    StochasticValue,
    TradingSignal,
)

__all__ = [
    "PriceBar",
    "OrderBookSnapshot",
    "IndicatorConfig",
    "MomentumConfig",
    "TrendOscillatorConfig",
    "VolatilityBandsConfig",
    "StochasticConfig",
    "DualEmaConfig",
    "SignalType",
    "IndicatorSnapshot",
    "MacdValue",
    "BandsValue",
    "StochasticValue",
    "EmaPair",
    "TradingSignal",
]
