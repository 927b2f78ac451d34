"""Signal and indicator snapshot data models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

from signal_core.models.bar import PriceBar


class SignalType(str, Enum):
    """Directional verdict of one evaluation.

    Ordered within each direction: BUY < STRONG_BUY, SELL < STRONG_SELL.
    """

    NONE = "none"
    BUY = "buy"
    SELL = "sell"
    STRONG_BUY = "strong_buy"
    STRONG_SELL = "strong_sell"

    @property
    def direction(self) -> int:
        """+1 for the buy side, -1 for the sell side, 0 for NONE."""
        if self in (SignalType.BUY, SignalType.STRONG_BUY):
            return 1
        if self in (SignalType.SELL, SignalType.STRONG_SELL):
            return -1
        return 0

    @property
    def is_strong(self) -> bool:
        return self in (SignalType.STRONG_BUY, SignalType.STRONG_SELL)

    def escalated(self) -> "SignalType":
        """Return the strong variant of a base verdict (others unchanged)."""
        if self == SignalType.BUY:
            return SignalType.STRONG_BUY
        if self == SignalType.SELL:
            return SignalType.STRONG_SELL
        return self


class MacdValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    macd: float
    signal: float
    histogram: float


class BandsValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    upper: float
    middle: float
    lower: float


class StochasticValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    k: float
    d: float


class EmaPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    short: float
    long: float


class IndicatorSnapshot(BaseModel):
    """Latest value of each of the five indicators, aligned to the same bar."""

    model_config = ConfigDict(frozen=True)

    rsi: float
    macd: MacdValue
    bands: BandsValue
    stochastic: StochasticValue
    ema: EmaPair


class TradingSignal(BaseModel):
    """An emitted trading signal.

    Never carries SignalType.NONE and always has at least two reasons.
    """

    model_config = ConfigDict(frozen=True)

    type: SignalType
    instrument_id: str
    timestamp: int  # Unix timestamp in milliseconds
    price: float
    indicators: IndicatorSnapshot
    reasons: tuple[str, ...]

    @field_validator("type")
    @classmethod
    def _not_none(cls, value: SignalType) -> SignalType:
        if value == SignalType.NONE:
            raise ValueError("a trading signal cannot have type 'none'")
        return value

    @field_validator("reasons")
    @classmethod
    def _corroborated(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if len(value) < 2:
            raise ValueError("a trading signal needs at least two reasons")
        return value

    @classmethod
    def from_bar(
        cls,
        signal_type: SignalType,
        instrument_id: str,
        timestamp: int,
        bar: PriceBar,
        snapshot: IndicatorSnapshot,
        reasons: list[str],
    ) -> "TradingSignal":
        """Build a signal priced at the bar's close."""
        return cls(
            type=signal_type,
            instrument_id=instrument_id,
            timestamp=timestamp,
            price=bar.close,
            indicators=snapshot,
            reasons=tuple(reasons),
        )
