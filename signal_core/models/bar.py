"""Price bar (candlestick) data model."""

from pydantic import BaseModel, ConfigDict


class PriceBar(BaseModel):
    """One interval's OHLCV summary.

    Uses float for all numeric values and a Unix timestamp in
    milliseconds for the bar open time.
    """

    model_config = ConfigDict(frozen=True)

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) candle."""
        return self.close < self.open
