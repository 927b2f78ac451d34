"""Order book snapshot data model."""

from pydantic import BaseModel, ConfigDict


class OrderBookSnapshot(BaseModel):
    """Top-of-book depth captured at one instant."""

    model_config = ConfigDict(frozen=True)

    instrument_id: str
    timestamp: int  # Unix timestamp in milliseconds
    bids: tuple[tuple[float, float], ...]  # (price, quantity), best first
    asks: tuple[tuple[float, float], ...]

    @property
    def best_bid(self) -> float | None:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return self.asks[0][0] if self.asks else None

    @property
    def spread(self) -> float | None:
        if self.best_bid is None or self.best_ask is None:
            return None
        return self.best_ask - self.best_bid
