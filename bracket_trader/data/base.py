from __future__ import annotations
from abc import ABC, abstractmethod
from ..types import Candle

class MarketDataProvider(ABC):
    """Common interface for candle sources."""

    @abstractmethod
    async def get_recent_candles(self, symbol: str, interval: str, limit: int = 500) -> list[Candle]:
        """Return the latest `limit` candles, oldest first."""

    async def close(self) -> None:
        """Cleanup; override when holding an HTTP session."""
        return None
