from __future__ import annotations
from datetime import datetime, timedelta, timezone
import math
import random
from ..types import Candle
from .base import MarketDataProvider

_INTERVAL_MINUTES = {"m": 1, "h": 60, "d": 1440, "w": 10080}

def interval_minutes(interval: str) -> int:
    try:
        return int(interval[:-1]) * _INTERVAL_MINUTES[interval[-1]]
    except (KeyError, ValueError):
        return 60

class MockProvider(MarketDataProvider):
    """Seeded random walk; used by `analyze --provider mock` and paper runs."""

    def __init__(self, seed: int = 42, start_price: float = 100.0):
        self._rnd = random.Random(seed)
        self.start_price = start_price

    async def get_recent_candles(self, symbol: str, interval: str, limit: int = 500) -> list[Candle]:
        now = datetime.now(timezone.utc)
        step = timedelta(minutes=interval_minutes(interval))
        candles: list[Candle] = []
        price = self.start_price

        for i in range(limit):
            t = now - step * (limit - i)
            noise = (self._rnd.random() - 0.5) * 0.02 * price
            open_ = price
            price = max(0.01, price + noise + 0.005 * price * math.sin(i / 12))
            high = max(open_, price) + abs(noise) * 0.5
            low = max(0.001, min(open_, price) - abs(noise) * 0.5)
            candles.append(Candle(open_time=t, open=open_, high=high, low=low, close=price,
                                  volume=self._rnd.uniform(1, 100), close_time=t + step))
        return candles
