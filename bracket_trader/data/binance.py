from __future__ import annotations
import httpx
import pandas as pd
from ..config import settings, base_url
from ..errors import ConnectivityError
from ..types import Candle
from .base import MarketDataProvider

KLINE_COLUMNS = [
    "open_time", "open", "high", "low", "close", "volume", "close_time",
    "quote_volume", "trades", "taker_base", "taker_quote", "ignore",
]

def parse_klines(rows: list[list]) -> list[Candle]:
    """Binance kline rows -> Candles sorted by open time."""
    if not rows:
        return []
    df = pd.DataFrame([r[:7] for r in rows], columns=KLINE_COLUMNS[:7])
    for col in ("open", "high", "low", "close", "volume"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df["open_time"] = pd.to_datetime(df["open_time"], unit="ms", utc=True)
    df["close_time"] = pd.to_datetime(df["close_time"], unit="ms", utc=True)
    df = df.dropna(subset=["close"]).sort_values("open_time")
    return [
        Candle(open_time=row.open_time.to_pydatetime(),
               open=float(row.open), high=float(row.high), low=float(row.low),
               close=float(row.close), volume=float(row.volume),
               close_time=row.close_time.to_pydatetime())
        for row in df.itertuples(index=False)
    ]

class BinanceKlineProvider(MarketDataProvider):
    """Public /api/v3/klines endpoint; no credentials needed."""

    def __init__(self, mode: str | None = None, timeout: float | None = None,
                 client: httpx.AsyncClient | None = None):
        self.base_url = base_url(mode or settings.binance_mode)
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.http_timeout)

    async def get_recent_candles(self, symbol: str, interval: str, limit: int = 500) -> list[Candle]:
        params = {"symbol": symbol, "interval": interval, "limit": min(limit, 1000)}
        try:
            r = await self._client.get(f"{self.base_url}/api/v3/klines", params=params)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ConnectivityError(f"klines {symbol}/{interval}: HTTP {e.response.status_code} {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise ConnectivityError(f"klines {symbol}/{interval}: {e}") from e
        data = r.json()
        if not isinstance(data, list):
            raise ConnectivityError(f"klines {symbol}/{interval}: unexpected response {str(data)[:200]}")
        return parse_klines(data)

    async def close(self) -> None:
        await self._client.aclose()
