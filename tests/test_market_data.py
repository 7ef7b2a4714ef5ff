from datetime import datetime, timezone
import httpx
import pytest
from bracket_trader.data.binance import BinanceKlineProvider, parse_klines
from bracket_trader.data.mock_provider import MockProvider, interval_minutes
from bracket_trader.errors import ConnectivityError

H = 3_600_000
T0 = 1_700_000_000_000

def kline(i, close):
    return [T0 + i * H, "100.0", "101.0", "99.0", str(close), "12.5", T0 + (i + 1) * H - 1,
            "1250.0", 42, "6.0", "600.0", "0"]

def provider_with(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BinanceKlineProvider(mode="mainnet", client=client)

def test_parse_klines_orders_and_types():
    candles = parse_klines([kline(1, 101.5), kline(0, 100.5)])
    assert [c.close for c in candles] == [100.5, 101.5]
    first = candles[0]
    assert first.open_time == datetime.fromtimestamp(T0 / 1000, tz=timezone.utc)
    assert first.close_time > first.open_time
    assert (first.open, first.high, first.low, first.volume) == (100.0, 101.0, 99.0, 12.5)

def test_parse_klines_empty():
    assert parse_klines([]) == []

@pytest.mark.asyncio
async def test_fetch_klines_request():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = request.url
        return httpx.Response(200, json=[kline(i, 100 + i) for i in range(3)])

    mdp = provider_with(handler)
    candles = await mdp.get_recent_candles("BTCUSDT", "1h", limit=3)
    await mdp.close()

    assert seen["url"].path == "/api/v3/klines"
    assert seen["url"].params["symbol"] == "BTCUSDT"
    assert seen["url"].params["interval"] == "1h"
    assert seen["url"].params["limit"] == "3"
    assert [c.close for c in candles] == [100.0, 101.0, 102.0]

@pytest.mark.asyncio
async def test_http_error_is_connectivity_error():
    mdp = provider_with(lambda req: httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."}))
    with pytest.raises(ConnectivityError, match="400"):
        await mdp.get_recent_candles("NOPE", "1h")
    await mdp.close()

@pytest.mark.asyncio
async def test_transport_error_is_connectivity_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    mdp = provider_with(handler)
    with pytest.raises(ConnectivityError):
        await mdp.get_recent_candles("BTCUSDT", "1h")
    await mdp.close()

@pytest.mark.asyncio
async def test_mock_provider_shape():
    candles = await MockProvider(seed=1).get_recent_candles("BTCUSDT", "15m", limit=50)
    assert len(candles) == 50
    assert all(a.open_time < b.open_time for a, b in zip(candles, candles[1:]))
    assert all(c.low <= c.close <= c.high for c in candles)

def test_interval_minutes():
    assert interval_minutes("1h") == 60
    assert interval_minutes("15m") == 15
    assert interval_minutes("1d") == 1440
    assert interval_minutes("weird") == 60
