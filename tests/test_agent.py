import logging
import pytest
from bracket_trader.agent import TradingAgent
from bracket_trader.data.base import MarketDataProvider
from bracket_trader.errors import ConnectivityError, OrderRejected
from bracket_trader.execution import PaperGateway
from bracket_trader.types import Hold, Open
from conftest import candles_from_closes, snapshot

SYMBOL = "ETHUSDT"

class ListProvider(MarketDataProvider):
    def __init__(self, candles=None, error=None):
        self.candles, self.error = candles or [], error
        self.calls = []

    async def get_recent_candles(self, symbol, interval, limit=500):
        self.calls.append((symbol, interval, limit))
        if self.error:
            raise self.error
        return self.candles

class FixedIndicators:
    """Stands in for IndicatorEngine with a canned snapshot."""

    def __init__(self, snap):
        self.snap = snap

    def compute(self, candles):
        return self.snap

LONG = snapshot(rsi=25, ma=105, price=100, macd=1.2, signal=1.0, vol=0.01)
FLAT = [100.0 + (i % 3) * 0.1 for i in range(60)]

def agent(snap=LONG, gateway=None, provider=None):
    return TradingAgent(SYMBOL, provider or ListProvider(candles_from_closes(FLAT)),
                        gateway or PaperGateway([SYMBOL]), indicators=FixedIndicators(snap),
                        interval="1h", limit=60)

@pytest.mark.asyncio
async def test_long_cycle_places_bracket():
    gw = PaperGateway([SYMBOL])
    a = agent(gateway=gw)
    dec = await a.run_cycle()
    assert isinstance(dec, Open) and dec.direction == "long"
    assert [(o.side, o.type) for o in gw.orders] == [
        ("BUY", "MARKET"), ("SELL", "STOP_LOSS"), ("SELL", "TAKE_PROFIT")]
    assert a.market_data.calls == [(SYMBOL, "1h", 60)]

@pytest.mark.asyncio
async def test_resting_exit_legs_hit_position_limit():
    gw = PaperGateway([SYMBOL])
    a = agent(gateway=gw)
    await a.run_cycle()
    # the first bracket leaves 2 open orders, so the guard now holds
    dec = await a.run_cycle()
    assert isinstance(dec, Hold)
    assert "position limit" in dec.reason
    assert len(gw.orders) == 3

@pytest.mark.asyncio
async def test_hold_places_nothing():
    gw = PaperGateway([SYMBOL])
    dec = await agent(snap=snapshot(rsi=50), gateway=gw).run_cycle()
    assert dec == Hold("no signal")
    assert gw.orders == []

@pytest.mark.asyncio
async def test_real_indicators_end_to_end():
    gw = PaperGateway([SYMBOL])
    a = TradingAgent(SYMBOL, ListProvider(candles_from_closes(FLAT)), gw)
    dec = await a.run_cycle()
    assert dec is not None
    assert a.last_snapshot.current_price == FLAT[-1]

@pytest.mark.asyncio
async def test_fetch_failure_is_contained(caplog):
    a = agent(provider=ListProvider(error=ConnectivityError("HTTP 502")))
    with caplog.at_level(logging.INFO):
        assert await a.run_cycle() is None
    errors = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert any("phase 'fetch'" in m and SYMBOL in m and "HTTP 502" in m for m in errors)

@pytest.mark.asyncio
async def test_empty_candles_abort_before_decision(caplog):
    gw = PaperGateway([SYMBOL])
    a = TradingAgent(SYMBOL, ListProvider([]), gw)
    with caplog.at_level(logging.INFO):
        assert await a.run_cycle() is None
    assert any("InsufficientData" in r.getMessage() for r in caplog.records)
    assert gw.orders == []

@pytest.mark.asyncio
async def test_invalid_snapshot_is_contained():
    gw = PaperGateway([SYMBOL])
    assert await agent(snap=snapshot(price=None), gateway=gw).run_cycle() is None
    assert gw.orders == []

@pytest.mark.asyncio
async def test_zero_quantity_never_reaches_venue(caplog):
    gw = PaperGateway([SYMBOL])
    huge = snapshot(rsi=25, ma=2e8, price=1e8, macd=1.2, signal=1.0, vol=0.01)
    with caplog.at_level(logging.INFO):
        assert await agent(snap=huge, gateway=gw).run_cycle() is None
    assert gw.orders == []
    assert any("phase 'execute'" in r.getMessage() and "InvalidQuantity" in r.getMessage()
               for r in caplog.records)

class NoCloseGateway(PaperGateway):
    async def submit_order(self, symbol, side, order_type, quantity, stop_price=None, leg=""):
        if leg == "compensate":
            raise OrderRejected("rejected")
        return await super().submit_order(symbol, side, order_type, quantity, stop_price, leg=leg)

@pytest.mark.asyncio
async def test_unprotected_position_logged_critical(caplog):
    gw = NoCloseGateway([SYMBOL], reject_types={"TAKE_PROFIT"})
    with caplog.at_level(logging.INFO):
        assert await agent(gateway=gw).run_cycle() is None
    critical = [r.getMessage() for r in caplog.records if r.levelno == logging.CRITICAL]
    assert any("phase 'execute'" in m and "take_profit" in m for m in critical)

class StuckStopGateway(PaperGateway):
    async def cancel_order(self, symbol, order_id):
        raise OrderRejected("Unknown order sent.", code=-2011)

@pytest.mark.asyncio
async def test_orphaned_exit_order_logged_critical(caplog):
    gw = StuckStopGateway([SYMBOL], reject_types={"TAKE_PROFIT"})
    with caplog.at_level(logging.INFO):
        assert await agent(gateway=gw).run_cycle() is None
    cycle_errors = [r for r in caplog.records if "Cycle failed" in r.getMessage()]
    assert len(cycle_errors) == 1
    assert cycle_errors[0].levelno == logging.CRITICAL
    assert "ORPHANED ORDERS" in cycle_errors[0].getMessage()
    assert "UNPROTECTED" not in cycle_errors[0].getMessage()
