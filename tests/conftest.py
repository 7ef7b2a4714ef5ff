import logging
from datetime import datetime, timedelta, timezone
import pytest
from bracket_trader.types import Candle, IndicatorSnapshot, MacdPoint

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

def candles_from_closes(closes, step=timedelta(hours=1)):
    out = []
    for i, c in enumerate(closes):
        t = T0 + step * i
        out.append(Candle(open_time=t, open=c, high=c * 1.001, low=c * 0.999, close=c,
                          volume=1.0, close_time=t + step))
    return out

def snapshot(rsi=50.0, ma=100.0, price=100.0, macd=0.0, signal=0.0, vol=0.01):
    return IndicatorSnapshot(rsi=rsi, moving_average=ma, macd=MacdPoint(macd, signal),
                             volatility=vol, current_price=price)

@pytest.fixture
def make_candles():
    return candles_from_closes

@pytest.fixture(autouse=True)
def reset_package_logger():
    """CLI commands install handlers on the package logger; undo that between tests."""
    yield
    logger = logging.getLogger("bracket_trader")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
