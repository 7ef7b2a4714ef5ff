# bracket_trader/indicators.py
from __future__ import annotations
from typing import Sequence
import numpy as np
from .errors import InsufficientData
from .types import Candle, IndicatorSnapshot, MacdPoint
from .utils.ta import sma, rsi, macd, population_std

def closes_of(candles: Sequence[Candle]) -> np.ndarray:
    return np.array([c.close for c in candles], dtype=float)

def _last(series: np.ndarray, name: str, n: int) -> float:
    if len(series) == 0:
        raise InsufficientData(f"{name}: no value from {n} closing prices")
    return float(series[-1])

class IndicatorEngine:
    def __init__(self, rsi_period: int = 14, ma_period: int = 14,
                 macd_fast: int = 12, macd_slow: int = 26, macd_signal: int = 9):
        self.rsi_period, self.ma_period = rsi_period, ma_period
        self.macd_fast, self.macd_slow, self.macd_signal = macd_fast, macd_slow, macd_signal

    def compute(self, candles: Sequence[Candle]) -> IndicatorSnapshot:
        return self.compute_from_closes(closes_of(candles))

    def compute_from_closes(self, closes: np.ndarray) -> IndicatorSnapshot:
        """Latest RSI / SMA / MACD and whole-window volatility from closes (oldest first)."""
        n = len(closes)
        if n == 0:
            raise InsufficientData("no closing prices")

        r = rsi(closes, self.rsi_period)
        ma = sma(closes, self.ma_period)
        macd_line, signal, _ = macd(closes, self.macd_fast, self.macd_slow, self.macd_signal)

        return IndicatorSnapshot(
            rsi=_last(r, "RSI", n),
            moving_average=_last(ma, "SMA", n),
            macd=MacdPoint(value=_last(macd_line, "MACD", n), signal_line=_last(signal, "MACD signal", n)),
            volatility=population_std(closes),
            current_price=float(closes[-1]),
        )
