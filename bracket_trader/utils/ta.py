# bracket_trader/utils/ta.py
# Series come back trimmed to the valid part only (no NaN padding), so
# outputs are shorter than the input: SMA/EMA by period-1, RSI by period.
from __future__ import annotations
import numpy as np

def sma(values: np.ndarray, period: int) -> np.ndarray:
    if period <= 0: raise ValueError("period must be > 0")
    values = np.asarray(values, dtype=float)
    if len(values) < period:
        return np.empty(0, dtype=float)
    cumsum = np.cumsum(values, dtype=float)
    return (cumsum[period-1:] - np.concatenate(([0.0], cumsum[:-period]))) / period

def ema(values: np.ndarray, period: int) -> np.ndarray:
    """EMA seeded with the SMA of the first `period` values."""
    if period <= 0: raise ValueError("period must be > 0")
    values = np.asarray(values, dtype=float)
    if len(values) < period:
        return np.empty(0, dtype=float)
    alpha = 2 / (period + 1.0)
    out = np.empty(len(values) - period + 1, dtype=float)
    out[0] = values[:period].mean()
    for i, v in enumerate(values[period:], start=1):
        out[i] = alpha * v + (1 - alpha) * out[i-1]
    return out

def rsi(values: np.ndarray, period: int = 14) -> np.ndarray:
    """Wilder RSI; first value needs period+1 prices."""
    if period <= 0: raise ValueError("period must be > 0")
    values = np.asarray(values, dtype=float)
    if len(values) <= period:
        return np.empty(0, dtype=float)
    diff = np.diff(values)
    gain = np.where(diff > 0, diff, 0.0)
    loss = np.where(diff < 0, -diff, 0.0)

    avg_gain = np.empty(len(diff) - period + 1, dtype=float)
    avg_loss = np.empty_like(avg_gain)
    avg_gain[0] = gain[:period].mean()
    avg_loss[0] = loss[:period].mean()
    for i in range(1, len(avg_gain)):
        avg_gain[i] = (avg_gain[i-1] * (period - 1) + gain[period + i - 1]) / period
        avg_loss[i] = (avg_loss[i-1] * (period - 1) + loss[period + i - 1]) / period

    rs = np.divide(avg_gain, avg_loss, out=np.zeros_like(avg_gain), where=avg_loss != 0)
    out = 100 - (100 / (1 + rs))
    # no losses at all -> fully overbought (flat series stays at 100 too)
    out[avg_loss == 0] = 100.0
    return out

def macd(values: np.ndarray, fast: int = 12, slow: int = 26, signal_p: int = 9):
    """
    MACD on exponential averages. The line starts when the slow EMA exists;
    during warm-up (fewer than `signal_p` line values) the signal period
    shrinks to what is available.
    """
    if fast >= slow: raise ValueError("fast period must be < slow period")
    ema_f = ema(values, fast)
    ema_s = ema(values, slow)
    if len(ema_s) == 0:
        empty = np.empty(0, dtype=float)
        return empty, empty, empty
    macd_line = ema_f[-len(ema_s):] - ema_s
    signal = ema(macd_line, min(signal_p, len(macd_line)))
    hist = macd_line[-len(signal):] - signal
    return macd_line, signal, hist

def population_std(values: np.ndarray) -> float:
    values = np.asarray(values, dtype=float)
    if len(values) == 0: raise ValueError("values must not be empty")
    return float(np.std(values, ddof=0))
