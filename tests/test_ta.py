import numpy as np
import pytest
from bracket_trader.utils.ta import sma, ema, rsi, macd, population_std

def test_sma_only_full_windows():
    assert sma(np.array([1, 2, 3, 4, 5.0]), 3).tolist() == [2.0, 3.0, 4.0]
    assert len(sma(np.array([1, 2.0]), 3)) == 0

def test_ema_seeded_with_sma():
    # seed = mean(1,2,3) = 2, alpha = 0.5
    assert ema(np.array([1, 2, 3, 4, 5.0]), 3).tolist() == [2.0, 3.0, 4.0]

def test_rsi_wilder_small_period():
    # diffs 1, 1, -1 -> first avg loss 0 (100), then gain=loss=0.5 (50)
    assert rsi(np.array([1, 2, 3, 2.0]), 2).tolist() == pytest.approx([100.0, 50.0])

def test_rsi_extremes():
    up = np.arange(1, 40, dtype=float)
    down = up[::-1]
    assert rsi(up, 14)[-1] == 100.0
    assert rsi(down, 14)[-1] == 0.0
    assert len(rsi(up[:14], 14)) == 0

def test_macd_signal_shrinks_during_warmup():
    closes = np.linspace(100, 120, 27)
    line, signal, hist = macd(closes, 12, 26, 9)
    assert len(line) == 2
    assert len(signal) == 1
    assert np.isfinite(signal[-1])
    assert hist[-1] == pytest.approx(line[-1] - signal[-1])

def test_macd_empty_before_slow_period():
    line, signal, _ = macd(np.linspace(1, 2, 25), 12, 26, 9)
    assert len(line) == 0 and len(signal) == 0

def test_population_std():
    assert population_std(np.array([2, 4, 4, 4, 5, 5, 7, 9.0])) == pytest.approx(2.0)
    with pytest.raises(ValueError):
        population_std(np.array([]))
