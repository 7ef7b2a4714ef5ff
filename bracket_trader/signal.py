# bracket_trader/signal.py
from __future__ import annotations
import math
from .errors import InvalidSnapshot
from .types import Direction, Hold, IndicatorSnapshot, Open, TradeDecision

def bracket_prices(direction: Direction, price: float, pct: float) -> tuple[float, float]:
    """(stop, take_profit) a fixed percentage either side of the price."""
    if direction == "long":
        return price * (1 - pct), price * (1 + pct)
    return price * (1 + pct), price * (1 - pct)

def quantity_for_notional(notional: float, price: float, precision: int = 6) -> float:
    return round(notional / price, precision)

def _check(snapshot: IndicatorSnapshot) -> None:
    price = getattr(snapshot, "current_price", None)
    if price is None or not math.isfinite(price) or price <= 0:
        raise InvalidSnapshot(f"current_price must be a positive number, got {price!r}")
    macd = getattr(snapshot, "macd", None)
    fields = {
        "rsi": getattr(snapshot, "rsi", None),
        "moving_average": getattr(snapshot, "moving_average", None),
        "macd.value": getattr(macd, "value", None),
        "macd.signal_line": getattr(macd, "signal_line", None),
        "volatility": getattr(snapshot, "volatility", None),
    }
    for name, v in fields.items():
        if v is None or not math.isfinite(v):
            raise InvalidSnapshot(f"{name} must be a finite number, got {v!r}")


class SignalEngine:
    """
    RSI + SMA + MACD + volatility rule with a per-symbol position cap.

    `decide` is pure: no logging, no I/O, same inputs give the same decision.
    """

    def __init__(self, position_limit: int = 2, rsi_oversold: float = 30, rsi_overbought: float = 70,
                 volatility_threshold: float = 0.005, bracket_pct: float = 0.05,
                 min_notional: float = 5.0, quantity_precision: int = 6):
        self.position_limit = position_limit
        self.rsi_oversold, self.rsi_overbought = rsi_oversold, rsi_overbought
        self.volatility_threshold = volatility_threshold
        self.bracket_pct = bracket_pct
        self.min_notional = min_notional
        self.quantity_precision = quantity_precision

    def is_long(self, s: IndicatorSnapshot) -> bool:
        return (s.rsi < self.rsi_oversold
                and s.moving_average > s.current_price
                and s.macd.value > s.macd.signal_line
                and s.volatility > self.volatility_threshold)

    def is_short(self, s: IndicatorSnapshot) -> bool:
        return (s.rsi > self.rsi_overbought
                and s.moving_average < s.current_price
                and s.macd.value < s.macd.signal_line
                and s.volatility > self.volatility_threshold)

    def decide(self, snapshot: IndicatorSnapshot, open_positions: int) -> TradeDecision:
        _check(snapshot)
        if open_positions >= self.position_limit:
            return Hold(f"position limit reached ({open_positions}/{self.position_limit})")

        # long first, then short; the two can never both hold
        if self.is_long(snapshot):
            direction: Direction = "long"
        elif self.is_short(snapshot):
            direction = "short"
        else:
            return Hold("no signal")

        price = snapshot.current_price
        stop, take_profit = bracket_prices(direction, price, self.bracket_pct)
        return Open(
            direction=direction,
            entry_price=price,
            stop_price=stop,
            take_profit_price=take_profit,
            quantity=quantity_for_notional(self.min_notional, price, self.quantity_precision),
        )
