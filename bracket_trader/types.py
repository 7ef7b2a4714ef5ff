from __future__ import annotations
from dataclasses import dataclass, field
from typing import Literal, Union
from datetime import datetime

Direction = Literal["long", "short"]
BracketLeg = Literal["entry", "stop_loss", "take_profit"]

ENTRY_SIDE: dict[Direction, str] = {"long": "BUY", "short": "SELL"}
EXIT_SIDE: dict[Direction, str] = {"long": "SELL", "short": "BUY"}

@dataclass(slots=True, frozen=True)
class Candle:
    open_time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: datetime

@dataclass(slots=True, frozen=True)
class MacdPoint:
    value: float
    signal_line: float

@dataclass(slots=True, frozen=True)
class IndicatorSnapshot:
    rsi: float
    moving_average: float
    macd: MacdPoint
    volatility: float  # >= 0
    current_price: float

@dataclass(slots=True, frozen=True)
class Hold:
    reason: str = ""

@dataclass(slots=True, frozen=True)
class Open:
    direction: Direction
    entry_price: float
    stop_price: float
    take_profit_price: float
    quantity: float

TradeDecision = Union[Hold, Open]

@dataclass(slots=True)
class OrderAck:
    order_id: str
    symbol: str
    side: str
    type: str
    quantity: str
    stop_price: str | None = None
    status: str = ""
    client_order_id: str = ""
    raw: dict = field(default_factory=dict)

@dataclass(slots=True)
class BracketOrderResult:
    entry_order: OrderAck
    stop_loss_order: OrderAck
    take_profit_order: OrderAck
