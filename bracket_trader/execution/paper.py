from __future__ import annotations
import itertools
import logging
from typing import Any, Dict, Iterable
from ..errors import OrderRejected
from ..types import OrderAck
from .base import ExecutionGateway, MARKET

log = logging.getLogger(__name__)

def default_symbol_info(symbol: str) -> Dict[str, Any]:
    return {
        "symbol": symbol,
        "status": "TRADING",
        "filters": [
            {"filterType": "PRICE_FILTER", "tickSize": "0.01"},
            {"filterType": "LOT_SIZE", "stepSize": "0.000001", "minQty": "0.000001"},
            {"filterType": "NOTIONAL", "minNotional": "1"},
        ],
    }

class PaperGateway(ExecutionGateway):
    """
    In-memory venue. MARKET orders fill at once; stop / take-profit orders
    rest in the open-order book (and so count toward the position guard)
    until cancelled. `reject_types` makes orders of those types fail.
    """

    def __init__(self, symbols: Iterable[str] | Dict[str, Dict[str, Any]] = (),
                 reject_types: Iterable[str] = ()):
        if isinstance(symbols, dict):
            self.symbols = dict(symbols)
        else:
            self.symbols = {s: default_symbol_info(s) for s in symbols}
        self.reject_types = set(reject_types)
        self.orders: list[OrderAck] = []
        self.open_orders: dict[str, OrderAck] = {}
        self._ids = itertools.count(1)

    async def symbol_info(self, symbol: str) -> Dict[str, Any]:
        return self.symbols[symbol]

    async def validate_symbol(self, symbol: str) -> bool:
        return symbol in self.symbols and self.symbols[symbol].get("status") == "TRADING"

    async def open_position_count(self, symbol: str) -> int:
        return sum(1 for o in self.open_orders.values() if o.symbol == symbol)

    async def submit_order(self, symbol: str, side: str, order_type: str, quantity: str,
                           stop_price: str | None = None, leg: str = "") -> OrderAck:
        if order_type in self.reject_types:
            raise OrderRejected(f"paper venue rejects {order_type} orders", code=-2010)
        order_id = str(next(self._ids))
        status = "FILLED" if order_type == MARKET else "NEW"
        ack = OrderAck(order_id=order_id, client_order_id=f"paper_{leg}_{order_id}", symbol=symbol,
                       side=side, type=order_type, quantity=quantity, stop_price=stop_price,
                       status=status, raw={"leg": leg})
        self.orders.append(ack)
        if status == "NEW":
            self.open_orders[order_id] = ack
        log.debug(f"paper {side} {order_type} {quantity} {symbol} -> {order_id} ({status})")
        return ack

    async def cancel_order(self, symbol: str, order_id: str) -> None:
        if self.open_orders.pop(order_id, None) is None:
            raise OrderRejected(f"unknown order {order_id}", code=-2011)
