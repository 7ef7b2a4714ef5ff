from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict
from ..errors import OrderPlacementError
from ..types import (BracketLeg, BracketOrderResult, Direction, OrderAck,
                     ENTRY_SIDE, EXIT_SIDE)
from .filters import format_price, format_quantity

log = logging.getLogger(__name__)

# spot order types: stop / take-profit legs turn into market orders when triggered
MARKET = "MARKET"
STOP_LOSS = "STOP_LOSS"
TAKE_PROFIT = "TAKE_PROFIT"


def _upstream(e: BaseException) -> str:
    return str(e) or type(e).__name__


class ExecutionGateway(ABC):
    """
    Venue boundary: symbol metadata, open-order count and order submission.

    Subclasses provide the raw calls; the bracket sequence (entry, stop-loss,
    take-profit, and compensation when an exit leg fails) lives here so every
    venue gets the same failure behaviour.
    """

    @abstractmethod
    async def symbol_info(self, symbol: str) -> Dict[str, Any]:
        """Exchange metadata (status, filters) for one symbol."""

    @abstractmethod
    async def validate_symbol(self, symbol: str) -> bool:
        """False when the symbol is unlisted; ConnectivityError on transport/auth failure."""

    @abstractmethod
    async def open_position_count(self, symbol: str) -> int:
        """Number of open orders for the symbol, used as the open-position proxy."""

    @abstractmethod
    async def submit_order(self, symbol: str, side: str, order_type: str, quantity: str,
                           stop_price: str | None = None, leg: str = "") -> OrderAck:
        """Send one order; raise a TradingError subclass when it is not accepted."""

    @abstractmethod
    async def cancel_order(self, symbol: str, order_id: str) -> None:
        ...

    async def close(self) -> None:
        return None

    async def check_quantity(self, symbol: str, quantity: float, price: float) -> str:
        info = await self.symbol_info(symbol)
        return format_quantity(quantity, info, price=price)

    async def place_bracket_order(self, symbol: str, direction: Direction, quantity: float,
                                  stop_price: float, take_profit_price: float) -> BracketOrderResult:
        info = await self.symbol_info(symbol)
        qty = format_quantity(quantity, info)
        stop_px = format_price(stop_price, info)
        tp_px = format_price(take_profit_price, info)
        exit_side = EXIT_SIDE[direction]

        entry = await self._leg("entry", symbol, ENTRY_SIDE[direction], MARKET, qty)
        try:
            stop_loss = await self._leg("stop_loss", symbol, exit_side, STOP_LOSS, qty, stop_px)
        except OrderPlacementError as e:
            await self._fail_after_entry(e, direction, qty, entry, placed=("entry",), resting=[])
            raise
        try:
            take_profit = await self._leg("take_profit", symbol, exit_side, TAKE_PROFIT, qty, tp_px)
        except OrderPlacementError as e:
            await self._fail_after_entry(e, direction, qty, entry, placed=("entry", "stop_loss"),
                                         resting=[stop_loss])
            raise

        log.info(f"Bracket complete for {symbol}: entry={entry.order_id} "
                 f"stop_loss={stop_loss.order_id}@{stop_px} take_profit={take_profit.order_id}@{tp_px}")
        return BracketOrderResult(entry_order=entry, stop_loss_order=stop_loss, take_profit_order=take_profit)

    async def _leg(self, leg: BracketLeg, symbol: str, side: str, order_type: str, qty: str,
                   stop_price: str | None = None) -> OrderAck:
        at = f" @ {stop_price}" if stop_price else ""
        log.info(f"Placing {leg} order: {side} {order_type} {qty} {symbol}{at}")
        try:
            ack = await self.submit_order(symbol, side, order_type, qty, stop_price, leg=leg)
        except Exception as e:
            log.error(f"{leg} order failed for {symbol}: {_upstream(e)}")
            raise OrderPlacementError(leg, symbol, _upstream(e)) from e
        log.info(f"{leg} order placed: id={ack.order_id} status={ack.status} raw={ack.raw}")
        return ack

    async def _fail_after_entry(self, err: OrderPlacementError, direction: Direction, qty: str,
                                entry: OrderAck, placed: tuple[BracketLeg, ...],
                                resting: list[OrderAck]) -> None:
        """Fill in the error context and try to flatten the unprotected entry."""
        err.entry_order = entry
        err.placed_legs = placed
        orphaned = await self._cancel_resting(err.symbol, resting)
        err.orphaned_orders = tuple(orphaned)
        err.entry_closed = await self._close_entry(err.symbol, direction, qty, entry)
        err.args = (err._describe(),)
        if err.compensated:
            log.warning(f"Entry {entry.order_id} on {err.symbol} closed after {err.leg} leg failure")
            return
        if err.unprotected:
            log.critical(f"POSITION LEFT UNPROTECTED on {err.symbol}: entry order {entry.order_id} "
                         f"({direction} {qty}) is live without a complete bracket; manual action required")
        for order in orphaned:
            log.critical(f"ORPHANED {order.type} order {order.order_id} on {err.symbol} is still resting "
                         f"({order.side} {order.quantity} @ {order.stop_price}); cancel it manually")

    async def _cancel_resting(self, symbol: str, resting: list[OrderAck]) -> list[OrderAck]:
        """Cancel exit legs already on the book; return the ones that are still there."""
        left = []
        for order in resting:
            try:
                await self.cancel_order(symbol, order.order_id)
                log.info(f"Cancelled {order.type} order {order.order_id} on {symbol}")
            except Exception as e:
                left.append(order)
                log.error(f"Could not cancel {order.type} order {order.order_id} on {symbol}: {_upstream(e)}")
        return left

    async def _close_entry(self, symbol: str, direction: Direction, qty: str, entry: OrderAck) -> bool:
        try:
            ack = await self.submit_order(symbol, EXIT_SIDE[direction], MARKET, qty, leg="compensate")
        except Exception as e:
            log.error(f"Compensating close failed for entry {entry.order_id} on {symbol}: {_upstream(e)}")
            return False
        log.info(f"Compensating close placed for entry {entry.order_id}: id={ack.order_id}")
        return True
