from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import BracketLeg, OrderAck


class TradingError(Exception):
    """Base class for everything a cycle can fail with."""


class ConnectivityError(TradingError):
    """Transport or authentication failure talking to the venue."""


class InsufficientData(TradingError):
    """Too few (or no) closing prices to compute the indicators."""


class InvalidSnapshot(TradingError):
    """An indicator snapshot with missing or non-finite fields."""


class InvalidQuantity(TradingError):
    """Order size rejected by the venue's lot-size / notional rules before submission."""


class OrderRejected(TradingError):
    """The venue answered but refused the order (balance, filters, order type...)."""

    def __init__(self, message: str, code: int | None = None):
        self.code = code
        super().__init__(message)


class OrderPlacementError(TradingError):
    """
    One leg of a bracket failed.

    `placed_legs` lists the legs acknowledged before the failure and
    `entry_order` is the live entry (None when the entry leg itself failed).
    After a failed exit leg, `entry_closed` records whether the compensating
    market close went through and `orphaned_orders` holds resting exit
    orders that could not be cancelled.
    """

    def __init__(
        self,
        leg: BracketLeg,
        symbol: str,
        upstream: str,
        entry_order: OrderAck | None = None,
        placed_legs: tuple[BracketLeg, ...] = (),
        entry_closed: bool = False,
        orphaned_orders: tuple[OrderAck, ...] = (),
    ):
        self.leg = leg
        self.symbol = symbol
        self.upstream = upstream
        self.entry_order = entry_order
        self.placed_legs = placed_legs
        self.entry_closed = entry_closed
        self.orphaned_orders = orphaned_orders
        super().__init__(self._describe())

    @property
    def unprotected(self) -> bool:
        """The entry position is still open without its full bracket."""
        return self.entry_order is not None and not self.entry_closed

    @property
    def compensated(self) -> bool:
        return self.entry_order is not None and self.entry_closed and not self.orphaned_orders

    @property
    def needs_operator(self) -> bool:
        return self.unprotected or bool(self.orphaned_orders)

    def _describe(self) -> str:
        msg = f"{self.leg} leg failed for {self.symbol}: {self.upstream}"
        if self.entry_order is None:
            return msg
        msg += f" (entry order {self.entry_order.order_id}, placed={list(self.placed_legs)}"
        if self.unprotected:
            msg += ", POSITION LEFT UNPROTECTED"
        else:
            msg += ", entry closed"
        if self.orphaned_orders:
            ids = ", ".join(f"{o.type} {o.order_id}" for o in self.orphaned_orders)
            msg += f", ORPHANED ORDERS STILL RESTING: {ids}"
        return msg + ")"
