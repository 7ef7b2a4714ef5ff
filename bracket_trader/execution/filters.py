from __future__ import annotations
from decimal import Decimal, ROUND_DOWN
from typing import Any, Dict
from ..errors import InvalidQuantity

DEFAULT_STEP = "0.00000001"

def find_filter(symbol_info: Dict[str, Any], ftype: str) -> Dict[str, Any] | None:
    for f in symbol_info.get("filters", []):
        if f.get("filterType") == ftype:
            return f
    return None

def floor_to_step(value: float, step: str) -> Decimal:
    """Floor `value` to a multiple of `step` without going through binary floats."""
    d_step = Decimal(step or DEFAULT_STEP)
    if d_step <= 0:
        d_step = Decimal(DEFAULT_STEP)
    q = Decimal(str(value))
    return (q / d_step).to_integral_value(rounding=ROUND_DOWN) * d_step

def to_plain(d: Decimal) -> str:
    """Fixed-point string, no exponent, no trailing zeros."""
    s = format(d.normalize(), "f")
    return s if s else "0"

def min_notional(symbol_info: Dict[str, Any]) -> float:
    f = find_filter(symbol_info, "NOTIONAL") or find_filter(symbol_info, "MIN_NOTIONAL")
    return float(f.get("minNotional", 0)) if f else 0.0

def format_price(price: float, symbol_info: Dict[str, Any]) -> str:
    pf = find_filter(symbol_info, "PRICE_FILTER")
    if not pf:
        return to_plain(Decimal(str(price)))
    return to_plain(floor_to_step(price, pf.get("tickSize", DEFAULT_STEP)))

def format_quantity(qty: float, symbol_info: Dict[str, Any], price: float | None = None) -> str:
    """
    Align qty to LOT_SIZE stepSize and check minQty (and minNotional when a
    reference price is given). Never bumps the size up: raises InvalidQuantity.
    """
    symbol = symbol_info.get("symbol", "?")
    if qty <= 0:
        raise InvalidQuantity(f"{symbol}: quantity must be > 0, got {qty}")

    lot = find_filter(symbol_info, "LOT_SIZE") or find_filter(symbol_info, "MARKET_LOT_SIZE")
    if lot:
        q = floor_to_step(qty, lot.get("stepSize", DEFAULT_STEP))
        min_qty = Decimal(lot.get("minQty", "0") or "0")
        if q <= 0 or q < min_qty:
            raise InvalidQuantity(f"{symbol}: quantity {qty} below minQty {min_qty} / stepSize {lot.get('stepSize')}")
    else:
        q = Decimal(str(qty))

    if price is not None:
        mn = min_notional(symbol_info)
        notional = float(q) * price
        if notional + 1e-12 < mn:
            raise InvalidQuantity(f"{symbol}: notional {notional:.8f} below minNotional {mn}")
    return to_plain(q)
