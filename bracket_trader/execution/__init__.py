# bracket_trader/execution/__init__.py
from __future__ import annotations
from .base import ExecutionGateway
from .paper import PaperGateway

def gateway_from_name(name: str, symbol: str, mode: str | None = None,
                      key: str | None = None, secret: str | None = None) -> ExecutionGateway:
    if name == "paper":
        return PaperGateway([symbol])
    from .binance import BinanceGateway
    return BinanceGateway(mode=mode, key=key, secret=secret)
