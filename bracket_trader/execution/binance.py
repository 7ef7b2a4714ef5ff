from __future__ import annotations
import asyncio
import logging
import time
import uuid
from typing import Any, Dict
import requests
from binance.spot import Spot
from binance.error import ClientError, Error as BinanceError
from ..config import settings, base_url
from ..errors import ConnectivityError, OrderRejected
from ..types import OrderAck
from .base import ExecutionGateway

log = logging.getLogger(__name__)

RECV_WINDOW = 10000
INVALID_SYMBOL = -1121
TIMESTAMP_OUTSIDE_RECV_WINDOW = -1021


def build_spot_client(mode: str, key: str | None, secret: str | None, timeout: float | None = None) -> Spot:
    return Spot(api_key=key or "", api_secret=secret or "", base_url=base_url(mode),
                timeout=timeout or settings.http_timeout)


def _describe(e: Exception) -> str:
    if isinstance(e, ClientError):
        return f"[{e.error_code}] {e.error_message} (HTTP {e.status_code})"
    return str(e) or type(e).__name__


def ack_from_response(resp: Dict[str, Any], symbol: str, side: str, order_type: str,
                      quantity: str, stop_price: str | None) -> OrderAck:
    return OrderAck(
        order_id=str(resp.get("orderId", "")),
        client_order_id=str(resp.get("clientOrderId", "")),
        symbol=resp.get("symbol", symbol),
        side=resp.get("side", side),
        type=resp.get("type", order_type),
        quantity=str(resp.get("origQty", quantity)),
        stop_price=stop_price,
        status=resp.get("status", ""),
        raw=resp,
    )


class BinanceGateway(ExecutionGateway):
    """
    Binance spot over binance-connector; blocking calls run in a worker thread.

    Signed requests carry a timestamp corrected by the server clock offset,
    which is fetched on first use and again whenever Binance answers -1021.
    """

    def __init__(self, mode: str | None = None, key: str | None = None, secret: str | None = None,
                 client: Spot | None = None):
        self.mode = mode or settings.binance_mode
        self.client = client or build_spot_client(self.mode, key or settings.binance_api_key,
                                                  secret or settings.binance_api_secret)
        self._exinfo_cache: dict[str, dict] = {}
        self._time_offset_ms: int | None = None

    async def sync_time(self) -> None:
        try:
            st = await asyncio.to_thread(self.client.time)
            self._time_offset_ms = int(st["serverTime"]) - int(time.time() * 1000)
        except (BinanceError, requests.RequestException, KeyError, TypeError, ValueError) as e:
            log.warning(f"Server time sync failed, signing with the local clock: {_describe(e)}")
            self._time_offset_ms = 0
        else:
            log.debug(f"Server time offset: {self._time_offset_ms} ms")

    def _ts(self) -> int:
        return int(time.time() * 1000) + (self._time_offset_ms or 0)

    async def _signed(self, method: str, **params):
        """Call a signed endpoint; resync the clock and retry once on -1021."""
        if self._time_offset_ms is None:
            await self.sync_time()
        fn = getattr(self.client, method)
        try:
            return await asyncio.to_thread(fn, recvWindow=RECV_WINDOW, timestamp=self._ts(), **params)
        except ClientError as e:
            if e.error_code != TIMESTAMP_OUTSIDE_RECV_WINDOW:
                raise
            log.warning(f"{method} rejected for clock drift ({_describe(e)}); resyncing server time")
            await self.sync_time()
            return await asyncio.to_thread(fn, recvWindow=RECV_WINDOW, timestamp=self._ts(), **params)

    async def _call(self, method: str, signed: bool = False, **params):
        try:
            if signed:
                return await self._signed(method, **params)
            return await asyncio.to_thread(getattr(self.client, method), **params)
        except (BinanceError, requests.RequestException) as e:
            raise ConnectivityError(f"{method}: {_describe(e)}") from e

    async def symbol_info(self, symbol: str) -> dict:
        if symbol in self._exinfo_cache:
            return self._exinfo_cache[symbol]
        data = await self._call("exchange_info", symbol=symbol)
        symbols = data.get("symbols") or []
        if not symbols:
            raise ConnectivityError(f"exchange_info: no metadata for {symbol}")
        info = symbols[0]
        self._exinfo_cache[symbol] = info
        return info

    async def validate_symbol(self, symbol: str) -> bool:
        try:
            data = await asyncio.to_thread(self.client.exchange_info, symbol=symbol)
        except ClientError as e:
            if e.error_code == INVALID_SYMBOL:
                log.warning(f"Symbol {symbol} is not listed: {e.error_message}")
                return False
            raise ConnectivityError(f"exchange_info: {_describe(e)}") from e
        except (BinanceError, requests.RequestException) as e:
            raise ConnectivityError(f"exchange_info: {_describe(e)}") from e

        match = [s for s in data.get("symbols", []) if s.get("symbol") == symbol]
        if not match:
            return False
        self._exinfo_cache[symbol] = match[0]
        status = match[0].get("status", "TRADING")
        if status != "TRADING":
            log.warning(f"Symbol {symbol} is listed but not tradeable (status={status})")
            return False
        return True

    async def open_position_count(self, symbol: str) -> int:
        orders = await self._call("get_open_orders", signed=True, symbol=symbol)
        return len(orders)

    async def submit_order(self, symbol: str, side: str, order_type: str, quantity: str,
                           stop_price: str | None = None, leg: str = "") -> OrderAck:
        params: dict[str, Any] = {
            "symbol": symbol, "side": side, "type": order_type,
            "quantity": quantity,
            "newClientOrderId": f"bt_{leg or 'order'}_{uuid.uuid4().hex[:16]}",
        }
        if stop_price is not None:
            params["stopPrice"] = stop_price
        try:
            resp = await self._signed("new_order", **params)
        except ClientError as e:
            raise OrderRejected(_describe(e), code=e.error_code) from e
        except (BinanceError, requests.RequestException) as e:
            raise ConnectivityError(f"new_order: {_describe(e)}") from e
        return ack_from_response(resp, symbol, side, order_type, quantity, stop_price)

    async def cancel_order(self, symbol: str, order_id: str) -> None:
        await self._call("cancel_order", signed=True, symbol=symbol, orderId=int(order_id))
