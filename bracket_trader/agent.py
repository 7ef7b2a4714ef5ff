# bracket_trader/agent.py
from __future__ import annotations
import logging
from .data.base import MarketDataProvider
from .errors import OrderPlacementError
from .execution.base import ExecutionGateway
from .indicators import IndicatorEngine
from .signal import SignalEngine
from .types import IndicatorSnapshot, Open, TradeDecision

log = logging.getLogger(__name__)


class TradingAgent:
    """
    One symbol, one analysis cycle at a time: fetch -> compute -> decide -> execute.

    `run_cycle` never raises; failures are logged with the phase they
    happened in and the cycle returns None.
    """

    def __init__(self, symbol: str, market_data: MarketDataProvider, gateway: ExecutionGateway,
                 indicators: IndicatorEngine | None = None, signals: SignalEngine | None = None,
                 interval: str = "1h", limit: int = 500):
        self.symbol = symbol
        self.market_data = market_data
        self.gateway = gateway
        self.indicators = indicators or IndicatorEngine()
        self.signals = signals or SignalEngine()
        self.interval = interval
        self.limit = limit
        self.last_snapshot: IndicatorSnapshot | None = None

    async def run_cycle(self) -> TradeDecision | None:
        phase = "fetch"
        try:
            candles = await self.market_data.get_recent_candles(self.symbol, self.interval, limit=self.limit)

            phase = "compute"
            snap = self.indicators.compute(candles)
            self.last_snapshot = snap
            self._log_snapshot(snap)

            phase = "decide"
            open_positions = await self.gateway.open_position_count(self.symbol)
            log.info(f"Open Positions: {open_positions}")
            decision = self.signals.decide(snap, open_positions)
            self._log_decision(decision)

            if isinstance(decision, Open):
                phase = "execute"
                await self.gateway.check_quantity(self.symbol, decision.quantity, decision.entry_price)
                await self.gateway.place_bracket_order(
                    self.symbol, decision.direction, decision.quantity,
                    decision.stop_price, decision.take_profit_price,
                )
            return decision
        except OrderPlacementError as e:
            level = logging.CRITICAL if e.needs_operator else logging.ERROR
            log.log(level, f"Cycle failed for {self.symbol} in phase '{phase}': {e}")
        except Exception as e:
            log.error(f"Cycle failed for {self.symbol} in phase '{phase}': {type(e).__name__}: {e}")
        return None

    def _log_snapshot(self, s: IndicatorSnapshot) -> None:
        qty = self.signals.min_notional / s.current_price if s.current_price else float("nan")
        log.info(f"RSI: {s.rsi:.2f}")
        log.info(f"MA: {s.moving_average}")
        log.info(f"MACD: value={s.macd.value} signal={s.macd.signal_line}")
        log.info(f"Volatility: {s.volatility}")
        log.info(f"Current Price: {s.current_price}")
        log.info(f"Calculated Quantity: {qty:.{self.signals.quantity_precision}f}")

    def _log_decision(self, d: TradeDecision) -> None:
        if isinstance(d, Open):
            log.info(f"Opening a {d.direction} position for {self.symbol}: qty={d.quantity} "
                     f"entry~{d.entry_price} stop={d.stop_price} take_profit={d.take_profit_price}")
        elif d.reason.startswith("position limit"):
            log.info(f"Position limit reached for {self.symbol}: {d.reason}")
        else:
            log.info(f"No trade signal for {self.symbol}")
