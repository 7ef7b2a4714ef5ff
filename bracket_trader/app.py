# bracket_trader/app.py
from __future__ import annotations
import asyncio
import json
import logging
from dataclasses import asdict
from rich import print
from rich.table import Table
import typer
from .agent import TradingAgent
from .config import settings
from .data.base import MarketDataProvider
from .data.mock_provider import MockProvider
from .errors import ConnectivityError, TradingError
from .execution import ExecutionGateway, gateway_from_name
from .indicators import IndicatorEngine
from .logging_setup import setup_logging
from .scheduler import Scheduler
from .signal import SignalEngine
from .types import Open

cli = typer.Typer(help="Single-symbol RSI/SMA/MACD bracket trader for Binance spot.")
log = logging.getLogger("bracket_trader.app")


def _provider_from_name(name: str, mode: str) -> MarketDataProvider:
    if name == "mock":
        return MockProvider()
    from .data.binance import BinanceKlineProvider
    return BinanceKlineProvider(mode=mode)


def _normalize_symbol(symbol: str) -> str:
    symbol = symbol.strip().upper()
    if not symbol:
        raise typer.BadParameter("trading symbol must not be empty")
    return symbol


async def _validate_or_exit(gateway: ExecutionGateway, symbol: str) -> None:
    try:
        ok = await gateway.validate_symbol(symbol)
    except ConnectivityError as e:
        log.error(f"Could not validate {symbol}: {e}")
        raise typer.Exit(code=1)
    if not ok:
        log.error(f"Invalid symbol: {symbol}")
        raise typer.Exit(code=1)


# ============== RUN ==============

@cli.command()
def run(
    symbol: str = typer.Option("", help="Ex: BTCUSDT (prompted when empty)"),
    api_key: str = typer.Option(settings.binance_api_key or "", help="Binance API key (prompted when empty)"),
    api_secret: str = typer.Option(settings.binance_api_secret or "", help="Binance API secret (prompted when empty)"),
    mode: str = typer.Option(settings.binance_mode, help="mainnet | testnet"),
    interval: str = typer.Option(settings.kline_interval, help="Kline interval, ex: 1h"),
    limit: int = typer.Option(settings.kline_limit, help="Candles per cycle"),
    period: float = typer.Option(settings.poll_seconds, help="Seconds between cycles"),
    paper: bool = typer.Option(False, "--paper", help="Trade against the in-memory paper venue"),
    provider: str = typer.Option("binance", help="Candle source: binance | mock"),
    cycles: int = typer.Option(0, help="Stop after N ticks (0 = run forever)"),
):
    """
    Prompt for credentials + symbol, validate the symbol, then analyse and trade every PERIOD seconds.
    """
    setup_logging(settings.log_level, settings.log_file)
    if not paper:
        api_key = api_key or typer.prompt("Enter your Binance API key", hide_input=True)
        api_secret = api_secret or typer.prompt("Enter your Binance API secret", hide_input=True)
    symbol = _normalize_symbol(symbol or typer.prompt("Enter the trading pair (e.g., BTCUSDT)"))
    asyncio.run(_run(symbol, api_key, api_secret, mode, interval, limit, period, paper, provider, cycles))


async def _run(symbol: str, api_key: str, api_secret: str, mode: str, interval: str,
               limit: int, period: float, paper: bool, provider: str, cycles: int):
    gateway = gateway_from_name("paper" if paper else "binance", symbol, mode=mode, key=api_key, secret=api_secret)
    mdp = _provider_from_name(provider, mode)
    try:
        await _validate_or_exit(gateway, symbol)
        agent = TradingAgent(symbol, mdp, gateway, interval=interval, limit=limit)
        scheduler = Scheduler(agent.run_cycle, period=period, name=f"{symbol} cycle")
        log.info(f"Trading {symbol} on {interval} candles ({'paper' if paper else mode})")
        await scheduler.run(max_ticks=cycles or None)
    finally:
        await mdp.close()
        await gateway.close()


# ============== ANALYZE ==============

@cli.command()
def analyze(
    symbol: str = typer.Option(settings.default_symbol, help="Ex: BTCUSDT"),
    interval: str = typer.Option(settings.kline_interval, help="Kline interval, ex: 1h"),
    limit: int = typer.Option(settings.kline_limit, help="Candles to analyse"),
    provider: str = typer.Option("binance", help="binance | mock"),
    mode: str = typer.Option(settings.binance_mode, help="mainnet | testnet"),
    open_positions: int = typer.Option(0, help="Open-position count to decide with"),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """One dry cycle: indicators + decision, no orders sent."""
    setup_logging(settings.log_level, None)
    asyncio.run(_analyze(_normalize_symbol(symbol), interval, limit, provider, mode, open_positions, json_out))


async def _analyze(symbol: str, interval: str, limit: int, provider: str, mode: str,
                   open_positions: int, json_out: bool):
    mdp = _provider_from_name(provider, mode)
    try:
        candles = await mdp.get_recent_candles(symbol, interval, limit=limit)
        snap = IndicatorEngine().compute(candles)
        decision = SignalEngine().decide(snap, open_positions)
    except TradingError as e:
        print(f"[red]Analysis failed: {type(e).__name__}: {e}[/]")
        raise typer.Exit(code=1)
    finally:
        await mdp.close()

    if json_out:
        out = {
            "symbol": symbol,
            "interval": interval,
            "snapshot": asdict(snap),
            "decision": {"action": type(decision).__name__.lower(), **asdict(decision)},
        }
        print(json.dumps(out, ensure_ascii=False, indent=2))
        return

    print(f"[bold cyan]Loaded {len(candles)} candles for {symbol} / {interval}[/]")
    table = Table(title=f"{symbol} / {interval}", show_lines=True)
    table.add_column("Indicator"); table.add_column("Value")
    table.add_row("RSI(14)", f"{snap.rsi:.2f}")
    table.add_row("SMA(14)", f"{snap.moving_average:.6f}")
    table.add_row("MACD", f"{snap.macd.value:.6f}")
    table.add_row("MACD signal", f"{snap.macd.signal_line:.6f}")
    table.add_row("Volatility", f"{snap.volatility:.6f}")
    table.add_row("Price", f"{snap.current_price:.6f}")
    print(table)

    if isinstance(decision, Open):
        print(f"Decision: [bold]{decision.direction.upper()}[/]  qty={decision.quantity}  "
              f"SL={decision.stop_price:.6f}  TP={decision.take_profit_price:.6f}")
    else:
        print(f"Decision: [bold]HOLD[/] ({decision.reason})")


# ============== CHECK SYMBOL ==============

@cli.command(name="check-symbol")
def check_symbol(
    symbol: str = typer.Argument(..., help="Ex: BTCUSDT"),
    mode: str = typer.Option(settings.binance_mode, help="mainnet | testnet"),
):
    """Exit 0 when SYMBOL is listed and trading, 1 otherwise."""
    setup_logging(settings.log_level, None)
    asyncio.run(_check_symbol(_normalize_symbol(symbol), mode))


async def _check_symbol(symbol: str, mode: str):
    gateway = gateway_from_name("binance", symbol, mode=mode)
    await _validate_or_exit(gateway, symbol)
    print(f"[green]{symbol} is tradeable on {mode}[/]")


if __name__ == "__main__":
    cli()
