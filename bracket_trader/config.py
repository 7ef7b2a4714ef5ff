from __future__ import annotations
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseModel):
    binance_api_key: str | None = os.getenv("BINANCE_API_KEY")
    binance_api_secret: str | None = os.getenv("BINANCE_API_SECRET")
    binance_mode: str = os.getenv("BINANCE_MODE", "mainnet")  # mainnet | testnet
    default_symbol: str = os.getenv("DEFAULT_SYMBOL", "BTCUSDT")
    kline_interval: str = os.getenv("KLINE_INTERVAL", "1h")
    kline_limit: int = int(os.getenv("KLINE_LIMIT", "500"))
    poll_seconds: float = float(os.getenv("POLL_SECONDS", "5"))
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "15"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("LOG_FILE", "bot.log")

settings = Settings()

BASE_URLS = {
    "mainnet": "https://api.binance.com",
    "testnet": "https://testnet.binance.vision",
}

def base_url(mode: str) -> str:
    return BASE_URLS.get(mode.lower(), BASE_URLS["mainnet"])
