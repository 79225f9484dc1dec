"""Exchange client layer -- Bybit public market data via aiohttp."""

from tickerbot.exchange.bybit_client import BybitClient
from tickerbot.exchange.client import MarketDataClient
from tickerbot.exchange.rate_limiter import RateLimiter
from tickerbot.exchange.types import Kline, TickerRow, TickerSnapshot, parse_decimal

__all__ = [
    "BybitClient",
    "Kline",
    "MarketDataClient",
    "RateLimiter",
    "TickerRow",
    "TickerSnapshot",
    "parse_decimal",
]
