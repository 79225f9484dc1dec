"""Bybit v5 public market-data client over aiohttp.

Every request goes through the shared RateLimiter, is bounded by a total
timeout and is never retried. Failures are mapped onto the MarketDataError
taxonomy:

- connection errors, timeouts, body-read errors -> TransportError
- non-2xx HTTP status (checked before decoding)  -> HttpStatusError
- invalid JSON or unexpected payload shape       -> DecodeError
- retCode != 0 in an otherwise valid payload     -> UpstreamApplicationError

BYBIT CONVENTION: kline lists come back newest first. fetch_klines returns
them oldest first.
"""

import asyncio
import json
import time
from typing import Any

import aiohttp

from tickerbot.config import MarketDataSettings
from tickerbot.exceptions import (
    DecodeError,
    HttpStatusError,
    TransportError,
    UpstreamApplicationError,
)
from tickerbot.exchange.client import MarketDataClient
from tickerbot.exchange.rate_limiter import RateLimiter
from tickerbot.exchange.types import Kline, TickerRow, TickerSnapshot
from tickerbot.logging import get_logger

logger = get_logger(__name__)

TICKERS_PATH = "/v5/market/tickers"
KLINE_PATH = "/v5/market/kline"

_HEADERS = {"Accept": "application/json", "User-Agent": "tickerbot/1.0"}


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_ticker_row(item: Any) -> TickerRow | None:
    """Build a TickerRow from one raw list entry, or None if unusable."""
    if not isinstance(item, dict):
        return None
    symbol = item.get("symbol")
    if not isinstance(symbol, str) or not symbol:
        return None
    return TickerRow(
        symbol=symbol,
        last_price=_as_text(item.get("lastPrice")),
        price_24h_pcnt=_as_text(item.get("price24hPcnt")),
        volume_24h=_as_text(item.get("volume24h")),
        turnover_24h=_as_text(item.get("turnover24h")),
    )


def _parse_kline(item: Any) -> Kline | None:
    """Build a Kline from [start, open, high, low, close, volume, turnover]."""
    if not isinstance(item, (list, tuple)) or len(item) < 5:
        return None
    if not isinstance(item[4], str):
        return None
    try:
        start_time = int(item[0])
    except (TypeError, ValueError):
        return None
    return Kline(
        start_time=start_time,
        open=_as_text(item[1]),
        high=_as_text(item[2]),
        low=_as_text(item[3]),
        close=item[4],
        volume=_as_text(item[5]) if len(item) > 5 else "",
    )


class BybitClient(MarketDataClient):
    """Concrete Bybit public market-data client.

    Args:
        settings: Endpoint, category, interval and timeout configuration.
        rate_limiter: Shared limiter; one is created from settings if omitted.
        session: Optional pre-built aiohttp session (the client then does not
            own it and will not close it).
    """

    def __init__(
        self,
        settings: MarketDataSettings,
        rate_limiter: RateLimiter | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._settings = settings
        self._rate_limiter = rate_limiter or RateLimiter(settings.min_request_interval)
        self._timeout = aiohttp.ClientTimeout(total=settings.request_timeout)
        self._session = session
        self._owns_session = session is None

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    def _get_session(self) -> aiohttp.ClientSession:
        # Created lazily: aiohttp sessions must be built inside a running loop.
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout, headers=_HEADERS
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            logger.info("closing_bybit_session")
            await self._session.close()
        self._session = None

    async def fetch_snapshot(self) -> TickerSnapshot:
        """Fetch all spot tickers as one snapshot."""
        items = await self._get_list(
            TICKERS_PATH, {"category": self._settings.category}
        )

        rows: list[TickerRow] = []
        for item in items:
            row = _parse_ticker_row(item)
            if row is not None:
                rows.append(row)

        dropped = len(items) - len(rows)
        if dropped:
            logger.warning("ticker_rows_dropped", dropped=dropped)
        logger.debug("tickers_fetched", count=len(rows))
        return TickerSnapshot(rows=tuple(rows), fetched_at=time.time())

    async def fetch_klines(
        self, symbol: str, interval: str = "1", limit: int = 5
    ) -> list[Kline]:
        """Fetch the latest candles for a symbol, oldest first."""
        items = await self._get_list(
            KLINE_PATH,
            {
                "category": self._settings.category,
                "symbol": symbol,
                "interval": interval,
                "limit": str(limit),
            },
        )

        klines = [k for k in (_parse_kline(item) for item in items) if k is not None]
        klines.sort(key=lambda k: k.start_time)
        logger.debug("klines_fetched", symbol=symbol, count=len(klines))
        return klines

    async def _get_list(self, path: str, params: dict[str, str]) -> list:
        """Issue one rate-limited GET and return the payload's result.list."""
        body = await self._get(path, params)

        try:
            payload = json.loads(body)
        except ValueError as exc:
            logger.warning("bybit_decode_error", path=path, error=str(exc))
            raise DecodeError(f"Invalid JSON from {path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise DecodeError(f"Expected a JSON object from {path}")

        ret_code = payload.get("retCode")
        if isinstance(ret_code, bool) or not isinstance(ret_code, int):
            raise DecodeError(f"Missing retCode in response from {path}")

        if ret_code != 0:
            message = _as_text(payload.get("retMsg")) or "unknown error"
            logger.warning("bybit_api_error", path=path, ret_code=ret_code, ret_msg=message)
            raise UpstreamApplicationError(message, code=ret_code)

        result = payload.get("result")
        items = result.get("list") if isinstance(result, dict) else None
        if not isinstance(items, list):
            raise DecodeError(f"Missing result.list in response from {path}")
        return items

    async def _get(self, path: str, params: dict[str, str]) -> bytes:
        """Wait for the rate limiter, then GET path and return the raw body."""
        await self._rate_limiter.acquire()

        url = f"{self._settings.base_url.rstrip('/')}{path}"
        session = self._get_session()
        try:
            async with session.get(url, params=params, timeout=self._timeout) as response:
                if not 200 <= response.status < 300:
                    logger.warning(
                        "bybit_http_status_error",
                        path=path,
                        status=response.status,
                    )
                    raise HttpStatusError(response.status, response.reason or "")
                return await response.read()
        except asyncio.TimeoutError as exc:
            logger.warning(
                "bybit_request_timeout",
                path=path,
                timeout=self._settings.request_timeout,
            )
            raise TransportError(
                f"Request to {path} timed out after {self._settings.request_timeout}s"
            ) from exc
        except aiohttp.ClientError as exc:
            logger.warning("bybit_transport_error", path=path, error=str(exc))
            raise TransportError(str(exc) or type(exc).__name__) from exc
