"""Command service -- turns chat commands into reply text and chart images.

Transport-free: every method returns what should be sent back, so the
Telegram layer only parses arguments and delivers replies. Every BotError is
converted into user-facing text here; nothing in this module raises to the
chat layer for an expected failure.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal

from tickerbot.charts import render_bar_chart, render_line_chart
from tickerbot.config import AppSettings
from tickerbot.exceptions import (
    ChartRenderError,
    MarketDataError,
    ParseError,
    SymbolNotFoundError,
)
from tickerbot.exchange.client import MarketDataClient
from tickerbot.exchange.types import parse_decimal
from tickerbot.logging import get_logger
from tickerbot.market_data.formatting import (
    closes_of,
    format_change,
    format_close_bars,
    format_leaderboard,
    format_price,
)
from tickerbot.market_data.ranking import top_n
from tickerbot.market_data.watch_registry import WatchRegistry
from tickerbot.models import AlertNotification, AlertWatch, RankField, SortDirection

logger = get_logger(__name__)

SYMBOL_NOT_FOUND = "Symbol not found."

HELP_TEXT = """Welcome! Pick a command below or type your own.

Prices and changes
/price SYMBOL - last price, e.g. /price BTCUSDT
/change SYMBOL - 24h change, e.g. /change ETHUSDT

Market
/volume - top-5 pairs by 24h volume
/gainers - top-5 gainers over 24h
/losers - top-5 losers over 24h

Charts and candles
/kline SYMBOL - last 5 one-minute candles
/klinephoto SYM1,SYM2 - close chart for several pairs
/volumephoto - bar chart of top-5 by volume
/salesphoto - bar chart of top-5 by turnover

Alerts
/alert SYMBOL PRICE - notify once the price reaches PRICE
/alerts - list active alerts
/unalert SYMBOL - cancel an alert"""

# Reply keyboard rows offered by /start.
KEYBOARD_LAYOUT: list[list[str]] = [
    ["/price BTCUSDT", "/change BTCUSDT", "/kline BTCUSDT"],
    ["/volume", "/gainers", "/losers"],
    ["/klinephoto BTCUSDT,ETHUSDT", "/volumephoto", "/salesphoto"],
]


@dataclass
class PhotoReply:
    """Result of a chart command.

    photo is None when nothing could be rendered; text is always sent after
    the photo (or instead of it).
    """

    text: str
    photo: bytes | None = None
    caption: str = ""
    filename: str = "chart.png"


def normalize_symbol(raw: str) -> str:
    return raw.strip().upper()


def format_notification(notification: AlertNotification) -> str:
    watch = notification.watch
    return f"ALERT: {watch.symbol} price {notification.price} >= {watch.target_price}"


class CommandService:
    """Implements every bot command on top of the market data client.

    Args:
        client: Rate-limited market data client shared with the alert task.
        registry: Watch registry shared with the alert task.
        settings: Application settings (leaderboard size, kline limits, charts).
    """

    def __init__(
        self,
        client: MarketDataClient,
        registry: WatchRegistry,
        settings: AppSettings,
    ) -> None:
        self._client = client
        self._registry = registry
        self._settings = settings

    # ──────────────────────────────────────────────
    # Text commands
    # ──────────────────────────────────────────────

    async def price(self, symbol: str) -> str:
        symbol = normalize_symbol(symbol)
        if not symbol:
            return "Specify a symbol, e.g. /price BTCUSDT"
        try:
            snapshot = await self._client.fetch_snapshot()
            return format_price(snapshot.get(symbol))
        except SymbolNotFoundError:
            return SYMBOL_NOT_FOUND
        except MarketDataError as exc:
            return f"Failed to fetch price: {exc}"

    async def change(self, symbol: str) -> str:
        symbol = normalize_symbol(symbol)
        if not symbol:
            return "Specify a symbol, e.g. /change BTCUSDT"
        try:
            snapshot = await self._client.fetch_snapshot()
            return format_change(snapshot.get(symbol))
        except SymbolNotFoundError:
            return SYMBOL_NOT_FOUND
        except MarketDataError as exc:
            return f"Failed to fetch market data: {exc}"

    async def volume(self) -> str:
        return await self._leaderboard(
            f"Top-{self._settings.top_n} by 24h volume:",
            RankField.VOLUME,
            SortDirection.DESC,
            "Failed to fetch volume",
        )

    async def gainers(self) -> str:
        return await self._leaderboard(
            f"Top-{self._settings.top_n} gainers:",
            RankField.CHANGE_24H,
            SortDirection.DESC,
            "Failed to fetch gainers",
        )

    async def losers(self) -> str:
        return await self._leaderboard(
            f"Top-{self._settings.top_n} losers:",
            RankField.CHANGE_24H,
            SortDirection.ASC,
            "Failed to fetch losers",
        )

    async def kline(self, symbol: str) -> str:
        symbol = normalize_symbol(symbol)
        if not symbol:
            return "Specify a symbol, e.g. /kline BTCUSDT"
        md = self._settings.market_data
        try:
            klines = await self._client.fetch_klines(
                symbol, interval=md.kline_interval, limit=md.kline_text_limit
            )
        except MarketDataError as exc:
            return f"Failed to fetch candles: {exc}"
        return format_close_bars(symbol, klines)

    async def _leaderboard(
        self,
        title: str,
        field: RankField,
        direction: SortDirection,
        error_prefix: str,
    ) -> str:
        try:
            snapshot = await self._client.fetch_snapshot()
        except MarketDataError as exc:
            return f"{error_prefix}: {exc}"
        entries = top_n(snapshot, field, direction, self._settings.top_n)
        return format_leaderboard(title, entries, field)

    # ──────────────────────────────────────────────
    # Chart commands
    # ──────────────────────────────────────────────

    async def volume_chart(self) -> PhotoReply:
        return await self._bar_chart(
            RankField.VOLUME,
            caption=f"Top-{self._settings.top_n} coins by 24h volume",
            filename="volume_bar.png",
            done_text="Volume chart sent!",
            empty_text="No volume data.",
        )

    async def sales_chart(self) -> PhotoReply:
        return await self._bar_chart(
            RankField.TURNOVER,
            caption=f"Top-{self._settings.top_n} coins by 24h turnover",
            filename="sales_bar.png",
            done_text="Sales chart sent!",
            empty_text="No sales data.",
        )

    async def kline_chart(self, symbols_raw: str) -> PhotoReply:
        """Compare the recent closes of comma-separated symbols on one chart.

        Symbols that fail are listed in the reply text; the chart is still
        sent for the others.
        """
        symbols = [normalize_symbol(s) for s in symbols_raw.split(",")]
        symbols = [s for s in symbols if s]
        if not symbols:
            return PhotoReply(
                text="Specify comma-separated symbols, e.g. /klinephoto BTCUSDT,ETHUSDT"
            )

        md = self._settings.market_data
        series: dict[str, list[Decimal]] = {}
        errors: list[str] = []
        for symbol in symbols:
            try:
                klines = await self._client.fetch_klines(
                    symbol, interval=md.kline_interval, limit=md.kline_chart_limit
                )
            except MarketDataError as exc:
                logger.warning("kline_chart_fetch_failed", symbol=symbol, error=str(exc))
                errors.append(f"{symbol}: {exc}")
                continue
            closes = closes_of(klines)
            if not closes:
                errors.append(f"{symbol}: no data")
                continue
            series[symbol] = closes

        if not series:
            return PhotoReply(
                text="\n".join(["No data for the requested symbols.", *errors])
            )

        try:
            png = await asyncio.to_thread(
                render_line_chart, series, "Close prices", self._settings.charts
            )
        except ChartRenderError as exc:
            return PhotoReply(text=f"Failed to render chart: {exc}")

        return PhotoReply(
            text="\n".join(["Comparison chart sent!", *errors]),
            photo=png,
            caption="Close comparison: " + ", ".join(series),
            filename="kline_compare.png",
        )

    async def _bar_chart(
        self,
        field: RankField,
        caption: str,
        filename: str,
        done_text: str,
        empty_text: str,
    ) -> PhotoReply:
        try:
            snapshot = await self._client.fetch_snapshot()
        except MarketDataError as exc:
            return PhotoReply(text=f"Failed to fetch market data: {exc}")

        entries = top_n(snapshot, field, SortDirection.DESC, self._settings.top_n)
        if not entries:
            return PhotoReply(text=empty_text)

        try:
            png = await asyncio.to_thread(
                render_bar_chart, entries, caption, self._settings.charts
            )
        except ChartRenderError as exc:
            return PhotoReply(text=f"Failed to render chart: {exc}")

        return PhotoReply(text=done_text, photo=png, caption=caption, filename=filename)

    # ──────────────────────────────────────────────
    # Alerts
    # ──────────────────────────────────────────────

    async def add_alert(self, chat_id: int | None, args: list[str]) -> str:
        """Register (or replace) a watch: /alert SYMBOL PRICE."""
        if len(args) != 2:
            return "Usage: /alert SYMBOL PRICE, e.g. /alert BTCUSDT 70000"
        symbol = normalize_symbol(args[0])
        try:
            target = parse_decimal(args[1])
        except ParseError:
            return f"Invalid price: {args[1]}"
        if target <= 0:
            return f"Invalid price: {args[1]}"

        try:
            snapshot = await self._client.fetch_snapshot()
            row = snapshot.get(symbol)
        except SymbolNotFoundError:
            return SYMBOL_NOT_FOUND
        except MarketDataError as exc:
            return f"Failed to verify symbol: {exc}"

        previous = await self._registry.add(
            AlertWatch(symbol=symbol, target_price=target, chat_id=chat_id)
        )
        verb = "updated" if previous is not None else "set"
        return f"Alert {verb}: {symbol} >= {target} (now {row.last_price})"

    async def list_alerts(self) -> str:
        watches = await self._registry.snapshot()
        if not watches:
            return "No active alerts."
        lines = ["Active alerts:"]
        lines.extend(f"{w.symbol} >= {w.target_price}" for w in watches)
        return "\n".join(lines)

    async def remove_alert(self, symbol: str) -> str:
        symbol = normalize_symbol(symbol)
        if not symbol:
            return "Usage: /unalert SYMBOL"
        removed = await self._registry.remove(symbol)
        if removed is None:
            return f"No alert for {symbol}."
        logger.info("watch_cancelled", symbol=symbol)
        return f"Alert for {symbol} removed."
