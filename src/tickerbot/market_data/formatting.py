"""Plain-text rendering of tickers, leaderboards and candle closes for chat."""

from decimal import Decimal

from tickerbot.exceptions import ParseError
from tickerbot.exchange.types import Kline, TickerRow, parse_decimal
from tickerbot.models import RankedValue, RankField

NO_DATA = "No data available."
BAR_CHAR = "█"


def format_percent(fraction: Decimal) -> str:
    """Render a Bybit fraction (0.025) as a signed percent (+2.50%)."""
    return f"{fraction * 100:+.2f}%"


def format_volume(value: Decimal) -> str:
    return f"{value:,.0f}"


def format_value(value: Decimal, field: RankField) -> str:
    """Render a ranked value according to the field it came from."""
    if field is RankField.CHANGE_24H:
        return format_percent(value)
    return format_volume(value)


def format_price(row: TickerRow) -> str:
    return f"{row.symbol} price: {row.last_price}"


def format_change(row: TickerRow) -> str:
    try:
        change = format_percent(parse_decimal(row.price_24h_pcnt))
    except ParseError:
        change = "n/a"
    return f"{row.symbol} 24h change: {change}"


def format_leaderboard(
    title: str, entries: list[RankedValue], field: RankField
) -> str:
    """Render a numbered leaderboard, or NO_DATA when there are no entries."""
    if not entries:
        return NO_DATA
    lines = [title]
    for position, entry in enumerate(entries, start=1):
        lines.append(f"{position}. {entry.symbol}: {format_value(entry.value, field)}")
    return "\n".join(lines)


def closes_of(klines: list[Kline]) -> list[Decimal]:
    """Parse candle closes, skipping the ones that are not numbers."""
    closes: list[Decimal] = []
    for kline in klines:
        try:
            closes.append(parse_decimal(kline.close))
        except ParseError:
            continue
    return closes


def format_close_bars(symbol: str, klines: list[Kline], width: int = 20) -> str:
    """Render closes as horizontal text bars scaled to the highest close.

    Args:
        symbol: Instrument shown in the header.
        klines: Candles, oldest first.
        width: Bar length of the highest close, in characters.
    """
    closes = closes_of(klines)
    if not closes:
        return f"No data for {symbol}."

    max_close = max(closes)
    lines = [f"Last {len(closes)} candles {symbol} (close):"]
    for index, close in enumerate(closes, start=1):
        bar_len = int(close / max_close * width) if max_close > 0 else 0
        lines.append(f"{index}: {close:>12.2f} {BAR_CHAR * bar_len}")
    return "\n".join(lines)
