"""Tests for chat text formatting helpers."""

from decimal import Decimal

from tickerbot.exchange.types import Kline, TickerRow
from tickerbot.market_data.formatting import (
    BAR_CHAR,
    NO_DATA,
    closes_of,
    format_change,
    format_close_bars,
    format_leaderboard,
    format_percent,
    format_price,
)
from tickerbot.models import RankedValue, RankField


def _kline(close: str, start: int = 0) -> Kline:
    return Kline(start_time=start, open=close, high=close, low=close, close=close)


class TestTickerFormatting:
    def test_price(self) -> None:
        row = TickerRow("BTCUSDT", "50000.5", "0.025", "1000")
        assert format_price(row) == "BTCUSDT price: 50000.5"

    def test_change_renders_fraction_as_percent(self) -> None:
        row = TickerRow("BTCUSDT", "50000", "0.025", "1000")
        assert format_change(row) == "BTCUSDT 24h change: +2.50%"

    def test_negative_change(self) -> None:
        row = TickerRow("ETHUSDT", "3000", "-0.0125", "1000")
        assert format_change(row) == "ETHUSDT 24h change: -1.25%"

    def test_unparsable_change(self) -> None:
        row = TickerRow("ETHUSDT", "3000", "", "1000")
        assert format_change(row) == "ETHUSDT 24h change: n/a"

    def test_format_percent(self) -> None:
        assert format_percent(Decimal("0")) == "+0.00%"


class TestLeaderboard:
    def test_volume_board(self) -> None:
        entries = [
            RankedValue("ETHUSDT", Decimal("5000")),
            RankedValue("BTCUSDT", Decimal("1234567.8")),
        ]
        text = format_leaderboard("Top-5 by 24h volume:", entries, RankField.VOLUME)
        assert text.splitlines() == [
            "Top-5 by 24h volume:",
            "1. ETHUSDT: 5,000",
            "2. BTCUSDT: 1,234,568",
        ]

    def test_change_board(self) -> None:
        entries = [RankedValue("SOLUSDT", Decimal("0.1234"))]
        text = format_leaderboard("Top-5 gainers:", entries, RankField.CHANGE_24H)
        assert text.splitlines()[1] == "1. SOLUSDT: +12.34%"

    def test_empty_board_is_no_data(self) -> None:
        assert format_leaderboard("Top-5 losers:", [], RankField.CHANGE_24H) == NO_DATA


class TestCloseBars:
    def test_bars_scale_to_highest_close(self) -> None:
        text = format_close_bars("BTCUSDT", [_kline("50"), _kline("100")], width=20)
        lines = text.splitlines()
        assert lines[0] == "Last 2 candles BTCUSDT (close):"
        assert lines[1].endswith(" " + BAR_CHAR * 10)
        assert lines[2].endswith(" " + BAR_CHAR * 20)
        assert "100.00" in lines[2]

    def test_unparsable_closes_skipped(self) -> None:
        klines = [_kline("x"), _kline("10")]
        assert closes_of(klines) == [Decimal("10")]
        assert format_close_bars("BTCUSDT", klines).startswith("Last 1 candles")

    def test_no_closes_is_no_data(self) -> None:
        assert format_close_bars("BTCUSDT", []) == "No data for BTCUSDT."

    def test_zero_closes_have_empty_bars(self) -> None:
        text = format_close_bars("ZEROUSDT", [_kline("0"), _kline("0")])
        assert BAR_CHAR not in text
