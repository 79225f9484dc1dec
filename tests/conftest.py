"""Shared test fixtures for the ticker bot."""

import pytest

from tickerbot.config import (
    AlertSettings,
    AppSettings,
    ChartSettings,
    MarketDataSettings,
    TelegramSettings,
)
from tickerbot.exchange.types import TickerRow, TickerSnapshot


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_snapshot(*rows: tuple) -> TickerSnapshot:
    """Build a snapshot from (symbol, last, pcnt, volume[, turnover]) tuples."""
    return TickerSnapshot(rows=tuple(TickerRow(*row) for row in rows), fetched_at=1.0)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def market_settings() -> MarketDataSettings:
    """Market data settings pointing at a dummy host."""
    return MarketDataSettings(
        base_url="https://api.test.invalid",
        category="spot",
        min_request_interval=2.0,
        request_timeout=10.0,
    )


@pytest.fixture
def mock_settings(market_settings: MarketDataSettings) -> AppSettings:
    """Return AppSettings with test defaults and a dummy bot token."""
    return AppSettings(
        log_level="DEBUG",
        top_n=5,
        telegram=TelegramSettings(token="123456:test-token"),  # type: ignore[arg-type]
        market_data=market_settings,
        alerts=AlertSettings(check_interval=30.0),
        charts=ChartSettings(width=300, height=150, dpi=50),
    )


@pytest.fixture
def sample_snapshot() -> TickerSnapshot:
    """Two rows: BTC +2.5 change / 1000 volume, ETH -1.0 change / 5000 volume."""
    return make_snapshot(
        ("BTCUSDT", "50000", "2.5", "1000", "50000000"),
        ("ETHUSDT", "3000", "-1.0", "5000", "15000000"),
    )
