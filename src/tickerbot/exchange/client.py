"""Abstract market data client interface.

Defines the contract for exchange market-data implementations. Ranking,
alerting and chat code depend only on this interface, keeping Bybit-specific
URLs and payload shapes isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod

from tickerbot.exchange.types import Kline, TickerSnapshot


class MarketDataClient(ABC):
    """Abstract base class for public market-data clients."""

    @abstractmethod
    async def fetch_snapshot(self) -> TickerSnapshot:
        """Fetch a fresh snapshot of all tickers.

        Raises:
            MarketDataError: Transport, decode or upstream application failure.
        """
        ...

    @abstractmethod
    async def fetch_klines(
        self, symbol: str, interval: str = "1", limit: int = 5
    ) -> list[Kline]:
        """Fetch the most recent candles for a symbol, oldest first.

        Raises:
            MarketDataError: Transport, decode or upstream application failure.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        ...

    async def __aenter__(self) -> "MarketDataClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
