"""Shared in-memory registry of price watches.

The command handler adds and cancels watches while the AlertEvaluator reads
and removes them from its own task, so every access goes through an
asyncio.Lock. Watches are process-local and lost on restart.
"""

import asyncio

from tickerbot.logging import get_logger
from tickerbot.models import AlertWatch

logger = get_logger(__name__)


class WatchRegistry:
    """One active watch per symbol; adding a watch for a watched symbol replaces it."""

    def __init__(self) -> None:
        self._watches: dict[str, AlertWatch] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._watches)

    async def add(self, watch: AlertWatch) -> AlertWatch | None:
        """Store a watch, returning the one it replaced (if any)."""
        async with self._lock:
            previous = self._watches.get(watch.symbol)
            self._watches[watch.symbol] = watch
        logger.info(
            "watch_added",
            symbol=watch.symbol,
            target=str(watch.target_price),
            replaced=previous is not None,
        )
        return previous

    async def remove(self, symbol: str) -> AlertWatch | None:
        """Drop the watch for a symbol, returning it or None if absent."""
        async with self._lock:
            return self._watches.pop(symbol, None)

    async def remove_if_unchanged(self, watch: AlertWatch) -> bool:
        """Drop a watch only if it is still the registered one for its symbol.

        Used after a fetch: a watch replaced in the meantime must survive.
        """
        async with self._lock:
            if self._watches.get(watch.symbol) is not watch:
                return False
            del self._watches[watch.symbol]
            return True

    async def get(self, symbol: str) -> AlertWatch | None:
        async with self._lock:
            return self._watches.get(symbol)

    async def snapshot(self) -> list[AlertWatch]:
        """Return a copy of all watches, safe to iterate while others mutate."""
        async with self._lock:
            return list(self._watches.values())
