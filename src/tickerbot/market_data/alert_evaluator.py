"""Price alert evaluator -- periodic check of registered watches.

Uses REST polling on a fixed period. Each tick takes one snapshot for all
watches; an empty registry skips the tick without touching the exchange.
Fetch failures are logged and absorbed: the watches stay active and are
simply checked again on the next tick.

Per watch the only transition is Active -> Fired. A fired watch is removed
and notified exactly once.
"""

import asyncio
from collections.abc import Awaitable, Callable

from tickerbot.exceptions import MarketDataError, ParseError
from tickerbot.exchange.client import MarketDataClient
from tickerbot.exchange.types import parse_decimal
from tickerbot.logging import get_logger
from tickerbot.market_data.watch_registry import WatchRegistry
from tickerbot.models import AlertNotification

logger = get_logger(__name__)

NotifyCallback = Callable[[AlertNotification], Awaitable[None]]


class AlertEvaluator:
    """Checks watches against fresh snapshots in a background task.

    Args:
        client: Market data client (shares its rate limiter with commands).
        registry: Watches to evaluate; also mutated by the command handler.
        notify: Async callback invoked once per fired watch.
        check_interval: Seconds between ticks.
    """

    def __init__(
        self,
        client: MarketDataClient,
        registry: WatchRegistry,
        notify: NotifyCallback | None = None,
        check_interval: float = 30.0,
    ) -> None:
        self._client = client
        self._registry = registry
        self._notify = notify
        self._check_interval = check_interval
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def running(self) -> bool:
        return self._running

    @property
    def check_interval(self) -> float:
        return self._check_interval

    def set_notify(self, notify: NotifyCallback) -> None:
        """Attach the notification sink once the chat transport exists."""
        self._notify = notify

    async def start(self) -> None:
        """Begin evaluating watches in the background."""
        if self._running:
            logger.warning("alert_evaluator_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("alert_evaluator_started", check_interval=self._check_interval)

    async def stop(self) -> None:
        """Stop the evaluator gracefully."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("alert_evaluator_stopped")

    async def _run_loop(self) -> None:
        """Main loop: wait one period, then evaluate."""
        while self._running:
            await asyncio.sleep(self._check_interval)
            try:
                await self.evaluate_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.warning("alert_evaluator_tick_error", exc_info=True)

    async def evaluate_once(self) -> list[AlertNotification]:
        """Run a single tick.

        Returns:
            Notifications for the watches that fired (and were removed).
        """
        watches = await self._registry.snapshot()
        if not watches:
            return []

        try:
            snapshot = await self._client.fetch_snapshot()
        except MarketDataError as exc:
            logger.warning(
                "alert_fetch_error",
                error=str(exc),
                error_type=type(exc).__name__,
                watches=len(watches),
            )
            return []

        # Scan a copy first, apply removals afterwards.
        candidates: list[AlertNotification] = []
        for watch in watches:
            row = snapshot.find(watch.symbol)
            if row is None:
                continue
            try:
                price = parse_decimal(row.last_price)
            except ParseError:
                logger.debug("alert_price_unparsable", symbol=watch.symbol, raw=row.last_price)
                continue
            if price >= watch.target_price:
                candidates.append(AlertNotification(watch=watch, price=price))

        fired: list[AlertNotification] = []
        for notification in candidates:
            if await self._registry.remove_if_unchanged(notification.watch):
                logger.info(
                    "alert_fired",
                    symbol=notification.watch.symbol,
                    price=str(notification.price),
                    target=str(notification.watch.target_price),
                )
                fired.append(notification)

        for notification in fired:
            await self._deliver(notification)

        logger.debug("alert_tick_complete", checked=len(watches), fired=len(fired))
        return fired

    async def _deliver(self, notification: AlertNotification) -> None:
        if self._notify is None:
            return
        try:
            await self._notify(notification)
        except Exception:
            logger.warning(
                "alert_notify_failed",
                symbol=notification.watch.symbol,
                exc_info=True,
            )
