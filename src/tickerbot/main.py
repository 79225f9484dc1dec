"""Entry point for the Bybit ticker bot.

Wires all components together and runs the Telegram long-polling consumer
and the alert evaluator in a single asyncio event loop. SIGINT/SIGTERM
trigger a graceful shutdown.

Component wiring order (in _build_components):
1. AppSettings (configuration)
2. Logging setup
3. BybitClient (rate-limited public market data)
4. WatchRegistry (shared alert state)
5. AlertEvaluator (periodic alert checks)
6. CommandService (command implementations)
7. TelegramBot (command dispatch + notification sink)
"""

import asyncio
import signal
import sys
from typing import Any

from tickerbot.chat.bot import TelegramBot
from tickerbot.chat.commands import CommandService
from tickerbot.config import AppSettings
from tickerbot.exceptions import ConfigurationError
from tickerbot.exchange.bybit_client import BybitClient
from tickerbot.logging import get_logger, setup_logging
from tickerbot.market_data.alert_evaluator import AlertEvaluator
from tickerbot.market_data.watch_registry import WatchRegistry


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all bot components from settings.

    Note: Does NOT start polling or the alert task -- that happens in run().

    Raises:
        ConfigurationError: If the Telegram token is missing.
    """
    # Fail before anything opens a connection.
    settings.telegram.require_token()

    client = BybitClient(settings.market_data)
    registry = WatchRegistry()
    evaluator = AlertEvaluator(
        client,
        registry,
        check_interval=settings.alerts.check_interval,
    )
    service = CommandService(client, registry, settings)
    telegram_bot = TelegramBot(service, settings.telegram)
    evaluator.set_notify(telegram_bot.send_notification)

    return {
        "client": client,
        "registry": registry,
        "evaluator": evaluator,
        "service": service,
        "telegram_bot": telegram_bot,
    }


def _setup_signal_handlers(stop_event: asyncio.Event) -> None:
    """Register SIGINT/SIGTERM to set stop_event.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("tickerbot.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


async def run(settings: AppSettings | None = None) -> None:
    """Run the bot until a shutdown signal arrives."""
    settings = settings or AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("tickerbot.main")

    components = _build_components(settings)
    telegram_bot: TelegramBot = components["telegram_bot"]
    evaluator: AlertEvaluator = components["evaluator"]
    client: BybitClient = components["client"]

    stop_event = asyncio.Event()
    _setup_signal_handlers(stop_event)

    logger.info(
        "tickerbot_starting",
        category=settings.market_data.category,
        min_request_interval=settings.market_data.min_request_interval,
        alert_interval=settings.alerts.check_interval,
    )

    try:
        await telegram_bot.start()
        await evaluator.start()
        await stop_event.wait()
    finally:
        await evaluator.stop()
        await telegram_bot.stop()
        await client.close()
        logger.info("tickerbot_stopped")


def main() -> None:
    """Synchronous entry point."""
    try:
        asyncio.run(run())
    except ConfigurationError as exc:
        setup_logging()
        get_logger("tickerbot.main").critical("configuration_error", error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
