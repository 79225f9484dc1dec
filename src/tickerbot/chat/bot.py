"""Telegram front end built on python-telegram-bot.

Maps inbound commands to CommandService calls and delivers the replies.
Updates are handled one at a time (the Application default), while the
alert evaluator runs as a separate task in the same event loop and uses
send_notification to reach the chat that registered a watch.
"""

from telegram import InputFile, ReplyKeyboardMarkup, Update
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from tickerbot.chat.commands import (
    HELP_TEXT,
    KEYBOARD_LAYOUT,
    CommandService,
    PhotoReply,
    format_notification,
)
from tickerbot.config import TelegramSettings
from tickerbot.logging import get_logger
from tickerbot.models import AlertNotification

logger = get_logger(__name__)

UNKNOWN_COMMAND = "Unknown command."
INTERNAL_ERROR = "Something went wrong, please try again later."


def _first_arg(context: ContextTypes.DEFAULT_TYPE) -> str:
    args = context.args or []
    return args[0] if args else ""


class TelegramBot:
    """Registers command handlers and owns the polling lifecycle.

    Args:
        service: Command implementations.
        settings: Telegram settings (token, long-poll timeout).
        application: Pre-built Application (tests); built from the token if omitted.
    """

    def __init__(
        self,
        service: CommandService,
        settings: TelegramSettings,
        application: Application | None = None,
    ) -> None:
        self._service = service
        self._settings = settings
        if application is None:
            application = Application.builder().token(settings.require_token()).build()
        self._application = application
        self._register_handlers()

    @property
    def application(self) -> Application:
        return self._application

    def _register_handlers(self) -> None:
        app = self._application
        app.add_handler(CommandHandler(["start", "help"], self.cmd_start))
        app.add_handler(CommandHandler("price", self.cmd_price))
        app.add_handler(CommandHandler("change", self.cmd_change))
        app.add_handler(CommandHandler("volume", self.cmd_volume))
        app.add_handler(CommandHandler("gainers", self.cmd_gainers))
        app.add_handler(CommandHandler("losers", self.cmd_losers))
        app.add_handler(CommandHandler("kline", self.cmd_kline))
        app.add_handler(CommandHandler("klinephoto", self.cmd_kline_photo))
        app.add_handler(CommandHandler("volumephoto", self.cmd_volume_photo))
        app.add_handler(CommandHandler("salesphoto", self.cmd_sales_photo))
        app.add_handler(CommandHandler("alert", self.cmd_alert))
        app.add_handler(CommandHandler("alerts", self.cmd_alerts))
        app.add_handler(CommandHandler("unalert", self.cmd_unalert))
        # Registered last: only reached when no command above matched.
        app.add_handler(MessageHandler(filters.TEXT, self.cmd_unknown))
        app.add_error_handler(self.on_error)

    # ──────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Initialize the application and start long polling."""
        await self._application.initialize()
        await self._application.start()
        await self._application.updater.start_polling(
            timeout=self._settings.poll_timeout,
            allowed_updates=Update.ALL_TYPES,
        )
        logger.info("telegram_polling_started", poll_timeout=self._settings.poll_timeout)

    async def stop(self) -> None:
        """Stop polling and shut the application down."""
        if self._application.updater.running:
            await self._application.updater.stop()
        if self._application.running:
            await self._application.stop()
        await self._application.shutdown()
        logger.info("telegram_polling_stopped")

    async def send_notification(self, notification: AlertNotification) -> None:
        """Deliver a fired alert to the chat that registered it."""
        chat_id = notification.watch.chat_id
        if chat_id is None:
            logger.info("alert_without_chat", symbol=notification.watch.symbol)
            return
        await self._application.bot.send_message(
            chat_id=chat_id, text=format_notification(notification)
        )

    # ──────────────────────────────────────────────
    # Handlers
    # ──────────────────────────────────────────────

    async def cmd_start(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_message is None:
            return
        keyboard = ReplyKeyboardMarkup(KEYBOARD_LAYOUT, resize_keyboard=True)
        await update.effective_message.reply_text(HELP_TEXT, reply_markup=keyboard)

    async def cmd_price(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.price(_first_arg(context)))

    async def cmd_change(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.change(_first_arg(context)))

    async def cmd_volume(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.volume())

    async def cmd_gainers(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.gainers())

    async def cmd_losers(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.losers())

    async def cmd_kline(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.kline(_first_arg(context)))

    async def cmd_kline_photo(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        # "/klinephoto BTCUSDT, ETHUSDT" arrives as two args
        symbols_raw = "".join(context.args or [])
        await self._reply_photo(update, await self._service.kline_chart(symbols_raw))

    async def cmd_volume_photo(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply_photo(update, await self._service.volume_chart())

    async def cmd_sales_photo(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply_photo(update, await self._service.sales_chart())

    async def cmd_alert(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id if update.effective_chat else None
        await self._reply(
            update, await self._service.add_alert(chat_id, list(context.args or []))
        )

    async def cmd_alerts(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.list_alerts())

    async def cmd_unalert(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, await self._service.remove_alert(_first_arg(context)))

    async def cmd_unknown(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, UNKNOWN_COMMAND)

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Log unexpected handler failures and tell the user, never crash polling."""
        logger.error("telegram_handler_error", exc_info=context.error)
        if isinstance(update, Update) and update.effective_message is not None:
            try:
                await update.effective_message.reply_text(INTERNAL_ERROR)
            except TelegramError:
                logger.warning("error_reply_failed", exc_info=True)

    # ──────────────────────────────────────────────
    # Delivery
    # ──────────────────────────────────────────────

    async def _reply(self, update: Update, text: str) -> None:
        if update.effective_message is None:
            return
        await update.effective_message.reply_text(text)

    async def _reply_photo(self, update: Update, reply: PhotoReply) -> None:
        """Send the chart (if any) then the reply text.

        A failed photo upload is reported as text instead of raising.
        """
        message = update.effective_message
        if message is None:
            return
        if reply.photo is not None:
            try:
                await message.reply_photo(
                    photo=InputFile(reply.photo, filename=reply.filename),
                    caption=reply.caption,
                )
            except TelegramError as exc:
                logger.warning("photo_send_failed", error=str(exc))
                await message.reply_text(f"Failed to send photo: {exc}")
                return
        await message.reply_text(reply.text)
