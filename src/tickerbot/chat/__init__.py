"""Chat layer -- Telegram command dispatch on top of the market data services."""

from tickerbot.chat.bot import TelegramBot
from tickerbot.chat.commands import CommandService, PhotoReply

__all__ = ["CommandService", "PhotoReply", "TelegramBot"]
