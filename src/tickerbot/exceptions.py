"""Custom exceptions for the ticker bot.

The whole error taxonomy lives here so that the exchange client, the
ranking utilities and the chat layer can share it without circular imports.
"""


class BotError(Exception):
    """Base exception for all bot errors."""


class ConfigurationError(BotError):
    """Raised when required settings are missing or invalid."""


class MarketDataError(BotError):
    """Base for every error raised by the market data client."""


class TransportError(MarketDataError):
    """Raised on network failure, timeout or body-read failure."""


class HttpStatusError(TransportError):
    """Raised when the upstream answers with a non-2xx HTTP status."""

    def __init__(self, status: int, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"HTTP {status} {reason}".strip())


class DecodeError(MarketDataError):
    """Raised when the response body is not JSON or has an unexpected shape."""


class UpstreamApplicationError(MarketDataError):
    """Raised when a well-formed payload carries a non-success retCode."""

    def __init__(self, message: str, code: int | None = None) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class SymbolNotFoundError(BotError):
    """Raised when a requested symbol is absent from a snapshot."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Symbol {symbol} not found")


class ParseError(BotError, ValueError):
    """Raised when a decimal-string field cannot be parsed.

    Callers skip the offending row instead of propagating this.
    """


class ChartRenderError(BotError):
    """Raised when a chart image cannot be produced."""
