"""Configuration system using pydantic-settings with environment variable loading.

Every settings group reads the process environment and an optional ``.env``
file, so a bare ``TELEGRAM_TOKEN=...`` line in ``.env`` is enough to start
the bot.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from tickerbot.exceptions import ConfigurationError

_ENV_FILE = ".env"


class TelegramSettings(BaseSettings):
    """Telegram bot connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="TELEGRAM_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    token: SecretStr = SecretStr("")
    poll_timeout: int = 60  # long-poll seconds for getUpdates

    def require_token(self) -> str:
        """Return the bot token or raise if it is not configured."""
        token = self.token.get_secret_value().strip()
        if not token:
            raise ConfigurationError(
                "TELEGRAM_TOKEN is not set. Export it or add it to .env"
            )
        return token


class MarketDataSettings(BaseSettings):
    """Bybit public market-data endpoint settings."""

    model_config = SettingsConfigDict(
        env_prefix="BYBIT_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = "https://api.bybit.com"
    category: str = "spot"
    min_request_interval: float = 2.0  # seconds between request starts
    request_timeout: float = 10.0
    kline_interval: str = "1"  # minutes
    kline_text_limit: int = 5
    kline_chart_limit: int = 20


class AlertSettings(BaseSettings):
    """Price alert evaluation settings."""

    model_config = SettingsConfigDict(
        env_prefix="ALERT_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    check_interval: float = 30.0  # seconds between alert ticks


class ChartSettings(BaseSettings):
    """PNG chart dimensions."""

    model_config = SettingsConfigDict(
        env_prefix="CHART_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    width: int = 600  # pixels
    height: int = 300
    dpi: int = 100


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = "INFO"
    top_n: int = 5  # leaderboard size
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    market_data: MarketDataSettings = Field(default_factory=MarketDataSettings)
    alerts: AlertSettings = Field(default_factory=AlertSettings)
    charts: ChartSettings = Field(default_factory=ChartSettings)
