"""Tests for component wiring in main."""

import pytest

from tickerbot.chat.bot import TelegramBot
from tickerbot.config import AppSettings, TelegramSettings
from tickerbot.exceptions import ConfigurationError
from tickerbot.exchange.bybit_client import BybitClient
from tickerbot.main import _build_components
from tickerbot.market_data.alert_evaluator import AlertEvaluator


class TestBuildComponents:
    def test_missing_token_fails_before_wiring(self, mock_settings: AppSettings) -> None:
        settings = mock_settings.model_copy(
            update={"telegram": TelegramSettings(token="")}  # type: ignore[arg-type]
        )
        with pytest.raises(ConfigurationError):
            _build_components(settings)

    @pytest.mark.asyncio
    async def test_wiring(self, mock_settings: AppSettings) -> None:
        components = _build_components(mock_settings)

        assert isinstance(components["client"], BybitClient)
        assert isinstance(components["telegram_bot"], TelegramBot)
        evaluator: AlertEvaluator = components["evaluator"]
        assert evaluator.check_interval == mock_settings.alerts.check_interval
        assert not evaluator.running
        await components["client"].close()
