"""Market data layer -- leaderboards, text formatting and price alerts."""

from tickerbot.market_data.alert_evaluator import AlertEvaluator
from tickerbot.market_data.ranking import top_n
from tickerbot.market_data.watch_registry import WatchRegistry

__all__ = ["AlertEvaluator", "WatchRegistry", "top_n"]
