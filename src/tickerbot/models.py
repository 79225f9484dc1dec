"""Shared data models for the ticker bot.

Prices and thresholds are Decimal. Never use float for prices: the exchange
sends decimal strings and comparisons against targets must be exact.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import NamedTuple


class RankField(str, Enum):
    """Ticker field used to rank a snapshot."""

    VOLUME = "volume_24h"
    CHANGE_24H = "price_24h_pcnt"
    TURNOVER = "turnover_24h"


class SortDirection(str, Enum):
    """Ranking order."""

    DESC = "desc"
    ASC = "asc"


class RankedValue(NamedTuple):
    """One leaderboard entry."""

    symbol: str
    value: Decimal


@dataclass(frozen=True)
class AlertWatch:
    """A standing request to be told once a symbol trades at or above a target."""

    symbol: str
    target_price: Decimal
    chat_id: int | None = None  # where to deliver the notification
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AlertNotification:
    """Emitted once when a watch fires."""

    watch: AlertWatch
    price: Decimal
    fired_at: float = field(default_factory=time.time)
