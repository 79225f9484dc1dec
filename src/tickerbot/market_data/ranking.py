"""Snapshot ranking for leaderboards (volume, gainers, losers, turnover).

Rows whose ranked field does not parse are excluded from the ranking and
never affect the other rows. Sorting is stable: rows with equal values keep
their snapshot order in both directions.
"""

from tickerbot.exceptions import ParseError
from tickerbot.exchange.types import TickerSnapshot, parse_decimal
from tickerbot.logging import get_logger
from tickerbot.models import RankedValue, RankField, SortDirection

logger = get_logger(__name__)


def top_n(
    snapshot: TickerSnapshot,
    field: RankField,
    direction: SortDirection = SortDirection.DESC,
    n: int = 5,
) -> list[RankedValue]:
    """Return the n best rows of a snapshot by a numeric field.

    Args:
        snapshot: Rows to rank.
        field: Which decimal-string field to rank by.
        direction: DESC for volume/gainers, ASC for losers.
        n: Maximum entries; clamped to the number of rankable rows.

    Returns:
        Up to n (symbol, value) pairs. Empty if nothing is rankable, in which
        case the caller reports "no data".
    """
    if n <= 0:
        return []

    entries: list[RankedValue] = []
    skipped = 0
    for row in snapshot:
        try:
            value = parse_decimal(getattr(row, field.value))
        except ParseError:
            skipped += 1
            continue
        entries.append(RankedValue(row.symbol, value))

    if skipped:
        logger.debug("ranking_rows_skipped", field=field.value, skipped=skipped)

    # list.sort is stable with reverse=True as well
    entries.sort(key=lambda e: e.value, reverse=direction is SortDirection.DESC)
    return entries[:n]
