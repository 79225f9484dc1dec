"""Exchange-specific type definitions and parsing helpers.

Numeric fields are kept as the decimal strings Bybit sends. They are only
converted to Decimal at the point of use, via parse_decimal, so that one
malformed value never poisons a whole snapshot.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from tickerbot.exceptions import ParseError, SymbolNotFoundError


def parse_decimal(raw: object) -> Decimal:
    """Parse a decimal string from the exchange.

    Args:
        raw: Value as received (normally a string such as "50000.5").

    Returns:
        The parsed, finite Decimal.

    Raises:
        ParseError: For None, empty, non-numeric, NaN or infinite values.
    """
    if raw is None or isinstance(raw, bool):
        raise ParseError(f"not a number: {raw!r}")
    text = str(raw).strip()
    if not text:
        raise ParseError("empty value")
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise ParseError(f"not a number: {raw!r}") from exc
    if not value.is_finite():
        raise ParseError(f"not a finite number: {raw!r}")
    return value


@dataclass(frozen=True)
class TickerRow:
    """One instrument line of a tickers response.

    price_24h_pcnt is Bybit's price24hPcnt: a fraction, "0.025" is +2.5%.
    turnover_24h is the traded value in the quote currency; empty when absent.
    """

    symbol: str
    last_price: str
    price_24h_pcnt: str
    volume_24h: str
    turnover_24h: str = ""


@dataclass(frozen=True)
class TickerSnapshot:
    """Point-in-time poll result, rows in exchange response order."""

    rows: tuple[TickerRow, ...]
    fetched_at: float = 0.0
    _index: dict[str, TickerRow] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, TickerRow] = {}
        for row in self.rows:
            # First occurrence wins if the exchange ever repeats a symbol
            index.setdefault(row.symbol, row)
        object.__setattr__(self, "_index", index)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[TickerRow]:
        return iter(self.rows)

    def find(self, symbol: str) -> TickerRow | None:
        """Return the row for a symbol, or None if absent."""
        return self._index.get(symbol)

    def get(self, symbol: str) -> TickerRow:
        """Return the row for a symbol.

        Raises:
            SymbolNotFoundError: If the snapshot has no such symbol.
        """
        row = self._index.get(symbol)
        if row is None:
            raise SymbolNotFoundError(symbol)
        return row

    def by_symbol(self) -> dict[str, TickerRow]:
        """Return a symbol -> row mapping (a copy)."""
        return dict(self._index)


@dataclass(frozen=True)
class Kline:
    """One candle. Prices and volume are decimal strings as received."""

    start_time: int  # Unix milliseconds
    open: str
    high: str
    low: str
    close: str
    volume: str = ""
