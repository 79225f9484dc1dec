"""Tests for top_n leaderboard ranking."""

from decimal import Decimal

import pytest

from conftest import make_snapshot
from tickerbot.exchange.types import TickerSnapshot
from tickerbot.market_data.ranking import top_n
from tickerbot.models import RankedValue, RankField, SortDirection


class TestTopNExamples:
    def test_volume_descending(self, sample_snapshot: TickerSnapshot) -> None:
        result = top_n(sample_snapshot, RankField.VOLUME, SortDirection.DESC, 5)
        assert result == [
            RankedValue("ETHUSDT", Decimal("5000")),
            RankedValue("BTCUSDT", Decimal("1000")),
        ]

    def test_change_ascending_top_one(self, sample_snapshot: TickerSnapshot) -> None:
        result = top_n(sample_snapshot, RankField.CHANGE_24H, SortDirection.ASC, 1)
        assert result == [RankedValue("ETHUSDT", Decimal("-1.0"))]

    def test_change_descending(self, sample_snapshot: TickerSnapshot) -> None:
        result = top_n(sample_snapshot, RankField.CHANGE_24H, SortDirection.DESC, 5)
        assert [entry.symbol for entry in result] == ["BTCUSDT", "ETHUSDT"]

    def test_turnover_descending(self, sample_snapshot: TickerSnapshot) -> None:
        result = top_n(sample_snapshot, RankField.TURNOVER, SortDirection.DESC, 5)
        assert result[0] == RankedValue("BTCUSDT", Decimal("50000000"))


class TestTopNLimits:
    @pytest.fixture
    def wide_snapshot(self) -> TickerSnapshot:
        return make_snapshot(
            *[(f"C{i}USDT", "1", str(i / 100), str(i * 10)) for i in range(1, 9)]
        )

    def test_at_most_n_entries(self, wide_snapshot: TickerSnapshot) -> None:
        result = top_n(wide_snapshot, RankField.VOLUME, SortDirection.DESC, 5)
        assert len(result) == 5
        values = [entry.value for entry in result]
        assert values == sorted(values, reverse=True)

    def test_n_clamped_to_row_count(self, sample_snapshot: TickerSnapshot) -> None:
        assert len(top_n(sample_snapshot, RankField.VOLUME, SortDirection.DESC, 50)) == 2

    @pytest.mark.parametrize("n", [0, -3])
    def test_non_positive_n_is_empty(self, sample_snapshot: TickerSnapshot, n: int) -> None:
        assert top_n(sample_snapshot, RankField.VOLUME, SortDirection.DESC, n) == []

    @pytest.mark.parametrize("field", list(RankField))
    def test_empty_snapshot_is_empty(self, field: RankField) -> None:
        assert top_n(make_snapshot(), field, SortDirection.DESC, 5) == []


class TestTopNStability:
    @pytest.fixture
    def tied_snapshot(self) -> TickerSnapshot:
        return make_snapshot(
            ("AUSDT", "1", "0.01", "100"),
            ("BUSDT", "1", "0.05", "300"),
            ("CUSDT", "1", "0.01", "100"),
            ("DUSDT", "1", "0.01", "100"),
        )

    def test_ties_keep_snapshot_order_descending(self, tied_snapshot: TickerSnapshot) -> None:
        result = top_n(tied_snapshot, RankField.VOLUME, SortDirection.DESC, 5)
        assert [entry.symbol for entry in result] == ["BUSDT", "AUSDT", "CUSDT", "DUSDT"]

    def test_ties_keep_snapshot_order_ascending(self, tied_snapshot: TickerSnapshot) -> None:
        result = top_n(tied_snapshot, RankField.CHANGE_24H, SortDirection.ASC, 5)
        assert [entry.symbol for entry in result] == ["AUSDT", "CUSDT", "DUSDT", "BUSDT"]


class TestTopNMalformed:
    def test_malformed_rows_excluded_without_affecting_others(self) -> None:
        clean = make_snapshot(
            ("BTCUSDT", "1", "0.02", "1000"),
            ("ETHUSDT", "1", "-0.01", "5000"),
        )
        dirty = make_snapshot(
            ("BTCUSDT", "1", "0.02", "1000"),
            ("BADUSDT", "1", "n/a", "lots"),
            ("ETHUSDT", "1", "-0.01", "5000"),
            ("NANUSDT", "1", "NaN", ""),
        )
        for field in (RankField.VOLUME, RankField.CHANGE_24H):
            for direction in SortDirection:
                assert top_n(dirty, field, direction, 5) == top_n(clean, field, direction, 5)

    def test_row_only_excluded_for_the_broken_field(self) -> None:
        snapshot = make_snapshot(("BTCUSDT", "1", "broken", "1000"))
        assert top_n(snapshot, RankField.CHANGE_24H, SortDirection.DESC, 5) == []
        assert top_n(snapshot, RankField.VOLUME, SortDirection.DESC, 5) == [
            RankedValue("BTCUSDT", Decimal("1000"))
        ]
