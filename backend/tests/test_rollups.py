"""
Unit tests for the in-memory grouping helpers shared by every report.

No database: rows are plain namespaces.
"""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from salon.services import rollups


def row(key, amount=None, when=None):
    return SimpleNamespace(key=key, amount=amount, when=when)


class TestRollup:
    def test_groups_in_first_seen_order(self):
        rows = [row("b", "1.00"), row("a", "2.00"), row("b", "3.00")]
        result = rollups.rollup(rows, key=lambda r: r.key, amount=lambda r: r.amount)

        assert [r.key for r in result] == ["b", "a"]
        assert result[0].count == 2
        assert result[0].total == Decimal("4.00")
        assert result[1].total == Decimal("2.00")

    def test_missing_key_becomes_unknown(self):
        rows = [row(None, "5.00"), row("", "1.00"), row("Sam", "2.00")]
        result = rollups.rollup(rows, key=lambda r: r.key, amount=lambda r: r.amount)

        assert [r.key for r in result] == ["Unknown", "Sam"]
        assert result[0].count == 2
        assert result[0].total == Decimal("6.00")

    def test_count_only_rollup_has_zero_totals(self):
        result = rollups.rollup([row("09:00"), row("09:00")], key=lambda r: r.key)
        assert result[0].count == 2
        assert result[0].total == Decimal("0.00")

    def test_group_totals_sum_to_overall_total(self):
        amounts = ["10.00", "25.50", "-4.50", "0.01", "99.99"]
        rows = [row(k, a) for k, a in zip(["x", "y", "x", "z", "y"], amounts)]
        result = rollups.rollup(rows, key=lambda r: r.key, amount=lambda r: r.amount)

        assert rollups.total_of(result) == sum(Decimal(a) for a in amounts)
        assert sum(r.count for r in result) == len(rows)

    def test_empty_input(self):
        assert rollups.rollup([], key=lambda r: r.key) == []


class TestSorting:
    def test_sort_by_total_keeps_first_seen_order_on_ties(self):
        result = rollups.rollup(
            [row("a", "5.00"), row("b", "9.00"), row("c", "5.00")],
            key=lambda r: r.key,
            amount=lambda r: r.amount,
        )
        assert [r.key for r in rollups.sort_by_total(result)] == ["b", "a", "c"]

    def test_sort_by_count(self):
        result = rollups.rollup([row("a"), row("b"), row("b")], key=lambda r: r.key)
        assert [r.key for r in rollups.sort_by_count(result)] == ["b", "a"]

    def test_sort_by_key_orders_hours_ascending(self):
        result = rollups.rollup([row("14:00"), row("09:00"), row("11:00")], key=lambda r: r.key)
        assert [r.key for r in rollups.sort_by_key(result)] == ["09:00", "11:00", "14:00"]


class TestDerivedMetrics:
    def test_average_with_zero_count_is_zero(self):
        assert rollups.average(Decimal("0.00"), 0) == Decimal("0.00")
        assert rollups.average(Decimal("50.00"), 0) == Decimal("0.00")

    def test_average_rounds_to_cents(self):
        assert rollups.average(Decimal("10.00"), 3) == Decimal("3.33")

    def test_rollup_average_property(self):
        bucket = rollups.Rollup(key="x", count=4, total=Decimal("30.00"))
        assert bucket.average == Decimal("7.50")

    def test_growth_rate_zero_when_no_previous(self):
        assert rollups.growth_rate(Decimal("100.00"), Decimal("0")) == 0.0

    def test_growth_rate(self):
        assert rollups.growth_rate(Decimal("150.00"), Decimal("100.00")) == 50.0
        assert rollups.growth_rate(Decimal("50.00"), Decimal("100.00")) == -50.0

    def test_percentage(self):
        assert rollups.percentage(Decimal("5.00"), Decimal("0")) == 0.0
        assert rollups.percentage(Decimal("5.00"), Decimal("20.00")) == 25.0


class TestBestOf:
    def test_empty_returns_none(self):
        assert rollups.best_of([]) is None

    def test_highest_total_wins(self):
        groups = [
            rollups.Rollup(key="a", count=1, total=Decimal("5.00")),
            rollups.Rollup(key="b", count=1, total=Decimal("8.00")),
        ]
        assert rollups.best_of(groups).key == "b"

    def test_first_seen_wins_on_tie(self):
        groups = [
            rollups.Rollup(key="first", count=1, total=Decimal("8.00")),
            rollups.Rollup(key="second", count=3, total=Decimal("8.00")),
        ]
        assert rollups.best_of(groups).key == "first"


class TestRetention:
    START = datetime(2026, 3, 1)

    def test_no_customers(self):
        result = rollups.retention({}, self.START)
        assert result.new_customers == 0
        assert result.returning_customers == 0
        assert result.retention_rate == 0.0

    def test_first_visit_at_window_start_counts_as_new(self):
        result = rollups.retention({"555": self.START}, self.START)
        assert result.new_customers == 1
        assert result.returning_customers == 0

    def test_split_new_and_returning(self):
        first_visits = {
            "111": datetime(2026, 1, 5),
            "222": datetime(2026, 3, 2),
            "333": datetime(2026, 2, 27),
            "444": datetime(2026, 3, 10),
        }
        result = rollups.retention(first_visits, self.START)
        assert result.new_customers == 2
        assert result.returning_customers == 2
        assert result.retention_rate == 50.0

    @pytest.mark.parametrize("returning", [0, 1, 3, 7])
    def test_rate_within_bounds(self, returning):
        first_visits = {f"r{i}": datetime(2025, 12, 1) for i in range(returning)}
        first_visits.update({f"n{i}": datetime(2026, 3, 5) for i in range(3)})
        rate = rollups.retention(first_visits, self.START).retention_rate
        assert 0.0 <= rate <= 100.0

    def test_earliest_by_key_skips_blank_keys(self):
        rows = [
            row("555", when=datetime(2026, 3, 4)),
            row("555", when=datetime(2026, 2, 1)),
            row(None, when=datetime(2020, 1, 1)),
        ]
        earliest = rollups.earliest_by_key(rows, key=lambda r: r.key, when=lambda r: r.when)
        assert earliest == {"555": datetime(2026, 2, 1)}
