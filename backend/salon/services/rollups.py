# Overview: In-memory grouping and derived metrics shared by every report.

"""
Grouping policy used by all reports:

1. pick a key for each row (date, employee name, service name, payment
   method, phone); a missing key becomes "Unknown"
2. open a zero bucket the first time a key is seen
3. add 1 to the count and the row's amount to the total
4. emit buckets in first-seen order; callers re-sort per report

Everything here is pure: rows are any objects and the key/amount callables
decide what to read from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Mapping, TypeVar

from ..models import UNKNOWN_LABEL
from ..money import CENT, ZERO, to_money

Row = TypeVar("Row")


@dataclass
class Rollup:
    key: str
    count: int = 0
    total: Decimal = ZERO

    @property
    def average(self) -> Decimal:
        return average(self.total, self.count)


@dataclass(frozen=True)
class Retention:
    new_customers: int
    returning_customers: int
    retention_rate: float


def rollup(
    rows: Iterable[Row],
    key: Callable[[Row], str | None],
    amount: Callable[[Row], object] | None = None,
) -> list[Rollup]:
    """Group rows by key, counting and summing amounts in first-seen order."""
    buckets: dict[str, Rollup] = {}
    for row in rows:
        label = key(row)
        if label is None or label == "":
            label = UNKNOWN_LABEL
        bucket = buckets.get(label)
        if bucket is None:
            bucket = buckets[label] = Rollup(key=label)
        bucket.count += 1
        if amount is not None:
            value = amount(row)
            bucket.total += to_money(value) if value is not None else ZERO
    return list(buckets.values())


def sort_by_total(rollups: list[Rollup]) -> list[Rollup]:
    # sorted() is stable with reverse=True, so ties keep first-seen order
    return sorted(rollups, key=lambda r: r.total, reverse=True)


def sort_by_count(rollups: list[Rollup]) -> list[Rollup]:
    return sorted(rollups, key=lambda r: r.count, reverse=True)


def sort_by_key(rollups: list[Rollup]) -> list[Rollup]:
    return sorted(rollups, key=lambda r: r.key)


def total_of(rollups: Iterable[Rollup]) -> Decimal:
    total = ZERO
    for r in rollups:
        total += r.total
    return total


def average(total: Decimal, count: int) -> Decimal:
    """total / count, or 0.00 when there is nothing to divide by."""
    if not count:
        return ZERO
    return (to_money(total) / count).quantize(CENT, rounding=ROUND_HALF_UP)


def growth_rate(current: Decimal, previous: Decimal) -> float:
    """Percent change from previous to current; 0 when previous is 0."""
    if not previous:
        return 0.0
    return round(float((to_money(current) - to_money(previous)) / to_money(previous) * 100), 2)


def percentage(part: Decimal, whole: Decimal) -> float:
    if not whole:
        return 0.0
    return round(float(to_money(part) / to_money(whole) * 100), 2)


def best_of(rollups: Iterable[Rollup]) -> Rollup | None:
    """
    Group with the highest total.

    Ties go to the group seen first; only a strictly larger total replaces
    the current best.
    """
    best = None
    for r in rollups:
        if best is None or r.total > best.total:
            best = r
    return best


def earliest_by_key(
    rows: Iterable[Row],
    key: Callable[[Row], str | None],
    when: Callable[[Row], datetime],
) -> dict[str, datetime]:
    """Earliest timestamp per key; rows with no key are skipped."""
    earliest: dict[str, datetime] = {}
    for row in rows:
        label = key(row)
        if not label:
            continue
        ts = when(row)
        current = earliest.get(label)
        if current is None or ts < current:
            earliest[label] = ts
    return earliest


def retention(first_visits: Mapping[str, datetime], start: datetime) -> Retention:
    """
    Split customers into new (first visit at or after start) and returning.

    The rate is returning / (new + returning) * 100, 0 when there are no
    customers, so it always lies in [0, 100].
    """
    new_customers = 0
    returning_customers = 0
    for first_visit in first_visits.values():
        if first_visit >= start:
            new_customers += 1
        else:
            returning_customers += 1

    total = new_customers + returning_customers
    rate = round(returning_customers / total * 100, 2) if total else 0.0
    return Retention(
        new_customers=new_customers,
        returning_customers=returning_customers,
        retention_rate=rate,
    )
