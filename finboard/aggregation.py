"""Generic group-and-reduce fold over ledger entries.

A report describes its pipeline as data: a tuple of ``GroupKey`` descriptors
(how to derive each component of the grouping key from an entry) and the
reductions it needs over the amount. ``group_reduce`` evaluates any such
pipeline in a single pass, so individual reports only differ in the keys they
pass in and in how they reshape the resulting groups.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

from finboard.bucketing import bucket_key, month_of_year, year_of
from finboard.ledger import ZERO, LedgerEntry, coerce_amount, round_money

TOTAL = "total"
COUNT = "count"
AVG = "avg"
MAX = "max"
MIN = "min"
SUPPORTED_REDUCTIONS = (TOTAL, COUNT, AVG, MAX, MIN)


@dataclass(frozen=True)
class GroupKey:
    name: str
    extract: Callable[[LedgerEntry], Hashable]


@dataclass(frozen=True)
class GroupResult:
    key: Tuple[Hashable, ...]
    fields: Mapping[str, Hashable]
    values: Mapping[str, Any]

    @property
    def total(self) -> Decimal:
        return self.values.get(TOTAL, ZERO)

    def __getitem__(self, name: str) -> Any:
        if name in self.fields:
            return self.fields[name]
        return self.values[name]


BY_TYPE = GroupKey("type", lambda entry: entry.type)
BY_CATEGORY = GroupKey("category", lambda entry: entry.category_id)
BY_YEAR = GroupKey("year", lambda entry: year_of(entry.date))
BY_MONTH = GroupKey("month", lambda entry: month_of_year(entry.date))


def by_bucket(granularity: Optional[str]) -> GroupKey:
    return GroupKey("bucket", lambda entry: bucket_key(entry.date, granularity))


def by_value(name: str, extract: Callable[[LedgerEntry], Hashable]) -> GroupKey:
    return GroupKey(name, extract)


class _Accumulator:
    __slots__ = ("total", "count", "maximum", "minimum")

    def __init__(self) -> None:
        self.total = ZERO
        self.count = 0
        self.maximum: Optional[Decimal] = None
        self.minimum: Optional[Decimal] = None

    def add(self, amount: Decimal) -> None:
        self.total += amount
        self.count += 1
        if self.maximum is None or amount > self.maximum:
            self.maximum = amount
        if self.minimum is None or amount < self.minimum:
            self.minimum = amount

    def finish(self, reductions: Sequence[str]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for reduction in reductions:
            if reduction == TOTAL:
                values[TOTAL] = round_money(self.total)
            elif reduction == COUNT:
                values[COUNT] = self.count
            elif reduction == AVG:
                values[AVG] = round_money(self.total / self.count) if self.count else None
            elif reduction == MAX:
                values[MAX] = round_money(self.maximum) if self.maximum is not None else None
            elif reduction == MIN:
                values[MIN] = round_money(self.minimum) if self.minimum is not None else None
        return values


def group_reduce(
    entries: Iterable[LedgerEntry],
    keys: Sequence[GroupKey],
    reductions: Sequence[str] = (TOTAL,),
) -> List[GroupResult]:
    _validate_reductions(reductions)
    accumulators: Dict[Tuple[Hashable, ...], _Accumulator] = {}
    for entry in entries:
        key = tuple(group_key.extract(entry) for group_key in keys)
        accumulators.setdefault(key, _Accumulator()).add(coerce_amount(entry.amount))

    names = [group_key.name for group_key in keys]
    return [
        GroupResult(
            key=key,
            fields=dict(zip(names, key)),
            values=accumulators[key].finish(reductions),
        )
        for key in sorted(accumulators, key=_sortable_key)
    ]


def reduce_values(
    entries: Iterable[LedgerEntry],
    reductions: Sequence[str] = (TOTAL,),
) -> Dict[str, Any]:
    _validate_reductions(reductions)
    accumulator = _Accumulator()
    for entry in entries:
        accumulator.add(coerce_amount(entry.amount))
    return accumulator.finish(reductions)


def _validate_reductions(reductions: Sequence[str]) -> None:
    for reduction in reductions:
        if reduction not in SUPPORTED_REDUCTIONS:
            raise ValueError(f"Unsupported reduction: {reduction}")


def _sortable_key(key: Tuple[Hashable, ...]) -> Tuple[Tuple[bool, Any], ...]:
    # None sorts last within its position so orphaned references stay orderable.
    return tuple((component is None, _plain(component)) for component in key)


def _plain(component: Hashable) -> Any:
    if component is None:
        return 0
    value = getattr(component, "value", component)
    return value
