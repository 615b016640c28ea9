from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from finboard.aggregation import (
    AVG,
    BY_CATEGORY,
    BY_MONTH,
    BY_TYPE,
    BY_YEAR,
    COUNT,
    MAX,
    MIN,
    TOTAL,
    GroupResult,
    by_bucket,
    by_value,
    group_reduce,
    reduce_values,
)
from finboard.bucketing import CHART_GRANULARITIES, MONTHLY, WEEKLY, normalize_granularity
from finboard.errors import NotFoundError
from finboard.ledger import ZERO, LedgerEntry, TransactionType
from finboard.transaction_filter import (
    DateLike,
    TransactionFilter,
    build_transaction_filter,
    parse_date_value,
)

HUNDRED = Decimal("100")
PERIOD_ONE = "period1"
PERIOD_TWO = "period2"
DEFAULT_TOP_LIMIT = 5
DEFAULT_RECENT_LIMIT = 5
TREND_GRANULARITIES = {WEEKLY, MONTHLY}


class TransactionSource(Protocol):
    def fetch_transactions(self, criteria: TransactionFilter) -> List[LedgerEntry]:
        ...

    def fetch_page(
        self, criteria: TransactionFilter, limit: int, offset: int
    ) -> Tuple[List[LedgerEntry], int]:
        ...

    def get_transaction(self, owner_id: int, transaction_id: int) -> Optional[LedgerEntry]:
        ...


@dataclass(frozen=True)
class CategoryTotal:
    category: Optional[int]
    name: Optional[str]
    total: Decimal


@dataclass(frozen=True)
class TypeTotals:
    total: Decimal
    categories: Tuple[CategoryTotal, ...]


@dataclass(frozen=True)
class DashboardSummary:
    revenue: TypeTotals
    expense: TypeTotals
    net_balance: Decimal


@dataclass(frozen=True)
class BalanceSummary:
    revenue_total: Decimal
    expense_total: Decimal
    net_balance: Decimal
    is_positive: bool


@dataclass(frozen=True)
class TypeEntry:
    type: TransactionType
    total: Decimal
    categories: Tuple[CategoryTotal, ...]


@dataclass(frozen=True)
class ChartBucket:
    bucket: str
    entries: Tuple[TypeEntry, ...]


@dataclass(frozen=True)
class CategoryShare:
    category: Optional[int]
    name: Optional[str]
    total: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class TrendBucket:
    bucket: str
    categories: Tuple[CategoryTotal, ...]


@dataclass(frozen=True)
class PeriodTotal:
    period: str
    total: Decimal


@dataclass(frozen=True)
class CategoryPeriodComparison:
    category: Optional[int]
    name: Optional[str]
    periods: Tuple[PeriodTotal, ...]
    delta: Decimal


@dataclass(frozen=True)
class MonthlyBalance:
    month: int
    revenue: Decimal
    expense: Decimal
    balance: Decimal


@dataclass(frozen=True)
class YearlyTotals:
    year: int
    revenue: Decimal
    expense: Decimal
    balance: Decimal


@dataclass(frozen=True)
class TransactionStats:
    total_transactions: int
    total_revenue: Decimal
    total_expense: Decimal
    avg_transaction: Optional[Decimal]
    max_transaction: Optional[Decimal]
    min_transaction: Optional[Decimal]


@dataclass(frozen=True)
class TransactionPage:
    transactions: Tuple[LedgerEntry, ...]
    total: int
    page: int
    total_pages: int


def dashboard_summary(source: TransactionSource, owner_id: int) -> DashboardSummary:
    criteria = build_transaction_filter(owner_id)
    entries = source.fetch_transactions(criteria)
    names = _category_names(entries)
    groups = group_reduce(entries, (BY_TYPE, BY_CATEGORY))

    revenue = _type_totals(groups, TransactionType.REVENUE, names)
    expense = _type_totals(groups, TransactionType.EXPENSE, names)
    return DashboardSummary(
        revenue=revenue,
        expense=expense,
        net_balance=balance(revenue.total, expense.total),
    )


def balance_summary(source: TransactionSource, owner_id: int) -> BalanceSummary:
    criteria = build_transaction_filter(owner_id)
    totals = _totals_by_type(group_reduce(source.fetch_transactions(criteria), (BY_TYPE,)))
    revenue_total = totals[TransactionType.REVENUE]
    expense_total = totals[TransactionType.EXPENSE]
    net_balance = balance(revenue_total, expense_total)
    return BalanceSummary(
        revenue_total=revenue_total,
        expense_total=expense_total,
        net_balance=net_balance,
        is_positive=net_balance >= ZERO,
    )


def chart_data(
    source: TransactionSource, owner_id: int, period: Optional[str] = None
) -> List[ChartBucket]:
    granularity = normalize_granularity(period)
    if granularity not in CHART_GRANULARITIES:
        granularity = MONTHLY
    criteria = build_transaction_filter(owner_id)
    entries = source.fetch_transactions(criteria)
    names = _category_names(entries)
    groups = group_reduce(entries, (by_bucket(granularity), BY_TYPE, BY_CATEGORY))

    by_bucket_key: Dict[str, List[GroupResult]] = {}
    for group in groups:
        by_bucket_key.setdefault(group["bucket"], []).append(group)

    buckets: List[ChartBucket] = []
    for bucket in sorted(by_bucket_key):
        bucket_groups = by_bucket_key[bucket]
        entries_for_bucket = []
        for txn_type in TransactionType:
            type_totals = _type_totals(bucket_groups, txn_type, names)
            entries_for_bucket.append(
                TypeEntry(
                    type=txn_type,
                    total=type_totals.total,
                    categories=type_totals.categories,
                )
            )
        buckets.append(ChartBucket(bucket=bucket, entries=tuple(entries_for_bucket)))
    return buckets


def category_breakdown(
    source: TransactionSource, owner_id: int, type: Union[str, TransactionType, None]
) -> List[CategoryTotal]:
    txn_type = TransactionType.require(type)
    entries = source.fetch_transactions(build_transaction_filter(owner_id, type=txn_type))
    return list(_category_totals(group_reduce(entries, (BY_CATEGORY,)), _category_names(entries)))


def category_distribution(
    source: TransactionSource, owner_id: int, type: Union[str, TransactionType, None]
) -> List[CategoryShare]:
    breakdown = category_breakdown(source, owner_id, type)
    grand_total = sum((item.total for item in breakdown), ZERO)
    return [
        CategoryShare(
            category=item.category,
            name=item.name,
            total=item.total,
            percentage=percentage_of_total(item.total, grand_total),
        )
        for item in breakdown
    ]


def top_categories(
    source: TransactionSource,
    owner_id: int,
    type: Union[str, TransactionType, None],
    limit: Union[int, str, None] = None,
) -> List[CategoryTotal]:
    txn_type = TransactionType.require(type)
    max_items = parse_positive_int(limit, DEFAULT_TOP_LIMIT, "limit")
    return category_breakdown(source, owner_id, txn_type)[:max_items]


def category_trends(
    source: TransactionSource,
    owner_id: int,
    type: Union[str, TransactionType, None],
    period: Optional[str] = None,
) -> List[TrendBucket]:
    txn_type = TransactionType.require(type)
    granularity = normalize_granularity(period)
    if granularity not in TREND_GRANULARITIES:
        granularity = MONTHLY
    entries = source.fetch_transactions(build_transaction_filter(owner_id, type=txn_type))
    names = _category_names(entries)
    groups = group_reduce(entries, (by_bucket(granularity), BY_CATEGORY))

    by_bucket_key: Dict[str, List[GroupResult]] = {}
    for group in groups:
        by_bucket_key.setdefault(group["bucket"], []).append(group)
    return [
        TrendBucket(bucket=bucket, categories=_category_totals(by_bucket_key[bucket], names))
        for bucket in sorted(by_bucket_key)
    ]


def compare_category_periods(
    source: TransactionSource,
    owner_id: int,
    type: Union[str, TransactionType, None],
    start_date1: Optional[DateLike],
    end_date1: Optional[DateLike],
    start_date2: Optional[DateLike],
    end_date2: Optional[DateLike],
) -> List[CategoryPeriodComparison]:
    txn_type = TransactionType.require(type)
    start1 = _required_date(start_date1, "start_date1")
    end1 = _required_date(end_date1, "end_date1")
    start2 = _required_date(start_date2, "start_date2")
    end2 = _required_date(end_date2, "end_date2")
    if start1 > end1 or start2 > end2:
        raise ValueError("Each period must start on or before its end date.")
    if start1 > end2:
        raise ValueError("The first period must not start after the second period ends.")

    criteria = build_transaction_filter(
        owner_id, type=txn_type, start_date=start1, end_date=end2
    )
    entries = source.fetch_transactions(criteria)
    names = _category_names(entries)
    # Overlapping ranges resolve to period1; anything else inside [start1, end2] is period2.
    by_period = by_value(
        "period",
        lambda entry: PERIOD_ONE if start1 <= entry.day <= end1 else PERIOD_TWO,
    )
    groups = group_reduce(entries, (BY_CATEGORY, by_period))

    totals: Dict[Optional[int], Dict[str, Decimal]] = {}
    for group in groups:
        periods = totals.setdefault(group["category"], {PERIOD_ONE: ZERO, PERIOD_TWO: ZERO})
        periods[group["period"]] = group.total

    comparisons = [
        CategoryPeriodComparison(
            category=category,
            name=names.get(category),
            periods=(
                PeriodTotal(period=PERIOD_ONE, total=periods[PERIOD_ONE]),
                PeriodTotal(period=PERIOD_TWO, total=periods[PERIOD_TWO]),
            ),
            delta=periods[PERIOD_TWO] - periods[PERIOD_ONE],
        )
        for category, periods in totals.items()
    ]
    comparisons.sort(
        key=lambda item: (
            -(item.periods[0].total + item.periods[1].total),
            item.category is None,
            item.category or 0,
        )
    )
    return comparisons


def monthly_balance(
    source: TransactionSource, owner_id: int, year: Union[int, str, None]
) -> List[MonthlyBalance]:
    year_value = parse_year(year)
    criteria = build_transaction_filter(
        owner_id,
        start_date=date(year_value, 1, 1),
        end_date=date(year_value, 12, 31),
    )
    groups = group_reduce(source.fetch_transactions(criteria), (BY_MONTH, BY_TYPE))

    by_month: Dict[int, List[GroupResult]] = {}
    for group in groups:
        by_month.setdefault(group["month"], []).append(group)

    results: List[MonthlyBalance] = []
    for month in sorted(by_month):
        totals = _totals_by_type(by_month[month])
        revenue = totals[TransactionType.REVENUE]
        expense = totals[TransactionType.EXPENSE]
        results.append(
            MonthlyBalance(
                month=month,
                revenue=revenue,
                expense=expense,
                balance=balance(revenue, expense),
            )
        )
    return results


def yearly_comparison(
    source: TransactionSource, owner_id: int, year: Union[int, str, None]
) -> List[YearlyTotals]:
    current_year = parse_year(year)
    previous_year = current_year - 1
    if previous_year < date.min.year:
        raise ValueError("Invalid year.")
    criteria = build_transaction_filter(
        owner_id,
        start_date=date(previous_year, 1, 1),
        end_date=date(current_year, 12, 31),
    )
    groups = group_reduce(source.fetch_transactions(criteria), (BY_YEAR, BY_TYPE))

    results: List[YearlyTotals] = []
    for year_value in (previous_year, current_year):
        totals = _totals_by_type(group for group in groups if group["year"] == year_value)
        revenue = totals[TransactionType.REVENUE]
        expense = totals[TransactionType.EXPENSE]
        results.append(
            YearlyTotals(
                year=year_value,
                revenue=revenue,
                expense=expense,
                balance=balance(revenue, expense),
            )
        )
    return results


def transaction_stats(
    source: TransactionSource,
    owner_id: int,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
) -> TransactionStats:
    criteria = build_transaction_filter(owner_id, start_date=start_date, end_date=end_date)
    entries = source.fetch_transactions(criteria)
    overall = reduce_values(entries, (COUNT, AVG, MAX, MIN))
    totals = _totals_by_type(group_reduce(entries, (BY_TYPE,)))
    return TransactionStats(
        total_transactions=overall[COUNT],
        total_revenue=totals[TransactionType.REVENUE],
        total_expense=totals[TransactionType.EXPENSE],
        avg_transaction=overall[AVG],
        max_transaction=overall[MAX],
        min_transaction=overall[MIN],
    )


def recent_transactions(
    source: TransactionSource,
    owner_id: int,
    limit: Union[int, str, None] = None,
    page: Union[int, str, None] = None,
) -> TransactionPage:
    page_size = parse_positive_int(limit, DEFAULT_RECENT_LIMIT, "limit")
    page_number = parse_positive_int(page, 1, "page")
    criteria = build_transaction_filter(owner_id)
    rows, total = source.fetch_page(criteria, page_size, (page_number - 1) * page_size)
    return TransactionPage(
        transactions=tuple(rows),
        total=total,
        page=page_number,
        total_pages=math.ceil(total / page_size),
    )


def transaction_details(
    source: TransactionSource, owner_id: int, transaction_id: int
) -> LedgerEntry:
    entry = source.get_transaction(owner_id, transaction_id)
    if entry is None:
        raise NotFoundError("Transaction not found.")
    return entry


def balance(revenue_total: Decimal, expense_total: Decimal) -> Decimal:
    return revenue_total - expense_total


def percentage_of_total(value: Decimal, grand_total: Decimal) -> Decimal:
    if grand_total == ZERO:
        return ZERO
    return value / grand_total * HUNDRED


def parse_year(value: Union[int, str, None]) -> int:
    if isinstance(value, bool):
        raise ValueError("Invalid year.")
    if isinstance(value, int):
        year_value = value
    else:
        raw = value.strip() if isinstance(value, str) else ""
        if not raw.isdigit():
            raise ValueError("Invalid year.")
        year_value = int(raw)
    if not date.min.year <= year_value < date.max.year:
        raise ValueError("Invalid year.")
    return year_value


def parse_positive_int(value: Union[int, str, None], default: int, name: str) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive integer.")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a positive integer.") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be a positive integer.")
    return parsed


def _required_date(value: Optional[DateLike], name: str) -> date:
    if value is None or value == "":
        raise ValueError(f"{name} is required.")
    return parse_date_value(value)


def _category_names(entries: Iterable[LedgerEntry]) -> Dict[Optional[int], Optional[str]]:
    return {entry.category_id: entry.category_name for entry in entries}


def _category_totals(
    groups: Iterable[GroupResult], names: Dict[Optional[int], Optional[str]]
) -> Tuple[CategoryTotal, ...]:
    items = [
        CategoryTotal(
            category=group["category"],
            name=names.get(group["category"]),
            total=group.total,
        )
        for group in groups
    ]
    items.sort(key=lambda item: (-item.total, item.category is None, item.category or 0))
    return tuple(items)


def _type_totals(
    groups: Sequence[GroupResult],
    txn_type: TransactionType,
    names: Dict[Optional[int], Optional[str]],
) -> TypeTotals:
    categories = _category_totals(
        (group for group in groups if group["type"] is txn_type), names
    )
    return TypeTotals(
        total=sum((item.total for item in categories), ZERO),
        categories=categories,
    )


def _totals_by_type(groups: Iterable[GroupResult]) -> Dict[TransactionType, Decimal]:
    totals = {txn_type: ZERO for txn_type in TransactionType}
    for group in groups:
        totals[group["type"]] += group.values[TOTAL]
    return totals
