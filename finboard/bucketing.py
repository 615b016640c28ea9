from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from finboard.ledger import as_date

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
DEFAULT_GRANULARITY = MONTHLY
CHART_GRANULARITIES = {DAILY, WEEKLY, MONTHLY}


def normalize_granularity(value: Optional[str]) -> str:
    if not value:
        return DEFAULT_GRANULARITY
    normalized = value.strip().lower()
    if normalized in CHART_GRANULARITIES or normalized == YEARLY:
        return normalized
    return DEFAULT_GRANULARITY


def bucket_key(value: Union[date, datetime], granularity: Optional[str] = None) -> str:
    day = as_date(value)
    resolution = normalize_granularity(granularity)
    if resolution == DAILY:
        return day.strftime("%Y-%m-%d")
    if resolution == WEEKLY:
        # ISO year, not calendar year, so late-December days in week 1 sort after week 52.
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if resolution == YEARLY:
        return f"{day.year:04d}"
    return f"{day.year:04d}-{day.month:02d}"


def month_of_year(value: Union[date, datetime]) -> int:
    return as_date(value).month


def year_of(value: Union[date, datetime]) -> int:
    return as_date(value).year
