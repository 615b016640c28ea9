from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from finboard.ledger import LedgerEntry, TransactionType, as_date

DateLike = Union[date, datetime, str]


@dataclass(frozen=True)
class TransactionFilter:
    owner_id: int
    type: Optional[TransactionType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search_term: Optional[str] = None
    category_id: Optional[int] = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def matches(self, entry: LedgerEntry) -> bool:
        if entry.owner_id != self.owner_id:
            return False
        if self.type is not None and entry.type is not self.type:
            return False
        if self.has_date_range and not (self.start_date <= entry.day <= self.end_date):
            return False
        if self.search_term and self.search_term.lower() not in entry.title.lower():
            return False
        if self.category_id is not None and entry.category_id != self.category_id:
            return False
        return True


def build_transaction_filter(
    owner_id: Optional[int],
    *,
    type: Optional[Union[str, TransactionType]] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    search_term: Optional[str] = None,
    category_id: Optional[int] = None,
) -> TransactionFilter:
    if owner_id is None:
        raise ValueError("An owner is required for every transaction query.")

    start_value = parse_date_value(start_date) if start_date else None
    end_value = parse_date_value(end_date) if end_date else None
    # A lone bound is ignored rather than treated as a half-open range.
    if start_value is None or end_value is None:
        start_value = None
        end_value = None
    elif start_value > end_value:
        raise ValueError("Start date must be on or before end date.")

    search_value = search_term.strip() if search_term else None
    return TransactionFilter(
        owner_id=owner_id,
        type=TransactionType.parse_optional(type),
        start_date=start_value,
        end_date=end_value,
        search_term=search_value or None,
        category_id=category_id,
    )


def parse_date_value(value: DateLike) -> date:
    if isinstance(value, (date, datetime)):
        return as_date(value)
    raw = value.strip()
    # Whole-string parse; accepts a bare date or a full ISO timestamp.
    try:
        return datetime.fromisoformat(raw).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date: {value!r}. Use YYYY-MM-DD.") from exc
