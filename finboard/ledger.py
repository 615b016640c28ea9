from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Union

ZERO = Decimal("0")
CENTS = Decimal("0.01")


class TransactionType(str, Enum):
    REVENUE = "revenue"
    EXPENSE = "expense"

    @classmethod
    def validate(cls, value: Union[str, "TransactionType", None]) -> "TransactionType":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError("Invalid transaction type. Use 'revenue' or 'expense'.")
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError("Invalid transaction type. Use 'revenue' or 'expense'.")

    @classmethod
    def require(cls, value: Union[str, "TransactionType", None]) -> "TransactionType":
        """Exact match for query parameters; no trimming or case folding."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        raise ValueError("Invalid transaction type. Use 'revenue' or 'expense'.")

    @classmethod
    def parse_optional(cls, value: Optional[str]) -> Optional["TransactionType"]:
        """Exact match only; anything else is treated as absent."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        return None


@dataclass(frozen=True)
class LedgerEntry:
    id: int
    owner_id: int
    title: str
    amount: Decimal
    type: TransactionType
    date: datetime
    category_id: Optional[int] = None
    category_name: Optional[str] = None

    @property
    def day(self) -> date:
        return as_date(self.date)


def as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def coerce_amount(amount: Union[Decimal, float, int, str]) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def round_money(amount: Decimal) -> Decimal:
    return coerce_amount(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
