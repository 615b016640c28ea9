from __future__ import annotations

import csv
import io
from typing import Iterable

from finboard.ledger import LedgerEntry, round_money

EXPORT_COLUMNS = ["id", "date", "title", "type", "category", "amount"]


def render_transactions_csv(entries: Iterable[LedgerEntry]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for entry in entries:
        writer.writerow(
            [
                entry.id,
                entry.day.isoformat(),
                entry.title,
                entry.type.value,
                entry.category_name or "",
                f"{round_money(entry.amount):.2f}",
            ]
        )
    return buffer.getvalue()
