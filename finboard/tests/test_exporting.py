import csv
import io
import unittest
from datetime import datetime
from decimal import Decimal

from finboard.exporting import EXPORT_COLUMNS, render_transactions_csv
from finboard.ledger import LedgerEntry, TransactionType


class ExportingTests(unittest.TestCase):
    def test_header_only_for_empty_history(self) -> None:
        self.assertEqual(render_transactions_csv([]), ",".join(EXPORT_COLUMNS) + "\n")

    def test_rows_are_rendered(self) -> None:
        entries = [
            LedgerEntry(
                id=3,
                owner_id=1,
                title="Lunch, with team",
                amount=Decimal("12.5"),
                type=TransactionType.EXPENSE,
                date=datetime(2024, 2, 3, 12, 15),
                category_id=2,
                category_name="Food",
            ),
            LedgerEntry(
                id=4,
                owner_id=1,
                title="Refund",
                amount=Decimal("7.005"),
                type=TransactionType.REVENUE,
                date=datetime(2024, 2, 4),
                category_id=9,
            ),
        ]

        rows = list(csv.reader(io.StringIO(render_transactions_csv(entries))))

        self.assertEqual(rows[0], EXPORT_COLUMNS)
        self.assertEqual(rows[1], ["3", "2024-02-03", "Lunch, with team", "expense", "Food", "12.50"])
        self.assertEqual(rows[2], ["4", "2024-02-04", "Refund", "revenue", "", "7.01"])


if __name__ == "__main__":
    unittest.main()
