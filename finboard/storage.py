"""SQLAlchemy tables and the transaction source the report engine reads from."""
from __future__ import annotations

import logging
import os
from datetime import datetime, time, timedelta, timezone
from typing import List, Optional, Tuple

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine, RowMapping

from finboard.ledger import LedgerEntry, TransactionType, coerce_amount
from finboard.transaction_filter import TransactionFilter

logger = logging.getLogger(__name__)

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), unique=True, nullable=False),
    Column("email", String(255), unique=True, nullable=False),
    Column("hashed_password", String(255), nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

categories = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("name", String(50), nullable=False),
    Column("type", String(20), nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    UniqueConstraint("user_id", "name", "type", name="uq_categories_user_name_type"),
)

# category_id carries no foreign key: deleting a category leaves its transactions in place.
transactions = Table(
    "transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("category_id", Integer, nullable=False),
    Column("title", String(100), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("type", String(20), nullable=False),
    Column("date", DateTime, nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    Index("ix_transactions_user_date", "user_id", "date"),
)

blacklisted_tokens = Table(
    "blacklisted_tokens",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("token", String(1024), unique=True, nullable=False),
    Column("created_at", DateTime, nullable=False),
)


def create_database_engine(database_url: Optional[str] = None) -> Engine:
    url = database_url or os.getenv("DATABASE_URL", "sqlite:///./finboard.db")
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def filter_conditions(criteria: TransactionFilter) -> list:
    conditions = [transactions.c.user_id == criteria.owner_id]
    if criteria.type is not None:
        conditions.append(transactions.c.type == criteria.type.value)
    if criteria.has_date_range:
        conditions.append(transactions.c.date >= datetime.combine(criteria.start_date, time.min))
        conditions.append(
            transactions.c.date < datetime.combine(criteria.end_date + timedelta(days=1), time.min)
        )
    if criteria.search_term:
        conditions.append(
            func.lower(transactions.c.title).contains(criteria.search_term.lower(), autoescape=True)
        )
    if criteria.category_id is not None:
        conditions.append(transactions.c.category_id == criteria.category_id)
    return conditions


def ledger_select():
    join_stmt = transactions.outerjoin(
        categories,
        (categories.c.id == transactions.c.category_id)
        & (categories.c.user_id == transactions.c.user_id),
    )
    return select(transactions, categories.c.name.label("category_name")).select_from(join_stmt)


def entry_from_row(row: RowMapping) -> LedgerEntry:
    return LedgerEntry(
        id=row["id"],
        owner_id=row["user_id"],
        title=row["title"],
        amount=coerce_amount(row["amount"]),
        type=TransactionType.validate(row["type"]),
        date=row["date"],
        category_id=row["category_id"],
        category_name=row["category_name"],
    )


class SqlTransactionSource:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def fetch_transactions(self, criteria: TransactionFilter) -> List[LedgerEntry]:
        stmt = (
            ledger_select()
            .where(*filter_conditions(criteria))
            .order_by(transactions.c.date.desc(), transactions.c.id.desc())
        )
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
        logger.debug("Fetched %d transactions for user %s", len(rows), criteria.owner_id)
        return [entry_from_row(row) for row in rows]

    def fetch_page(
        self, criteria: TransactionFilter, limit: int, offset: int
    ) -> Tuple[List[LedgerEntry], int]:
        conditions = filter_conditions(criteria)
        stmt = (
            ledger_select()
            .where(*conditions)
            .order_by(transactions.c.date.desc(), transactions.c.id.desc())
            .limit(limit)
            .offset(offset)
        )
        count_stmt = select(func.count()).select_from(transactions).where(*conditions)
        with self.engine.begin() as conn:
            rows = conn.execute(stmt).mappings().all()
            total = conn.execute(count_stmt).scalar_one()
        return [entry_from_row(row) for row in rows], int(total or 0)

    def get_transaction(self, owner_id: int, transaction_id: int) -> Optional[LedgerEntry]:
        stmt = ledger_select().where(
            transactions.c.id == transaction_id,
            transactions.c.user_id == owner_id,
        )
        with self.engine.begin() as conn:
            row = conn.execute(stmt).mappings().first()
        return entry_from_row(row) if row else None
