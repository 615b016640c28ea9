import logging
import os
from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal

from fastapi import FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from finboard.errors import NotFoundError
from finboard.exporting import render_transactions_csv
from finboard.ledger import LedgerEntry, TransactionType, round_money
from finboard.report_engine import (
    balance_summary,
    category_breakdown,
    category_distribution,
    category_trends,
    chart_data,
    compare_category_periods,
    dashboard_summary,
    monthly_balance,
    recent_transactions,
    top_categories,
    transaction_details,
    transaction_stats,
    yearly_comparison,
)
from finboard.security import (
    InvalidTokenError,
    create_access_token,
    decode_access_token,
    extract_bearer_token,
    hash_password,
    is_token_revoked,
    revoke_token,
    verify_password,
)
from finboard.storage import (
    SqlTransactionSource,
    categories,
    create_database_engine,
    metadata,
    transactions,
    users,
    utc_now,
)
from finboard.transaction_filter import build_transaction_filter

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finboard")

app = FastAPI(title="finboard")

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = create_database_engine()
report_source = SqlTransactionSource(engine)

CATEGORY_NAME_MIN = 2
CATEGORY_NAME_MAX = 50
TITLE_MAX = 100


@app.on_event("startup")
def init_db() -> None:
    metadata.create_all(engine)
    logger.info("Database schema ready")


@app.exception_handler(SQLAlchemyError)
def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Database error while handling %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


class RegisterPayload(BaseModel):
    username: str
    email: str
    password: str

    @classmethod
    def validate_payload(cls, payload: "RegisterPayload") -> "RegisterPayload":
        payload.username = payload.username.strip()
        payload.email = payload.email.strip().lower()
        if not payload.username or not payload.email or not payload.password:
            raise ValueError("Username, email and password are required.")
        return payload


class LoginPayload(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime | None = None


class TokenResponse(BaseModel):
    token: str
    user: UserResponse


class CategoryPayload(BaseModel):
    name: str
    type: str

    @classmethod
    def validate_payload(cls, payload: "CategoryPayload") -> "CategoryPayload":
        payload.name = payload.name.strip()
        if not CATEGORY_NAME_MIN <= len(payload.name) <= CATEGORY_NAME_MAX:
            raise ValueError("Category name must be between 2 and 50 characters.")
        payload.type = TransactionType.validate(payload.type).value
        return payload


class CategoryResponse(BaseModel):
    id: int
    user_id: int
    name: str
    type: TransactionType
    created_at: datetime | None = None


class TransactionPayload(BaseModel):
    title: str
    amount: Decimal
    type: str
    category_id: int
    date: datetime | None = None

    @classmethod
    def validate_payload(cls, payload: "TransactionPayload") -> "TransactionPayload":
        payload.title = validate_title(payload.title)
        payload.amount = validate_amount(payload.amount)
        payload.type = TransactionType.validate(payload.type).value
        if payload.date is not None:
            payload.date = to_naive_utc(payload.date)
        return payload


class TransactionUpdatePayload(BaseModel):
    title: str | None = None
    amount: Decimal | None = None
    type: str | None = None
    category_id: int | None = None
    date: datetime | None = None

    @classmethod
    def validate_payload(
        cls, payload: "TransactionUpdatePayload"
    ) -> "TransactionUpdatePayload":
        if payload.title is not None:
            payload.title = validate_title(payload.title)
        if payload.amount is not None:
            payload.amount = validate_amount(payload.amount)
        if payload.type is not None:
            payload.type = TransactionType.validate(payload.type).value
        if payload.date is not None:
            payload.date = to_naive_utc(payload.date)
        return payload


class TransactionResponse(BaseModel):
    id: int
    title: str
    amount: Decimal
    type: TransactionType
    category_id: int | None = None
    category_name: str | None = None
    date: datetime


class CategoryTotalResponse(BaseModel):
    category: int | None = None
    name: str | None = None
    total: Decimal


class TypeTotalsResponse(BaseModel):
    total: Decimal
    categories: list[CategoryTotalResponse]


class DashboardResponse(BaseModel):
    revenue: TypeTotalsResponse
    expense: TypeTotalsResponse
    net_balance: Decimal


class BalanceSummaryResponse(BaseModel):
    revenue_total: Decimal
    expense_total: Decimal
    net_balance: Decimal
    is_positive: bool


class TypeEntryResponse(BaseModel):
    type: TransactionType
    total: Decimal
    categories: list[CategoryTotalResponse]


class ChartBucketResponse(BaseModel):
    bucket: str
    entries: list[TypeEntryResponse]


class CategoryShareResponse(BaseModel):
    category: int | None = None
    name: str | None = None
    total: Decimal
    percentage: Decimal


class TrendBucketResponse(BaseModel):
    bucket: str
    categories: list[CategoryTotalResponse]


class PeriodTotalResponse(BaseModel):
    period: str
    total: Decimal


class CategoryComparisonResponse(BaseModel):
    category: int | None = None
    name: str | None = None
    periods: list[PeriodTotalResponse]
    delta: Decimal


class MonthlyBalanceResponse(BaseModel):
    month: int
    revenue: Decimal
    expense: Decimal
    balance: Decimal


class YearlyTotalsResponse(BaseModel):
    year: int
    revenue: Decimal
    expense: Decimal
    balance: Decimal


class TransactionStatsResponse(BaseModel):
    total_transactions: int
    total_revenue: Decimal
    total_expense: Decimal
    avg_transaction: Decimal | None = None
    max_transaction: Decimal | None = None
    min_transaction: Decimal | None = None


class TransactionPageResponse(BaseModel):
    transactions: list[TransactionResponse]
    total: int
    page: int
    total_pages: int


def validate_title(value: str) -> str:
    title = value.strip()
    if not title:
        raise ValueError("Title required.")
    if len(title) > TITLE_MAX:
        raise ValueError("Title must be at most 100 characters.")
    return title


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def validate_amount(value: Decimal) -> Decimal:
    if not value.is_finite() or value <= 0:
        raise ValueError("Amount must be greater than zero.")
    return round_money(value)


def to_transaction_response(entry: LedgerEntry) -> TransactionResponse:
    return TransactionResponse(
        id=entry.id,
        title=entry.title,
        amount=entry.amount,
        type=entry.type,
        category_id=entry.category_id,
        category_name=entry.category_name,
        date=entry.date,
    )


def to_category_response(row) -> CategoryResponse:
    return CategoryResponse(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        type=row["type"],
        created_at=row["created_at"],
    )


def get_user_id(authorization: str | None) -> int:
    token = extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required.")
    try:
        user_id = decode_access_token(token)
    except InvalidTokenError as exc:
        logger.warning("Rejected invalid access token")
        raise HTTPException(status_code=401, detail="Invalid token.") from exc
    with engine.begin() as conn:
        if is_token_revoked(conn, token):
            logger.warning("Rejected revoked access token for user %s", user_id)
            raise HTTPException(status_code=401, detail="Token has been revoked.")
        result = conn.execute(select(users.c.id).where(users.c.id == user_id))
        if not result.first():
            raise HTTPException(status_code=401, detail="User not found.")
    return user_id


def run_report(report, *args, **kwargs):
    try:
        return report(report_source, *args, **kwargs)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


def require_owned_category(conn, user_id: int, category_id: int, txn_type: str) -> None:
    row = conn.execute(
        select(categories.c.type).where(
            categories.c.id == category_id, categories.c.user_id == user_id
        )
    ).first()
    if not row:
        raise HTTPException(status_code=404, detail="Category not found.")
    if row[0] != txn_type:
        raise HTTPException(
            status_code=400, detail="Category type does not match transaction type."
        )


@app.get("/")
def root() -> dict:
    return {"message": "Welcome to the finboard personal finance API."}


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/api/users/register", response_model=TokenResponse, status_code=201)
def register(payload: RegisterPayload) -> TokenResponse:
    try:
        payload = RegisterPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with engine.begin() as conn:
        existing = conn.execute(
            select(users.c.id).where(
                or_(users.c.email == payload.email, users.c.username == payload.username)
            )
        ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Username or email already in use.")

    stmt = (
        insert(users)
        .values(
            username=payload.username,
            email=payload.email,
            hashed_password=hash_password(payload.password),
        )
        .returning(users.c.id, users.c.username, users.c.email, users.c.created_at)
    )
    try:
        with engine.begin() as conn:
            row = conn.execute(stmt).mappings().first()
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Username or email already in use.") from exc

    if not row:
        raise HTTPException(status_code=500, detail="Failed to create user.")
    logger.info("Registered user %s", row["id"])
    return TokenResponse(
        token=create_access_token(row["id"]),
        user=UserResponse(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            created_at=row["created_at"],
        ),
    )


@app.post("/api/users/login", response_model=TokenResponse)
def login(payload: LoginPayload) -> TokenResponse:
    email = payload.email.strip().lower()
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required.")
    with engine.begin() as conn:
        row = conn.execute(select(users).where(users.c.email == email)).mappings().first()

    if not row or not verify_password(payload.password, row["hashed_password"]):
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid email or password.")

    return TokenResponse(
        token=create_access_token(row["id"]),
        user=UserResponse(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            created_at=row["created_at"],
        ),
    )


@app.post("/api/users/logout")
def logout(authorization: str | None = Header(None)) -> dict:
    user_id = get_user_id(authorization)
    token = extract_bearer_token(authorization)
    with engine.begin() as conn:
        revoke_token(conn, token)
    logger.info("User %s logged out", user_id)
    return {"status": "logged_out"}


@app.get("/api/categories", response_model=list[CategoryResponse])
def list_categories(
    type: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[CategoryResponse]:
    user_id = get_user_id(authorization)
    conditions = [categories.c.user_id == user_id]
    if type is not None:
        try:
            conditions.append(categories.c.type == TransactionType.require(type).value)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    with engine.begin() as conn:
        rows = conn.execute(
            select(categories)
            .where(*conditions)
            .order_by(categories.c.name.asc(), categories.c.id.asc())
        ).mappings().all()
    return [to_category_response(row) for row in rows]


@app.post("/api/categories", response_model=CategoryResponse, status_code=201)
def create_category(
    payload: CategoryPayload, authorization: str | None = Header(None)
) -> CategoryResponse:
    user_id = get_user_id(authorization)
    try:
        payload = CategoryPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    stmt = (
        insert(categories)
        .values(user_id=user_id, name=payload.name, type=payload.type)
        .returning(
            categories.c.id,
            categories.c.user_id,
            categories.c.name,
            categories.c.type,
            categories.c.created_at,
        )
    )
    try:
        with engine.begin() as conn:
            row = conn.execute(stmt).mappings().first()
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Category already exists.") from exc

    if not row:
        raise HTTPException(status_code=500, detail="Failed to create category.")
    return to_category_response(row)


@app.get("/api/categories/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: int, authorization: str | None = Header(None)
) -> CategoryResponse:
    user_id = get_user_id(authorization)
    with engine.begin() as conn:
        row = conn.execute(
            select(categories).where(
                categories.c.id == category_id, categories.c.user_id == user_id
            )
        ).mappings().first()
    if not row:
        raise HTTPException(status_code=404, detail="Category not found.")
    return to_category_response(row)


@app.put("/api/categories/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: int,
    payload: CategoryPayload,
    authorization: str | None = Header(None),
) -> CategoryResponse:
    user_id = get_user_id(authorization)
    try:
        payload = CategoryPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    stmt = (
        update(categories)
        .where(categories.c.id == category_id, categories.c.user_id == user_id)
        .values(name=payload.name, type=payload.type)
        .returning(
            categories.c.id,
            categories.c.user_id,
            categories.c.name,
            categories.c.type,
            categories.c.created_at,
        )
    )
    try:
        with engine.begin() as conn:
            current = conn.execute(
                select(categories.c.type).where(
                    categories.c.id == category_id, categories.c.user_id == user_id
                )
            ).first()
            if not current:
                raise HTTPException(status_code=404, detail="Category not found.")
            if current[0] != payload.type:
                in_use = conn.execute(
                    select(transactions.c.id)
                    .where(
                        transactions.c.category_id == category_id,
                        transactions.c.user_id == user_id,
                    )
                    .limit(1)
                ).first()
                if in_use:
                    raise HTTPException(
                        status_code=409,
                        detail="Category type cannot change while transactions use it.",
                    )
            row = conn.execute(stmt).mappings().first()
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Category already exists.") from exc

    if not row:
        raise HTTPException(status_code=404, detail="Category not found.")
    return to_category_response(row)


@app.delete("/api/categories/{category_id}")
def delete_category(category_id: int, authorization: str | None = Header(None)) -> dict:
    user_id = get_user_id(authorization)
    stmt = categories.delete().where(
        categories.c.id == category_id, categories.c.user_id == user_id
    )
    with engine.begin() as conn:
        result = conn.execute(stmt)
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Category not found.")
    return {"status": "deleted"}


@app.get("/api/transactions", response_model=list[TransactionResponse])
def list_transactions(authorization: str | None = Header(None)) -> list[TransactionResponse]:
    user_id = get_user_id(authorization)
    entries = report_source.fetch_transactions(build_transaction_filter(user_id))
    return [to_transaction_response(entry) for entry in entries]


@app.get("/api/transactions/filtered", response_model=list[TransactionResponse])
def list_filtered_transactions(
    type: str | None = Query(None),
    start_date: str | None = Query(None),
    end_date: str | None = Query(None),
    search_term: str | None = Query(None),
    category_id: int | None = Query(None),
    authorization: str | None = Header(None),
) -> list[TransactionResponse]:
    user_id = get_user_id(authorization)
    try:
        criteria = build_transaction_filter(
            user_id,
            type=type,
            start_date=start_date,
            end_date=end_date,
            search_term=search_term,
            category_id=category_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [to_transaction_response(entry) for entry in report_source.fetch_transactions(criteria)]


@app.get("/api/transactions/export")
def export_transactions(
    type: str | None = Query(None),
    start_date: str | None = Query(None),
    end_date: str | None = Query(None),
    search_term: str | None = Query(None),
    category_id: int | None = Query(None),
    authorization: str | None = Header(None),
) -> Response:
    user_id = get_user_id(authorization)
    try:
        criteria = build_transaction_filter(
            user_id,
            type=type,
            start_date=start_date,
            end_date=end_date,
            search_term=search_term,
            category_id=category_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    content = render_transactions_csv(report_source.fetch_transactions(criteria))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="transactions.csv"'},
    )


@app.post("/api/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    payload: TransactionPayload, authorization: str | None = Header(None)
) -> TransactionResponse:
    user_id = get_user_id(authorization)
    try:
        payload = TransactionPayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    with engine.begin() as conn:
        require_owned_category(conn, user_id, payload.category_id, payload.type)
        result = conn.execute(
            insert(transactions)
            .values(
                user_id=user_id,
                category_id=payload.category_id,
                title=payload.title,
                amount=payload.amount,
                type=payload.type,
                date=payload.date or utc_now(),
            )
            .returning(transactions.c.id)
        )
        transaction_id = result.scalar_one()

    entry = report_source.get_transaction(user_id, transaction_id)
    if entry is None:
        raise HTTPException(status_code=500, detail="Failed to create transaction.")
    return to_transaction_response(entry)


@app.get("/api/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int, authorization: str | None = Header(None)
) -> TransactionResponse:
    user_id = get_user_id(authorization)
    entry = run_report(transaction_details, user_id, transaction_id)
    return to_transaction_response(entry)


@app.put("/api/transactions/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdatePayload,
    authorization: str | None = Header(None),
) -> TransactionResponse:
    user_id = get_user_id(authorization)
    try:
        payload = TransactionUpdatePayload.validate_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    changes = payload.model_dump(exclude_none=True)
    with engine.begin() as conn:
        existing = conn.execute(
            select(transactions.c.type, transactions.c.category_id).where(
                transactions.c.id == transaction_id, transactions.c.user_id == user_id
            )
        ).mappings().first()
        if not existing:
            raise HTTPException(status_code=404, detail="Transaction not found.")
        if "category_id" in changes or "type" in changes:
            require_owned_category(
                conn,
                user_id,
                changes.get("category_id", existing["category_id"]),
                changes.get("type", existing["type"]),
            )
        if changes:
            conn.execute(
                update(transactions)
                .where(transactions.c.id == transaction_id, transactions.c.user_id == user_id)
                .values(**changes)
            )

    entry = report_source.get_transaction(user_id, transaction_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Transaction not found.")
    return to_transaction_response(entry)


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(transaction_id: int, authorization: str | None = Header(None)) -> dict:
    user_id = get_user_id(authorization)
    stmt = transactions.delete().where(
        transactions.c.id == transaction_id, transactions.c.user_id == user_id
    )
    with engine.begin() as conn:
        result = conn.execute(stmt)
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Transaction not found.")
    return {"status": "deleted"}


@app.get("/api/dashboard/data", response_model=DashboardResponse)
def get_dashboard_data(authorization: str | None = Header(None)) -> DashboardResponse:
    user_id = get_user_id(authorization)
    summary = run_report(dashboard_summary, user_id)
    return DashboardResponse.model_validate(asdict(summary))


@app.get("/api/dashboard/summary", response_model=BalanceSummaryResponse)
def get_balance_summary(authorization: str | None = Header(None)) -> BalanceSummaryResponse:
    user_id = get_user_id(authorization)
    summary = run_report(balance_summary, user_id)
    return BalanceSummaryResponse.model_validate(asdict(summary))


@app.get("/api/dashboard/chart", response_model=list[ChartBucketResponse])
def get_chart_data(
    period: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[ChartBucketResponse]:
    user_id = get_user_id(authorization)
    buckets = run_report(chart_data, user_id, period=period)
    return [ChartBucketResponse.model_validate(asdict(bucket)) for bucket in buckets]


@app.get("/api/dashboard/category-chart", response_model=list[CategoryTotalResponse])
def get_category_chart(
    type: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[CategoryTotalResponse]:
    user_id = get_user_id(authorization)
    items = run_report(category_breakdown, user_id, type)
    return [CategoryTotalResponse.model_validate(asdict(item)) for item in items]


@app.get("/api/dashboard/category-distribution", response_model=list[CategoryShareResponse])
def get_category_distribution(
    type: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[CategoryShareResponse]:
    user_id = get_user_id(authorization)
    items = run_report(category_distribution, user_id, type)
    return [CategoryShareResponse.model_validate(asdict(item)) for item in items]


@app.get("/api/dashboard/category-trends", response_model=list[TrendBucketResponse])
def get_category_trends(
    type: str | None = Query(None),
    period: str | None = Query("monthly"),
    authorization: str | None = Header(None),
) -> list[TrendBucketResponse]:
    user_id = get_user_id(authorization)
    buckets = run_report(category_trends, user_id, type, period=period)
    return [TrendBucketResponse.model_validate(asdict(bucket)) for bucket in buckets]


@app.get(
    "/api/dashboard/category-period-comparison",
    response_model=list[CategoryComparisonResponse],
)
def get_category_period_comparison(
    type: str | None = Query(None),
    start_date1: str | None = Query(None),
    end_date1: str | None = Query(None),
    start_date2: str | None = Query(None),
    end_date2: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[CategoryComparisonResponse]:
    user_id = get_user_id(authorization)
    comparisons = run_report(
        compare_category_periods,
        user_id,
        type,
        start_date1,
        end_date1,
        start_date2,
        end_date2,
    )
    return [CategoryComparisonResponse.model_validate(asdict(item)) for item in comparisons]


@app.get("/api/dashboard/top-categories", response_model=list[CategoryTotalResponse])
def get_top_categories(
    type: str | None = Query(None),
    limit: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[CategoryTotalResponse]:
    user_id = get_user_id(authorization)
    items = run_report(top_categories, user_id, type, limit=limit)
    return [CategoryTotalResponse.model_validate(asdict(item)) for item in items]


@app.get("/api/dashboard/recent-transactions", response_model=TransactionPageResponse)
def get_recent_transactions(
    limit: str | None = Query(None),
    page: str | None = Query(None),
    authorization: str | None = Header(None),
) -> TransactionPageResponse:
    user_id = get_user_id(authorization)
    result = run_report(recent_transactions, user_id, limit=limit, page=page)
    return TransactionPageResponse(
        transactions=[to_transaction_response(entry) for entry in result.transactions],
        total=result.total,
        page=result.page,
        total_pages=result.total_pages,
    )


@app.get("/api/dashboard/transaction/{transaction_id}", response_model=TransactionResponse)
def get_transaction_details(
    transaction_id: int, authorization: str | None = Header(None)
) -> TransactionResponse:
    user_id = get_user_id(authorization)
    return to_transaction_response(run_report(transaction_details, user_id, transaction_id))


@app.get("/api/dashboard/transaction-stats", response_model=TransactionStatsResponse)
def get_transaction_stats(
    start_date: str | None = Query(None),
    end_date: str | None = Query(None),
    authorization: str | None = Header(None),
) -> TransactionStatsResponse:
    user_id = get_user_id(authorization)
    stats = run_report(transaction_stats, user_id, start_date=start_date, end_date=end_date)
    return TransactionStatsResponse.model_validate(asdict(stats))


@app.get("/api/dashboard/monthly-balance", response_model=list[MonthlyBalanceResponse])
def get_monthly_balance(
    year: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[MonthlyBalanceResponse]:
    user_id = get_user_id(authorization)
    months = run_report(monthly_balance, user_id, year)
    return [MonthlyBalanceResponse.model_validate(asdict(item)) for item in months]


@app.get("/api/dashboard/yearly-comparison", response_model=list[YearlyTotalsResponse])
def get_yearly_comparison(
    year: str | None = Query(None),
    authorization: str | None = Header(None),
) -> list[YearlyTotalsResponse]:
    user_id = get_user_id(authorization)
    years = run_report(yearly_comparison, user_id, year)
    return [YearlyTotalsResponse.model_validate(asdict(item)) for item in years]
