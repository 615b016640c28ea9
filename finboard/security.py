from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import delete, select
from sqlalchemy.engine import Connection

from finboard.storage import blacklisted_tokens, utc_now

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "finboard-development-secret"
JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
BLACKLIST_TTL = timedelta(hours=24)

if JWT_SECRET == DEFAULT_JWT_SECRET:
    logger.warning("JWT_SECRET is not set; using the development secret.")


class InvalidTokenError(Exception):
    pass


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(hours=JWT_EXPIRE_HOURS))
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": expire,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidTokenError("Invalid token.") from exc
    subject = claims.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise InvalidTokenError("Invalid token.") from exc


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if value.startswith("Bearer "):
        value = value[len("Bearer "):].strip()
    return value or None


def revoke_token(conn: Connection, token: str) -> None:
    purge_expired_tokens(conn)
    exists = conn.execute(
        select(blacklisted_tokens.c.id).where(blacklisted_tokens.c.token == token)
    ).first()
    if exists:
        return
    conn.execute(blacklisted_tokens.insert().values(token=token, created_at=utc_now()))


def is_token_revoked(conn: Connection, token: str) -> bool:
    cutoff = utc_now() - BLACKLIST_TTL
    row = conn.execute(
        select(blacklisted_tokens.c.id).where(
            blacklisted_tokens.c.token == token,
            blacklisted_tokens.c.created_at > cutoff,
        )
    ).first()
    return row is not None


def purge_expired_tokens(conn: Connection) -> int:
    cutoff = utc_now() - BLACKLIST_TTL
    result = conn.execute(
        delete(blacklisted_tokens).where(blacklisted_tokens.c.created_at <= cutoff)
    )
    return result.rowcount or 0
