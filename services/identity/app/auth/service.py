"""
Identity service — pure business logic for authentication.

Rules:
  - Zero FastAPI imports beyond the domain exceptions.
  - Zero direct DB driver calls — only SQLAlchemy async session.
  - Short-lived cross-request state (phone verification approvals) lives in
    Redis with a TTL; the client is always passed in, never module-global.
"""
from __future__ import annotations

import json
import secrets
import time
import uuid
from datetime import datetime, timedelta, timezone

import redis.asyncio as aioredis
from jose import jwt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.constants import OTP_VERIFIED_EXPIRE_SECONDS, SESSION_TOKEN_EXPIRE_SECONDS
from app.auth.models import User
from app.auth.utils import hash_password, verify_password
from app.exceptions import InvalidCredentials, UserAlreadyExists, UserNotFound
from shared.constants import Role


# ── User queries ──────────────────────────────────────────────────────────────

async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(
        select(User).where(func.lower(User.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def get_user_by_phone(
    session: AsyncSession, phone_number: str
) -> User | None:
    result = await session.execute(
        select(User).where(User.phone_number == phone_number)
    )
    return result.scalar_one_or_none()


async def get_user_by_id(
    session: AsyncSession, user_id: uuid.UUID
) -> User | None:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


# ── Registration ──────────────────────────────────────────────────────────────

async def ensure_user_absent(
    session: AsyncSession, *, phone_number: str, email: str
) -> None:
    """Raise UserAlreadyExists if the phone number or the email is taken."""
    if await get_user_by_phone(session, phone_number) is not None:
        raise UserAlreadyExists()
    if await get_user_by_email(session, email) is not None:
        raise UserAlreadyExists()


async def register_user(
    session: AsyncSession,
    *,
    phone_number: str,
    name: str,
    email: str,
    password: str,
    role: Role = Role.USER,
) -> User:
    """
    Create a user account.

    Uses flush() so the caller can use user.id and add dependent rows in the
    same transaction.  A concurrent insert that slips past the pre-checks is
    caught by the unique constraints and reported the same way.
    """
    await ensure_user_absent(session, phone_number=phone_number, email=email)

    user = User(
        phone_number=phone_number,
        name=name,
        email=email.lower(),
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        last_login_at=datetime.now(timezone.utc),
    )
    session.add(user)
    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise UserAlreadyExists()
    return user


# ── Authentication ────────────────────────────────────────────────────────────

async def authenticate_user(
    session: AsyncSession,
    email: str,
    password: str,
) -> User:
    """
    Verify credentials and return the User.

    Every failure (unknown email, deactivated account, wrong password) raises
    the same InvalidCredentials so responses cannot be used to enumerate
    accounts.
    """
    user = await get_user_by_email(session, email)
    if user is None or not user.is_active:
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentials()
    return user


async def record_login(session: AsyncSession, user: User) -> None:
    """Stamp last_login_at without ending the transaction."""
    user.last_login_at = datetime.now(timezone.utc)
    await session.flush()


# ── Session token ─────────────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: Role,
    secret: str,
    algorithm: str,
    issuer: str,
    audience: str,
    expire_seconds: int = SESSION_TOKEN_EXPIRE_SECONDS,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(seconds=expire_seconds),
        "iss": issuer,
        "aud": audience,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


# ── Phone verification bridge (Redis-backed, short TTL) ───────────────────────

_OTP_VERIFIED_PREFIX = "otp_verified:"


def _verified_key(phone_number: str) -> str:
    return f"{_OTP_VERIFIED_PREFIX}{phone_number}"


async def mark_phone_verified(
    redis: aioredis.Redis,
    phone_number: str,
    otp: str,
    expire_seconds: int = OTP_VERIFIED_EXPIRE_SECONDS,
) -> None:
    """
    Record that the provider approved ``otp`` for ``phone_number``.

    A later verification for the same number overwrites the entry.  The TTL
    evicts it; the stored timestamp is checked as well so the window holds
    even if the TTL is longer than configured validity.
    """
    entry = {"otp": otp, "verified_at": time.time(), "verified": True}
    await redis.setex(_verified_key(phone_number), expire_seconds, json.dumps(entry))


async def is_phone_verified(
    redis: aioredis.Redis,
    phone_number: str,
    otp: str,
    expire_seconds: int = OTP_VERIFIED_EXPIRE_SECONDS,
) -> bool:
    """True if the same ``otp`` was approved for this number within the window."""
    raw = await redis.get(_verified_key(phone_number))
    if raw is None:
        return False
    try:
        entry = json.loads(raw)
        verified_at = float(entry["verified_at"])
        stored_otp = str(entry["otp"])
    except (ValueError, KeyError, TypeError):
        return False
    if not entry.get("verified"):
        return False
    if time.time() - verified_at >= expire_seconds:
        return False
    return secrets.compare_digest(stored_otp, otp)


async def clear_phone_verification(redis: aioredis.Redis, phone_number: str) -> None:
    await redis.delete(_verified_key(phone_number))


# ── Password reset ────────────────────────────────────────────────────────────

async def reset_password(
    session: AsyncSession,
    *,
    user: User,
    new_password: str,
) -> None:
    """Replace the password hash.  Verification is the caller's job."""
    user.password_hash = hash_password(new_password)
    await session.flush()


async def require_user_by_phone(session: AsyncSession, phone_number: str) -> User:
    user = await get_user_by_phone(session, phone_number)
    if user is None:
        raise UserNotFound()
    return user
