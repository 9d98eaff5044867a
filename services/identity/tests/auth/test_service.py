import json
import time
import uuid

import pytest
from jose import jwt

from app.auth.service import (
    authenticate_user,
    clear_phone_verification,
    create_access_token,
    get_user_by_email,
    is_phone_verified,
    mark_phone_verified,
    register_user,
    reset_password,
)
from app.exceptions import InvalidCredentials, UserAlreadyExists
from shared.constants import Role


async def _make_user(db_session, phone="919876543210", email="svc@example.com", password="secret123"):
    return await register_user(
        db_session,
        phone_number=phone,
        name="Svc",
        email=email,
        password=password,
    )


@pytest.mark.asyncio
async def test_register_user(db_session) -> None:
    user = await _make_user(db_session)
    assert user.email == "svc@example.com"
    assert user.role is Role.USER
    assert user.is_active is True
    assert user.password_hash != "secret123"
    assert user.password_hash.startswith("$argon2")


@pytest.mark.asyncio
async def test_register_lowercases_email(db_session) -> None:
    user = await _make_user(db_session, email="Mixed@Example.com")
    assert user.email == "mixed@example.com"
    assert await get_user_by_email(db_session, "MIXED@example.com") is not None


@pytest.mark.asyncio
async def test_register_duplicate_phone_raises(db_session) -> None:
    await _make_user(db_session)
    with pytest.raises(UserAlreadyExists):
        await _make_user(db_session, email="other@example.com")


@pytest.mark.asyncio
async def test_register_duplicate_email_raises(db_session) -> None:
    await _make_user(db_session)
    with pytest.raises(UserAlreadyExists):
        await _make_user(db_session, phone="919123456780")


@pytest.mark.asyncio
async def test_authenticate_user(db_session) -> None:
    await _make_user(db_session, password="mypass")
    user = await authenticate_user(db_session, "svc@example.com", "mypass")
    assert user.email == "svc@example.com"


@pytest.mark.asyncio
async def test_authenticate_wrong_password(db_session) -> None:
    await _make_user(db_session, password="right")
    with pytest.raises(InvalidCredentials):
        await authenticate_user(db_session, "svc@example.com", "wrong")


@pytest.mark.asyncio
async def test_authenticate_inactive_user(db_session) -> None:
    user = await _make_user(db_session, password="right")
    user.is_active = False
    await db_session.flush()
    with pytest.raises(InvalidCredentials):
        await authenticate_user(db_session, "svc@example.com", "right")


@pytest.mark.asyncio
async def test_authenticate_rejects_plaintext_stored_password(db_session) -> None:
    user = await _make_user(db_session)
    user.password_hash = "plain"
    await db_session.flush()
    with pytest.raises(InvalidCredentials):
        await authenticate_user(db_session, "svc@example.com", "plain")


@pytest.mark.asyncio
async def test_reset_password_replaces_hash(db_session) -> None:
    user = await _make_user(db_session, password="old")
    await reset_password(db_session, user=user, new_password="new")
    assert (await authenticate_user(db_session, "svc@example.com", "new")).id == user.id
    with pytest.raises(InvalidCredentials):
        await authenticate_user(db_session, "svc@example.com", "old")


def test_access_token_claims() -> None:
    user_id = uuid.uuid4()
    token = create_access_token(
        user_id=user_id,
        role=Role.DOCTOR,
        secret="s",
        algorithm="HS256",
        issuer="iss",
        audience="aud",
        expire_seconds=86_400,
    )
    claims = jwt.decode(token, "s", algorithms=["HS256"], issuer="iss", audience="aud")
    assert claims["sub"] == str(user_id)
    assert claims["role"] == "doctor"
    assert claims["exp"] - claims["iat"] == 86_400


# ── Phone verification bridge ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_verification_round_trip(redis) -> None:
    await mark_phone_verified(redis, "919876543210", "123456")
    assert await is_phone_verified(redis, "919876543210", "123456")
    assert not await is_phone_verified(redis, "919876543210", "654321")
    assert not await is_phone_verified(redis, "919123456780", "123456")
    await clear_phone_verification(redis, "919876543210")
    assert not await is_phone_verified(redis, "919876543210", "123456")


@pytest.mark.asyncio
async def test_verification_expires_by_timestamp(redis) -> None:
    entry = {"otp": "123456", "verified_at": time.time() - 300, "verified": True}
    await redis.set("otp_verified:919876543210", json.dumps(entry))
    assert not await is_phone_verified(redis, "919876543210", "123456")


@pytest.mark.asyncio
async def test_verification_sets_ttl(redis) -> None:
    await mark_phone_verified(redis, "919876543210", "123456", expire_seconds=120)
    assert 0 < await redis.ttl("otp_verified:919876543210") <= 120


@pytest.mark.asyncio
async def test_verification_ignores_corrupt_entry(redis) -> None:
    await redis.set("otp_verified:919876543210", "not-json")
    assert not await is_phone_verified(redis, "919876543210", "123456")
