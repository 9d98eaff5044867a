"""
Identity service — auth controller (request orchestration layer).

Responsibilities:
  - Receive parsed input from the router and check the flow's required fields.
  - Normalize phone numbers once, so every later step keys on the same form.
  - Call service functions and the OTP gateway, then compose the response.

No business logic here — that belongs in service.py.
"""
from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.constants import WELCOME_SMS_BODY
from app.auth.models import User
from app.auth.phone import mask_phone, normalize_phone
from app.auth.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    OTPRequestSchema,
    OTPResponse,
    OTPVerifyRequest,
    PasswordResetRequest,
    RegisteredUser,
    RegisterRequest,
    RegisterResponse,
    UserProfile,
)
from app.auth.service import (
    authenticate_user,
    clear_phone_verification,
    create_access_token,
    ensure_user_absent,
    get_user_by_id,
    is_phone_verified,
    mark_phone_verified,
    record_login,
    register_user,
    require_user_by_phone,
    reset_password as reset_user_password,
)
from app.config import Settings
from app.exceptions import (
    InvalidOTP,
    InvalidOrExpiredOTP,
    MissingFields,
    OTPCheckFailed,
    OTPDeliveryFailed,
    OTPNotVerified,
    UserNotFound,
)
from app.permissions.service import create_permission
from app.sms.twilio import TwilioGateway
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _issue_token(user: User, settings: Settings) -> str:
    return create_access_token(
        user_id=user.id,
        role=user.role,
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        expire_seconds=settings.jwt_expire_seconds,
    )


async def send_welcome_sms(gateway: TwilioGateway, phone_number: str) -> None:
    """Best-effort; registration has already succeeded when this runs."""
    try:
        sent = await gateway.send_message(phone_number, WELCOME_SMS_BODY)
    except Exception:
        logger.warning("Welcome SMS to %s raised", mask_phone(phone_number), exc_info=True)
        return
    if not sent:
        logger.warning("Welcome SMS to %s was not sent", mask_phone(phone_number))


# ── OTP: request ─────────────────────────────────────────────────────────────

async def request_otp(
    body: OTPRequestSchema,
    gateway: TwilioGateway,
) -> OTPResponse:
    if not body.phone_number or not body.country_code:
        raise MissingFields("Phone number and country code are required")

    phone_number = normalize_phone(body.phone_number, body.country_code)
    result = await gateway.request_code(phone_number)
    if not result.success:
        raise OTPDeliveryFailed(result.error)
    return OTPResponse(status=result.status, message="OTP sent successfully")


# ── OTP: verify ──────────────────────────────────────────────────────────────

async def verify_otp(
    body: OTPVerifyRequest,
    gateway: TwilioGateway,
    redis: aioredis.Redis,
    settings: Settings,
) -> OTPResponse:
    """
    Check the code with the provider and, on approval, remember it for the
    register / reset-password step that follows.
    """
    if not body.phone_number or not body.country_code or not body.otp:
        raise MissingFields("Phone number, country code, and OTP are required")

    phone_number = normalize_phone(body.phone_number, body.country_code)
    result = await gateway.check_code(phone_number, body.otp)
    if not result.success:
        if result.status is None:
            # No provider verdict at all: transport or account failure.
            raise OTPCheckFailed(result.error)
        raise InvalidOTP(result.status, result.error or "Invalid OTP")

    await mark_phone_verified(
        redis, phone_number, body.otp, expire_seconds=settings.otp_verified_ttl_seconds
    )
    return OTPResponse(status=result.status, message="OTP verified successfully")


# ── Register ──────────────────────────────────────────────────────────────────

async def register(
    session: AsyncSession,
    body: RegisterRequest,
    settings: Settings,
    redis: aioredis.Redis,
    gateway: TwilioGateway,
    background_tasks: BackgroundTasks,
) -> RegisterResponse:
    if not all((body.phone_number, body.name, body.email, body.password, body.otp)):
        raise MissingFields("All fields are required")

    phone_number = normalize_phone(
        body.phone_number, body.country_code or settings.default_country_code
    )
    if not phone_number:
        raise MissingFields("All fields are required")

    # Conflicts are reported before anything else, whatever the other fields hold.
    await ensure_user_absent(session, phone_number=phone_number, email=body.email)

    if settings.require_verified_phone and not await is_phone_verified(
        redis, phone_number, body.otp, expire_seconds=settings.otp_verified_ttl_seconds
    ):
        raise OTPNotVerified()

    user = await register_user(
        session,
        phone_number=phone_number,
        name=body.name,
        email=body.email,
        password=body.password,
    )
    if body.permissions is not None:
        await create_permission(session, user_id=user.id, payload=body.permissions)

    token = _issue_token(user, settings)
    if settings.require_verified_phone:
        await clear_phone_verification(redis, phone_number)

    background_tasks.add_task(send_welcome_sms, gateway, phone_number)
    logger.info("Registered user %s (%s)", user.id, mask_phone(phone_number))

    return RegisterResponse(
        token=token,
        user=RegisteredUser(
            user_id=str(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            phone_number=user.phone_number,
        ),
    )


# ── Login ─────────────────────────────────────────────────────────────────────

async def login(
    session: AsyncSession,
    body: LoginRequest,
    settings: Settings,
) -> LoginResponse:
    if not body.email or not body.password:
        raise MissingFields("Email and password are required")

    user = await authenticate_user(session, body.email, body.password)
    await record_login(session, user)
    logger.info("User %s logged in", user.id)
    return LoginResponse(
        token=_issue_token(user, settings),
        user_id=str(user.id),
        role=user.role,
    )


# ── Current user ──────────────────────────────────────────────────────────────

async def me(
    session: AsyncSession,
    current_user: CurrentUser,
) -> MeResponse:
    user = await get_user_by_id(session, current_user.id)
    if user is None:
        raise UserNotFound()
    return MeResponse(
        user=UserProfile(
            user_id=str(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
        )
    )


# ── Password reset ────────────────────────────────────────────────────────────

async def reset_password(
    session: AsyncSession,
    body: PasswordResetRequest,
    redis: aioredis.Redis,
    settings: Settings,
) -> MessageResponse:
    """
    Set a new password for the account behind a recently verified number.

    Requires that /verify-otp approved this exact code for this number within
    the validity window; the approval is single-use.
    """
    if not body.phone_number or not body.otp or not body.new_password:
        raise MissingFields("Phone number, OTP, and new password are required")

    phone_number = normalize_phone(
        body.phone_number, body.country_code or settings.default_country_code
    )
    user = await require_user_by_phone(session, phone_number)

    if not await is_phone_verified(
        redis, phone_number, body.otp, expire_seconds=settings.otp_verified_ttl_seconds
    ):
        raise InvalidOrExpiredOTP()

    await reset_user_password(session, user=user, new_password=body.new_password)
    await clear_phone_verification(redis, phone_number)
    logger.info("Password reset for user %s", user.id)
    return MessageResponse(message="Password reset successful")
