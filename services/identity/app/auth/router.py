"""
Identity service — auth router.

Only HTTP concerns live here:
  - Route declarations, HTTP methods, status codes, response_model
  - Dependency injection (session, settings, Redis, OTP gateway, current user)
  - Forwarding to the controller

Zero business logic. Zero DB queries.
"""
from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.controller import (
    login as login_controller,
    me as me_controller,
    register as register_controller,
    request_otp as request_otp_controller,
    reset_password as reset_password_controller,
    verify_otp as verify_otp_controller,
)
from app.auth.dependencies import get_current_user, get_gateway, get_redis
from app.auth.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    OTPRequestSchema,
    OTPResponse,
    OTPVerifyRequest,
    PasswordResetRequest,
    RegisterRequest,
    RegisterResponse,
)
from app.config import Settings, get_settings
from app.database import get_db
from app.sms.twilio import TwilioGateway
from shared.models.user import CurrentUser

router = APIRouter(prefix="/auth", tags=["auth"])


# ── OTP flow ──────────────────────────────────────────────────────────────────

@router.post(
    "/request-otp",
    response_model=OTPResponse,
    summary="Send a verification code by SMS",
)
async def request_otp(
    body: OTPRequestSchema,
    gateway: TwilioGateway = Depends(get_gateway),
) -> OTPResponse:
    return await request_otp_controller(body, gateway)


@router.post(
    "/verify-otp",
    response_model=OTPResponse,
    summary="Check a verification code",
    description=(
        "On approval the number counts as verified for the next "
        "`OTP_VERIFIED_TTL_SECONDS` (default 5 minutes), long enough to "
        "complete registration or a password reset."
    ),
)
async def verify_otp(
    body: OTPVerifyRequest,
    gateway: TwilioGateway = Depends(get_gateway),
    redis: aioredis.Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> OTPResponse:
    return await verify_otp_controller(body, gateway, redis, settings)


# ── Registration / login ──────────────────────────────────────────────────────

@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register with a verified phone number",
)
async def register(
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    redis: aioredis.Redis = Depends(get_redis),
    gateway: TwilioGateway = Depends(get_gateway),
) -> RegisterResponse:
    return await register_controller(
        session, body, settings, redis, gateway, background_tasks
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login with email + password",
)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    return await login_controller(session, body, settings)


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Profile of the authenticated user",
)
async def me(
    session: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MeResponse:
    return await me_controller(session, current_user)


# ── Password reset ─────────────────────────────────────────────────────────────

@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Set a new password after verifying the phone number",
)
async def reset_password(
    body: PasswordResetRequest,
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    redis: aioredis.Redis = Depends(get_redis),
) -> MessageResponse:
    return await reset_password_controller(session, body, redis, settings)
