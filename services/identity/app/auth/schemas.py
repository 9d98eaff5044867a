"""
Identity service — Pydantic V2 request/response schemas for the auth domain.

Wire format is camelCase (``phoneNumber``, ``countryCode``, ``newPassword``);
Python attributes stay snake_case via ``alias_generator``.

Request fields the flow needs are declared optional here and checked in the
controller, so a missing field produces the flow's own message ("All fields
are required", ...) instead of a generic schema error.
"""
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints
from pydantic.alias_generators import to_camel

from app.permissions.schemas import PermissionsPayload
from shared.constants import Role


# ── Shared base ───────────────────────────────────────────────────────────────

# Passwords are taken exactly as typed; every other string is trimmed.
RawPassword = Annotated[str, StringConstraints(strip_whitespace=False)]


class _Base(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


# ── OTP flow ──────────────────────────────────────────────────────────────────

class OTPRequestSchema(_Base):
    """Body for POST /auth/request-otp."""

    phone_number: str | None = None
    country_code: str | None = None


class OTPVerifyRequest(_Base):
    """Body for POST /auth/verify-otp."""

    phone_number: str | None = None
    country_code: str | None = None
    otp: str | None = None


# ── Registration / login ──────────────────────────────────────────────────────

class RegisterRequest(_Base):
    """Body for POST /auth/register."""

    phone_number: str | None = None
    # Applied when phone_number has no leading "+"; defaults to DEFAULT_COUNTRY_CODE.
    country_code: str | None = None
    name: str | None = None
    email: EmailStr | None = None
    password: RawPassword | None = None
    otp: str | None = None
    permissions: PermissionsPayload | None = None


class LoginRequest(_Base):
    """Body for POST /auth/login."""

    email: str | None = None
    password: RawPassword | None = None


class PasswordResetRequest(_Base):
    """Body for POST /auth/reset-password."""

    phone_number: str | None = None
    country_code: str | None = None
    otp: str | None = None
    new_password: RawPassword | None = None


# ── Response models ───────────────────────────────────────────────────────────

class OTPResponse(_Base):
    success: bool = True
    status: str | None = None
    message: str


class MessageResponse(_Base):
    success: bool = True
    message: str


class UserProfile(_Base):
    """Returned by GET /auth/me."""

    user_id: str
    name: str
    email: str
    role: Role


class RegisteredUser(UserProfile):
    phone_number: str


class RegisterResponse(_Base):
    message: str = "Registration successful"
    token: str
    user: RegisteredUser


class LoginResponse(_Base):
    success: bool = True
    token: str
    user_id: str
    role: Role


class MeResponse(_Base):
    user: UserProfile
