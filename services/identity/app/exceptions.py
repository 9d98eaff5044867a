"""
Identity service — domain-specific HTTP exceptions.

All exceptions use preset status codes and messages so that callers never
need to specify these at the call site.  ``shared.middleware.error_handler``
renders them as ``{"success": false, "error": <detail>, **extra}``.

Bad credentials are reported as 400, not 401: login failures must look the
same whether the account exists or not.  Missing/invalid bearer tokens (401)
are raised by ``shared.auth.dependencies``.
"""
from typing import Any

from fastapi import HTTPException, status


class IdentityError(HTTPException):
    """HTTPException that can carry extra top-level fields in the error body."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail)
        self.extra = extra or {}


# ── Validation ────────────────────────────────────────────────────────────────

class MissingFields(IdentityError):
    def __init__(self, message: str = "All fields are required") -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, message)


# ── Registration / conflict ───────────────────────────────────────────────────

class UserAlreadyExists(IdentityError):
    """Phone number or email already registered."""

    def __init__(self) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, "User already exists")


# ── Authentication ────────────────────────────────────────────────────────────

class InvalidCredentials(IdentityError):
    def __init__(self) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, "Invalid credentials")


# ── Account state ─────────────────────────────────────────────────────────────

class UserNotFound(IdentityError):
    def __init__(self) -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, "User not found")


class PermissionsNotFound(IdentityError):
    def __init__(self) -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, "Permissions not found")


# ── OTP ───────────────────────────────────────────────────────────────────────

class InvalidOTP(IdentityError):
    """The provider denied the submitted code."""

    def __init__(self, provider_status: str | None, message: str = "Invalid OTP") -> None:
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            message,
            extra={"status": provider_status},
        )


class OTPNotVerified(IdentityError):
    """Registration attempted without a matching, unexpired /verify-otp approval."""

    def __init__(self) -> None:
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            "Phone number must be verified before registration",
        )


class InvalidOrExpiredOTP(IdentityError):
    def __init__(self) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, "Invalid or expired OTP")


class OTPDeliveryFailed(IdentityError):
    """Provider refused or failed to send the code; its message is passed through."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            message or "Failed to send OTP",
        )


class OTPCheckFailed(IdentityError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            message or "Failed to verify OTP",
        )
