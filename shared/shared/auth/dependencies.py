from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from shared.auth.config import AuthSettings, get_auth_settings
from shared.constants import Role
from shared.models.user import CurrentUser

http_bearer = HTTPBearer(auto_error=False)


def decode_token(token: str, settings: AuthSettings) -> dict:
    """Verify signature, expiry, issuer and audience; return the claim set."""
    return jwt.decode(
        token,
        settings.secret,
        algorithms=[settings.algorithm],
        issuer=settings.issuer,
        audience=settings.audience,
    )


def _payload_to_user(payload: dict) -> CurrentUser:
    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Missing sub in token")
    role = Role(payload.get("role") or Role.USER.value)
    return CurrentUser(id=UUID(user_id), role=role)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_required(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    settings: AuthSettings = Depends(get_auth_settings),
) -> CurrentUser:
    """Resolve the bearer token or raise 401, distinguishing absent from bad."""
    if not credentials or not credentials.credentials:
        raise _unauthorized("No token provided")
    try:
        return _payload_to_user(decode_token(credentials.credentials, settings))
    except (JWTError, ValueError, KeyError):
        raise _unauthorized("Invalid token")
