from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import PermissionsNotFound
from app.permissions.schemas import PermissionsEnvelope, PermissionsResponse
from app.permissions.service import get_permission_for_user
from shared.models.user import CurrentUser


async def my_permissions(
    session: AsyncSession,
    current_user: CurrentUser,
) -> PermissionsEnvelope:
    permission = await get_permission_for_user(session, current_user.id)
    if permission is None:
        raise PermissionsNotFound()
    return PermissionsEnvelope(permissions=PermissionsResponse.model_validate(permission))
