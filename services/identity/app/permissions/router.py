"""Identity service — permissions router (read-only view of the caller's grants)."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.database import get_db
from app.permissions.controller import my_permissions as my_permissions_controller
from app.permissions.schemas import PermissionsEnvelope
from shared.models.user import CurrentUser

router = APIRouter(prefix="/permissions", tags=["permissions"])


@router.get(
    "/me",
    response_model=PermissionsEnvelope,
    summary="Permissions granted at registration by the authenticated user",
)
async def my_permissions(
    session: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PermissionsEnvelope:
    return await my_permissions_controller(session, current_user)
