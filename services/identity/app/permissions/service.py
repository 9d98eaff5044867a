"""
Identity service — permission record persistence.

``normalize_location`` turns whatever the browser sent for ``location`` into
either None or the structured form stored in ``permissions.location``.
"""
from __future__ import annotations

import math
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.permissions.models import Permission
from app.permissions.schemas import PermissionsPayload

DEFAULT_LOCATION_NAME = "Location permission granted"


def _default_location() -> dict[str, Any]:
    return {
        "name": DEFAULT_LOCATION_NAME,
        "coordinates": {"latitude": 0.0, "longitude": 0.0},
    }


def _coerce_coordinate(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _short_place_name(name: str) -> str:
    """Keep the first two comma-separated parts ("City, State") of a geocoded name."""
    parts = [part.strip() for part in name.split(",") if part.strip()]
    return ", ".join(parts[:2]) if parts else DEFAULT_LOCATION_NAME


def normalize_location(raw: bool | dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Reshape a client location grant.

    - absent / ``false``                    → None (not granted)
    - ``true``                              → default placeholder at (0, 0)
    - object without name or coordinates   → default placeholder at (0, 0)
    - full object                           → short name, float coordinates
      (non-numeric → 0), ``fullAddress`` kept when present
    """
    if raw is None or raw is False:
        return None
    if raw is True or not isinstance(raw, dict):
        return _default_location()

    name = raw.get("name")
    coordinates = raw.get("coordinates")
    if not name or not isinstance(name, str) or not isinstance(coordinates, dict):
        return _default_location()

    location: dict[str, Any] = {
        "name": _short_place_name(name),
        "coordinates": {
            "latitude": _coerce_coordinate(coordinates.get("latitude")),
            "longitude": _coerce_coordinate(coordinates.get("longitude")),
        },
    }
    full_address = raw.get("fullAddress")
    if full_address:
        location["fullAddress"] = str(full_address)
    return location


async def create_permission(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    payload: PermissionsPayload,
) -> Permission:
    permission = Permission(
        user_id=user_id,
        microphone=payload.microphone,
        camera=payload.camera,
        audio=payload.audio,
        location=normalize_location(payload.location),
    )
    session.add(permission)
    await session.flush()
    return permission


async def get_permission_for_user(
    session: AsyncSession, user_id: uuid.UUID
) -> Permission | None:
    result = await session.execute(
        select(Permission).where(Permission.user_id == user_id)
    )
    return result.scalar_one_or_none()
