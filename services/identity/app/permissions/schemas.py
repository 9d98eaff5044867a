"""
Identity service — permission payloads.

Browsers report permissions in a few shapes (``location`` may be ``true``, a
partial object, or a full reverse-geocoded object); ``PermissionsPayload``
accepts them all and ``app.permissions.service`` reshapes them before storage.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Coordinates(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    latitude: float = 0.0
    longitude: float = 0.0


class Location(BaseModel):
    """Structured location; the only non-empty form ever stored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    coordinates: Coordinates = Field(default_factory=Coordinates)
    full_address: str | None = None


class PermissionsPayload(BaseModel):
    """Client-reported grants, sent with POST /auth/register."""

    model_config = ConfigDict(extra="ignore")

    microphone: bool = False
    camera: bool = False
    audio: bool = False
    location: bool | dict[str, Any] | None = None


class PermissionsResponse(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    microphone: bool
    camera: bool
    audio: bool
    location: Location | None = None


class PermissionsEnvelope(BaseModel):
    """Response for GET /permissions/me."""

    permissions: PermissionsResponse
