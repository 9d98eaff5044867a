"""
Identity service — FastAPI dependencies for the auth domain.

Routes import everything they inject from here: settings, Redis, the OTP
gateway and the current user.  Tests replace any of them through
``app.dependency_overrides``.
"""
from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import Depends, Request

from app.config import Settings, get_settings
from app.sms.twilio import TwilioGateway
from shared.auth.dependencies import get_current_user_required

get_current_user = get_current_user_required


def get_redis(request: Request) -> aioredis.Redis:
    """The Redis client opened in the app lifespan."""
    return request.app.state.redis


def get_gateway(settings: Settings = Depends(get_settings)) -> TwilioGateway:
    return TwilioGateway(settings)
