import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from app.auth.router import router as auth_router
from app.config import get_settings
from app.database import close_db, init_db
from app.permissions.router import router as permissions_router
from shared.auth.config import get_auth_settings
from shared.database.redis_client import get_redis_client
from shared.middleware.error_handler import error_envelope_middleware, register_error_handlers
from shared.middleware.request_id import request_id_middleware

logger = logging.getLogger(__name__)


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## Hope-AI Identity Service

Phone-verified accounts for the Hope-AI companion app:

* **Phone verification** — SMS code sent and checked through Twilio Verify.
* **Registration** — phone + email + password, with the device permissions
  (microphone, camera, audio, location) the user granted in the browser.
* **Login** — email + password, returns a 24-hour session token.
* **Password reset** — by re-verifying the phone number.

### Authentication
Protected endpoints require:
```
Authorization: Bearer <token>
```

### Error shape
All errors return:
```json
{ "success": false, "error": "Human-readable message" }
```
"""

_TAGS_METADATA = [
    {
        "name": "auth",
        "description": (
            "SMS code request/verify, registration, login, current user, "
            "and password reset."
        ),
    },
    {
        "name": "permissions",
        "description": "Device permissions recorded at registration.",
    },
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.identity_database_url)
    app.state.redis = get_redis_client(settings.redis_url)
    logger.info("Identity service started (%s)", settings.env_name)
    yield
    await app.state.redis.aclose()
    await close_db()


def create_app() -> FastAPI:
    # Fail fast: both settings objects have required secrets with no default.
    settings = get_settings()
    get_auth_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s:%(name)s: %(message)s",
    )

    app = FastAPI(
        title="Hope-AI Identity Service",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    register_error_handlers(app)

    # Middleware is applied in reverse-registration order (last added = outermost).
    # CORS must be outermost so error responses carry CORS headers too.
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    app.include_router(auth_router, prefix="/api")
    app.include_router(permissions_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="identity")

    return app


app = create_app()
