import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from earmark.api.auth import router as auth_router
from earmark.api.files import router as files_router
from earmark.api.health import router as health_router
from earmark.api.marks import router as marks_router
from earmark.api.stream import router as stream_router
from earmark.core.config import APP_VERSION, INSECURE_SECRET_DEFAULTS, settings
from earmark.core.errors import HTTPError, http_error_handler, request_validation_error_handler
from earmark.core.logging import setup_logging
from earmark.core.middleware import (
    ErrorResponseMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from earmark.core.redis import close_redis
from earmark.db.session import Database
from earmark.services.library import AudioLibrary

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database and audio library for the lifetime of the app."""
    setup_logging()

    # Reject insecure secret defaults in production
    if not settings.is_development and settings.SESSION_SECRET_KEY.lower() in INSECURE_SECRET_DEFAULTS:
        raise RuntimeError(
            "SESSION_SECRET_KEY is using an insecure default in production. "
            "Set a secure secret via environment variable: "
            "SESSION_SECRET_KEY=$(openssl rand -base64 32)"
        )

    if not settings.PASSWORD_HASH:
        logger.warning("PASSWORD_HASH is not set; every login will be rejected")

    database = Database.for_path(settings.DB_PATH)
    await database.create_all()
    app.state.database = database

    library = AudioLibrary(settings.AUDIO_PATH)
    app.state.library = library

    if settings.SCAN_ON_STARTUP:
        try:
            async with database.session_maker() as session:
                await library.sync(session)
        except Exception as e:
            logger.error(f"Initial library scan failed: {e}")

    logger.info(f"{settings.APP_NAME} {APP_VERSION} started in {settings.APP_ENV} mode")

    yield

    await database.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version=APP_VERSION,
    lifespan=lifespan,
    redirect_slashes=False,
)

# Register custom exception handlers for standardized error responses
app.add_exception_handler(HTTPError, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)

# Signed cookie session carrying the trusted session marker
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    session_cookie="earmark_session",
    same_site="lax",
    https_only=not settings.is_development,
    max_age=settings.SESSION_MAX_AGE_DAYS * 24 * 60 * 60,
)

app.add_middleware(SecurityHeadersMiddleware)

# The frontend dev server runs on a separate origin
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Error response middleware sits inside the request ID middleware so 500s
# still carry the request ID
app.add_middleware(ErrorResponseMiddleware)
app.add_middleware(RequestIDMiddleware)

app.include_router(health_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(files_router, prefix="/api")
app.include_router(marks_router, prefix="/api")
app.include_router(stream_router, prefix="/api")
