import asyncio
import logging

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from earmark.api.deps import DbSession, login_rate_limit, require_trusted_session
from earmark.core.config import settings
from earmark.core.errors import invalid_credentials, system_locked, validation_error
from earmark.core.security import validate_password
from earmark.schemas.auth import (
    AuthStatusResponse,
    LockStatusResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
)
from earmark.services.lockout import (
    MAX_FAILED_ATTEMPTS,
    get_failed_attempt_count,
    is_system_locked,
    record_attempt,
)
from earmark.services.rate_limit import login_rate_limiter
from earmark.utils.request import get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(login_rate_limit)],
)
async def login(
    request: Request,
    db: DbSession,
    # Parsed by hand after the lock check, so a locked system answers 403
    # whatever the body looks like
    body: Annotated[Any, Body()] = None,
):
    ip_address = get_client_ip(request)

    # A locked system rejects before the password is checked
    if await is_system_locked(db):
        await login_rate_limiter.hit(ip_address)
        logger.warning(f"Login attempt from {ip_address} rejected: system locked")
        raise system_locked()

    credentials = LoginRequest.from_body(body)
    if not credentials.password:
        await login_rate_limiter.hit(ip_address)
        raise validation_error("Password is required")

    # Keep bcrypt off the event loop
    is_valid = await asyncio.to_thread(
        validate_password, credentials.password, settings.PASSWORD_HASH
    )

    if is_valid:
        request.session["authenticated"] = True
        await record_attempt(db, ip_address, success=True)
        return LoginResponse(success=True, message="Login successful")

    await record_attempt(db, ip_address, success=False)
    await login_rate_limiter.hit(ip_address)

    failed_attempts = await get_failed_attempt_count(db)
    locked = failed_attempts >= MAX_FAILED_ATTEMPTS
    if locked:
        logger.warning(
            f"System locked after {failed_attempts} failed attempts (last from {ip_address})"
        )
    raise invalid_credentials(failed_attempts, locked)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    dependencies=[Depends(require_trusted_session)],
)
async def logout(request: Request):
    request.session.clear()
    return LogoutResponse(success=True)


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(request: Request, db: DbSession):
    """Report the session and lock state without changing either."""
    if settings.is_development:
        authenticated = True
    else:
        authenticated = request.session.get("authenticated") is True

    return AuthStatusResponse(
        authenticated=authenticated,
        locked=await is_system_locked(db),
    )


@router.get("/locked", response_model=LockStatusResponse)
async def lock_status(db: DbSession):
    failed_attempts = await get_failed_attempt_count(db)
    return LockStatusResponse(
        locked=failed_attempts >= MAX_FAILED_ATTEMPTS,
        failed_attempts=failed_attempts,
    )
