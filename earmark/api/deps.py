from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from earmark.core.errors import unauthorized
from earmark.db.session import get_db
from earmark.services.library import AudioLibrary
from earmark.services.rate_limit import api_rate_limiter, login_rate_limiter
from earmark.utils.request import get_client_ip

__all__ = [
    "DbSession",
    "Library",
    "api_rate_limit",
    "get_db",
    "get_library",
    "login_rate_limit",
    "require_trusted_session",
]


def get_library(request: Request) -> AudioLibrary:
    return request.app.state.library


def require_trusted_session(request: Request) -> None:
    """
    Require the trusted session marker set by a successful login.

    The session is a signed cookie; the password is not re-checked.
    """
    if request.session.get("authenticated") is not True:
        raise unauthorized()


async def api_rate_limit(request: Request) -> None:
    """Count the request against the per-IP API limit."""
    await api_rate_limiter.hit_and_check(get_client_ip(request))


async def login_rate_limit(request: Request) -> None:
    """Reject logins from an IP that already used up its failures.

    Hits are recorded by the login handler, and only for unsuccessful
    attempts.
    """
    await login_rate_limiter.check(get_client_ip(request))


DbSession = Annotated[AsyncSession, Depends(get_db)]
Library = Annotated[AudioLibrary, Depends(get_library)]
