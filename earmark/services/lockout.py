"""
Lockout service for login protection.

Counts failed attempts across the entire authentication log. Once the
threshold is reached the system stays locked, across restarts, until an
operator clears the log. Attempts never expire.
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from earmark.models.auth_attempt import AuthAttempt

logger = logging.getLogger(__name__)

MAX_FAILED_ATTEMPTS = 3


async def record_attempt(
    db: AsyncSession,
    ip_address: str,
    success: bool,
) -> None:
    """Append one authentication attempt to the log."""
    db.add(AuthAttempt(ip_address=ip_address, success=success))
    await db.commit()

    if success:
        logger.info(f"Auth attempt from {ip_address}: SUCCESS")
    else:
        logger.warning(f"Auth attempt from {ip_address}: FAILED")


async def get_failed_attempt_count(db: AsyncSession) -> int:
    """Count failed attempts in the whole log."""
    result = await db.execute(
        select(func.count()).select_from(AuthAttempt).where(AuthAttempt.success.is_(False))
    )
    return result.scalar() or 0


async def is_system_locked(db: AsyncSession) -> bool:
    """Check whether logins are blocked by too many failed attempts."""
    return await get_failed_attempt_count(db) >= MAX_FAILED_ATTEMPTS


async def clear_attempts(db: AsyncSession) -> int:
    """Delete every attempt, unlocking the system. Returns count deleted."""
    result = await db.execute(delete(AuthAttempt))
    await db.commit()
    logger.info(f"All auth attempts cleared ({result.rowcount} removed)")
    return result.rowcount


async def get_recent_attempts(db: AsyncSession, limit: int = 10) -> list[AuthAttempt]:
    """Most recent attempts first, for monitoring."""
    result = await db.execute(
        select(AuthAttempt)
        .order_by(AuthAttempt.attempt_time.desc(), AuthAttempt.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
