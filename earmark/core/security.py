"""
Shared-password verification.

The library is protected by a single password whose bcrypt hash is supplied
through configuration. Verification fails closed: a missing or unreadable
hash rejects every candidate.
"""

import logging

from passlib.context import CryptContext
from passlib.hash import bcrypt

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Cost factor used when generating a new password hash
BCRYPT_ROUNDS = 12


def validate_password(candidate: str, password_hash: str | None) -> bool:
    """
    Check a candidate password against the configured hash.

    Args:
        candidate: Password presented by the client
        password_hash: Reference bcrypt hash (PASSWORD_HASH)

    Returns:
        True only if the hash is configured and the candidate matches it
    """
    if not password_hash:
        logger.error("PASSWORD_HASH is not configured; rejecting login")
        return False

    try:
        return pwd_context.verify(candidate, password_hash)
    except (ValueError, TypeError) as e:
        logger.error(f"Could not verify password against configured hash: {e}")
        return False


def get_password_hash(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Generate a bcrypt hash suitable for PASSWORD_HASH."""
    return bcrypt.using(rounds=rounds).hash(password)
