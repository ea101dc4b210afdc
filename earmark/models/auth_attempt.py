"""
Authentication attempt log.

Every login that reaches password validation appends one row. The lockout
counts failed rows across the whole table; unlocking deletes the table's
contents.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from earmark.db.base import Base


class AuthAttempt(Base):
    """One login attempt and its outcome."""

    __tablename__ = "auth_attempts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False)  # IPv6 max length
    attempt_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    success: Mapped[bool] = mapped_column(Boolean, nullable=False, index=True)

    def __repr__(self) -> str:
        outcome = "success" if self.success else "failed"
        return f"<AuthAttempt {self.ip_address} {outcome} at {self.attempt_time}>"
