from __future__ import annotations

"""
Persisted member record. Attendance is not stored here; it lives in the
attendance sheet.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from .database import Base


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class Member(Base):
    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    qr_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    @validates("email")
    def _lowercase_email(self, key: str, value: str) -> str:
        return normalize_email(value)
