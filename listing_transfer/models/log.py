"""Append-only audit log model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IntPKMixin, utcnow

LOG_LEVELS = ("info", "success", "warning", "error")


class LogEntry(Base, IntPKMixin):
    """Audit trail entry; never mutated, only swept by retention."""

    __tablename__ = "log_entry"

    level: Mapped[str] = mapped_column(String(10), default="info", index=True)  # info/success/warning/error
    message: Mapped[str] = mapped_column(Text)
    job_id: Mapped[int | None] = mapped_column(Integer, default=None, index=True)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict | None] = mapped_column("metadata", JSON, default=None)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<LogEntry [{self.level}] {self.message[:40]!r}>"
