"""AutomationJob model: one requested source-to-target listing transfer."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, IntPKMixin

JOB_STATUSES = ("pending", "processing", "completed", "failed", "stopped")
TERMINAL_STATUSES = frozenset({"completed", "failed", "stopped"})


class AutomationJob(Base, IntPKMixin, CreatedAtMixin):
    """A single transfer request and its live progress."""

    __tablename__ = "automation_job"

    source_code: Mapped[str] = mapped_column(String(100))
    target_code: Mapped[str] = mapped_column(String(100))
    broker_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("broker.id", ondelete="SET NULL"), default=None, index=True
    )
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    current_step: Mapped[str | None] = mapped_column(String(40), default=None)
    result_data: Mapped[dict | None] = mapped_column(JSON, default=None)
    error_message: Mapped[str | None] = mapped_column(Text, default=None)
    video_url: Mapped[str | None] = mapped_column(String(500), default=None)
    tour_url: Mapped[str | None] = mapped_column(String(500), default=None)
    attempt: Mapped[int] = mapped_column(Integer, default=1)
    retry_of_id: Mapped[int | None] = mapped_column(Integer, default=None)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, nullable=True
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self) -> str:
        return f"<AutomationJob {self.id} {self.status} {self.current_step}:{self.progress}>"
