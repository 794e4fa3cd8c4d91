"""Broker and ExternalCode (target-system publish slot) models."""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, CreatedAtMixin, IntPKMixin

MAX_CODES_PER_BROKER = 40
MAX_HIGHLIGHTS_PER_BROKER = 20


class Broker(Base, IntPKMixin, CreatedAtMixin):
    """Account that owns a pool of publish slots on the target system."""

    __tablename__ = "broker"

    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Broker {self.name!r}>"


class ExternalCode(Base, IntPKMixin, CreatedAtMixin):
    """A rate-limited publish slot; at most one job may hold it."""

    __tablename__ = "external_code"

    code: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    broker_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("broker.id", ondelete="CASCADE"), default=None, index=True
    )
    is_used: Mapped[bool] = mapped_column(Boolean, default=False)
    is_highlighted: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    current_job_id: Mapped[int | None] = mapped_column(Integer, default=None)
    correlated_source_code: Mapped[str | None] = mapped_column(String(100), default=None)

    def __repr__(self) -> str:
        return f"<ExternalCode {self.code} used={self.is_used}>"
