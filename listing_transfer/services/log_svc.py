"""LogEntry data access: append, list, retention sweep."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.log import LOG_LEVELS, LogEntry


async def create_log(
    db: AsyncSession,
    level: str,
    message: str,
    job_id: int | None = None,
    details: dict | None = None,
) -> LogEntry:
    if level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    entry = LogEntry(level=level, message=message, job_id=job_id, details=details)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def list_logs(
    db: AsyncSession,
    limit: int | None = None,
    level: str | None = None,
    job_id: int | None = None,
) -> list[LogEntry]:
    """Newest first. A level of None or "all" disables level filtering."""
    stmt = select(LogEntry).order_by(LogEntry.timestamp.desc(), LogEntry.id.desc())
    if level and level != "all":
        stmt = stmt.where(LogEntry.level == level)
    if job_id is not None:
        stmt = stmt.where(LogEntry.job_id == job_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def purge_logs(db: AsyncSession, older_than: datetime | None = None) -> int:
    """Delete entries older than the cutoff, or all entries when no cutoff."""
    stmt = delete(LogEntry)
    if older_than is not None:
        stmt = stmt.where(LogEntry.timestamp < older_than)
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount or 0
