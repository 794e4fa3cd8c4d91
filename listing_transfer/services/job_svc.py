"""AutomationJob data access."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.job import TERMINAL_STATUSES, AutomationJob

MINUTES_SAVED_PER_LISTING = 30


async def create_job(
    db: AsyncSession,
    source_code: str,
    target_code: str,
    broker_id: int | None = None,
    *,
    video_url: str | None = None,
    tour_url: str | None = None,
    attempt: int = 1,
    retry_of_id: int | None = None,
) -> AutomationJob:
    """Create a pending job."""
    job = AutomationJob(
        source_code=source_code,
        target_code=target_code,
        broker_id=broker_id,
        status="pending",
        progress=0,
        video_url=video_url,
        tour_url=tour_url,
        attempt=attempt,
        retry_of_id=retry_of_id,
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


async def get_job(db: AsyncSession, job_id: int) -> AutomationJob | None:
    result = await db.execute(select(AutomationJob).where(AutomationJob.id == job_id))
    return result.scalar_one_or_none()


async def list_jobs(db: AsyncSession, limit: int | None = None) -> list[AutomationJob]:
    """Newest first, optionally capped."""
    stmt = select(AutomationJob).order_by(AutomationJob.created_at.desc(), AutomationJob.id.desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def update_job(db: AsyncSession, job_id: int, **fields) -> AutomationJob | None:
    """Apply field updates to a job; returns None when the job is gone."""
    job = await get_job(db, job_id)
    if not job:
        return None
    for key, value in fields.items():
        if not hasattr(AutomationJob, key):
            raise ValueError(f"Unknown job field: {key}")
        setattr(job, key, value)
    await db.commit()
    await db.refresh(job)
    return job


async def delete_job(db: AsyncSession, job_id: int) -> bool:
    job = await get_job(db, job_id)
    if not job:
        return False
    await db.delete(job)
    await db.commit()
    return True


async def finish_job(db: AsyncSession, job_id: int, status: str, **fields) -> AutomationJob | None:
    """Move a job into a terminal status unless it already reached one.

    Returns the updated job, or None when the job is gone or already terminal.
    """
    if status not in TERMINAL_STATUSES:
        raise ValueError(f"Not a terminal status: {status}")
    stmt = (
        update(AutomationJob)
        .where(AutomationJob.id == job_id, AutomationJob.status.notin_(TERMINAL_STATUSES))
        .values(status=status, **fields)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    await db.commit()
    if result.rowcount != 1:
        return None
    reloaded = await db.execute(
        select(AutomationJob)
        .where(AutomationJob.id == job_id)
        .execution_options(populate_existing=True)
    )
    return reloaded.scalar_one_or_none()


async def mark_completed(db: AsyncSession, job_id: int, result_data: dict) -> AutomationJob | None:
    return await finish_job(
        db,
        job_id,
        "completed",
        progress=100,
        result_data=result_data,
        error_message=None,
        completed_at=datetime.now(timezone.utc),
    )


async def mark_failed(db: AsyncSession, job_id: int, error_message: str) -> AutomationJob | None:
    return await finish_job(db, job_id, "failed", error_message=error_message, completed_at=None)


async def mark_stopped(db: AsyncSession, job_id: int, error_message: str) -> AutomationJob | None:
    return await finish_job(db, job_id, "stopped", error_message=error_message, completed_at=None)


async def get_dashboard_stats(db: AsyncSession) -> dict:
    """Totals used by the dashboard and the `stats` command."""
    total = (await db.execute(select(func.count()).select_from(AutomationJob))).scalar_one()
    completed = (
        await db.execute(
            select(func.count()).select_from(AutomationJob).where(AutomationJob.status == "completed")
        )
    ).scalar_one()
    failed = (
        await db.execute(
            select(func.count()).select_from(AutomationJob).where(AutomationJob.status == "failed")
        )
    ).scalar_one()
    success_rate = round(completed / total * 100) if total else 0
    minutes = completed * MINUTES_SAVED_PER_LISTING
    return {
        "total_automations": total,
        "completed": completed,
        "failed": failed,
        "success_rate": success_rate,
        "minutes_saved": minutes,
        "time_saved": f"{minutes // 60}h {minutes % 60}m",
    }
