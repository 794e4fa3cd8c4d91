"""ExternalCode (publish slot) data access."""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.code import MAX_CODES_PER_BROKER, MAX_HIGHLIGHTS_PER_BROKER, ExternalCode


def _owned_by(broker_id: int | None):
    if broker_id is None:
        return ExternalCode.broker_id.is_(None)
    return ExternalCode.broker_id == broker_id


async def get_code(db: AsyncSession, code_id: int) -> ExternalCode | None:
    result = await db.execute(select(ExternalCode).where(ExternalCode.id == code_id))
    return result.scalar_one_or_none()


async def get_code_by_value(db: AsyncSession, code: str) -> ExternalCode | None:
    result = await db.execute(select(ExternalCode).where(ExternalCode.code == code))
    return result.scalar_one_or_none()


async def list_codes(db: AsyncSession, broker_id: int | None = None) -> list[ExternalCode]:
    stmt = select(ExternalCode).order_by(ExternalCode.id)
    if broker_id is not None:
        stmt = stmt.where(ExternalCode.broker_id == broker_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_available_codes(db: AsyncSession, broker_id: int | None) -> list[ExternalCode]:
    """Active, unused codes for an owner in creation order."""
    stmt = (
        select(ExternalCode)
        .where(_owned_by(broker_id), ExternalCode.is_active.is_(True), ExternalCode.is_used.is_(False))
        .order_by(ExternalCode.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_highlighted_codes(db: AsyncSession, broker_id: int | None) -> list[ExternalCode]:
    stmt = (
        select(ExternalCode)
        .where(_owned_by(broker_id), ExternalCode.is_highlighted.is_(True))
        .order_by(ExternalCode.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_correlated_codes(db: AsyncSession, broker_id: int | None = None) -> list[ExternalCode]:
    """Used codes that were bound back to a source listing."""
    stmt = (
        select(ExternalCode)
        .where(ExternalCode.is_used.is_(True), ExternalCode.correlated_source_code.is_not(None))
        .order_by(ExternalCode.id)
    )
    if broker_id is not None:
        stmt = stmt.where(ExternalCode.broker_id == broker_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _count(db: AsyncSession, *criteria) -> int:
    stmt = select(func.count()).select_from(ExternalCode).where(*criteria)
    return (await db.execute(stmt)).scalar_one()


async def create_code(
    db: AsyncSession,
    code: str,
    broker_id: int | None,
    *,
    is_highlighted: bool = False,
) -> ExternalCode:
    created = await bulk_create_codes(db, broker_id, [code], highlighted=[code] if is_highlighted else ())
    return created[0]


async def bulk_create_codes(
    db: AsyncSession,
    broker_id: int | None,
    codes: Iterable[str],
    *,
    highlighted: Iterable[str] = (),
) -> list[ExternalCode]:
    """Create several codes for one owner, enforcing per-owner limits."""
    codes = list(codes)
    highlighted = set(highlighted)

    existing = await _count(db, _owned_by(broker_id))
    if existing + len(codes) > MAX_CODES_PER_BROKER:
        raise ValueError(
            f"Broker {broker_id} would exceed {MAX_CODES_PER_BROKER} codes "
            f"({existing} existing, {len(codes)} new)"
        )
    existing_highlights = await _count(db, _owned_by(broker_id), ExternalCode.is_highlighted.is_(True))
    new_highlights = sum(1 for c in codes if c in highlighted)
    if existing_highlights + new_highlights > MAX_HIGHLIGHTS_PER_BROKER:
        raise ValueError(f"Broker {broker_id} would exceed {MAX_HIGHLIGHTS_PER_BROKER} highlighted codes")

    rows = [
        ExternalCode(code=c, broker_id=broker_id, is_highlighted=c in highlighted)
        for c in codes
    ]
    db.add_all(rows)
    await db.commit()
    for row in rows:
        await db.refresh(row)
    return rows


async def set_highlighted(db: AsyncSession, code_id: int, highlighted: bool) -> ExternalCode | None:
    code = await get_code(db, code_id)
    if not code:
        return None
    if highlighted and not code.is_highlighted:
        count = await _count(db, _owned_by(code.broker_id), ExternalCode.is_highlighted.is_(True))
        if count >= MAX_HIGHLIGHTS_PER_BROKER:
            raise ValueError(
                f"Broker {code.broker_id} already has {MAX_HIGHLIGHTS_PER_BROKER} highlighted codes"
            )
    code.is_highlighted = highlighted
    await db.commit()
    await db.refresh(code)
    return code


async def update_code(db: AsyncSession, code_id: int, **fields) -> ExternalCode | None:
    if "is_highlighted" in fields:
        if await set_highlighted(db, code_id, fields.pop("is_highlighted")) is None:
            return None
    code = await get_code(db, code_id)
    if not code:
        return None
    for key, value in fields.items():
        if not hasattr(ExternalCode, key):
            raise ValueError(f"Unknown code field: {key}")
        setattr(code, key, value)
    await db.commit()
    await db.refresh(code)
    return code


async def delete_code(db: AsyncSession, code_id: int) -> bool:
    code = await get_code(db, code_id)
    if not code:
        return False
    await db.delete(code)
    await db.commit()
    return True


async def mark_code_used(
    db: AsyncSession,
    code_id: int,
    job_id: int,
    source_code: str | None = None,
) -> bool:
    """Flip is_used false -> true and bind the job, only if still unused.

    Returns False when another claim got there first.
    """
    stmt = (
        update(ExternalCode)
        .where(ExternalCode.id == code_id, ExternalCode.is_used.is_(False))
        .values(is_used=True, current_job_id=job_id, correlated_source_code=source_code)
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount == 1


async def claim_available_code(
    db: AsyncSession,
    broker_id: int | None,
    job_id: int,
    source_code: str | None = None,
) -> ExternalCode | None:
    """Claim the first available code for an owner, or None if none is left."""
    for candidate in await list_available_codes(db, broker_id):
        if await mark_code_used(db, candidate.id, job_id, source_code):
            await db.refresh(candidate)
            return candidate
    return None
