"""Broker data access."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.code import MAX_CODES_PER_BROKER, Broker
from . import code_svc


async def create_broker(db: AsyncSession, name: str, email: str | None = None) -> Broker:
    broker = Broker(name=name, email=email)
    db.add(broker)
    await db.commit()
    await db.refresh(broker)
    return broker


async def get_broker(db: AsyncSession, broker_id: int) -> Broker | None:
    result = await db.execute(select(Broker).where(Broker.id == broker_id))
    return result.scalar_one_or_none()


async def list_brokers(db: AsyncSession) -> list[Broker]:
    result = await db.execute(select(Broker).order_by(Broker.name))
    return list(result.scalars().all())


async def update_broker(db: AsyncSession, broker_id: int, **fields) -> Broker | None:
    broker = await get_broker(db, broker_id)
    if not broker:
        return None
    for key, value in fields.items():
        if not hasattr(Broker, key):
            raise ValueError(f"Unknown broker field: {key}")
        setattr(broker, key, value)
    await db.commit()
    await db.refresh(broker)
    return broker


async def delete_broker(db: AsyncSession, broker_id: int) -> bool:
    broker = await get_broker(db, broker_id)
    if not broker:
        return False
    await db.delete(broker)
    await db.commit()
    return True


async def seed_broker_codes(
    db: AsyncSession,
    broker_id: int,
    prefix: str,
    count: int = MAX_CODES_PER_BROKER,
) -> int:
    """Fill a broker's code pool up to `count` with sequential codes."""
    existing = {c.code for c in await code_svc.list_codes(db, broker_id)}
    wanted = [f"{prefix}{n:03d}" for n in range(1, count + 1)]
    missing = [c for c in wanted if c not in existing][: max(0, count - len(existing))]
    if not missing:
        return 0
    await code_svc.bulk_create_codes(db, broker_id, missing)
    return len(missing)
