"""String-keyed settings store: credentials and behaviour toggles."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.setting import Setting

DEFAULT_SETTINGS: dict[str, Any] = {
    "auto_retry": True,
    "download_photos": True,
    "notifications": False,
    "action_delay": 3,
}

# system id -> (username key, password key)
CREDENTIAL_KEYS: dict[str, tuple[str, str]] = {
    "source": ("source_username", "source_password"),
    "target": ("target_username", "target_password"),
}


async def get_setting(db: AsyncSession, key: str) -> Setting | None:
    result = await db.execute(select(Setting).where(Setting.key == key))
    return result.scalar_one_or_none()


async def get_value(db: AsyncSession, key: str, default: Any = None) -> Any:
    """Stored value, else the caller's default, else the built-in default."""
    setting = await get_setting(db, key)
    if setting is not None and setting.value is not None:
        return setting.value
    if default is not None:
        return default
    return DEFAULT_SETTINGS.get(key)


async def list_settings(db: AsyncSession) -> list[Setting]:
    result = await db.execute(select(Setting).order_by(Setting.key))
    return list(result.scalars().all())


async def set_setting(db: AsyncSession, key: str, value: Any) -> Setting:
    """Insert or update a setting."""
    setting = await get_setting(db, key)
    if setting is None:
        setting = Setting(key=key, value=value)
        db.add(setting)
    else:
        setting.value = value
    await db.commit()
    await db.refresh(setting)
    return setting


async def seed_defaults(db: AsyncSession) -> int:
    """Store default toggles that are not set yet. Returns how many were added."""
    added = 0
    for key, value in DEFAULT_SETTINGS.items():
        if await get_setting(db, key) is None:
            db.add(Setting(key=key, value=value))
            added += 1
    if added:
        await db.commit()
    return added


async def get_credentials(db: AsyncSession, system: str) -> tuple[str, str] | None:
    """Return (username, password) for a system, or None if either is missing."""
    keys = CREDENTIAL_KEYS.get(system)
    if keys is None:
        raise ValueError(f"Unknown system: {system}")
    username = await get_value(db, keys[0])
    password = await get_value(db, keys[1])
    if not username or not password:
        return None
    return str(username), str(password)
