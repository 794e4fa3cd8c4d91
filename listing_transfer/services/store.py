"""TransferStore: session-per-call facade over the *_svc modules.

Concurrent job workflows each get their own short-lived AsyncSession, so no
session is ever shared across interleaved coroutines.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import AutomationJob, ExternalCode, LogEntry
from . import code_svc, job_svc, log_svc, settings_svc


class TransferStore:
    """Data-access collaborator used by the engine and the prober."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # Jobs

    async def create_job(self, source_code: str, target_code: str, broker_id: int | None = None, **kwargs) -> AutomationJob:
        async with self.session_factory() as db:
            return await job_svc.create_job(db, source_code, target_code, broker_id, **kwargs)

    async def get_job(self, job_id: int) -> AutomationJob | None:
        async with self.session_factory() as db:
            return await job_svc.get_job(db, job_id)

    async def list_jobs(self, limit: int | None = None) -> list[AutomationJob]:
        async with self.session_factory() as db:
            return await job_svc.list_jobs(db, limit)

    async def update_job(self, job_id: int, **fields) -> AutomationJob | None:
        async with self.session_factory() as db:
            return await job_svc.update_job(db, job_id, **fields)

    async def mark_completed(self, job_id: int, result_data: dict) -> AutomationJob | None:
        async with self.session_factory() as db:
            return await job_svc.mark_completed(db, job_id, result_data)

    async def mark_failed(self, job_id: int, error_message: str) -> AutomationJob | None:
        async with self.session_factory() as db:
            return await job_svc.mark_failed(db, job_id, error_message)

    async def mark_stopped(self, job_id: int, error_message: str) -> AutomationJob | None:
        async with self.session_factory() as db:
            return await job_svc.mark_stopped(db, job_id, error_message)

    async def dashboard_stats(self) -> dict:
        async with self.session_factory() as db:
            return await job_svc.get_dashboard_stats(db)

    # Codes

    async def available_codes(self, broker_id: int | None) -> list[ExternalCode]:
        async with self.session_factory() as db:
            return await code_svc.list_available_codes(db, broker_id)

    async def claim_code(self, broker_id: int | None, job_id: int, source_code: str | None = None) -> ExternalCode | None:
        async with self.session_factory() as db:
            return await code_svc.claim_available_code(db, broker_id, job_id, source_code)

    async def list_codes(self, broker_id: int | None = None) -> list[ExternalCode]:
        async with self.session_factory() as db:
            return await code_svc.list_codes(db, broker_id)

    # Logs

    async def create_log(self, level: str, message: str, job_id: int | None = None, details: dict | None = None) -> LogEntry:
        async with self.session_factory() as db:
            return await log_svc.create_log(db, level, message, job_id, details)

    async def list_logs(self, limit: int | None = None, level: str | None = None) -> list[LogEntry]:
        async with self.session_factory() as db:
            return await log_svc.list_logs(db, limit=limit, level=level)

    async def purge_logs(self, older_than: datetime | None = None) -> int:
        async with self.session_factory() as db:
            return await log_svc.purge_logs(db, older_than)

    # Settings

    async def get_setting(self, key: str, default: Any = None) -> Any:
        async with self.session_factory() as db:
            return await settings_svc.get_value(db, key, default)

    async def set_setting(self, key: str, value: Any) -> None:
        async with self.session_factory() as db:
            await settings_svc.set_setting(db, key, value)

    async def get_credentials(self, system: str) -> tuple[str, str] | None:
        async with self.session_factory() as db:
            return await settings_svc.get_credentials(db, system)

    async def seed_defaults(self) -> int:
        async with self.session_factory() as db:
            return await settings_svc.seed_defaults(db)
