"""User-facing activity log: persist, broadcast, mirror to logging."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .events import EventBroadcaster

if TYPE_CHECKING:
    from ..services.store import TransferStore

logger = logging.getLogger(__name__)

_PY_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ActivityLog:
    """Log sink shared by the prober and the orchestrator.

    Writing is best-effort: a failing store is reported through the module
    logger and never propagates to the caller.
    """

    def __init__(self, store: TransferStore | None, broadcaster: EventBroadcaster | None = None):
        self.store = store
        self.broadcaster = broadcaster

    async def log(
        self,
        level: str,
        message: str,
        job_id: int | None = None,
        metadata: dict | None = None,
    ) -> None:
        logger.log(_PY_LEVELS.get(level, logging.INFO), "[job=%s] %s", job_id, message)

        if self.store is not None:
            try:
                await self.store.create_log(level, message, job_id, metadata)
            except Exception:
                logger.exception("Failed to persist log entry")

        if self.broadcaster is not None:
            self.broadcaster.publish(
                "log",
                {"level": level, "message": message, "job_id": job_id, "metadata": metadata},
            )

    async def info(self, message: str, job_id: int | None = None, metadata: dict | None = None) -> None:
        await self.log("info", message, job_id, metadata)

    async def success(self, message: str, job_id: int | None = None, metadata: dict | None = None) -> None:
        await self.log("success", message, job_id, metadata)

    async def warning(self, message: str, job_id: int | None = None, metadata: dict | None = None) -> None:
        await self.log("warning", message, job_id, metadata)

    async def error(self, message: str, job_id: int | None = None, metadata: dict | None = None) -> None:
        await self.log("error", message, job_id, metadata)
