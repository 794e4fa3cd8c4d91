"""Listing transfer workflow: drives one AutomationJob through its steps."""

from __future__ import annotations

import asyncio
import logging
import traceback
from typing import TYPE_CHECKING, Any

from ..config import settings
from ..connectivity.results import ConnectivityResult, Outcome
from ..errors import (
    ConnectivityError,
    JobStopped,
    NoAvailableCodeError,
    PersistenceError,
    PreconditionError,
    sanitize_error,
)
from .activity import ActivityLog
from .events import EventBroadcaster
from .registry import JobRegistry, RunToken
from .steps import STEP_DEFS, Step

if TYPE_CHECKING:
    from ..models import AutomationJob, ExternalCode
    from ..services.store import TransferStore
    from ..sources.base import ListingPublisher, ListingScraper, MediaStore

logger = logging.getLogger(__name__)

STOPPED_MESSAGE = "Automation stopped by user"
SYSTEM_LABELS = {"source": "Source", "target": "Target"}


class TransferOrchestrator:
    """Runs transfer jobs; one instance per process, shared by all callers."""

    def __init__(
        self,
        store: TransferStore,
        prober: Any,
        activity: ActivityLog,
        broadcaster: EventBroadcaster,
        *,
        scraper: ListingScraper,
        publisher: ListingPublisher,
        media: MediaStore,
        registry: JobRegistry | None = None,
        max_attempts: int | None = None,
    ):
        self.store = store
        self.prober = prober
        self.activity = activity
        self.broadcaster = broadcaster
        self.scraper = scraper
        self.publisher = publisher
        self.media = media
        self.registry = registry or JobRegistry()
        self.max_attempts = max_attempts or settings.max_attempts
        self._claim_lock = asyncio.Lock()
        self._tasks: dict[int, asyncio.Task] = {}

    # Public API

    async def start(self, job_id: int) -> asyncio.Task | None:
        """Run a job in the background. Returns None if it is already active."""
        token = self.registry.try_acquire(job_id)
        if token is None:
            await self.activity.warning(f"Automation {job_id} is already running", job_id)
            return None
        task = asyncio.create_task(self._run(job_id, token), name=f"transfer-job-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _t, jid=job_id: self._tasks.pop(jid, None))
        return task

    async def run(self, job_id: int) -> AutomationJob | None:
        """Run a job to its terminal state in the current task."""
        token = self.registry.try_acquire(job_id)
        if token is None:
            await self.activity.warning(f"Automation {job_id} is already running", job_id)
            return None
        return await self._run(job_id, token)

    async def stop(self, job_id: int) -> bool:
        """Mark an active job stopped; the run exits at its next step boundary.

        A job that already reached a terminal state keeps it and False is returned.
        """
        if not self.registry.release(job_id):
            logger.info("Stop requested for inactive job %s", job_id)
            return False
        try:
            stopped = await self.store.mark_stopped(job_id, STOPPED_MESSAGE)
        except Exception:
            logger.exception("Failed to persist stop for job %s", job_id)
        else:
            if stopped is None:
                logger.info("Stop requested for job %s after it finished", job_id)
                return False
        await self.activity.warning(f"Automation {job_id} stopped by user", job_id)
        return True

    def status(self) -> dict:
        return {"active_jobs": self.registry.active_ids(), "running_tasks": len(self._tasks)}

    async def wait_idle(self) -> None:
        """Wait for every background run, including auto-retries they spawn."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    # Workflow

    async def _run(self, job_id: int, token: RunToken) -> AutomationJob | None:
        try:
            job = await self.store.get_job(job_id)
            if job is None:
                await self.activity.error(f"Automation {job_id} not found", job_id)
                return None
            if job.is_terminal:
                await self.activity.warning(
                    f"Automation {job_id} is already {job.status}; not starting it again", job_id
                )
                return job
            await self._execute(job, token)
        except JobStopped:
            logger.info("Job %s abandoned after stop", job_id)
        except Exception as exc:
            await self._fail(job_id, token, exc)
        finally:
            self.registry.release(job_id, token)

        try:
            return await self.store.get_job(job_id)
        except Exception:
            logger.exception("Could not reload job %s", job_id)
            return None

    async def _execute(self, job: AutomationJob, token: RunToken) -> None:
        job_id = job.id
        await self._persist(job_id, status="processing", error_message=None)
        await self.activity.info(
            f"Starting automation {job_id}: {job.source_code} -> {job.target_code}", job_id
        )

        delay = float(await self.store.get_setting("action_delay", settings.default_action_delay_seconds))
        download_photos = bool(await self.store.get_setting("download_photos"))

        source_credentials = await self._require_credentials("source")
        target_credentials = await self._require_credentials("target")
        if not await self.store.available_codes(job.broker_id):
            raise NoAvailableCodeError(job.broker_id)

        await self._advance(job_id, token, Step.CONNECTING_SOURCE)
        await self._require_connectivity("source", source_credentials, job_id)
        await self._pause(delay, job_id, token)

        await self._advance(job_id, token, Step.EXTRACTING_DATA)
        listing = await self.scraper.extract(job.source_code, job_id)
        await self.activity.info(
            f"Extracted data for {job.source_code}", job_id, metadata=listing.to_dict()
        )
        await self._pause(delay, job_id, token)

        await self._advance(job_id, token, Step.DOWNLOADING_MEDIA)
        media_refs = list(listing.photos)
        if not download_photos:
            await self.activity.info("Photo download disabled; keeping original URLs", job_id)
        elif media_refs:
            media_refs = await self.media.fetch_all(media_refs, f"job_{job_id}")
            stored = sum(1 for ref, url in zip(media_refs, listing.photos) if ref != url)
            await self.activity.info(f"Stored {stored} of {len(media_refs)} photos", job_id)
        await self._pause(delay, job_id, token)

        await self._advance(job_id, token, Step.CONNECTING_TARGET)
        await self._require_connectivity("target", target_credentials, job_id)
        await self._pause(delay, job_id, token)

        await self._advance(job_id, token, Step.PUBLISHING)
        code = await self._claim_code(job)
        publication = await self.publisher.publish(listing, code.code, job)
        await self.activity.info(f"Listing published using code {code.code}", job_id, metadata=publication)
        await self._pause(delay, job_id, token)

        await self._advance(job_id, token, Step.FINALIZING)
        result_data = {
            "listing": listing.to_dict(),
            "media": media_refs,
            "code": code.code,
            "publication": publication,
        }
        self._ensure_active(job_id, token)
        try:
            completed = await self.store.mark_completed(job_id, result_data)
        except Exception as exc:
            raise PersistenceError(f"Could not save the result of automation {job_id}") from exc
        if completed is None:
            self._ensure_active(job_id, token)
            raise PersistenceError(f"Automation {job_id} disappeared while running")
        await self.activity.success(f"Automation {job_id} completed successfully", job_id)

    async def _advance(self, job_id: int, token: RunToken, step: Step) -> None:
        """Persist step + progress, log it, broadcast it."""
        self._ensure_active(job_id, token)
        stage = STEP_DEFS[step]
        await self._persist(job_id, current_step=step.value, progress=stage.progress)
        await self.activity.info(stage.message, job_id)
        self.broadcaster.publish(
            "progress",
            {"job_id": job_id, "step": step.value, "progress": stage.progress, "message": stage.message},
        )

    async def _persist(self, job_id: int, **fields) -> None:
        try:
            updated = await self.store.update_job(job_id, **fields)
        except Exception as exc:
            raise PersistenceError(f"Could not save progress of automation {job_id}") from exc
        if updated is None:
            raise PersistenceError(f"Automation {job_id} disappeared while running")

    def _ensure_active(self, job_id: int, token: RunToken) -> None:
        if not self.registry.is_current(job_id, token):
            raise JobStopped(job_id)

    async def _pause(self, delay: float, job_id: int, token: RunToken) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        self._ensure_active(job_id, token)

    async def _require_credentials(self, system: str) -> tuple[str, str]:
        credentials = await self.store.get_credentials(system)
        if credentials is None:
            raise PreconditionError(
                f"{SYSTEM_LABELS[system]} system credentials are not configured"
            )
        return credentials

    async def _require_connectivity(self, system: str, credentials: tuple[str, str], job_id: int) -> ConnectivityResult:
        result = await self.prober.probe(system, credentials)
        if not result.success:
            raise ConnectivityError(result)
        await self.activity.info(f"{SYSTEM_LABELS[system]} system connected: {result.message}", job_id)
        return result

    async def _claim_code(self, job: AutomationJob) -> ExternalCode:
        async with self._claim_lock:
            code = await self.store.claim_code(job.broker_id, job.id, job.source_code)
        if code is None:
            raise NoAvailableCodeError(job.broker_id)
        await self.activity.info(f"Claimed code {code.code} for automation {job.id}", job.id)
        return code

    # Failure handling

    async def _fail(self, job_id: int, token: RunToken, exc: Exception) -> None:
        message = sanitize_error(exc)
        metadata: dict[str, Any] = {
            "exception": type(exc).__name__,
            "detail": str(exc),
            "traceback": "".join(traceback.format_exception(exc)),
        }
        if isinstance(exc, ConnectivityError):
            metadata["connectivity"] = exc.result.to_dict()

        if not self.registry.is_current(job_id, token):
            # stopped while a step was in flight; keep the stopped status
            await self.activity.warning(
                f"Automation {job_id} raised after being stopped: {message}", job_id, metadata
            )
            return

        await self.activity.error(f"Automation {job_id} failed: {message}", job_id, metadata)
        try:
            failed = await self.store.mark_failed(job_id, message)
        except Exception:
            logger.exception("Failed to mark job %s as failed", job_id)
            return
        if failed is None:
            logger.warning("Job %s reached a terminal state before its failure was saved", job_id)
            return
        await self._maybe_retry(job_id, exc)

    async def _maybe_retry(self, job_id: int, exc: Exception) -> None:
        if not isinstance(exc, ConnectivityError) or exc.result.outcome != Outcome.UNREACHABLE:
            return
        try:
            if not await self.store.get_setting("auto_retry"):
                return
            job = await self.store.get_job(job_id)
            if job is None or job.attempt >= self.max_attempts:
                return
            retry = await self.store.create_job(
                job.source_code,
                job.target_code,
                job.broker_id,
                video_url=job.video_url,
                tour_url=job.tour_url,
                attempt=job.attempt + 1,
                retry_of_id=job.id,
            )
        except Exception:
            logger.exception("Could not schedule retry for job %s", job_id)
            return
        await self.activity.info(
            f"Retrying automation {job_id} as {retry.id} (attempt {retry.attempt}/{self.max_attempts})",
            job_id,
        )
        await self.start(retry.id)
