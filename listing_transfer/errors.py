"""Exception hierarchy for listing transfer jobs."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .connectivity.results import ConnectivityResult

GENERIC_ERROR_MESSAGE = (
    "Unexpected technical error during the automation. Check the logs for details."
)


class TransferError(Exception):
    """Base class for errors whose message is safe to show to a user."""


class PreconditionError(TransferError):
    """A fatal guard failed before the step could run (credentials, codes)."""


class NoAvailableCodeError(PreconditionError):
    def __init__(self, broker_id: int | None):
        self.broker_id = broker_id
        super().__init__(f"No available code for broker {broker_id}")


class ConnectivityError(TransferError):
    """A connectivity probe failed; carries the probe result."""

    def __init__(self, result: ConnectivityResult):
        self.result = result
        super().__init__(f"Connection to the {result.system} system failed: {result.message}")


class PersistenceError(TransferError):
    """The store rejected a required write."""


class JobStopped(Exception):
    """Raised inside a running workflow once the job was stopped externally."""

    def __init__(self, job_id: int):
        self.job_id = job_id
        super().__init__(f"Job {job_id} was stopped")


def sanitize_error(exc: BaseException) -> str:
    """Return the user-facing message for an exception.

    Classified errors keep their specific text; anything else collapses to a
    generic message so raw driver or network detail never reaches the job.
    """
    if isinstance(exc, TransferError) and str(exc):
        return str(exc)
    return GENERIC_ERROR_MESSAGE
