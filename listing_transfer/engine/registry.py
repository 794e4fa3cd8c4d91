"""In-memory registry of active job runs."""

from __future__ import annotations


class RunToken:
    """Identifies one run of a job; a stopped run keeps a stale token."""

    __slots__ = ("job_id",)

    def __init__(self, job_id: int):
        self.job_id = job_id

    def __repr__(self) -> str:
        return f"<RunToken job={self.job_id} id={id(self):#x}>"


class JobRegistry:
    """Check-and-insert happens without awaiting, so it is atomic on the loop."""

    def __init__(self) -> None:
        self._active: dict[int, RunToken] = {}

    def try_acquire(self, job_id: int) -> RunToken | None:
        if job_id in self._active:
            return None
        token = RunToken(job_id)
        self._active[job_id] = token
        return token

    def is_current(self, job_id: int, token: RunToken) -> bool:
        return self._active.get(job_id) is token

    def release(self, job_id: int, token: RunToken | None = None) -> bool:
        """Remove a job; with a token, only if that run still owns the slot."""
        current = self._active.get(job_id)
        if current is None or (token is not None and current is not token):
            return False
        del self._active[job_id]
        return True

    def active_ids(self) -> list[int]:
        return sorted(self._active)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._active

    def __len__(self) -> int:
        return len(self._active)
