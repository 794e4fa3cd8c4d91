"""Probe outcome types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Outcome(str, Enum):
    REACHABLE = "reachable"
    AUTH_SUCCESS = "auth_success"
    AUTH_FAILURE = "auth_failure"
    INCONCLUSIVE = "inconclusive"
    UNREACHABLE = "unreachable"
    LAYOUT_CHANGED = "layout_changed"
    TECHNICAL_ERROR = "technical_error"
    MISSING_CREDENTIALS = "missing_credentials"


SUCCESS_OUTCOMES = frozenset({Outcome.REACHABLE, Outcome.AUTH_SUCCESS})


class Recommendation(str, Enum):
    AUTHENTICATE_MANUALLY = "authenticate_manually"
    RETRY_LATER = "retry_later"
    VERIFY_MANUALLY = "verify_manually"
    CHECK_CREDENTIALS = "check_credentials"
    CONTACT_SUPPORT = "contact_support"
    CHECK_LAYOUT = "check_layout"


@dataclass(frozen=True)
class Verdict:
    """Output of a pure classifier, before it is attached to a system."""

    outcome: Outcome
    message: str
    reason: str | None = None
    recommendation: Recommendation | None = None

    @property
    def success(self) -> bool:
        return self.outcome in SUCCESS_OUTCOMES


@dataclass
class ConnectivityResult:
    success: bool
    system: str
    message: str
    outcome: Outcome
    recommendation: Recommendation | None = None
    reason: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_verdict(cls, system: str, verdict: Verdict) -> ConnectivityResult:
        return cls(
            success=verdict.success,
            system=system,
            message=verdict.message,
            outcome=verdict.outcome,
            recommendation=verdict.recommendation,
            reason=verdict.reason,
        )

    @classmethod
    def failure(
        cls,
        system: str,
        outcome: Outcome,
        message: str,
        recommendation: Recommendation | None = None,
        reason: str | None = None,
    ) -> ConnectivityResult:
        return cls(
            success=False,
            system=system,
            message=message,
            outcome=outcome,
            recommendation=recommendation,
            reason=reason,
        )

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "system": self.system,
            "message": self.message,
            "outcome": self.outcome.value,
            "recommendation": self.recommendation.value if self.recommendation else None,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }
