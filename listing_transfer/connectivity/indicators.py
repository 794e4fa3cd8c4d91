"""Heuristic classification of a post-login page."""

from __future__ import annotations

from dataclasses import dataclass

from .results import Outcome, Recommendation, Verdict


def _normalize_url(url: str) -> str:
    return (url or "").split("#", 1)[0].split("?", 1)[0].rstrip("/").lower()


@dataclass(frozen=True)
class IndicatorMatches:
    successes: list[str]
    failures: list[str]


@dataclass(frozen=True)
class IndicatorSet:
    success_url_patterns: tuple[str, ...] = ()
    success_phrases: tuple[str, ...] = ()
    failure_phrases: tuple[str, ...] = ()
    fail_when_url_unchanged: bool = True

    def match(self, url: str, text: str, login_url: str | None = None) -> IndicatorMatches:
        url_l = (url or "").lower()
        text_l = (text or "").lower()
        successes = [f"url:{p}" for p in self.success_url_patterns if p in url_l]
        successes += [f"text:{p}" for p in self.success_phrases if p.lower() in text_l]
        failures = [f"text:{p}" for p in self.failure_phrases if p.lower() in text_l]
        if self.fail_when_url_unchanged and login_url and _normalize_url(url) == _normalize_url(login_url):
            failures.append("url:unchanged")
        return IndicatorMatches(successes, failures)

    def classify(self, url: str, text: str, login_url: str | None = None) -> Verdict:
        """Failures win, then successes; a 0/0 tie is inconclusive."""
        matches = self.match(url, text, login_url)
        if matches.failures:
            phrases = [f.split(":", 1)[1] for f in matches.failures if f.startswith("text:")]
            if phrases:
                return Verdict(
                    Outcome.AUTH_FAILURE,
                    f"Invalid credentials: page reported {phrases[0]!r}",
                    reason="invalid_credentials",
                    recommendation=Recommendation.CHECK_CREDENTIALS,
                )
            return Verdict(
                Outcome.AUTH_FAILURE,
                "Login was not accepted: still on the login page",
                reason="login_page_unchanged",
                recommendation=Recommendation.CHECK_CREDENTIALS,
            )
        if matches.successes:
            return Verdict(Outcome.AUTH_SUCCESS, "Login successful", reason="authenticated")
        return Verdict(
            Outcome.INCONCLUSIVE,
            "Login result is inconclusive: no success or failure indicators found",
            reason="no_indicators",
            recommendation=Recommendation.VERIFY_MANUALLY,
        )
