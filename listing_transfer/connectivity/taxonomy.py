"""Classification of raw direct-login responses."""

from __future__ import annotations

from dataclasses import dataclass, field

from .results import Outcome, Recommendation, Verdict

BOM = "\ufeff"


@dataclass(frozen=True)
class ResponseTaxonomy:
    """Table-driven classifier for a delimiter-separated login response.

    The leading token (before `delimiter`) is looked up in `codes`. Tokens not
    in the table fall through to the marker and length heuristics, and
    anything still unrecognized is inconclusive.
    """

    delimiter: str
    codes: dict[str, Verdict]
    success_markers: tuple[str, ...] = ()
    error_tokens: tuple[str, ...] = ("", "erro")
    probable_success_min_length: int = 30

    def classify(self, body: str) -> Verdict:
        text = (body or "").replace(BOM, "").strip()
        token = text.split(self.delimiter, 1)[0].strip()

        if token in self.codes:
            return self.codes[token]

        if token.lower() in self.error_tokens:
            return Verdict(
                Outcome.INCONCLUSIVE,
                "Login endpoint returned an empty or error response (inconclusive or error)",
                reason="empty_or_error",
                recommendation=Recommendation.VERIFY_MANUALLY,
            )

        lowered = token.lower()
        for marker in self.success_markers:
            if marker in lowered:
                return Verdict(
                    Outcome.AUTH_SUCCESS,
                    "Login accepted (redirect script returned)",
                    reason="script_redirect",
                )

        if len(token) > self.probable_success_min_length and not _is_numeric(token):
            return Verdict(
                Outcome.AUTH_SUCCESS,
                "Login probably accepted (unrecognized non-numeric response)",
                reason="probable_success",
                recommendation=Recommendation.VERIFY_MANUALLY,
            )

        return Verdict(
            Outcome.INCONCLUSIVE,
            f"Unrecognized login response {token[:20]!r}; result is inconclusive",
            reason="unrecognized_response",
            recommendation=Recommendation.VERIFY_MANUALLY,
        )


def _is_numeric(token: str) -> bool:
    try:
        int(token)
    except ValueError:
        return False
    return True


def _failure(reason: str, message: str, recommendation: Recommendation) -> Verdict:
    return Verdict(Outcome.AUTH_FAILURE, message, reason=reason, recommendation=recommendation)


SOURCE_TAXONOMY = ResponseTaxonomy(
    delimiter="!-!",
    codes={
        "0": Verdict(Outcome.AUTH_SUCCESS, "Login successful", reason="ok"),
        "1": _failure("incorrect_password", "Incorrect password", Recommendation.CHECK_CREDENTIALS),
        "2": _failure("incorrect_data", "Incorrect login data", Recommendation.CHECK_CREDENTIALS),
        "3": _failure(
            "access_limit_exceeded",
            "Access limit exceeded for this account",
            Recommendation.CONTACT_SUPPORT,
        ),
        "4": _failure("account_deactivated", "Account deactivated", Recommendation.CONTACT_SUPPORT),
        "-1": _failure("maintenance", "System under maintenance", Recommendation.RETRY_LATER),
    },
    success_markers=(
        "eval(",
        "window.open",
        "location.href",
        "redirect",
        "parent.",
        "top.",
        "window.",
        "document.",
    ),
)


@dataclass(frozen=True)
class RedirectRule:
    """A 3xx whose Location contains one of `keywords` means authenticated."""

    keywords: tuple[str, ...] = field(default_factory=tuple)

    def classify(self, status_code: int, location: str | None) -> Verdict | None:
        if not 300 <= status_code < 400 or not location:
            return None
        lowered = location.lower()
        if any(k in lowered for k in self.keywords):
            return Verdict(Outcome.AUTH_SUCCESS, "Login accepted (redirected to authenticated area)", reason="redirect")
        return None
