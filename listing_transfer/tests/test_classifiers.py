"""Tests for the pure login-response classifiers."""

from __future__ import annotations

import pytest

from listing_transfer.connectivity.indicators import IndicatorSet
from listing_transfer.connectivity.results import Outcome, Recommendation
from listing_transfer.connectivity.systems import SOURCE, TARGET
from listing_transfer.connectivity.taxonomy import SOURCE_TAXONOMY, RedirectRule


class TestResponseTaxonomy:
    def test_zero_is_success(self):
        verdict = SOURCE_TAXONOMY.classify("0!-!ignored")
        assert verdict.success
        assert verdict.outcome == Outcome.AUTH_SUCCESS

    def test_one_is_incorrect_password(self):
        verdict = SOURCE_TAXONOMY.classify("1!-!bad")
        assert not verdict.success
        assert verdict.outcome == Outcome.AUTH_FAILURE
        assert verdict.reason == "incorrect_password"
        assert "incorrect password" in verdict.message.lower()

    def test_three_is_access_limit(self):
        verdict = SOURCE_TAXONOMY.classify("3!-!x")
        assert not verdict.success
        assert verdict.reason == "access_limit_exceeded"
        assert "access limit exceeded" in verdict.message.lower()

    def test_empty_body_is_inconclusive_error(self):
        verdict = SOURCE_TAXONOMY.classify("")
        assert not verdict.success
        assert verdict.outcome == Outcome.INCONCLUSIVE
        assert "inconclusive" in verdict.message.lower()
        assert "error" in verdict.message.lower()

    def test_script_payload_is_success(self):
        verdict = SOURCE_TAXONOMY.classify("eval(window.open(...))")
        assert verdict.success
        assert verdict.reason == "script_redirect"

    @pytest.mark.parametrize(
        "body,reason",
        [
            ("2!-!x", "incorrect_data"),
            ("4!-!x", "account_deactivated"),
            ("-1!-!x", "maintenance"),
        ],
    )
    def test_named_failure_codes(self, body, reason):
        verdict = SOURCE_TAXONOMY.classify(body)
        assert verdict.outcome == Outcome.AUTH_FAILURE
        assert verdict.reason == reason

    def test_bom_and_whitespace_are_stripped(self):
        assert SOURCE_TAXONOMY.classify("\ufeff  1!-!bad\n").reason == "incorrect_password"

    def test_unseen_numeric_code_is_inconclusive(self):
        verdict = SOURCE_TAXONOMY.classify("7!-!x")
        assert verdict.outcome == Outcome.INCONCLUSIVE
        assert verdict.recommendation == Recommendation.VERIFY_MANUALLY

    @pytest.mark.parametrize("body", ["7!-!window.open('/painel')", "7!-!window.location='x'"])
    def test_unseen_code_with_script_payload_is_inconclusive(self, body):
        verdict = SOURCE_TAXONOMY.classify(body)
        assert not verdict.success
        assert verdict.outcome == Outcome.INCONCLUSIVE
        assert verdict.recommendation == Recommendation.VERIFY_MANUALLY

    def test_erro_token_is_inconclusive(self):
        assert SOURCE_TAXONOMY.classify("erro").outcome == Outcome.INCONCLUSIVE

    def test_long_non_numeric_is_probable_success(self):
        verdict = SOURCE_TAXONOMY.classify("a" * 40)
        assert verdict.success
        assert verdict.reason == "probable_success"

    def test_short_unknown_text_is_inconclusive(self):
        assert SOURCE_TAXONOMY.classify("hello").outcome == Outcome.INCONCLUSIVE


class TestRedirectRule:
    def test_redirect_to_dashboard_is_success(self):
        rule = RedirectRule(keywords=("dashboard",))
        verdict = rule.classify(302, "/app/Dashboard/index.php")
        assert verdict is not None and verdict.success

    def test_redirect_elsewhere_is_not_decided(self):
        rule = RedirectRule(keywords=("dashboard",))
        assert rule.classify(302, "/login?err=1") is None
        assert rule.classify(200, "/dashboard") is None


class TestIndicatorSet:
    def test_tie_is_inconclusive_not_invalid(self):
        verdict = TARGET.indicators.classify(
            "https://canalpro.grupozap.com/somewhere", "Loading...", TARGET.login_url
        )
        assert not verdict.success
        assert verdict.outcome == Outcome.INCONCLUSIVE
        assert "inconclusive" in verdict.message.lower()
        assert "invalid" not in verdict.message.lower()
        assert verdict.recommendation == Recommendation.VERIFY_MANUALLY

    def test_failure_phrase_beats_success(self):
        verdict = TARGET.indicators.classify(
            "https://canalpro.grupozap.com/dashboard",
            "Painel - Senha incorreta",
            TARGET.login_url,
        )
        assert verdict.outcome == Outcome.AUTH_FAILURE
        assert verdict.reason == "invalid_credentials"

    def test_unchanged_login_url_is_failure(self):
        verdict = TARGET.indicators.classify(
            "https://canalpro.grupozap.com/login/", "Canal Pro", TARGET.login_url
        )
        assert verdict.outcome == Outcome.AUTH_FAILURE
        assert verdict.reason == "login_page_unchanged"

    def test_success_url_pattern(self):
        verdict = TARGET.indicators.classify(
            "https://canalpro.grupozap.com/painel", "", TARGET.login_url
        )
        assert verdict.success

    def test_source_session_phrases(self):
        verdict = SOURCE.indicators.classify("https://x/area", "Olá, Maria | Sair", SOURCE.login_url)
        assert verdict.success

    def test_match_counts(self):
        indicators = IndicatorSet(
            success_url_patterns=("home",),
            success_phrases=("logout",),
            failure_phrases=("denied",),
        )
        matches = indicators.match("https://x/home", "Logout", None)
        assert matches.successes == ["url:home", "text:logout"]
        assert matches.failures == []
