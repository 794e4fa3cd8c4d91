"""Reachability and credential checks against an external system."""

from __future__ import annotations

import asyncio
import logging
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from ..browser.locators import find_first_match
from ..browser.manager import BrowserManager
from ..config import settings
from ..engine.activity import ActivityLog
from .results import ConnectivityResult, Outcome, Recommendation, Verdict
from .systems import SystemProfile, get_profile

logger = logging.getLogger(__name__)

Credentials = tuple[str, str]


class LayoutChanged(Exception):
    """An expected login form element was not found."""


class ConnectivityProber:
    """Returns a ConnectivityResult for a system; never raises past `probe`."""

    def __init__(
        self,
        browser: BrowserManager,
        activity: ActivityLog,
        *,
        profiles: dict[str, SystemProfile] | None = None,
        client: httpx.AsyncClient | None = None,
        reachability_timeout: float | None = None,
        login_timeout: float | None = None,
        navigation_timeout: float | None = None,
        settle_seconds: float | None = None,
    ):
        self.browser = browser
        self.activity = activity
        self.profiles = profiles
        self._client = client
        self.reachability_timeout = reachability_timeout or settings.probe_reachability_timeout_seconds
        self.login_timeout = login_timeout or settings.probe_login_timeout_seconds
        self.navigation_timeout = navigation_timeout or settings.browser_navigation_timeout_seconds
        self.settle_seconds = settings.browser_settle_seconds if settle_seconds is None else settle_seconds

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        headers = {
            "User-Agent": settings.probe_user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
            "Cache-Control": "no-cache",
        }
        async with httpx.AsyncClient(headers=headers) as client:
            yield client

    async def probe(self, system: str, credentials: Credentials | None = None) -> ConnectivityResult:
        try:
            profile = get_profile(system, self.profiles)
        except ValueError as exc:
            await self.activity.error(str(exc))
            return ConnectivityResult.failure(system, Outcome.TECHNICAL_ERROR, str(exc))

        await self.activity.info(f"Starting connectivity check for {profile.name}")
        try:
            result = await self._probe(profile, credentials)
        except LayoutChanged as exc:
            await self.activity.error(
                f"{profile.name} login form not found", metadata={"detail": str(exc)}
            )
            result = ConnectivityResult.failure(
                profile.system_id,
                Outcome.LAYOUT_CHANGED,
                f"{profile.name} login page layout changed: {exc}",
                Recommendation.CHECK_LAYOUT,
                reason="layout_changed",
            )
        except Exception as exc:
            await self.activity.error(
                f"Technical error while checking {profile.name}",
                metadata={
                    "exception": type(exc).__name__,
                    "detail": str(exc),
                    "traceback": traceback.format_exc(),
                },
            )
            result = ConnectivityResult.failure(
                profile.system_id,
                Outcome.TECHNICAL_ERROR,
                f"Technical error while checking {profile.name}. See logs for details.",
                Recommendation.RETRY_LATER,
                reason="technical_error",
            )

        level = "success" if result.success else "warning"
        await self.activity.log(
            level,
            f"{profile.name} check: {result.outcome.value} - {result.message}",
            metadata=result.to_dict(),
        )
        return result

    async def _probe(self, profile: SystemProfile, credentials: Credentials | None) -> ConnectivityResult:
        endpoint = await self.check_reachability(profile)
        if endpoint is None:
            return ConnectivityResult.failure(
                profile.system_id,
                Outcome.UNREACHABLE,
                f"{profile.name} is unreachable. Check your internet connection or try again later.",
                Recommendation.RETRY_LATER,
                reason="unreachable",
            )

        if not credentials or not credentials[0] or not credentials[1]:
            return ConnectivityResult(
                success=True,
                system=profile.system_id,
                message=f"{profile.name} is reachable. Log in manually to validate your account.",
                outcome=Outcome.REACHABLE,
                recommendation=Recommendation.AUTHENTICATE_MANUALLY,
            )

        if profile.strategy == "direct":
            verdict = await self.direct_login(profile, credentials)
        else:
            verdict = await self.browser_login(profile, credentials)
        return ConnectivityResult.from_verdict(profile.system_id, verdict)

    async def check_reachability(self, profile: SystemProfile) -> str | None:
        """Return the first endpoint answering 2xx, or None."""
        timeout = httpx.Timeout(self.reachability_timeout)
        async with self._http() as client:
            for url in profile.reachability_urls:
                await self.activity.info(f"Checking connectivity with {url}")
                try:
                    response = await client.head(url, timeout=timeout, follow_redirects=True)
                    if response.status_code in (405, 501):
                        response = await client.get(url, timeout=timeout, follow_redirects=True)
                except httpx.HTTPError as exc:
                    await self.activity.warning(
                        f"Could not reach {url}: {type(exc).__name__}",
                        metadata={"detail": str(exc)},
                    )
                    continue
                if response.is_success:
                    await self.activity.info(f"Connectivity confirmed with {url}")
                    return url
                await self.activity.warning(f"{url} answered HTTP {response.status_code}")
        await self.activity.error(f"All {profile.name} endpoints failed")
        return None

    async def direct_login(self, profile: SystemProfile, credentials: Credentials) -> Verdict:
        """Form-encoded POST, classified by redirect then response taxonomy."""
        if not profile.login_endpoint or profile.taxonomy is None:
            raise ValueError(f"{profile.name} has no direct login endpoint configured")

        form = {
            profile.username_field: credentials[0],
            profile.password_field: credentials[1],
            **profile.extra_form,
        }
        await self.activity.info(f"Validating {profile.name} credentials via direct login")
        async with self._http() as client:
            try:
                response = await client.post(
                    profile.login_endpoint,
                    data=form,
                    headers={"Referer": profile.login_url, "X-Requested-With": "XMLHttpRequest"},
                    timeout=httpx.Timeout(self.login_timeout),
                    follow_redirects=False,
                )
            except httpx.TimeoutException:
                return Verdict(
                    Outcome.UNREACHABLE,
                    f"{profile.name} login endpoint timed out",
                    reason="login_timeout",
                    recommendation=Recommendation.RETRY_LATER,
                )
            except httpx.TransportError as exc:
                logger.info("%s login request failed: %s", profile.name, exc)
                return Verdict(
                    Outcome.UNREACHABLE,
                    f"{profile.name} login endpoint is unreachable",
                    reason="login_unreachable",
                    recommendation=Recommendation.RETRY_LATER,
                )

        redirect = profile.redirect_rule.classify(response.status_code, response.headers.get("location"))
        if redirect is not None:
            return redirect

        body = response.text
        await self.activity.info(
            f"{profile.name} login answered HTTP {response.status_code}",
            metadata={"status": response.status_code, "body_preview": body[:200]},
        )
        return profile.taxonomy.classify(body)

    async def browser_login(self, profile: SystemProfile, credentials: Credentials) -> Verdict:
        """Fill and submit the login form in a fresh page, then read indicators."""
        async with self.browser.page() as page:
            await self.activity.info(f"Opening {profile.name} login page")
            await page.goto(profile.login_url, timeout=self.navigation_timeout)

            username = await find_first_match(page, profile.username_locators)
            if username is None:
                raise LayoutChanged("username field not found")
            password = await find_first_match(page, profile.password_locators)
            if password is None:
                raise LayoutChanged("password field not found")
            await self.activity.info(
                f"Login fields located ({username[0]}, {password[0]})"
            )

            await page.fill(username[1], credentials[0])
            await page.fill(password[1], credentials[1])

            submit = await find_first_match(page, profile.submit_locators)
            if submit is not None:
                await page.click(submit[1])
            else:
                await self.activity.info("No submit button found; pressing Enter")
                await page.press_enter()

            settle = profile.settle_seconds if profile.settle_seconds is not None else self.settle_seconds
            await asyncio.sleep(settle)

            url = await page.current_url()
            text = await page.text()

        matches = profile.indicators.match(url, text, profile.login_url)
        await self.activity.info(
            f"{profile.name} page indicators: {len(matches.successes)} success, {len(matches.failures)} failure",
            metadata={"url": url, "successes": matches.successes, "failures": matches.failures},
        )
        return profile.indicators.classify(url, text, profile.login_url)
