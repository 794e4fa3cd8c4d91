"""Owns the single shared browser process."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any

import nodriver as uc

from .page import BrowserPage

logger = logging.getLogger(__name__)

# --no-sandbox comes from config.sandbox = False
HARDENED_ARGS = (
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--single-process",
    "--no-zygote",
    "--no-first-run",
)

Launcher = Callable[[bool, Sequence[str]], Awaitable[Any]]


async def launch_nodriver(headless: bool, browser_args: Sequence[str]) -> Any:
    config = uc.Config()
    config.sandbox = False
    config.headless = headless
    for arg in browser_args:
        config.add_argument(arg)
    return await uc.start(config=config)


class BrowserManager:
    """Lazily launches one browser, reuses it, and hands out fresh pages.

    Usage:
        manager = BrowserManager(headless=True)
        async with manager.page() as page:
            await page.goto("https://example.com")
        await manager.cleanup()
    """

    def __init__(
        self,
        headless: bool = True,
        browser_args: Sequence[str] = (),
        launcher: Launcher | None = None,
    ):
        self.headless = headless
        self.browser_args = [*HARDENED_ARGS, *browser_args]
        self._launcher = launcher or launch_nodriver
        self._browser: Any = None
        self._launch_lock = asyncio.Lock()
        self.launch_count = 0
        self.pages_opened = 0
        self.pages_closed = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None and not getattr(self._browser, "stopped", False)

    async def acquire(self) -> Any:
        """Return a connected browser, launching one if needed."""
        if self.is_running:
            return self._browser
        async with self._launch_lock:
            # another caller may have launched while we waited
            if self.is_running:
                return self._browser
            if self._browser is not None:
                logger.warning("Browser disconnected; relaunching")
            logger.info("Launching browser (headless=%s)", self.headless)
            self._browser = await self._launcher(self.headless, self.browser_args)
            self.launch_count += 1
            return self._browser

    async def new_page(self) -> BrowserPage:
        browser = await self.acquire()
        tab = await browser.get("about:blank", new_tab=True)
        self.pages_opened += 1
        return BrowserPage(tab, on_close=self._page_closed)

    def _page_closed(self, page: BrowserPage) -> None:
        self.pages_closed += 1

    @asynccontextmanager
    async def page(self) -> AsyncIterator[BrowserPage]:
        page = await self.new_page()
        try:
            yield page
        finally:
            await page.close()

    async def cleanup(self) -> None:
        """Stop the browser. Safe to call repeatedly or before any launch."""
        async with self._launch_lock:
            browser, self._browser = self._browser, None
            if browser is None:
                return
            logger.info("Stopping browser")
            try:
                browser.stop()
            except Exception:
                logger.warning("Browser stop raised", exc_info=True)
