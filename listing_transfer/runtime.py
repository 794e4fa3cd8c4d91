"""Process-wide component wiring shared by the web app and the CLI."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .browser.manager import BrowserManager
from .config import settings
from .connectivity.prober import ConnectivityProber
from .engine.activity import ActivityLog
from .engine.events import EventBroadcaster
from .engine.orchestrator import TransferOrchestrator
from .media.downloader import MediaDownloader
from .services.store import TransferStore
from .sources.browser import BrowserListingPublisher, BrowserListingScraper


@dataclass
class Runtime:
    store: TransferStore
    broadcaster: EventBroadcaster
    activity: ActivityLog
    browser: BrowserManager
    prober: ConnectivityProber
    media: MediaDownloader
    orchestrator: TransferOrchestrator

    @classmethod
    async def create(cls, session_factory: async_sessionmaker[AsyncSession] | None = None) -> Runtime:
        if session_factory is None:
            from .database import async_session_factory

            session_factory = async_session_factory
        store = TransferStore(session_factory)
        await store.seed_defaults()
        headless = bool(await store.get_setting("headless", settings.browser_headless))

        broadcaster = EventBroadcaster()
        activity = ActivityLog(store, broadcaster)
        browser = BrowserManager(headless=headless, browser_args=settings.browser_args)
        prober = ConnectivityProber(browser, activity)
        media = MediaDownloader(
            settings.media_dir, timeout_seconds=settings.media_download_timeout_seconds
        )
        orchestrator = TransferOrchestrator(
            store,
            prober,
            activity,
            broadcaster,
            scraper=BrowserListingScraper(browser),
            publisher=BrowserListingPublisher(browser),
            media=media,
        )
        return cls(store, broadcaster, activity, browser, prober, media, orchestrator)

    async def close(self) -> None:
        await self.browser.cleanup()
        await self.media.aclose()
