"""Async fixtures and fake browser objects for listing transfer tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from listing_transfer.browser.manager import BrowserManager
from listing_transfer.connectivity.results import ConnectivityResult, Outcome
from listing_transfer.engine.activity import ActivityLog
from listing_transfer.engine.events import EventBroadcaster
from listing_transfer.models import Base
from listing_transfer.services.store import TransferStore
from listing_transfer.sources.base import PropertyData


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """File-backed database so concurrent store calls use separate connections."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'transfer.db'}", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)
    await eng.dispose()


@pytest_asyncio.fixture
async def store(session_factory) -> TransferStore:
    return TransferStore(session_factory)


@pytest_asyncio.fixture
async def broadcaster() -> EventBroadcaster:
    return EventBroadcaster()


@pytest_asyncio.fixture
async def activity(store, broadcaster) -> ActivityLog:
    return ActivityLog(store, broadcaster)


class RecordingSubscriber:
    def __init__(self):
        self.events: list[dict] = []

    @property
    def is_ready(self) -> bool:
        return True

    def deliver(self, event: dict) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[dict]:
        return [e for e in self.events if e["type"] == event_type]


class FakeElement:
    def __init__(self, name: str = "", on_click: Callable[[], None] | None = None, text: str = ""):
        self.name = name
        self.on_click = on_click
        self.text_all = text
        self.typed: list[str] = []
        self.clicks = 0

    async def send_keys(self, text: str) -> None:
        self.typed.append(text)

    async def click(self) -> None:
        self.clicks += 1
        if self.on_click:
            self.on_click()


class FakeTab:
    """Stands in for a nodriver Tab."""

    def __init__(
        self,
        *,
        text: str = "",
        elements: dict[str, FakeElement] | None = None,
        after_submit: tuple[str, str] | None = None,
        json_results: dict[str, str] | None = None,
        raise_on_get: Exception | None = None,
    ):
        self.url = "about:blank"
        self.text = text
        self.elements = elements or {}
        self.after_submit = after_submit
        self.json_results = json_results or {}
        self.raise_on_get = raise_on_get
        self.visited: list[str] = []
        self.sent: list[object] = []
        self.closed = False

    def submit(self) -> None:
        if self.after_submit:
            self.url, self.text = self.after_submit

    async def get(self, url: str):
        if self.raise_on_get:
            raise self.raise_on_get
        self.visited.append(url)
        self.url = url
        return self

    async def evaluate(self, js: str):
        if "readyState" in js:
            return "complete"
        if "location.href" in js:
            return self.url
        if "JSON.stringify" in js:
            for selector, payload in self.json_results.items():
                if selector in js:
                    return payload
            return "[]"
        if "innerText" in js:
            return self.text
        if "document.title" in js:
            return "Fake"
        return None

    async def query_selector(self, selector: str):
        return self.elements.get(selector)

    async def send(self, command) -> None:
        self.sent.append(command)
        self.submit()

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, tab_factory: Callable[[], FakeTab] | None = None):
        self.tab_factory = tab_factory or FakeTab
        self.tabs: list[FakeTab] = []
        self.stopped = False
        self.stop_calls = 0

    async def get(self, url: str, new_tab: bool = False):
        tab = self.tab_factory()
        self.tabs.append(tab)
        return tab

    def stop(self) -> None:
        self.stop_calls += 1
        self.stopped = True


class FakeLauncher:
    """Records launches; yields once so concurrent callers can interleave."""

    def __init__(self, tab_factory: Callable[[], FakeTab] | None = None):
        self.tab_factory = tab_factory
        self.browsers: list[FakeBrowser] = []
        self.calls: list[tuple[bool, list[str]]] = []

    async def __call__(self, headless, browser_args):
        self.calls.append((headless, list(browser_args)))
        await asyncio.sleep(0)
        browser = FakeBrowser(self.tab_factory)
        self.browsers.append(browser)
        return browser


def make_manager(tab_factory: Callable[[], FakeTab] | None = None) -> tuple[BrowserManager, FakeLauncher]:
    launcher = FakeLauncher(tab_factory)
    return BrowserManager(headless=True, launcher=launcher), launcher


PHOTOS = ["https://cdn.example.com/1.jpg", "https://cdn.example.com/2.jpg"]


class FakeProber:
    def __init__(self, failures: dict[str, ConnectivityResult] | None = None):
        self.failures = failures or {}
        self.calls: list[tuple[str, tuple[str, str] | None]] = []

    async def probe(self, system, credentials=None):
        self.calls.append((system, credentials))
        if system in self.failures:
            return self.failures[system]
        return ConnectivityResult(
            success=True, system=system, message="Login successful", outcome=Outcome.AUTH_SUCCESS
        )


class FakeScraper:
    def __init__(self, error: Exception | None = None, gate: asyncio.Event | None = None):
        self.error = error
        self.gate = gate
        self.started = asyncio.Event()
        self.calls: list[str] = []

    async def extract(self, source_code, job_id):
        self.calls.append(source_code)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return PropertyData(code=source_code, type="Apartamento", price=450000.0, photos=list(PHOTOS))


class FakePublisher:
    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    async def publish(self, listing, code, job):
        self.calls.append((listing.code, code))
        return {"code": code, "url": f"https://target.example.com/{code}"}


class FakeMedia:
    def __init__(self):
        self.calls: list[tuple[list[str], str]] = []

    async def fetch_all(self, urls, namespace):
        self.calls.append((list(urls), namespace))
        return [f"/media/{namespace}/{i:02d}.jpg" for i, _ in enumerate(urls, start=1)]

    async def aclose(self) -> None:
        pass


CREDENTIALS = {
    "source_username": "ana@example.com",
    "source_password": "univen-pw",
    "target_username": "ana@example.com",
    "target_password": "canal-pw",
}


async def configure_store(store: TransferStore) -> None:
    """Zero delay and both systems' credentials."""
    await store.set_setting("action_delay", 0)
    for key, value in CREDENTIALS.items():
        await store.set_setting(key, value)
