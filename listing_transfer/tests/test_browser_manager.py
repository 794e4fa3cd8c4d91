"""Tests for BrowserManager launch, reuse, page lifecycle and cleanup."""

from __future__ import annotations

import asyncio

import pytest

from listing_transfer.browser.locators import Locator, find_first_match
from listing_transfer.browser.manager import HARDENED_ARGS
from listing_transfer.tests.conftest import FakeElement, FakeTab, make_manager


@pytest.mark.asyncio
async def test_concurrent_acquire_launches_once():
    manager, launcher = make_manager()

    browsers = await asyncio.gather(*(manager.acquire() for _ in range(5)))

    assert len(launcher.calls) == 1
    assert manager.launch_count == 1
    assert all(b is browsers[0] for b in browsers)


@pytest.mark.asyncio
async def test_launch_uses_hardened_flags():
    manager, launcher = make_manager()

    await manager.acquire()

    headless, args = launcher.calls[0]
    assert headless is True
    for flag in ("--disable-gpu", "--single-process", "--disable-dev-shm-usage", "--no-zygote"):
        assert flag in args
    assert list(HARDENED_ARGS) == args[: len(HARDENED_ARGS)]


@pytest.mark.asyncio
async def test_relaunches_after_disconnect():
    manager, launcher = make_manager()
    first = await manager.acquire()
    first.stopped = True

    second = await manager.acquire()

    assert second is not first
    assert len(launcher.calls) == 2


@pytest.mark.asyncio
async def test_cleanup_stops_once_and_is_safe_without_browser():
    manager, launcher = make_manager()
    await manager.cleanup()  # no browser yet
    assert launcher.calls == []

    browser = await manager.acquire()
    await manager.cleanup()
    await manager.cleanup()

    assert browser.stop_calls == 1
    assert not manager.is_running


@pytest.mark.asyncio
async def test_page_context_closes_on_success_and_error():
    manager, launcher = make_manager()

    async with manager.page() as page:
        await page.goto("https://example.com", timeout=1)
        assert await page.current_url() == "https://example.com"

    with pytest.raises(RuntimeError):
        async with manager.page():
            raise RuntimeError("boom")

    tabs = launcher.browsers[0].tabs
    assert len(tabs) == 2
    assert all(t.closed for t in tabs)
    assert manager.pages_opened == manager.pages_closed == 2


@pytest.mark.asyncio
async def test_page_close_is_idempotent():
    manager, _ = make_manager()
    page = await manager.new_page()

    await page.close()
    await page.close()

    assert manager.pages_closed == 1


@pytest.mark.asyncio
async def test_find_first_match_respects_declared_order():
    second = FakeElement("second")
    third = FakeElement("third")
    manager, _ = make_manager(lambda: FakeTab(elements={"#b": second, "#c": third}))

    async with manager.page() as page:
        match = await find_first_match(page, [Locator("#a"), Locator("#b"), Locator("#c")])
        missing = await find_first_match(page, [Locator("#x")])

    assert match is not None
    assert match[0].selector == "#b"
    assert match[1] is second
    assert missing is None
