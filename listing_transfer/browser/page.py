"""Thin wrapper around a nodriver tab used for one operation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from nodriver import cdp

logger = logging.getLogger(__name__)


def unwrap_eval_value(value: Any) -> Any:
    """Normalize nodriver's evaluate return values into plain Python.

    nodriver returns primitives as Python values, but represents arrays as
    lists of {"type", "value"} items and objects as [key, value] pairs.
    """
    if isinstance(value, dict):
        if value.get("type") in {"null", "undefined"} and "value" not in value:
            return None
        if "type" in value and "value" in value and len(value) <= 4:
            return unwrap_eval_value(value.get("value"))
        return {k: unwrap_eval_value(v) for k, v in value.items()}

    if isinstance(value, list):
        if value and all(
            isinstance(item, (list, tuple)) and len(item) == 2 and isinstance(item[0], str)
            for item in value
        ):
            return {item[0]: unwrap_eval_value(item[1]) for item in value}
        return [unwrap_eval_value(item) for item in value]

    return value


class BrowserPage:
    """One isolated tab. Close it on every exit path."""

    def __init__(self, tab: Any, on_close: Callable[["BrowserPage"], None] | None = None):
        self.tab = tab
        self._on_close = on_close
        self.closed = False

    async def goto(self, url: str, timeout: float = 30.0) -> None:
        await asyncio.wait_for(self.tab.get(url), timeout=timeout)
        await self._wait_for_load(timeout)

    async def _wait_for_load(self, timeout: float) -> None:
        for _ in range(int(timeout * 2)):
            if await self.evaluate("document.readyState") == "complete":
                return
            await asyncio.sleep(0.5)

    async def current_url(self) -> str:
        return str(await self.evaluate("window.location.href") or "")

    async def title(self) -> str:
        return str(await self.evaluate("document.title") or "")

    async def text(self) -> str:
        value = await self.evaluate("document.body ? document.body.innerText : ''")
        return str(value or "")

    async def query(self, selector: str) -> Any | None:
        return await self.tab.query_selector(selector)

    async def fill(self, element: Any, value: str) -> None:
        await element.click()
        await element.send_keys(value)

    async def click(self, element: Any) -> None:
        await element.click()

    async def press_enter(self) -> None:
        for event_type in ("keyDown", "keyUp"):
            await self.tab.send(
                cdp.input_.dispatch_key_event(
                    event_type, key="Enter", code="Enter", windows_virtual_key_code=13
                )
            )

    async def evaluate(self, js_code: str) -> Any:
        return unwrap_eval_value(await self.tab.evaluate(js_code))

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self.tab.close()
        except Exception:
            logger.warning("Failed to close browser tab", exc_info=True)
        finally:
            if self._on_close:
                self._on_close(self)
