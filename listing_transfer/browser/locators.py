"""Ordered selector candidates; the first one that matches wins."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol


class Queryable(Protocol):
    async def query(self, selector: str) -> Any | None: ...


@dataclass(frozen=True)
class Locator:
    selector: str
    description: str = ""

    def __str__(self) -> str:
        return self.description or self.selector


def locators(*selectors: str) -> tuple[Locator, ...]:
    return tuple(Locator(s) for s in selectors)


async def find_first_match(
    page: Queryable,
    candidates: Sequence[Locator],
) -> tuple[Locator, Any] | None:
    """Try candidates strictly in order and return the first hit."""
    for candidate in candidates:
        element = await page.query(candidate.selector)
        if element is not None:
            return candidate, element
    return None
