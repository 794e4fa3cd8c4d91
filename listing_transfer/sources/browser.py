"""Default browser-driven scraper (source system) and publisher (target system)."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import TYPE_CHECKING, Any

from ..browser.locators import Locator, find_first_match, locators
from ..browser.manager import BrowserManager
from ..browser.page import BrowserPage
from ..config import settings
from ..connectivity.systems import SOURCE, TARGET, SystemProfile
from ..errors import TransferError
from .base import PropertyData

if TYPE_CHECKING:
    from ..models.job import AutomationJob

logger = logging.getLogger(__name__)

SOURCE_FIELDS: dict[str, tuple[Locator, ...]] = {
    "type": locators(".tipo-imovel", "[data-field='tipo']", "#tipo"),
    "price": locators(".valor-imovel", ".preco", "[data-field='valor']", "#valor"),
    "description": locators(".descricao-imovel", ".descricao", "[data-field='descricao']", "#descricao"),
    "address": locators(".endereco-imovel", ".endereco", "[data-field='endereco']", "#endereco"),
    "area": locators(".area-imovel", "[data-field='area']", "#area"),
    "bedrooms": locators(".dormitorios", "[data-field='dormitorios']", "#dormitorios"),
    "bathrooms": locators(".banheiros", "[data-field='banheiros']", "#banheiros"),
}
SOURCE_PHOTO_SELECTOR = ".galeria img, .fotos img, [data-field='fotos'] img"
SOURCE_FEATURE_SELECTOR = ".caracteristicas li, [data-field='caracteristicas'] li"

TARGET_FIELDS: dict[str, tuple[Locator, ...]] = {
    "code": locators("input[name='externalId']", "input[name='codigo']", "#externalId"),
    "type": locators("select[name='unitType']", "input[name='tipo']"),
    "price": locators("input[name='price']", "input[name='preco']", "#price"),
    "description": locators("textarea[name='description']", "textarea[name='descricao']", "#description"),
    "address": locators("input[name='address']", "input[name='endereco']", "#address"),
    "area": locators("input[name='usableArea']", "input[name='area']"),
    "bedrooms": locators("input[name='bedrooms']", "input[name='quartos']"),
    "bathrooms": locators("input[name='bathrooms']", "input[name='banheiros']"),
    "video_url": locators("input[name='videoUrl']", "input[name='video']"),
    "tour_url": locators("input[name='virtualTourUrl']", "input[name='tour']"),
}
TARGET_REQUIRED = ("code", "price", "description")

_NUMBER_RE = re.compile(r"[\d.,]+")


def parse_number(text: str | None) -> float | None:
    """Parse "R$ 350.000,00" / "85 m²" / "1,234.5" style numbers."""
    if not text:
        return None
    m = _NUMBER_RE.search(text)
    if not m:
        return None
    raw = m.group(0).strip(".,")
    if "," in raw and "." in raw:
        if raw.rfind(",") > raw.rfind("."):
            raw = raw.replace(".", "").replace(",", ".")
        else:
            raw = raw.replace(",", "")
    elif "," in raw:
        raw = raw.replace(",", ".") if len(raw.rsplit(",", 1)[1]) != 3 else raw.replace(",", "")
    elif raw.count(".") > 1 or (raw.count(".") == 1 and len(raw.rsplit(".", 1)[1]) == 3):
        raw = raw.replace(".", "")
    try:
        return float(raw)
    except ValueError:
        return None


def _as_int(value: float | None) -> int | None:
    return int(value) if value is not None else None


def _element_text(element: Any) -> str:
    text = getattr(element, "text_all", None) or getattr(element, "text", "")
    return str(text or "").strip()


async def _collect(page: BrowserPage, selector: str, attribute: str) -> list[str]:
    js = (
        f"JSON.stringify(Array.from(document.querySelectorAll({json.dumps(selector)}))"
        f".map(e => e.{attribute}).filter(Boolean))"
    )
    raw = await page.evaluate(js)
    if not raw:
        return []
    try:
        values = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return [str(v).strip() for v in values if str(v).strip()]


class BrowserListingScraper:
    """Reads a listing page on the source system into PropertyData."""

    def __init__(
        self,
        browser: BrowserManager,
        profile: SystemProfile = SOURCE,
        fields: dict[str, tuple[Locator, ...]] | None = None,
    ):
        self.browser = browser
        self.profile = profile
        self.fields = fields or SOURCE_FIELDS

    async def extract(self, source_code: str, job_id: int) -> PropertyData:
        if not self.profile.listing_url_template:
            raise TransferError(f"{self.profile.name} has no listing URL configured")
        url = self.profile.listing_url_template.format(code=source_code)

        async with self.browser.page() as page:
            await page.goto(url, timeout=settings.browser_navigation_timeout_seconds)
            values: dict[str, str] = {}
            for name, candidates in self.fields.items():
                match = await find_first_match(page, candidates)
                if match is not None:
                    values[name] = _element_text(match[1])
            photos = await _collect(page, SOURCE_PHOTO_SELECTOR, "src")
            features = await _collect(page, SOURCE_FEATURE_SELECTOR, "innerText")

        if not values:
            raise TransferError(
                f"Could not read listing {source_code} from {self.profile.name}: "
                "listing not found or page layout changed"
            )
        logger.debug("Job %s scraped fields %s", job_id, sorted(values))
        return PropertyData(
            code=source_code,
            type=values.get("type", ""),
            price=parse_number(values.get("price")),
            description=values.get("description", ""),
            address=values.get("address", ""),
            area=parse_number(values.get("area")),
            bedrooms=_as_int(parse_number(values.get("bedrooms"))),
            bathrooms=_as_int(parse_number(values.get("bathrooms"))),
            photos=photos,
            features=features,
        )


class BrowserListingPublisher:
    """Fills the target system's new-listing form with a claimed code."""

    def __init__(
        self,
        browser: BrowserManager,
        profile: SystemProfile = TARGET,
        fields: dict[str, tuple[Locator, ...]] | None = None,
        required: tuple[str, ...] = TARGET_REQUIRED,
    ):
        self.browser = browser
        self.profile = profile
        self.fields = fields or TARGET_FIELDS
        self.required = required

    async def publish(self, listing: PropertyData, code: str, job: AutomationJob) -> dict[str, Any]:
        if not self.profile.publish_url:
            raise TransferError(f"{self.profile.name} has no publish URL configured")

        values = {
            "code": code,
            "type": listing.type,
            "price": "" if listing.price is None else f"{listing.price:.2f}",
            "description": listing.description,
            "address": listing.address,
            "area": "" if listing.area is None else f"{listing.area:g}",
            "bedrooms": "" if listing.bedrooms is None else str(listing.bedrooms),
            "bathrooms": "" if listing.bathrooms is None else str(listing.bathrooms),
            "video_url": job.video_url or "",
            "tour_url": job.tour_url or "",
        }

        async with self.browser.page() as page:
            await page.goto(self.profile.publish_url, timeout=settings.browser_navigation_timeout_seconds)
            filled = []
            for name, candidates in self.fields.items():
                value = values.get(name)
                if not value:
                    continue
                match = await find_first_match(page, candidates)
                if match is None:
                    if name in self.required:
                        raise TransferError(
                            f"{self.profile.name} listing form layout changed: {name} field not found"
                        )
                    continue
                await page.fill(match[1], value)
                filled.append(name)

            submit = await find_first_match(page, self.profile.submit_locators)
            if submit is not None:
                await page.click(submit[1])
            else:
                await page.press_enter()
            settle = self.profile.settle_seconds
            await asyncio.sleep(settings.browser_settle_seconds if settle is None else settle)
            final_url = await page.current_url()

        return {"code": code, "url": final_url, "fields": filled}
