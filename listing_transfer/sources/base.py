"""Listing payload and the scraper/publisher seams used by the orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..models.job import AutomationJob


@dataclass
class PropertyData:
    code: str
    type: str = ""
    price: float | None = None
    description: str = ""
    address: str = ""
    area: float | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    photos: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ListingScraper(Protocol):
    async def extract(self, source_code: str, job_id: int) -> PropertyData: ...


class ListingPublisher(Protocol):
    async def publish(self, listing: PropertyData, code: str, job: AutomationJob) -> dict[str, Any]: ...


class MediaStore(Protocol):
    async def fetch_all(self, urls: list[str], namespace: str) -> list[str]: ...
