from .base import ListingPublisher, ListingScraper, MediaStore, PropertyData
from .browser import BrowserListingPublisher, BrowserListingScraper

__all__ = [
    "BrowserListingPublisher",
    "BrowserListingScraper",
    "ListingPublisher",
    "ListingScraper",
    "MediaStore",
    "PropertyData",
]
