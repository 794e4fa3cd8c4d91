"""Browser session management."""

from .locators import Locator, find_first_match, locators
from .manager import BrowserManager
from .page import BrowserPage

__all__ = ["BrowserManager", "BrowserPage", "Locator", "find_first_match", "locators"]
