"""
Location abstraction.
Stands in for the browser's current URL and history so the persistence
bridge can be driven without a browser.
"""
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Location(ABC):
    """
    Abstract base class for the current page location.
    Allows swapping a real browser bridge for an in-memory one in tests.
    """

    @property
    @abstractmethod
    def href(self) -> str:
        """Full current URL."""
        pass

    @abstractmethod
    def replace(self, url: str) -> None:
        """
        Replace the current URL in place.

        Must behave like history.replaceState: no new history entry and
        no navigation or reload.

        Args:
            url: New absolute URL
        """
        pass


class InMemoryLocation(Location):
    """Location held in memory; counts replacements so callers can check for redundant writes."""

    def __init__(self, href: str = "http://localhost:3000/"):
        self._href = href
        self.replace_count = 0

    @property
    def href(self) -> str:
        return self._href

    def replace(self, url: str) -> None:
        self._href = url
        self.replace_count += 1
        logger.debug(f"Location replaced ({self.replace_count} so far)")
