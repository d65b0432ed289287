# ABOUTME: Shared interfaces and errors for wiki page extraction
# ABOUTME: Defines the page-fetching protocol and the rendered page wrapper used by every scraper

from dataclasses import dataclass, field
from functools import cached_property
from typing import Protocol

from bs4 import BeautifulSoup


class ExtractionError(Exception):
    """Raised when a page or a field cannot be extracted."""

    pass


class ImageDownloadError(ExtractionError):
    """Raised when an image cannot be fetched."""

    pass


class MissingPageError(ExtractionError):
    """Raised when the wiki has no article for a record."""

    pass


@dataclass
class WikiPage:
    """A rendered wiki page."""

    url: str
    html: str = field(repr=False)

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "html.parser")

    @property
    def is_missing(self) -> bool:
        """True when the wiki answered with its "no article" placeholder."""
        return self.soup.select_one(".noarticletext") is not None


class WikiPageFetcher(Protocol):
    """Protocol for loading rendered wiki pages.

    Implementations are async context managers so a single browser can be
    shared across a whole batch.
    """

    async def __aenter__(self) -> "WikiPageFetcher": ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...

    async def fetch(self, url: str, *, js_code: list[str] | None = None, wait_for: str | None = None) -> WikiPage:
        """Load ``url`` and return its rendered HTML.

        Args:
            url: Absolute page URL
            js_code: Scripts to run after load (e.g. clicking lazy-load links)
            wait_for: ``css:<selector>`` or ``js:<predicate>`` to wait on before capture

        Raises:
            ExtractionError: If the page cannot be loaded
        """
        ...
