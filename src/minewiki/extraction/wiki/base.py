import re
from urllib.parse import unquote

import httpx
from bs4 import Tag

from minewiki.config import get_config
from minewiki.extraction.base import WikiPageFetcher
from minewiki.utils.logging import get_logger


class BaseWikiScraper:
    """Base class for scrapers reading minecraft.wiki pages. Holds the page fetcher and an httpx
    client for direct asset downloads."""

    def __init__(self, fetcher: WikiPageFetcher, client: httpx.AsyncClient | None = None):
        config = get_config()
        self.base_url = config.wiki_base_url.rstrip("/")
        self.fetcher = fetcher
        self.http_client = client or httpx.AsyncClient(  # Allow for dependency injection
            headers={"User-Agent": config.user_agent},
            follow_redirects=True,
            timeout=60.0,
        )
        self.logger = get_logger(__name__)

    async def close(self) -> None:
        await self.http_client.aclose()

    def page_url(self, title: str) -> str:
        """URL of the wiki page with the given title."""
        return f"{self.base_url}/w/{title.replace(' ', '_')}"

    def absolute_url(self, href: str) -> str:
        """Resolve a site-relative ``href``/``src`` against the wiki base URL."""
        if href.startswith("//"):
            return "https:" + href
        if href.startswith("http://") or href.startswith("https://"):
            return href
        return self.base_url + ("" if href.startswith("/") else "/") + href

    @staticmethod
    def image_src(img: Tag) -> str | None:
        """Source of a possibly lazy-loaded image."""
        return img.get("data-src") or img.get("src")

    @staticmethod
    def title_from_url(url: str | None) -> str | None:
        """Extract the page title from a ``/w/<title>`` URL."""
        if not url:
            return None
        page_title = re.search(r"/w/([^#?]*)", str(url))
        return unquote(page_title.group(1)).replace("_", " ") if page_title else None

    @staticmethod
    def slugify(name: str) -> str:
        """Lowercase snake-case form of a display name: "Potion of Healing" -> "potion_of_healing"."""
        slug = re.sub(r"[^a-z0-9]+", "_", name.lower())
        return slug.strip("_")
