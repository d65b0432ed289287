# ABOUTME: Wiki access: browser-backed page fetcher and shared URL helpers
# ABOUTME: Scrapers depend on the WikiPageFetcher protocol, not on crawl4ai directly

from .base import BaseWikiScraper
from .crawl4ai import Crawl4AIPageFetcher

__all__ = ["BaseWikiScraper", "Crawl4AIPageFetcher"]
