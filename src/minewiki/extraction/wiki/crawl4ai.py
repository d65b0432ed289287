# ABOUTME: Crawl4AI-based implementation of wiki page fetching
# ABOUTME: Drives one headless browser for a whole batch, running lazy-load scripts before capturing HTML

from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

from minewiki.config import get_config
from minewiki.extraction.base import ExtractionError, WikiPage
from minewiki.utils.logging import get_logger, log_api_call, suppress_library_output


class Crawl4AIPageFetcher:
    """Page fetcher backed by a crawl4ai ``AsyncWebCrawler``.

    Use as an async context manager; the browser is started on enter and shut
    down on exit. Concurrent ``fetch`` calls share the browser, each in its own
    page.
    """

    def __init__(self, headless: bool | None = None, page_timeout_ms: int | None = None):
        """Initialize the fetcher.

        Args:
            headless: Whether to run browser in headless mode (defaults to config)
            page_timeout_ms: Navigation timeout per page (defaults to config)
        """
        config = get_config()
        self.headless = config.headless if headless is None else headless
        self.page_timeout_ms = page_timeout_ms or config.page_timeout_ms
        self.browser_config = BrowserConfig(
            headless=self.headless,
            verbose=False,
            extra_args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        self._crawler: AsyncWebCrawler | None = None
        self.logger = get_logger(__name__)

        self.logger.info("Initialized Crawl4AI page fetcher", headless=self.headless)

    async def __aenter__(self) -> "Crawl4AIPageFetcher":
        crawler = AsyncWebCrawler(config=self.browser_config)
        # Browser startup prints a banner we do not want on the CLI
        with suppress_library_output():
            await crawler.__aenter__()
        self._crawler = crawler
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._crawler is not None:
            with suppress_library_output():
                await self._crawler.__aexit__(exc_type, exc_val, exc_tb)
            self._crawler = None

    @log_api_call("crawl4ai")
    async def fetch(self, url: str, *, js_code: list[str] | None = None, wait_for: str | None = None) -> WikiPage:
        """Render ``url`` in the browser and return its HTML."""
        if self._crawler is None:
            raise ExtractionError("Page fetcher used outside of its 'async with' block")

        run_config = CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            js_code=js_code,
            wait_for=wait_for,
            wait_until="networkidle",
            page_timeout=self.page_timeout_ms,
            verbose=False,
        )

        try:
            result = await self._crawler.arun(url=url, config=run_config)
        except Exception as e:
            self.logger.error("Unexpected error while crawling", url=url, error=str(e), error_type=type(e).__name__)
            raise ExtractionError(f"Failed to load {url}: {e}") from e

        if not result:
            raise ExtractionError(f"Crawling failed: no result returned for {url}")
        if not result.success:
            raise ExtractionError(f"Crawling failed for {url}: {result.error_message}")
        if not result.html:
            raise ExtractionError(f"No HTML captured for {url}")

        self.logger.debug("Fetched page", url=url, html_length=len(result.html))
        return WikiPage(url=url, html=result.html)
