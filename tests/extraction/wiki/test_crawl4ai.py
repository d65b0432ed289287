# ABOUTME: Tests for the Crawl4AI page fetcher covering browser lifecycle, run options and failures
# ABOUTME: The crawl4ai AsyncWebCrawler is replaced with mocks so no browser is started

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from minewiki.extraction.base import ExtractionError
from minewiki.extraction.wiki.crawl4ai import Crawl4AIPageFetcher


def _crawl_result(html: str = "<html><body><p>Stone</p></body></html>", success: bool = True, error: str = ""):
    result = MagicMock()
    result.success = success
    result.html = html
    result.error_message = error
    return result


@pytest.fixture
def mock_crawler():
    with patch("minewiki.extraction.wiki.crawl4ai.AsyncWebCrawler") as mock_crawler_class:
        crawler = AsyncMock()
        mock_crawler_class.return_value = crawler
        yield crawler


class TestInitialization:
    """Test fetcher configuration"""

    def test_defaults_from_config(self):
        fetcher = Crawl4AIPageFetcher()
        assert fetcher.headless is True
        assert fetcher.page_timeout_ms == 120_000

    def test_overrides(self):
        fetcher = Crawl4AIPageFetcher(headless=False, page_timeout_ms=5_000)
        assert fetcher.headless is False
        assert fetcher.page_timeout_ms == 5_000

    def test_headless_from_environment(self, monkeypatch):
        from minewiki.config import reload_config

        monkeypatch.setenv("MINEWIKI_HEADLESS", "false")
        reload_config()
        assert Crawl4AIPageFetcher().headless is False


class TestFetch:
    """Fetching with a mocked crawler"""

    @pytest.mark.asyncio
    async def test_fetch_success(self, mock_crawler):
        mock_crawler.arun.return_value = _crawl_result()

        async with Crawl4AIPageFetcher() as fetcher:
            page = await fetcher.fetch(
                "https://minecraft.wiki/w/Crafting", js_code=["window.scrollTo(0, 0);"], wait_for="css:.mcui"
            )

        assert page.url == "https://minecraft.wiki/w/Crafting"
        assert page.soup.select_one("p").get_text() == "Stone"

        config = mock_crawler.arun.call_args.kwargs["config"]
        assert config.js_code == ["window.scrollTo(0, 0);"]
        assert config.wait_for == "css:.mcui"
        mock_crawler.__aenter__.assert_awaited_once()
        mock_crawler.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fetch_outside_context_fails(self):
        with pytest.raises(ExtractionError, match="outside"):
            await Crawl4AIPageFetcher().fetch("https://minecraft.wiki/w/Stone")

    @pytest.mark.asyncio
    async def test_crawl_failure(self, mock_crawler):
        mock_crawler.arun.return_value = _crawl_result(success=False, error="net::ERR_NAME_NOT_RESOLVED")

        async with Crawl4AIPageFetcher() as fetcher:
            with pytest.raises(ExtractionError, match="ERR_NAME_NOT_RESOLVED"):
                await fetcher.fetch("https://minecraft.wiki/w/Stone")

    @pytest.mark.asyncio
    async def test_no_result(self, mock_crawler):
        mock_crawler.arun.return_value = None

        async with Crawl4AIPageFetcher() as fetcher:
            with pytest.raises(ExtractionError, match="no result"):
                await fetcher.fetch("https://minecraft.wiki/w/Stone")

    @pytest.mark.asyncio
    async def test_empty_html(self, mock_crawler):
        mock_crawler.arun.return_value = _crawl_result(html="")

        async with Crawl4AIPageFetcher() as fetcher:
            with pytest.raises(ExtractionError, match="No HTML"):
                await fetcher.fetch("https://minecraft.wiki/w/Stone")

    @pytest.mark.asyncio
    async def test_unexpected_exception(self, mock_crawler):
        mock_crawler.arun.side_effect = RuntimeError("browser crashed")

        async with Crawl4AIPageFetcher() as fetcher:
            with pytest.raises(ExtractionError, match="browser crashed"):
                await fetcher.fetch("https://minecraft.wiki/w/Stone")
