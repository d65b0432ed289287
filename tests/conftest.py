# ABOUTME: Shared pytest fixtures for the minewiki test suite
# ABOUTME: Isolates every test in a temporary working directory and provides fake page fetchers and images

from io import BytesIO

import pytest
from PIL import Image

from minewiki.config import reload_config
from minewiki.extraction.base import ExtractionError, WikiPage


@pytest.fixture(autouse=True)
def isolated_workdir(tmp_path, monkeypatch):
    """Run each test from an empty directory with default configuration."""
    for name in ("MINEWIKI_DATA_DIR", "MINEWIKI_PUBLIC_DIR", "MINEWIKI_LOG_MODE", "MINEWIKI_WIKI_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reload_config()
    yield tmp_path
    reload_config()


class FakePageFetcher:
    """Serves canned HTML by URL and records every fetch."""

    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.calls: list[dict] = []
        self.entered = False

    async def __aenter__(self) -> "FakePageFetcher":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.entered = False

    async def fetch(self, url: str, *, js_code: list[str] | None = None, wait_for: str | None = None) -> WikiPage:
        self.calls.append({"url": url, "js_code": js_code, "wait_for": wait_for})
        if url not in self.pages:
            raise ExtractionError(f"Failed to load {url}")
        return WikiPage(url=url, html=self.pages[url])


@pytest.fixture
def fake_fetcher():
    """Factory for fetchers serving ``{url: html}``."""
    return FakePageFetcher


@pytest.fixture
def png_bytes():
    """Factory for solid-colour PNG images."""

    def make(width: int = 16, height: int = 16, color=(120, 120, 120, 255)) -> bytes:
        buffer = BytesIO()
        Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
        return buffer.getvalue()

    return make
