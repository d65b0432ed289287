# ABOUTME: Data extraction layer for wiki pages
# ABOUTME: Pipeline Stage 1: Wiki HTML → normalized item, block and recipe records

"""
Extraction Layer: Wiki pages → records

This layer handles:
- Rendering wiki pages in an automated browser
- Field extraction heuristics for items, blocks and crafting recipes
- Image download, resizing and texture palettes

Data Flow: minecraft.wiki → extraction/ → core/ collections
"""

from .base import ExtractionError, ImageDownloadError, MissingPageError, WikiPage, WikiPageFetcher

__all__ = ["ExtractionError", "ImageDownloadError", "MissingPageError", "WikiPage", "WikiPageFetcher"]
