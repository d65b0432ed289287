# ABOUTME: Orchestrates the items, blocks and recipes scraping runs
# ABOUTME: Wires page fetching, extraction, the batch runner, JSON collections and error reports together

from collections.abc import Callable

import httpx
from bs4 import Tag

from minewiki.config import Config, get_config
from minewiki.core.models import Block, CraftingRecipe, Item, RunSummary, ScrapeFailure
from minewiki.core.runner import BatchRunner
from minewiki.extraction.base import ExtractionError, MissingPageError, WikiPageFetcher
from minewiki.extraction.blocks import BlockScraper, block_page_title, block_row_identity
from minewiki.extraction.items import (
    SPECIAL_ITEM_PAGES,
    ItemScraper,
    item_name_from_row,
    namespaced_id_from_row,
    should_process_item,
)
from minewiki.extraction.recipes import RecipeScraper, generated_recipes, unknown_outputs
from minewiki.extraction.wiki.crawl4ai import Crawl4AIPageFetcher
from minewiki.persistence.store import JsonCollection, write_error_report
from minewiki.utils.logging import get_logger, with_pipeline_context


class ScrapeService:
    """Runs one collection build at a time.

    ``fetcher_factory`` returns a fresh page fetcher (an async context
    manager) per run; ``client`` is shared by the scrapers for image downloads
    and is left open when injected.
    """

    def __init__(
        self,
        config: Config | None = None,
        fetcher_factory: Callable[[], WikiPageFetcher] | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config or get_config()
        self.fetcher_factory = fetcher_factory or Crawl4AIPageFetcher
        self.client = client
        self.logger = get_logger(__name__)

    async def _close(self, scraper) -> None:
        if self.client is None:
            await scraper.close()

    def _finish(self, summary: RunSummary) -> RunSummary:
        write_error_report(self.config.errors_dir, summary.collection, summary.failures, summary.not_found)
        self.logger.info(
            "Run finished",
            collection=summary.collection,
            total=summary.total,
            added=summary.added,
            skipped=summary.skipped,
            failed=summary.failed,
            not_found=len(summary.not_found),
        )
        return summary

    async def run_items(self, force_refresh: bool = False, concurrency: int | None = None) -> RunSummary:
        """Scrape every item row of the data values page, then the special multi-variant pages."""
        collection = JsonCollection(self.config.items_json_path, Item).load()
        if force_refresh:
            collection.clear()

        summary = RunSummary(collection="items")
        claimed_names = set(collection.names)
        taken_ids = set(collection.namespaced_ids)

        with with_pipeline_context("items", force_refresh=force_refresh) as log:
            async with self.fetcher_factory() as fetcher:
                scraper = ItemScraper(
                    fetcher,
                    self.client,
                    images_dir=self.config.item_images_dir,
                    image_base_url=self.config.image_base_url,
                    image_size=self.config.item_image_size,
                )
                try:
                    rows = scraper.item_rows(await scraper.load_data_page())
                    summary.total = len(rows)
                    log.info("Data page loaded", rows=len(rows))

                    async def process_row(row: Tag) -> Item | None:
                        name = item_name_from_row(row)
                        if not should_process_item(name, claimed_names):
                            summary.skipped += 1
                            return None
                        claimed_names.add(name)

                        namespaced_id = namespaced_id_from_row(row) or scraper.slugify(name)
                        if namespaced_id in taken_ids:
                            log.warning("Namespaced id already taken", item=name, namespaced_id=namespaced_id)
                            namespaced_id = scraper.slugify(name)
                            if namespaced_id in taken_ids:
                                raise ExtractionError(f"Duplicate namespacedId {namespaced_id} for item: {name}")
                        taken_ids.add(namespaced_id)

                        try:
                            item = await scraper.scrape_item(name, namespaced_id, scraper.item_page_url(row, name))
                        except MissingPageError:
                            taken_ids.discard(namespaced_id)
                            summary.not_found.append(name)
                            return None
                        except Exception:
                            taken_ids.discard(namespaced_id)
                            raise

                        collection.add(item)
                        log.info("Successfully added item", item=name)
                        return item

                    runner = BatchRunner(concurrency or self.config.items_concurrency, stage="item")
                    batch = await runner.run(rows, process_row, describe=lambda row: item_name_from_row(row) or "?")
                    summary.added += len(batch.results)
                    summary.failures.extend(batch.failures)

                    for special in SPECIAL_ITEM_PAGES:
                        try:
                            items = await scraper.scrape_special_page(special, claimed_names, taken_ids)
                        except Exception as e:
                            log.error("Error processing special page", page=special.page, error=str(e))
                            summary.failures.append(ScrapeFailure.from_exception(special.page, "special_page", e))
                            continue
                        for item in items:
                            collection.add(item)
                        summary.added += len(items)
                finally:
                    await self._close(scraper)

        collection.flush()
        return self._finish(summary)

    async def run_blocks(self, force_refresh: bool = False, concurrency: int | None = None) -> RunSummary:
        """Scrape every row of the block data values table."""
        collection = JsonCollection(self.config.blocks_json_path, Block).load()
        if force_refresh:
            collection.clear()

        summary = RunSummary(collection="blocks")
        claimed_names = set(collection.names)
        taken_ids = set(collection.namespaced_ids)

        with with_pipeline_context("blocks", force_refresh=force_refresh) as log:
            async with self.fetcher_factory() as fetcher:
                scraper = BlockScraper(
                    fetcher,
                    self.client,
                    images_dir=self.config.block_images_dir,
                    image_base_url=self.config.image_base_url,
                    image_size=self.config.block_image_size,
                )
                try:
                    scraper.ensure_air_image()
                    rows = scraper.block_rows(await scraper.load_data_page())
                    summary.total = len(rows)
                    log.info("Data page loaded", rows=len(rows))

                    async def process_row(row: Tag) -> Block | None:
                        name, row_id = block_row_identity(row)
                        if not name or name in claimed_names:
                            summary.skipped += 1
                            return None
                        claimed_names.add(name)
                        if not row_id:
                            raise ExtractionError(f"No namespaced id for block: {name}")

                        namespaced_id = row_id
                        if namespaced_id in taken_ids:
                            log.warning("Namespaced id already taken", block=name, namespaced_id=namespaced_id)
                            namespaced_id = scraper.slugify(name)
                            if namespaced_id in taken_ids:
                                raise ExtractionError(f"Duplicate namespacedId {namespaced_id} for block: {name}")
                        taken_ids.add(namespaced_id)

                        try:
                            block = await scraper.scrape_block(
                                name, namespaced_id, row, page_title=block_page_title(row_id)
                            )
                        except MissingPageError:
                            taken_ids.discard(namespaced_id)
                            log.info("No content found for block", block=name)
                            summary.not_found.append(name)
                            return None
                        except Exception:
                            taken_ids.discard(namespaced_id)
                            raise

                        collection.add(block)
                        log.info("Successfully added block", block=name)
                        return block

                    runner = BatchRunner(concurrency or self.config.blocks_concurrency, stage="block")
                    batch = await runner.run(rows, process_row, describe=lambda row: block_row_identity(row)[0] or "?")
                    summary.added += len(batch.results)
                    summary.failures.extend(batch.failures)
                finally:
                    await self._close(scraper)

        collection.flush()
        return self._finish(summary)

    async def run_recipes(self) -> RunSummary:
        """Rebuild the recipes collection from the Crafting page plus the generated families."""
        collection = JsonCollection(self.config.recipes_json_path, CraftingRecipe, sort_key=lambda recipe: recipe.item)
        summary = RunSummary(collection="recipes")

        with with_pipeline_context("recipes") as log:
            async with self.fetcher_factory() as fetcher:
                scraper = RecipeScraper(fetcher, self.client)
                try:
                    rows = scraper.recipe_rows(await scraper.load_crafting_page())
                finally:
                    await self._close(scraper)

            summary.total = len(rows)
            recipes, failures = scraper.parse_rows(rows)
            recipes.extend(generated_recipes())
            summary.failures.extend(failures)

            collection.extend(recipes)
            collection.flush()
            summary.added = len(recipes)
            log.info("Wrote recipes", count=len(recipes), rows=len(rows))

            items_path = self.config.items_json_path
            if items_path.exists():
                item_names = JsonCollection(items_path, Item).load().names
                for name in unknown_outputs(recipes, item_names):
                    log.warning("Recipe output not in items collection", item=name)
            else:
                log.warning("Items collection missing, recipe outputs not checked", path=str(items_path))

        return self._finish(summary)
