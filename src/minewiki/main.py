# ABOUTME: Main CLI application entry point using asyncclick for native async support
# ABOUTME: Provides commands for scraping items, blocks and recipes, validating, publishing and uploading

import json as jsonlib
from collections.abc import Awaitable
from typing import TypeVar

import asyncclick as click
from rich.console import Console

from minewiki.config import get_config
from minewiki.core.models import RunSummary
from minewiki.core.validation import ValidationError, validate_files
from minewiki.publish.api import build_static_api
from minewiki.publish.upload import DEFAULT_ENV_FILE, R2Uploader, UploadConfigError, load_upload_settings
from minewiki.utils.logging import LoggingMode, configure_logging, get_logging_status, with_pipeline_context
from minewiki.utils.rich_tables import (
    create_failures_table,
    create_logging_status_table,
    create_run_summary_table,
    create_upload_summary_table,
    create_validation_table,
    print_rich_table,
)

console = Console()

T = TypeVar("T")


async def _run_with_status(coro: Awaitable[T], message: str, json_output: bool) -> T:
    """Await ``coro`` behind a spinner unless JSON output was requested."""
    if json_output:
        return await coro
    with console.status(message, spinner="dots"):
        return await coro


def _display_run_summary(summary: RunSummary, json_output: bool) -> None:
    if json_output:
        click.echo(summary.model_dump_json())
        return

    print_rich_table(console, create_run_summary_table(summary))
    if summary.failures:
        print_rich_table(console, create_failures_table(summary))
        console.print(f"[yellow]Error report written to {get_config().errors_dir}[/yellow]")


@click.command()
@click.option("--force-refresh", is_flag=True, help="Discard items.json and scrape every item again")
@click.option("--concurrency", type=click.IntRange(min=1), help="Item pages processed at once")
@click.pass_context
async def items(ctx, force_refresh: bool, concurrency: int | None):
    """
    🎒 Scrape items from the Java Edition data values page.
    """
    from minewiki.core.service import ScrapeService

    with with_pipeline_context("items_command") as logger:
        logger.info("Starting items run", force_refresh=force_refresh)
        summary = await _run_with_status(
            ScrapeService().run_items(force_refresh=force_refresh, concurrency=concurrency),
            "⛏️ Scraping items...",
            ctx.obj["json_output"],
        )
        _display_run_summary(summary, ctx.obj["json_output"])


@click.command()
@click.option("--force-refresh", is_flag=True, help="Discard blocks.json and scrape every block again")
@click.option("--concurrency", type=click.IntRange(min=1), help="Block pages processed at once")
@click.pass_context
async def blocks(ctx, force_refresh: bool, concurrency: int | None):
    """
    🧱 Scrape blocks from the Java Edition block data values page.
    """
    from minewiki.core.service import ScrapeService

    with with_pipeline_context("blocks_command") as logger:
        logger.info("Starting blocks run", force_refresh=force_refresh)
        summary = await _run_with_status(
            ScrapeService().run_blocks(force_refresh=force_refresh, concurrency=concurrency),
            "⛏️ Scraping blocks...",
            ctx.obj["json_output"],
        )
        _display_run_summary(summary, ctx.obj["json_output"])


@click.command()
@click.pass_context
async def recipes(ctx):
    """
    🛠️ Rebuild recipes.json from the Crafting page.
    """
    from minewiki.core.service import ScrapeService

    with with_pipeline_context("recipes_command") as logger:
        logger.info("Starting recipes run")
        summary = await _run_with_status(
            ScrapeService().run_recipes(), "⛏️ Scraping crafting recipes...", ctx.obj["json_output"]
        )
        _display_run_summary(summary, ctx.obj["json_output"])


@click.command()
@click.pass_context
def validate(ctx):
    """
    🧪 Check the collections for duplicate ids, out-of-range values and malformed grids.
    """
    config = get_config()
    reports = validate_files(config.items_json_path, config.blocks_json_path, config.recipes_json_path)

    if ctx.obj["json_output"]:
        click.echo(jsonlib.dumps([report.model_dump() for report in reports]))
    else:
        print_rich_table(console, create_validation_table(reports))
        for report in reports:
            for issue in report.issues[:20]:
                console.print(f"[red]- {report.collection}: {issue}[/red]")

    if any(not report.ok for report in reports):
        ctx.exit(1)


@click.command(name="build-api")
@click.pass_context
def build_api(ctx):
    """
    📡 Publish the collections as a static JSON API under public/api.
    """
    config = get_config()
    try:
        written = build_static_api(config.data_dir, config.public_dir)
    except ValidationError as e:
        if ctx.obj["json_output"]:
            click.echo(jsonlib.dumps({"error": str(e), "reports": [report.model_dump() for report in e.reports]}))
        else:
            print_rich_table(console, create_validation_table(e.reports))
            console.print(f"[red]❌ {e}[/red]")
        ctx.exit(1)

    if ctx.obj["json_output"]:
        click.echo(jsonlib.dumps({collection: str(path) for collection, path in written.items()}))
    else:
        for collection, path in written.items():
            console.print(f"✅ [bold green]{collection}[/bold green] → {path}")


@click.command()
@click.option("--public-dir", help="Directory holding the files to upload [env: R2_PUBLIC_DIR]")
@click.option("--include", help="Comma separated subdirectories to upload [env: R2_INCLUDE]")
@click.option("--bucket", help="Target bucket [env: R2_BUCKET]")
@click.option("--endpoint", help="S3 endpoint URL [env: R2_ENDPOINT or R2_ACCOUNT_ID]")
@click.option("--prefix", help="Key prefix, e.g. images [env: R2_PREFIX]")
@click.option("--concurrency", type=int, help="Parallel uploads [env: R2_CONCURRENCY]")
@click.option("--dry-run", is_flag=True, help="List what would be uploaded [env: R2_DRY_RUN=1]")
@click.option(
    "--skip-existing", is_flag=True, help="Skip keys already in the bucket [env: R2_SKIP_EXISTING=1]"
)
@click.option("--cache-control", help="Cache-Control header for uploaded objects [env: R2_CACHE_CONTROL]")
@click.option("--env-file", default=DEFAULT_ENV_FILE, show_default=True, help="Env file loaded if present")
@click.pass_context
async def upload(ctx, env_file: str, **options):
    """
    ☁️ Upload generated images and API files to Cloudflare R2 (or any S3-compatible store).
    """
    json_output = ctx.obj["json_output"]
    for flag in ("dry_run", "skip_existing"):
        # An absent flag defers to the R2_* variable
        options[flag] = options[flag] or None
    try:
        settings = load_upload_settings(env_file, **options)
        uploader = R2Uploader(settings)
        result = await _run_with_status(uploader.run(), "☁️ Uploading...", json_output)
    except UploadConfigError as e:
        raise click.ClickException(str(e)) from e

    if json_output:
        click.echo(
            jsonlib.dumps(
                {
                    "bucket": result.bucket,
                    "prefix": result.prefix,
                    "total": result.total,
                    "uploaded": result.uploaded,
                    "skipped": result.skipped,
                    "dryRun": result.dry_run,
                    "failed": [{"file": str(f.path), "error": f.error} for f in result.failures],
                }
            )
        )
    else:
        print_rich_table(console, create_upload_summary_table(result))

    if result.failures:
        if not json_output:
            console.print(f"[red]Failed uploads: {len(result.failures)}/{result.total}[/red]")
            for failure in result.failures[:20]:
                console.print(f"[red]- {failure.path}: {failure.error}[/red]")
            if len(result.failures) > 20:
                console.print(f"[red]...and {len(result.failures) - 20} more[/red]")
        ctx.exit(1)

    if not json_output:
        console.print(f"✅ Done. {result.summary}")


def _initialize_logging(json_output: bool, log_level: str | None = None, log_file: str | None = None) -> None:
    """Initialize logging configuration."""
    try:
        config = get_config()
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE

        # Use config defaults when CLI parameters are not provided
        final_log_level = log_level or config.log_level
        final_log_file = log_file or (str(config.log_file) if config.log_file else None)

        configure_logging(mode=mode, log_level=final_log_level, log_file=final_log_file)
    except (FileNotFoundError, PermissionError, OSError):
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE
        configure_logging(mode=mode, log_level=log_level or "INFO", log_file=log_file)


@click.command(name="logging-status")
def logging_status():
    """
    📊 Show current logging configuration and status.
    """
    status = get_logging_status()
    logging_table = create_logging_status_table(status)
    print_rich_table(console, logging_table)


@click.group(invoke_without_command=True)
@click.option("--json", is_flag=True, help="Output structured JSON logs instead of rich interface")
@click.option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-file", help="Custom log file path")
@click.pass_context
def app(ctx, json: bool, log_level: str | None, log_file: str | None):
    """
    ⛏️ Minewiki - Minecraft wiki data scraper

    Scrape items, blocks and crafting recipes from minecraft.wiki into JSON
    collections, publish them as a static API and upload the assets.
    """
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json

    # Initialize logging once here instead of in each command
    _initialize_logging(json, log_level, log_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


app.add_command(items)
app.add_command(blocks)
app.add_command(recipes)
app.add_command(validate)
app.add_command(build_api)
app.add_command(upload)
app.add_command(logging_status)


if __name__ == "__main__":
    app()
