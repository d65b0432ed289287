# ABOUTME: Rich table utilities for run summaries, validation results and upload reports
# ABOUTME: Provides pre-configured table generators for the CLI's console output

from typing import Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.table import Table

from minewiki.core.models import RunSummary
from minewiki.core.validation import ValidationReport
from minewiki.publish.upload import FAILURES_SHOWN, UploadResult


def create_key_value_table(
    title: str,
    data: dict[str, str],
    title_style: str = "bold cyan",
    key_style: str = "bold blue",
    value_style: str = "green",
    box_style=ROUNDED,
) -> Table:
    """Create a two-column key-value table.

    Args:
        title: Table title with emoji/styling
        data: Dictionary of key-value pairs to display
        title_style: Style for the table title
        key_style: Style for the key column
        value_style: Style for the value column
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style="bold magenta",
        border_style="cyan",
        title_justify="left",
        expand=False,
    )

    table.add_column("Field", style=key_style, width=None, no_wrap=False)
    table.add_column("Value", style=value_style, width=None, no_wrap=False)

    for key, value in data.items():
        table.add_row(key, str(value))

    return table


def create_multi_column_table(
    title: str,
    columns: list[tuple[str, str]],
    rows: list[list[str]],
    title_style: str = "bold cyan",
    header_style: str = "bold magenta",
    alternate_row_styles: list[str] | None = None,
    box_style=ROUNDED,
) -> Table:
    """Create a multi-column table with zebra striping.

    Args:
        title: Table title with emoji/styling
        columns: List of (column_name, column_style) tuples
        rows: List of row data
        title_style: Style for the table title
        header_style: Style for column headers
        alternate_row_styles: Alternating row styles for zebra striping
        box_style: Border style for the table

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        box=box_style,
        show_header=True,
        header_style=header_style,
        border_style="cyan",
        title_justify="left",
        row_styles=alternate_row_styles or ["", "dim"],
        expand=True,
    )

    for name, style in columns:
        table.add_column(name, style=style)

    for row in rows:
        table.add_row(*row)

    return table


def create_run_summary_table(summary: RunSummary) -> Table:
    """Counters of one items/blocks/recipes run."""
    failed = f"[bold red]{summary.failed}[/bold red]" if summary.failed else "0"
    data = {
        "📦 Collection": summary.collection,
        "🔢 Rows Seen": str(summary.total),
        "✅ Added": f"[bold green]{summary.added}[/bold green]",
        "⏭️ Skipped": str(summary.skipped),
        "❌ Failed": failed,
    }
    if summary.not_found:
        data["🔍 Not Found"] = str(len(summary.not_found))

    return create_key_value_table(
        title=f"⛏️ {summary.collection.title()} Run",
        data=data,
        title_style="bold green",
        key_style="cyan",
        value_style="white",
    )


def create_failures_table(summary: RunSummary, limit: int = FAILURES_SHOWN) -> Table:
    rows = [[failure.name, failure.stage, failure.error_type, failure.error[:100]] for failure in summary.failures]
    title = f"🚨 {summary.failed} Failed Records"
    if len(rows) > limit:
        title += f" (first {limit})"
    return create_multi_column_table(
        title=title,
        columns=[("Record", "bold white"), ("Stage", "magenta"), ("Error Type", "red"), ("Error", "dim white")],
        rows=rows[:limit],
        title_style="bold red",
    )


def create_validation_table(reports: list[ValidationReport]) -> Table:
    rows = []
    for report in reports:
        if report.ok:
            status = "[bold green]✅ Valid[/bold green]"
        else:
            status = f"[bold red]❌ {len(report.issues)} issue(s)[/bold red]"
        first_issue = report.issues[0] if report.issues else ""
        rows.append([report.collection, str(report.count), status, first_issue])

    return create_multi_column_table(
        title="🧪 Collection Validation",
        columns=[("Collection", "bold cyan"), ("Records", "white"), ("Status", "white"), ("First Issue", "dim white")],
        rows=rows,
    )


def create_upload_summary_table(result: UploadResult) -> Table:
    sent_label = "🧾 Queued (dry run)" if result.dry_run else "⬆️ Uploaded"
    data = {
        "🪣 Destination": f"{result.bucket}/{result.prefix}",
        "📁 Files": str(result.total),
        sent_label: str(result.uploaded),
    }
    if result.skip_existing:
        data["⏭️ Skipped Existing"] = str(result.skipped)
    if result.failures:
        data["❌ Failed"] = f"[bold red]{len(result.failures)}/{result.total}[/bold red]"

    return create_key_value_table(
        title="☁️ Upload Summary",
        data=data,
        title_style="bold magenta",
        key_style="cyan",
        value_style="white",
        box_style=SIMPLE,
    )


def create_logging_status_table(status: dict[str, Any]) -> Table:
    """Create a logging configuration status table.

    Args:
        status: Logging status dictionary

    Returns:
        Styled logging configuration table
    """
    logging_data = {
        "🔧 Mode": status["mode"].title(),
        "📁 Log Directory": status["log_directory"] or "N/A (production mode)",
        "🔇 Suppressed Libraries": ", ".join(status["third_party_suppressed"]),
    }

    if status["log_files"]["main"]:
        logging_data["📝 Main Log"] = status["log_files"]["main"]
    if status["log_files"]["json"]:
        logging_data["📊 JSON Log"] = status["log_files"]["json"]
    if status["log_files"]["errors"]:
        logging_data["🚨 Error Log"] = status["log_files"]["errors"]

    return create_key_value_table(
        title="🔍 Logging Configuration",
        data=logging_data,
        title_style="bold green",
        key_style="blue",
        value_style="white",
    )


def print_rich_table(console: Console, table: Table) -> None:
    """Print a rich table with consistent spacing and style.

    Args:
        console: Rich console instance
        table: Configured table to print
    """
    console.print()  # Add spacing before
    console.print(table)
    console.print()  # Add spacing after
