"""Rich terminal output for upvote reports."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import UpvoteReport
from .output import UPVOTE, format_timestamp, render_text

console = Console()


def upvote_color(count: int, top: int) -> str:
    if top and count >= top * 0.75:
        return "green"
    if top and count >= top * 0.25:
        return "yellow"
    return "white"


def build_table(report: UpvoteReport) -> Table:
    table = Table(
        title=f"Most upvoted issues in {report.repo.full_name}",
        caption=f"generated {format_timestamp(report.generated_at)}",
        box=box.ROUNDED,
    )
    table.add_column("#", justify="right", width=4)
    table.add_column("Issue", style="cyan")
    table.add_column(UPVOTE, justify="right")
    table.add_column("URL")

    top = report.entries[0].upvote_count if report.entries else 0
    for entry in report.entries:
        color = upvote_color(entry.upvote_count, top)
        table.add_row(
            str(entry.rank),
            f"#{entry.issue_number}",
            f"[{color}]{entry.upvote_count}[/{color}]",
            f"https://github.com/{report.repo.full_name}/issues/{entry.issue_number}",
        )
    return table


def print_report(report: UpvoteReport, *, as_table: bool = False, out: Console | None = None) -> None:
    out = out or console
    if as_table:
        if not report.entries:
            out.print("[yellow]No open issues with upvotes found.[/yellow]")
        else:
            out.print(build_table(report))
        out.print(f"Total issues: {report.total_issues}")
    else:
        out.print(render_text(report), markup=False, highlight=False, soft_wrap=True)

    for note in report.notes:
        out.print(f"[yellow]Warning: {escape(note)}[/yellow]", highlight=False)
