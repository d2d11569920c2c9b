#!/usr/bin/env python3
"""issue-upvotes CLI - rank a repository's open issues by thumbs-up reactions."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .async_client import AsyncGitHubClient, GitHubClientError
from .config import DEFAULT_CONCURRENCY, DEFAULT_LIMIT, ConfigError, Settings, load_settings
from .display import print_report
from .models import RepoRef, UpvoteReport
from .output import write_json
from .pipeline import collect_upvotes

console = Console()
err_console = Console(stderr=True)

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="issue-upvotes",
        description="List the open issues of a GitHub repository with the most thumbs-up reactions.",
    )
    parser.add_argument("owner", help="Repository owner (user or organisation)")
    parser.add_argument("repo", help="Repository name")
    parser.add_argument(
        "-n", "--limit", type=_positive_int, default=DEFAULT_LIMIT,
        help=f"Number of issues to show (default: {DEFAULT_LIMIT})",
    )
    parser.add_argument(
        "--token", default=None,
        help="GitHub token (or set GITHUB_PAT / GITHUB_TOKEN, or a .env file)",
    )
    parser.add_argument(
        "--user-agent", default=None,
        help="User-Agent sent to GitHub (or set GITHUB_USER_AGENT)",
    )
    parser.add_argument(
        "--api-url", default=None,
        help="REST API base URL, for GitHub Enterprise (or set GITHUB_API_URL)",
    )
    parser.add_argument(
        "--concurrency", type=_positive_int, default=DEFAULT_CONCURRENCY,
        help=f"Max parallel requests (default: {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument(
        "--max-pages", type=_non_negative_int, default=0,
        help="Stop listing issues after this many pages (default: 0, no cap)",
    )
    parser.add_argument(
        "--table", action="store_true", default=False,
        help="Show results as a table instead of plain text",
    )
    parser.add_argument(
        "--json", type=str, default=None,
        help="Also write the report to this JSON file",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Log progress (-v) or every request (-vv)",
    )
    return parser


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


async def run(settings: Settings, repo: RepoRef, limit: int, max_pages: int = 0) -> UpvoteReport:
    async with AsyncGitHubClient.from_settings(settings) as client:
        return await collect_upvotes(client, repo, limit, max_pages=max_pages)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    try:
        return _main_inner(argv)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Cancelled.[/yellow]")
        return 130


def _main_inner(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    load_dotenv()

    try:
        settings = load_settings(
            token=args.token,
            user_agent=args.user_agent,
            api_url=args.api_url,
            concurrency=args.concurrency,
        )
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        return 1

    repo = RepoRef(owner=args.owner, name=args.repo)
    try:
        report = asyncio.run(run(settings, repo, args.limit, max_pages=args.max_pages))
    except GitHubClientError as exc:
        log.debug("Run aborted", exc_info=True)
        err_console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    print_report(report, as_table=args.table, out=console)
    if args.json:
        path = write_json(args.json, report)
        err_console.print(f"[green]Saved to {escape(str(path))}[/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
