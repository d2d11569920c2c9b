from __future__ import annotations

import logging
from datetime import datetime, timezone

from .async_client import AsyncGitHubClient
from .issues import fetch_open_issues
from .models import RepoRef, UpvoteReport
from .ranking import UpvoteAggregator, check_limit
from .reactions import iter_tallies

log = logging.getLogger(__name__)


async def collect_upvotes(
    client: AsyncGitHubClient,
    repo: RepoRef,
    limit: int,
    *,
    max_pages: int = 0,
    now: datetime | None = None,
) -> UpvoteReport:
    """List issues -> fetch reactions concurrently -> rank the top ``limit``."""
    check_limit(limit)

    listing = await fetch_open_issues(client, repo, max_pages=max_pages)
    log.info(
        "Found %d open issues in %s across %d page(s)",
        len(listing.issues), repo.full_name, listing.pages,
    )

    aggregator = UpvoteAggregator()
    async for tally in iter_tallies(client, repo, listing.issues):
        aggregator.add(tally)
    log.info("%d of %d issues have upvotes", len(aggregator.counts), aggregator.seen)

    notes: list[str] = []
    if not listing.complete:
        notes.append(f"Issue listing incomplete: {listing.error}")

    return UpvoteReport(
        repo=repo,
        entries=tuple(aggregator.ranked(limit)),
        total_issues=len(listing.issues),
        generated_at=now or datetime.now(timezone.utc),
        listing_complete=listing.complete,
        notes=tuple(notes),
    )
