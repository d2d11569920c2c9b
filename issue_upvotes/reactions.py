"""Concurrent per-issue reaction lookups."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Iterable

from .async_client import AsyncGitHubClient, GitHubClientError, MalformedResponse, RequestFailed
from .models import Issue, IssueReactionTally, Reaction, RepoRef

log = logging.getLogger(__name__)


class ReactionFetchError(GitHubClientError):
    def __init__(self, issue_number: int, cause: RequestFailed):
        self.issue_number = issue_number
        self.cause = cause
        super().__init__(f"Could not fetch reactions for issue #{issue_number}: {cause}")


def count_upvotes(reactions: Iterable[Reaction]) -> int:
    return sum(1 for r in reactions if r.is_upvote)


def parse_reactions(records: list, url: str = "") -> list[Reaction]:
    reactions: list[Reaction] = []
    for raw in records:
        try:
            reactions.append(Reaction.from_api(raw))
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedResponse(f"Unusable reaction record from {url}: {exc!r}") from exc
    return reactions


async def fetch_reaction_tally(
    client: AsyncGitHubClient, repo: RepoRef, issue_number: int,
) -> IssueReactionTally:
    """Count the "+1" reactions on one issue, following reaction pages."""
    url: str | None = client.reactions_url(repo, issue_number)
    visited: set[str] = set()
    upvotes = 0
    while url and url not in visited:
        visited.add(url)
        try:
            resp = await client.get(url)
        except RequestFailed as exc:
            raise ReactionFetchError(issue_number, exc) from exc
        upvotes += count_upvotes(parse_reactions(resp.json_list(), url))
        url = resp.next_url
    return IssueReactionTally(issue_number=issue_number, upvote_count=upvotes)


async def iter_tallies(
    client: AsyncGitHubClient, repo: RepoRef, issues: Iterable[Issue],
) -> AsyncIterator[IssueReactionTally]:
    """Yield one tally per issue, in completion order.

    All lookups are scheduled at once; the client's semaphore bounds how many
    hit the network together. The first failure cancels the rest and is
    re-raised.
    """
    tasks = [
        asyncio.create_task(fetch_reaction_tally(client, repo, issue.number))
        for issue in issues
    ]
    log.info("Fetching reactions for %d issues of %s", len(tasks), repo.full_name)
    try:
        for next_done in asyncio.as_completed(tasks):
            yield await next_done
    finally:
        pending = [t for t in tasks if not t.done()]
        for t in pending:
            t.cancel()
        # Reap everything so no failure goes unretrieved.
        await asyncio.gather(*tasks, return_exceptions=True)
        if pending:
            log.warning("Cancelled %d outstanding reaction lookups", len(pending))
