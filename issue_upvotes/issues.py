"""Open-issue listing with Link header pagination."""

from __future__ import annotations

import logging

from .async_client import AsyncGitHubClient, MalformedResponse, RequestFailed
from .models import Issue, IssueListing, RepoRef

log = logging.getLogger(__name__)


def parse_issue_page(records: list, url: str = "") -> list[Issue]:
    issues: list[Issue] = []
    for raw in records:
        try:
            issues.append(Issue.from_api(raw))
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedResponse(f"Unusable issue record from {url}: {exc!r}") from exc
    return issues


async def fetch_open_issues(
    client: AsyncGitHubClient,
    repo: RepoRef,
    *,
    max_pages: int = 0,
) -> IssueListing:
    """Collect every open issue of ``repo``, pull requests excluded.

    A failed request ends pagination early: the issues gathered so far are
    returned with ``complete=False``. Malformed pages raise MalformedResponse.
    ``max_pages`` of 0 means no cap.
    """
    issues: list[Issue] = []
    seen: set[int] = set()
    visited: set[str] = set()
    pages = 0
    url: str | None = client.issues_url(repo)

    while url:
        if max_pages and pages >= max_pages:
            log.warning("Stopping %s issue listing at the %d page cap", repo.full_name, max_pages)
            return IssueListing(tuple(issues), pages, complete=False, error=f"page cap of {max_pages} reached")
        visited.add(url)

        try:
            resp = await client.get(url)
        except RequestFailed as exc:
            log.warning(
                "Issue listing for %s stopped after %d page(s): %s",
                repo.full_name, pages, exc,
            )
            return IssueListing(tuple(issues), pages, complete=False, error=str(exc))

        pages += 1
        page_issues = parse_issue_page(resp.json_list(), url)
        kept = 0
        for issue in page_issues:
            if issue.is_pull_request or issue.number in seen:
                continue
            seen.add(issue.number)
            issues.append(issue)
            kept += 1
        log.debug("Page %d of %s: %d records, %d issues kept", pages, repo.full_name, len(page_issues), kept)

        url = resp.next_url
        if url and url in visited:
            log.warning("Issue listing for %s links back to %s; stopping", repo.full_name, url)
            return IssueListing(tuple(issues), pages, complete=False, error=f"pagination cycle at {url}")

    return IssueListing(tuple(issues), pages)
