"""Upvote aggregation and ranking."""

from __future__ import annotations

from typing import Iterable

from .models import IssueReactionTally, RankedEntry


def check_limit(limit: int) -> None:
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")


class UpvoteAggregator:
    """Folds tallies into an issue number -> upvote count mapping.

    Issues without upvotes are never recorded, so they cannot be ranked.
    """

    def __init__(self) -> None:
        self.counts: dict[int, int] = {}
        self.seen = 0

    def add(self, tally: IssueReactionTally) -> None:
        self.seen += 1
        if tally.upvote_count <= 0:
            return
        self.counts[tally.issue_number] = self.counts.get(tally.issue_number, 0) + tally.upvote_count

    def ranked(self, limit: int) -> list[RankedEntry]:
        check_limit(limit)
        # Most upvotes first; lower issue number wins a tie.
        ordered = sorted(self.counts.items(), key=lambda item: (-item[1], item[0]))
        return [
            RankedEntry(rank=rank, issue_number=number, upvote_count=count)
            for rank, (number, count) in enumerate(ordered[:limit], start=1)
        ]


def rank_tallies(tallies: Iterable[IssueReactionTally], limit: int) -> list[RankedEntry]:
    check_limit(limit)
    aggregator = UpvoteAggregator()
    for tally in tallies:
        aggregator.add(tally)
    return aggregator.ranked(limit)
