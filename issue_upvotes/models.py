from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .config import POSITIVE_REACTION


@dataclass(frozen=True)
class RepoRef:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class Issue:
    number: int
    title: str
    is_pull_request: bool = False

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Issue":
        """Build an Issue from a REST issue record.

        The issues endpoint returns pull requests too; they carry a non-null
        ``pull_request`` object.
        """
        number = raw["number"]
        if not isinstance(number, int) or isinstance(number, bool) or number < 1:
            raise ValueError(f"Invalid issue number: {number!r}")
        return cls(
            number=number,
            title=str(raw.get("title") or ""),
            is_pull_request=raw.get("pull_request") is not None,
        )


@dataclass(frozen=True)
class Reaction:
    content: str
    author_login: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Reaction":
        content = raw["content"]
        if not isinstance(content, str):
            raise ValueError(f"Invalid reaction content: {content!r}")
        user = raw.get("user") or {}
        if not isinstance(user, dict):
            raise ValueError(f"Invalid reaction user: {user!r}")
        return cls(content=content, author_login=str(user.get("login") or ""))

    @property
    def is_upvote(self) -> bool:
        return self.content == POSITIVE_REACTION


@dataclass(frozen=True)
class IssueReactionTally:
    issue_number: int
    upvote_count: int


@dataclass(frozen=True)
class RankedEntry:
    rank: int
    issue_number: int
    upvote_count: int


@dataclass(frozen=True)
class IssueListing:
    issues: tuple[Issue, ...]
    pages: int
    complete: bool = True
    error: str | None = None


@dataclass(frozen=True)
class UpvoteReport:
    repo: RepoRef
    entries: tuple[RankedEntry, ...]
    total_issues: int
    generated_at: datetime
    listing_complete: bool = True
    notes: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repo.full_name,
            "generated_at": self.generated_at.isoformat(),
            "total_issues": self.total_issues,
            "listing_complete": self.listing_complete,
            "entries": [
                {"rank": e.rank, "issue_number": e.issue_number, "upvotes": e.upvote_count}
                for e in self.entries
            ],
            "notes": list(self.notes),
        }
