from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from .models import RankedEntry, UpvoteReport

UPVOTE = "\N{THUMBS UP SIGN}"


def format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_entry(entry: RankedEntry) -> str:
    return f"{entry.rank}. {entry.issue_number}# ({entry.upvote_count} {UPVOTE})"


def render_text(report: UpvoteReport) -> str:
    lines = [
        f"Most upvoted issues in {report.repo.full_name} "
        f"(generated {format_timestamp(report.generated_at)})"
    ]
    lines.extend(format_entry(e) for e in report.entries)
    lines.append(f"Total issues: {report.total_issues}")
    return "\n".join(lines)


def write_json(path: str | Path, report: UpvoteReport) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return p
