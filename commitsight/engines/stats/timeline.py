"""Timeline builder — commits grouped by calendar day, newest day first."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import tzinfo

from commitsight.engines.commit_collector.models import CommitRecord
from commitsight.engines.stats.aggregator import local_time
from commitsight.engines.stats.models import TimelineCommit, TimelineEvent


def build_timeline(
    commits: Iterable[CommitRecord], *, tz: tzinfo | None = None
) -> list[TimelineEvent]:
    """Group *commits* by ISO day; commits inside a day keep input order."""
    days: dict[str, TimelineEvent] = {}
    for commit in commits:
        if commit.authored_at is None:
            continue
        day = local_time(commit.authored_at, tz).date().isoformat()
        event = days.setdefault(day, TimelineEvent(date=day))
        event.commits.append(
            TimelineCommit(
                sha=commit.sha[:7],
                message=commit.title,
                additions=commit.additions,
                deletions=commit.deletions,
                files=len(commit.files or ()),
            )
        )
    return sorted(days.values(), key=lambda e: e.date, reverse=True)
