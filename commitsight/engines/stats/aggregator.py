"""Stats aggregator — fold a commit sequence into one ``AggregateStats``."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, tzinfo

from commitsight.engines.commit_collector.models import CommitRecord
from commitsight.engines.stats.languages import detect_language
from commitsight.engines.stats.models import AggregateStats, LargestCommit

# Substring vocabulary scanned in lower-cased commit messages.
COMMIT_KEYWORDS: tuple[str, ...] = (
    "fix",
    "feat",
    "feature",
    "add",
    "update",
    "refactor",
    "remove",
    "delete",
    "improve",
    "optimize",
    "bug",
    "test",
    "docs",
    "style",
    "chore",
    "merge",
    "release",
    "hotfix",
    "breaking",
    "deprecated",
)

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def extract_keywords(message: str) -> list[str]:
    """Vocabulary terms contained in *message*, each reported once."""
    lowered = message.lower()
    return [kw for kw in COMMIT_KEYWORDS if kw in lowered]


def local_time(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """*moment* in *tz*, or in its own UTC offset when *tz* is None."""
    if tz is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(tz)


def aggregate(commits: Iterable[CommitRecord], *, tz: tzinfo | None = None) -> AggregateStats:
    """Fold *commits* into an :class:`AggregateStats`.

    Commits are processed in the given order; the largest commit is the
    first one whose ``stats.total`` is strictly greater than every earlier
    one. A commit without a stats block adds nothing to the totals, one
    without a file list adds nothing to file or language histograms, but
    both still count toward the commit total, time buckets and keywords.
    """
    total_commits = 0
    additions = 0
    deletions = 0
    largest = LargestCommit()
    unique_files: set[str] = set()
    file_touches: Counter[str] = Counter()
    languages: Counter[str] = Counter()
    by_day: Counter[str] = Counter()
    by_hour: Counter[int] = Counter()
    by_weekday: Counter[str] = Counter()
    keywords: Counter[str] = Counter()

    for commit in commits:
        total_commits += 1

        if commit.stats is not None:
            additions += commit.stats.additions
            deletions += commit.stats.deletions
            if commit.stats.total > largest.changes:
                largest = LargestCommit(
                    sha=commit.sha,
                    message=commit.message,
                    changes=commit.stats.total,
                )

        for change in commit.files or ():
            unique_files.add(change.filename)
            file_touches[change.filename] += 1
            languages[detect_language(change.filename)] += change.changes or 0

        if commit.authored_at is not None:
            moment = local_time(commit.authored_at, tz)
            by_day[moment.date().isoformat()] += 1
            by_hour[moment.hour] += 1
            by_weekday[WEEKDAY_NAMES[moment.weekday()]] += 1

        keywords.update(extract_keywords(commit.message))

    average = (additions + deletions) / total_commits if total_commits else 0.0

    return AggregateStats(
        total_commits=total_commits,
        total_additions=additions,
        total_deletions=deletions,
        net_changes=additions - deletions,
        files_modified=len(unique_files),
        unique_files=frozenset(unique_files),
        file_touches=dict(file_touches),
        language_distribution=dict(languages),
        commits_by_day=dict(by_day),
        commits_by_hour=dict(by_hour),
        commits_by_weekday=dict(by_weekday),
        average_commit_size=average,
        largest_commit=largest,
        commit_keywords=dict(keywords),
    )
