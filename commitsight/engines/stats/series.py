"""Activity series — presentation-ready data derived from a commit set.

Pure helpers; they shape data for charts and summaries but render nothing.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, timedelta, tzinfo

from commitsight.engines.commit_collector.models import CommitRecord
from commitsight.engines.stats.aggregator import WEEKDAY_NAMES, local_time
from commitsight.engines.stats.models import AggregateStats

_TOP_LIMIT = 10

# (first hour, label): a day part runs until the next entry's first hour.
_DAY_PARTS: tuple[tuple[int, str], ...] = (
    (0, "night"),
    (6, "morning"),
    (12, "afternoon"),
    (18, "evening"),
)


def commits_over_time(
    commits_by_day: dict[str, int], start: date, end: date
) -> list[tuple[str, int]]:
    """One ``(YYYY-MM-DD, count)`` pair per day of the inclusive window."""
    if end < start:
        return []
    days = (end - start).days + 1
    return [
        (day.isoformat(), commits_by_day.get(day.isoformat(), 0))
        for day in (start + timedelta(days=i) for i in range(days))
    ]


def lines_changed_weekly(
    commits: Iterable[CommitRecord], *, tz: tzinfo | None = None
) -> list[dict[str, int | str]]:
    """Added/removed lines per week (weeks start on Sunday), oldest week first."""
    weeks: dict[date, list[int]] = {}
    for commit in commits:
        if commit.authored_at is None:
            continue
        day = local_time(commit.authored_at, tz).date()
        # Monday == 0, so (weekday + 1) % 7 is the number of days since Sunday.
        week_start = day - timedelta(days=(day.weekday() + 1) % 7)
        totals = weeks.setdefault(week_start, [0, 0])
        totals[0] += commit.additions
        totals[1] += commit.deletions
    return [
        {
            "week": week.isoformat(),
            "additions": adds,
            "deletions": dels,
            "total": adds + dels,
        }
        for week, (adds, dels) in sorted(weeks.items())
    ]


def hourly_activity(commits_by_hour: dict[int, int]) -> list[tuple[str, int]]:
    """24 ``("HH:00", count)`` slots, zero-filled."""
    return [(f"{hour:02d}:00", commits_by_hour.get(hour, 0)) for hour in range(24)]


def weekday_activity(commits_by_weekday: dict[str, int]) -> list[tuple[str, int]]:
    """Seven ``(weekday, count)`` slots from Monday to Sunday, zero-filled."""
    return [(name, commits_by_weekday.get(name, 0)) for name in WEEKDAY_NAMES]


def top_languages(
    language_distribution: dict[str, int], limit: int = _TOP_LIMIT
) -> list[tuple[str, int]]:
    """Languages by descending churn; ties keep insertion order."""
    return sorted(language_distribution.items(), key=lambda kv: kv[1], reverse=True)[:limit]


def top_files(commits: Iterable[CommitRecord], limit: int = _TOP_LIMIT) -> list[tuple[str, int]]:
    """Files by descending accumulated churn."""
    churn: Counter[str] = Counter()
    for commit in commits:
        for change in commit.files or ():
            churn[change.filename] += change.changes or 0
    return churn.most_common(limit)


def most_productive_period(commits_by_hour: dict[int, int]) -> str | None:
    """Day part of the busiest hour (first busiest on ties), or None without data."""
    if not commits_by_hour:
        return None
    busiest = max(commits_by_hour.items(), key=lambda kv: kv[1])[0]
    label = _DAY_PARTS[0][1]
    for first_hour, name in _DAY_PARTS:
        if busiest >= first_hour:
            label = name
    return label


def heuristic_productivity_score(stats: AggregateStats) -> int:
    """Local 0–100 activity score from volume, net change and active days.

    Each component is capped at 10 and the mean is scaled to 100. It does
    not involve the model and is reported next to the model's score.
    """
    commit_score = min(stats.total_commits / 10, 10)
    change_score = max(min(stats.net_changes / 1000, 10), 0)
    consistency_score = min(len(stats.commits_by_day) / 7, 10)
    score = (commit_score + change_score + consistency_score) / 3 * 10
    return max(0, min(100, int(score + 0.5)))


def activity_series(
    stats: AggregateStats,
    commits: Sequence[CommitRecord],
    *,
    start: date | None = None,
    end: date | None = None,
    tz: tzinfo | None = None,
) -> dict[str, object]:
    """Bundle every series for one run.

    ``commits_over_time`` is only filled when both window bounds are known.
    """
    return {
        "commits_over_time": (
            commits_over_time(stats.commits_by_day, start, end) if start and end else []
        ),
        "lines_changed_weekly": lines_changed_weekly(commits, tz=tz),
        "hourly_activity": hourly_activity(stats.commits_by_hour),
        "weekday_activity": weekday_activity(stats.commits_by_weekday),
        "top_languages": top_languages(stats.language_distribution),
        "top_files": top_files(commits),
        "most_productive_period": most_productive_period(stats.commits_by_hour),
        "heuristic_productivity_score": heuristic_productivity_score(stats),
    }
