"""Data models for the stats engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class LargestCommit:
    sha: str = ""
    message: str = ""
    changes: int = 0


@dataclass(frozen=True)
class AggregateStats:
    """Canonical statistical summary of one commit set.

    Built once per run by :func:`aggregate`; never mutated afterwards.
    """

    total_commits: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    net_changes: int = 0
    files_modified: int = 0
    unique_files: frozenset[str] = frozenset()
    file_touches: dict[str, int] = field(default_factory=dict)
    language_distribution: dict[str, int] = field(default_factory=dict)
    commits_by_day: dict[str, int] = field(default_factory=dict)
    commits_by_hour: dict[int, int] = field(default_factory=dict)
    commits_by_weekday: dict[str, int] = field(default_factory=dict)
    average_commit_size: float = 0.0
    largest_commit: LargestCommit = field(default_factory=LargestCommit)
    commit_keywords: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form; ``unique_files`` becomes a sorted list."""
        data = asdict(self)
        data["unique_files"] = sorted(self.unique_files)
        return data


@dataclass
class TimelineCommit:
    sha: str  # short (7 chars)
    message: str  # first line only
    additions: int = 0
    deletions: int = 0
    files: int = 0


@dataclass
class TimelineEvent:
    """Commits of one calendar day."""

    date: str  # YYYY-MM-DD
    commits: list[TimelineCommit] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
