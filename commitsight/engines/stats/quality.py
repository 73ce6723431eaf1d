"""Commit quality scorer — message heuristics independent of diff content."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable

from commitsight.engines.commit_collector.models import CommitRecord
from commitsight.schemas import CommitQualityMetrics

# type(optional-scope): description
CONVENTIONAL_COMMIT_RE = re.compile(
    r"^(feat|fix|docs|style|refactor|perf|test|chore|ci|build|revert)(\(.+\))?:\s.+",
    re.IGNORECASE,
)

_LENGTH_WEIGHT = 1.5
_CONVENTIONAL_BONUS = 20


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (51.5 → 52, 0.5 → 1)."""
    return int(math.floor(value + 0.5))


def is_conventional(message: str) -> bool:
    return CONVENTIONAL_COMMIT_RE.match(message) is not None


def score_commit_quality(commits: Iterable[CommitRecord | str]) -> CommitQualityMetrics:
    """Score message hygiene over *commits* (records or raw messages).

    ``descriptive_score`` is ``min(100, avg_len * 1.5)`` plus up to 20
    points for the conventional share, clamped to [0, 100]. An empty input
    yields all zeros.
    """
    messages = [c if isinstance(c, str) else c.message for c in commits]
    if not messages:
        return CommitQualityMetrics()

    count = len(messages)
    avg_length = sum(len(m) for m in messages) / count
    conventional_ratio = sum(1 for m in messages if is_conventional(m)) / count

    descriptive = min(100.0, avg_length * _LENGTH_WEIGHT)
    descriptive += conventional_ratio * _CONVENTIONAL_BONUS
    descriptive = max(0.0, min(100.0, descriptive))

    return CommitQualityMetrics(
        average_message_length=round_half_up(avg_length),
        conventional_usage_percent=round_half_up(conventional_ratio * 100),
        descriptive_score=round_half_up(descriptive),
    )
