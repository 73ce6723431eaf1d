"""Stats engine — deterministic aggregation over a commit sequence."""

from commitsight.engines.stats.aggregator import aggregate, extract_keywords
from commitsight.engines.stats.models import (
    AggregateStats,
    LargestCommit,
    TimelineCommit,
    TimelineEvent,
)
from commitsight.engines.stats.quality import score_commit_quality
from commitsight.engines.stats.series import activity_series
from commitsight.engines.stats.timeline import build_timeline

__all__ = [
    "AggregateStats",
    "LargestCommit",
    "TimelineCommit",
    "TimelineEvent",
    "activity_series",
    "aggregate",
    "build_timeline",
    "extract_keywords",
    "score_commit_quality",
]
