"""Insight engine — orchestrates fetch, statistics and model synthesis."""

from commitsight.engines.insight.orchestrator import (
    ContributionSummary,
    InsightOrchestrator,
    analyze,
    summarize,
)
from commitsight.engines.insight.progress import RunProgress, RunState, Stage, StageProgress

__all__ = [
    "ContributionSummary",
    "InsightOrchestrator",
    "RunProgress",
    "RunState",
    "Stage",
    "StageProgress",
    "analyze",
    "summarize",
]
