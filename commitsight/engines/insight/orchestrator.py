"""Insight orchestrator — one run from commit fetch to normalized report."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import Any

import structlog

from commitsight.agent.llm_client import LLMClient, ModelClient
from commitsight.agent.normalizer import normalize_response
from commitsight.agent.prompts.insight import INSIGHT_SYSTEM_PROMPT, build_insight_prompt
from commitsight.config import DEFAULT_MODEL
from commitsight.engines.commit_collector.collector import CommitSource
from commitsight.engines.commit_collector.models import CommitRecord, RunParams
from commitsight.engines.insight.progress import RunProgress, Stage
from commitsight.engines.stats.aggregator import aggregate
from commitsight.engines.stats.models import AggregateStats, TimelineEvent
from commitsight.engines.stats.quality import score_commit_quality
from commitsight.engines.stats.series import activity_series
from commitsight.engines.stats.timeline import build_timeline
from commitsight.exceptions import EmptyResponseError
from commitsight.schemas import CommitQualityMetrics, InsightResult

log = structlog.get_logger("commitsight.insight")


@dataclass
class ContributionSummary:
    """Deterministic half of a run: no model involved."""

    params: RunParams
    commits: list[CommitRecord]
    stats: AggregateStats
    quality: CommitQualityMetrics
    timeline: list[TimelineEvent] = field(default_factory=list)
    tz: tzinfo | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.params.slug,
            "author": self.params.author,
            "since": self.params.since,
            "until": self.params.until,
            "branch": self.params.branch,
            "stats": self.stats.to_dict(),
            "commit_quality": self.quality.model_dump(),
            "series": activity_series(
                self.stats,
                self.commits,
                start=_window_date(self.params.since),
                end=_window_date(self.params.until),
                tz=self.tz,
            ),
        }


def _window_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


class InsightOrchestrator:
    """
    Sequence one insight run.

    Stage 1: fetching          CommitSource.fetch_commits()
    Stage 2: aggregating       aggregate()
    Stage 3: scoring           score_commit_quality()
    Stage 4: prompt_building   build_insight_prompt()
    Stage 5: model_invocation  ModelClient.invoke()
    Stage 6: normalizing       normalize_response()

    A failing stage marks the run failed and re-raises the original error;
    there are no retries and no partial results.
    """

    def __init__(
        self,
        source: CommitSource,
        llm: ModelClient,
        *,
        language: str = "English",
        tz: tzinfo | None = None,
    ) -> None:
        self.source = source
        self.llm = llm
        self.language = language
        self.tz = tz
        self.progress = RunProgress()

    async def run(self, params: RunParams) -> InsightResult:
        self.progress = RunProgress()
        progress = self.progress
        params.validate()

        structlog.contextvars.bind_contextvars(run_id=uuid.uuid4().hex[:12], repo=params.slug)
        try:
            log.info("insight.started", author=params.author, since=params.since, until=params.until)

            progress.start(Stage.FETCHING)
            commits = await self.source.fetch_commits(params)
            progress.complete(f"{len(commits)} commits")

            progress.start(Stage.AGGREGATING)
            stats = aggregate(commits, tz=self.tz)
            progress.complete(f"{stats.files_modified} files")

            progress.start(Stage.SCORING)
            quality = score_commit_quality(commits)
            progress.complete(f"descriptive={quality.descriptive_score}")

            progress.start(Stage.PROMPT_BUILDING)
            prompt = build_insight_prompt(stats, commits, params, language=self.language)
            progress.complete(f"{len(prompt)} chars")

            progress.start(Stage.MODEL_INVOCATION)
            raw = await self.llm.invoke(prompt, system=INSIGHT_SYSTEM_PROMPT)
            if not raw or not raw.strip():
                raise EmptyResponseError("model returned an empty response")
            progress.complete(f"{len(raw)} chars")

            progress.start(Stage.NORMALIZING)
            result = normalize_response(raw, quality)
            progress.complete()
        except Exception as exc:
            stage = progress.current.stage.value if progress.current else None
            progress.fail(str(exc))
            log.warning(
                "insight.stage_failed",
                stage=stage,
                kind=getattr(exc, "kind", type(exc).__name__),
                error=str(exc),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("run_id", "repo")

        progress.finish()
        log.info(
            "insight.done",
            commits=stats.total_commits,
            productivity_score=result.productivity_score,
        )
        return result


async def analyze(
    params: RunParams,
    source: CommitSource,
    *,
    api_key: str | None,
    model: str = DEFAULT_MODEL,
    api_base: str | None = None,
    temperature: float = 0.7,
    max_tokens: int = 4000,
    language: str = "English",
    tz: tzinfo | None = None,
) -> InsightResult:
    """Run one insight analysis with a litellm-backed model client.

    The client is built before anything else, so a missing credential
    fails before any request is made.
    """
    llm = LLMClient(
        api_key,
        model=model,
        api_base=api_base,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    orchestrator = InsightOrchestrator(source, llm, language=language, tz=tz)
    return await orchestrator.run(params)


async def summarize(
    params: RunParams, source: CommitSource, *, tz: tzinfo | None = None
) -> ContributionSummary:
    """Fetch, aggregate, score and lay out the timeline; no model call."""
    params.validate()
    commits = await source.fetch_commits(params)
    return ContributionSummary(
        params=params,
        commits=commits,
        stats=aggregate(commits, tz=tz),
        quality=score_commit_quality(commits),
        timeline=build_timeline(commits, tz=tz),
        tz=tz,
    )
