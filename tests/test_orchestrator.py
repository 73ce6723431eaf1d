"""Tests for the insight orchestrator — collaborators are mocked."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import structlog

from commitsight.agent.prompts.insight import INSIGHT_SYSTEM_PROMPT
from commitsight.engines.commit_collector.models import CommitRecord, CommitStats, RunParams
from commitsight.engines.insight import (
    ContributionSummary,
    InsightOrchestrator,
    RunState,
    Stage,
    analyze,
    summarize,
)
from commitsight.exceptions import (
    EmptyResponseError,
    MalformedResponseError,
    MissingCredentialError,
    MissingParameterError,
    UpstreamError,
)

PARAMS = RunParams("octo", "widgets", "dev1", "2025-01-01", "2025-01-31")

ALL_STAGES = [
    "fetching",
    "aggregating",
    "scoring",
    "prompt_building",
    "model_invocation",
    "normalizing",
]


def _login_commit() -> CommitRecord:
    return CommitRecord(
        sha="a1b2c3d4e5",
        message="feat(auth): add login",
        authored_at=datetime(2025, 1, 15, 10, tzinfo=timezone.utc),
        stats=CommitStats(40, 10, 50),
        files=(),
    )


def _source(commits: list[CommitRecord] | None = None) -> MagicMock:
    source = MagicMock()
    source.fetch_commits = AsyncMock(return_value=commits or [])
    return source


def _llm(reply: str = '{"executiveSummary": "ok"}') -> MagicMock:
    llm = MagicMock()
    llm.invoke = AsyncMock(return_value=reply)
    return llm


def _stage_statuses(orchestrator: InsightOrchestrator) -> list[tuple[str, str]]:
    return [(s["stage"], s["status"]) for s in orchestrator.progress.get_summary()["stages"]]


# ── End-to-end scenarios ──────────────────────────────────────────────────


class TestScenarios:
    @pytest.mark.anyio
    async def test_empty_window(self):
        llm = _llm('{"executiveSummary": "No activity."}')
        orch = InsightOrchestrator(_source([]), llm)

        result = await orch.run(PARAMS)

        assert result.executive_summary == "No activity."
        assert result.commit_quality.descriptive_score == 0
        prompt = llm.invoke.call_args.args[0]
        assert "0 commits" in prompt
        assert llm.invoke.call_args.kwargs["system"] == INSIGHT_SYSTEM_PROMPT
        assert orch.progress.state is RunState.DONE
        assert _stage_statuses(orch) == [(s, "completed") for s in ALL_STAGES]

    @pytest.mark.anyio
    async def test_single_conventional_commit(self):
        orch = InsightOrchestrator(_source([_login_commit()]), _llm())

        result = await orch.run(PARAMS)

        assert result.commit_quality.conventional_usage_percent == 100
        assert result.commit_quality.average_message_length == 21
        assert result.commit_quality.descriptive_score == 52

    @pytest.mark.anyio
    async def test_fenced_out_of_range_score(self):
        orch = InsightOrchestrator(_source(), _llm('```json\n{"productivityScore": 150}\n```'))

        result = await orch.run(PARAMS)

        assert result.productivity_score == 100
        assert orch.progress.state is RunState.DONE

    @pytest.mark.anyio
    async def test_prose_reply_fails_run(self):
        orch = InsightOrchestrator(_source(), _llm("The developer did great work."))

        with pytest.raises(MalformedResponseError):
            await orch.run(PARAMS)

        assert orch.progress.state is RunState.FAILED
        assert _stage_statuses(orch)[-1] == ("normalizing", "failed")


# ── Failure handling ──────────────────────────────────────────────────────


class TestFailures:
    @pytest.mark.anyio
    async def test_missing_parameters_before_fetch(self):
        source = _source()
        orch = InsightOrchestrator(source, _llm())
        params = RunParams("octo", "widgets", "", "2025-01-01", " ")

        with pytest.raises(MissingParameterError) as exc_info:
            await orch.run(params)

        assert exc_info.value.missing == ["author", "until"]
        source.fetch_commits.assert_not_called()

    @pytest.mark.anyio
    async def test_empty_reply(self):
        orch = InsightOrchestrator(_source(), _llm("   "))

        with pytest.raises(EmptyResponseError):
            await orch.run(PARAMS)

        assert _stage_statuses(orch)[-1] == ("model_invocation", "failed")
        assert orch.progress.state is RunState.FAILED

    @pytest.mark.anyio
    async def test_source_failure_stops_at_fetching(self):
        cause = httpx.ConnectError("boom")
        source = MagicMock()
        source.fetch_commits = AsyncMock(side_effect=UpstreamError("commit source", cause))
        llm = _llm()
        orch = InsightOrchestrator(source, llm)

        with pytest.raises(UpstreamError) as exc_info:
            await orch.run(PARAMS)

        assert exc_info.value.cause is cause
        assert _stage_statuses(orch) == [("fetching", "failed")]
        llm.invoke.assert_not_called()

    @pytest.mark.anyio
    async def test_model_failure_propagates_original(self):
        error = UpstreamError("model client", RuntimeError("503"))
        llm = MagicMock()
        llm.invoke = AsyncMock(side_effect=error)
        orch = InsightOrchestrator(_source(), llm)

        with pytest.raises(UpstreamError) as exc_info:
            await orch.run(PARAMS)

        assert exc_info.value is error
        assert orch.progress.current.stage is Stage.MODEL_INVOCATION
        assert orch.progress.current.error == str(error)

    @pytest.mark.anyio
    async def test_log_context_unbound_after_run(self):
        orch = InsightOrchestrator(_source(), _llm("nope"))
        with pytest.raises(MalformedResponseError):
            await orch.run(PARAMS)
        assert "run_id" not in structlog.contextvars.get_contextvars()

    @pytest.mark.anyio
    async def test_progress_reset_between_runs(self):
        orch = InsightOrchestrator(_source(), _llm())
        await orch.run(PARAMS)
        await orch.run(PARAMS)
        assert len(orch.progress.stages) == len(ALL_STAGES)


# ── Convenience entry points ──────────────────────────────────────────────


class TestAnalyze:
    @pytest.mark.anyio
    async def test_missing_credential_before_fetch(self):
        source = _source()
        with pytest.raises(MissingCredentialError):
            await analyze(PARAMS, source, api_key=None)
        source.fetch_commits.assert_not_called()

    @pytest.mark.anyio
    async def test_blank_credential(self):
        with pytest.raises(MissingCredentialError):
            await analyze(PARAMS, _source(), api_key="  ")

    @pytest.mark.anyio
    async def test_runs_with_litellm(self):
        choice = MagicMock()
        choice.message.content = '{"strengths": ["tests"], "productivityScore": 70}'
        choice.finish_reason = "stop"
        raw = MagicMock()
        raw.choices = [choice]
        raw.usage.prompt_tokens = 100
        raw.usage.completion_tokens = 20

        with patch(
            "commitsight.agent.llm_client.litellm.acompletion",
            new_callable=AsyncMock,
            return_value=raw,
        ) as mock_completion:
            result = await analyze(
                PARAMS, _source([_login_commit()]), api_key="sk-test", model="openai/gpt-4o"
            )

        assert result.strengths == ["tests"]
        assert result.productivity_score == 70
        kwargs = mock_completion.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-4o"
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["messages"][0]["role"] == "system"


class TestSummarize:
    @pytest.mark.anyio
    async def test_deterministic_half(self):
        summary = await summarize(PARAMS, _source([_login_commit()]))

        assert isinstance(summary, ContributionSummary)
        assert summary.stats.total_commits == 1
        assert summary.quality.conventional_usage_percent == 100
        assert [e.date for e in summary.timeline] == ["2025-01-15"]

    @pytest.mark.anyio
    async def test_to_dict(self):
        summary = await summarize(PARAMS, _source([_login_commit()]))
        data = summary.to_dict()

        assert data["repository"] == "octo/widgets"
        assert data["stats"]["net_changes"] == 30
        assert data["commit_quality"]["descriptive_score"] == 52
        assert len(data["series"]["commits_over_time"]) == 31

    @pytest.mark.anyio
    async def test_missing_parameters(self):
        source = _source()
        with pytest.raises(MissingParameterError):
            await summarize(RunParams("", "r", "a", "s", "u"), source)
        source.fetch_commits.assert_not_called()
