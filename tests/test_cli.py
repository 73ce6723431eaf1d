"""Tests for CLI commands — GitHub and the model are mocked."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from click.testing import CliRunner

from commitsight.cli import main
from commitsight.config import Settings
from commitsight.engines.commit_collector.models import CommitRecord, CommitStats, RunParams
from commitsight.engines.insight import summarize
from commitsight.exceptions import UpstreamError
from commitsight.schemas import InsightResult

WINDOW = ["--author", "dev1", "--since", "2025-01-01", "--until", "2025-01-07"]


def _settings(**overrides) -> Settings:
    return Settings(**{"llm_api_key": "sk-test", "github_token": "ghp", **overrides})


def _commit() -> CommitRecord:
    return CommitRecord(
        sha="abcdef123456",
        message="fix: handle empty input",
        authored_at=datetime(2025, 1, 3, 14, tzinfo=timezone.utc),
        stats=CommitStats(8, 2, 10),
        files=(),
    )


def _invoke(args, settings=None, **patches):
    """Invoke the CLI with settings and GitHubClient patched."""
    runner = CliRunner()
    with patch("commitsight.cli.load_settings", return_value=settings or _settings()), patch(
        "commitsight.cli.GitHubClient"
    ) as mock_client, patch("commitsight.cli.load_dotenv"), patch(
        "commitsight.cli.setup_logging"
    ):
        extra = [patch(f"commitsight.cli.{name}", value) for name, value in patches.items()]
        for p in extra:
            p.start()
        try:
            result = runner.invoke(main, args)
        finally:
            for p in extra:
                p.stop()
    return result, mock_client


class TestAnalyzeCommand:
    def test_prints_report(self):
        report = InsightResult(executive_summary="Shipped the parser.", productivity_score=81)
        run = AsyncMock(return_value=report)

        result, _ = _invoke(["analyze", "octo/widgets", *WINDOW], run_analysis=run)

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["executive_summary"] == "Shipped the parser."
        assert data["productivity_score"] == 81
        params = run.call_args.args[0]
        assert params == RunParams("octo", "widgets", "dev1", "2025-01-01", "2025-01-07")
        assert run.call_args.kwargs["api_key"] == "sk-test"
        assert run.call_args.kwargs["language"] == "English"

    def test_missing_credential(self):
        run = AsyncMock()
        result, mock_client = _invoke(
            ["analyze", "octo/widgets", *WINDOW],
            settings=_settings(llm_api_key=None),
            run_analysis=run,
        )

        assert result.exit_code == 1
        assert "error[missing_credential]" in result.output
        run.assert_not_called()
        mock_client.assert_not_called()

    def test_upstream_failure(self):
        run = AsyncMock(side_effect=UpstreamError("model client", RuntimeError("503")))
        result, _ = _invoke(["analyze", "octo/widgets", *WINDOW], run_analysis=run)

        assert result.exit_code == 1
        assert "error[upstream_failure]: model client failed" in result.output

    def test_writes_output_file(self, tmp_path):
        out = tmp_path / "report.json"
        run = AsyncMock(return_value=InsightResult(strengths=["tests"]))

        result, _ = _invoke(
            ["analyze", "https://github.com/octo/widgets", *WINDOW, "-o", str(out)],
            run_analysis=run,
        )

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["strengths"] == ["tests"]


class TestStatsCommand:
    def test_prints_summary(self):
        async def _fake_summarize(params, source):
            fake = MagicMock()
            fake.fetch_commits = AsyncMock(return_value=[_commit()])
            return await summarize(params, fake)

        result, _ = _invoke(["stats", "octo/widgets", *WINDOW], summarize=_fake_summarize)

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["repository"] == "octo/widgets"
        assert data["stats"]["total_commits"] == 1
        assert data["stats"]["net_changes"] == 6
        assert data["commit_quality"]["conventional_usage_percent"] == 100
        assert len(data["series"]["commits_over_time"]) == 7

    def test_missing_parameter(self):
        result, _ = _invoke(["stats", "octo/widgets", "--since", "2025-01-01"])

        assert result.exit_code == 1
        assert "error[missing_parameter]: missing required parameters: author, until" in (
            result.output
        )

    def test_invalid_repo(self):
        result, _ = _invoke(["stats", "not-a-repo", *WINDOW])
        assert result.exit_code == 2
        assert "cannot parse GitHub repository reference" in result.output


class TestTimelineCommand:
    def test_prints_days(self):
        async def _fake_summarize(params, source):
            fake = MagicMock()
            fake.fetch_commits = AsyncMock(return_value=[_commit()])
            return await summarize(params, fake)

        result, _ = _invoke(["timeline", "octo/widgets", *WINDOW], summarize=_fake_summarize)

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data[0]["date"] == "2025-01-03"
        assert data[0]["commits"][0]["sha"] == "abcdef1"


class TestListingCommands:
    def test_branches(self):
        source = MagicMock()
        source.list_branches = AsyncMock(return_value=["main", "dev"])
        result, _ = _invoke(
            ["branches", "git@github.com:octo/widgets.git"],
            GitHubCommitSource=MagicMock(return_value=source),
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == ["main", "dev"]
        source.list_branches.assert_awaited_once_with("octo", "widgets")

    def test_repos_upstream_failure(self):
        source = MagicMock()
        source.list_repositories = AsyncMock(
            side_effect=UpstreamError("commit source", httpx.ConnectError("refused"))
        )
        result, _ = _invoke(["repos"], GitHubCommitSource=MagicMock(return_value=source))

        assert result.exit_code == 1
        assert "error[upstream_failure]" in result.output
