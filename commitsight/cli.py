"""CLI entry point: commitsight.

Subcommands:
    commitsight analyze owner/repo --author A --since D --until D   # Full AI report
    commitsight stats owner/repo --author A --since D --until D     # Statistics only
    commitsight timeline owner/repo --author A --since D --until D  # Commits per day
    commitsight branches owner/repo                                 # Branch names
    commitsight repos                                               # Accessible repositories
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from dotenv import load_dotenv

from commitsight.config import Settings, load_settings
from commitsight.core.github import parse_repo_url
from commitsight.core.logging import setup_logging
from commitsight.engines.commit_collector import GitHubClient, GitHubCommitSource, RunParams
from commitsight.engines.insight import analyze as run_analysis
from commitsight.engines.insight import summarize
from commitsight.exceptions import InsightError

T = TypeVar("T")


def _repo_argument(ctx: click.Context, param: click.Parameter, value: str) -> tuple[str, str]:
    try:
        return parse_repo_url(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _window_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by the commands that analyze one commit window."""
    fn = click.option("-o", "--output", default=None, help="Write JSON to this file")(fn)
    fn = click.option("--branch", default=None, help="Branch name (default branch if omitted)")(fn)
    fn = click.option("--until", default="", help="Window end (ISO 8601)")(fn)
    fn = click.option("--since", default="", help="Window start (ISO 8601)")(fn)
    fn = click.option("--author", default="", help="GitHub login or email of the author")(fn)
    fn = click.argument("repo", callback=_repo_argument)(fn)
    return fn


def _emit(data: Any, output: str | None) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    if output:
        Path(output).write_text(text + "\n")
        click.echo(f"Written to {output}", err=True)
    else:
        click.echo(text)


def _run(make: Callable[[Settings], Awaitable[T]]) -> T:
    """Run one command coroutine; known failures exit 1 with their kind."""
    settings = load_settings()
    try:
        return asyncio.run(make(settings))
    except InsightError as e:
        click.echo(f"error[{e.kind}]: {e}", err=True)
        sys.exit(1)


def _source(client: GitHubClient, settings: Settings) -> GitHubCommitSource:
    return GitHubCommitSource(
        client,
        concurrency=settings.fetch_concurrency,
        max_pages=settings.max_pages,
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """commitsight: contribution statistics and AI feedback from GitHub history."""
    load_dotenv()
    setup_logging("DEBUG" if verbose else None)


@main.command("analyze")
@_window_options
def analyze(
    repo: tuple[str, str],
    author: str,
    since: str,
    until: str,
    branch: str | None,
    output: str | None,
) -> None:
    """Generate the AI insight report for one author and window."""
    params = RunParams(repo[0], repo[1], author, since, until, branch)

    async def _go(settings: Settings) -> dict[str, Any]:
        api_key = settings.require_llm_api_key()
        async with GitHubClient(settings.github_token) as client:
            result = await run_analysis(
                params,
                _source(client, settings),
                api_key=api_key,
                model=settings.llm_model,
                api_base=settings.llm_api_base,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
                language=settings.response_language,
            )
        return result.model_dump()

    _emit(_run(_go), output)


@main.command("stats")
@_window_options
def stats(
    repo: tuple[str, str],
    author: str,
    since: str,
    until: str,
    branch: str | None,
    output: str | None,
) -> None:
    """Print aggregate statistics, commit quality and activity series."""
    params = RunParams(repo[0], repo[1], author, since, until, branch)

    async def _go(settings: Settings) -> dict[str, Any]:
        async with GitHubClient(settings.github_token) as client:
            summary = await summarize(params, _source(client, settings))
        return summary.to_dict()

    _emit(_run(_go), output)


@main.command("timeline")
@_window_options
def timeline(
    repo: tuple[str, str],
    author: str,
    since: str,
    until: str,
    branch: str | None,
    output: str | None,
) -> None:
    """Print the commits of the window grouped by day, newest first."""
    params = RunParams(repo[0], repo[1], author, since, until, branch)

    async def _go(settings: Settings) -> list[dict[str, Any]]:
        async with GitHubClient(settings.github_token) as client:
            summary = await summarize(params, _source(client, settings))
        return [event.to_dict() for event in summary.timeline]

    _emit(_run(_go), output)


@main.command("branches")
@click.argument("repo", callback=_repo_argument)
def branches(repo: tuple[str, str]) -> None:
    """List the branch names of a repository."""

    async def _go(settings: Settings) -> list[str]:
        async with GitHubClient(settings.github_token) as client:
            return await _source(client, settings).list_branches(*repo)

    _emit(_run(_go), None)


@main.command("repos")
def repos() -> None:
    """List repositories visible to the configured GitHub token."""

    async def _go(settings: Settings) -> list[dict[str, Any]]:
        async with GitHubClient(settings.github_token) as client:
            return await _source(client, settings).list_repositories()

    _emit(_run(_go), None)


if __name__ == "__main__":
    main()
