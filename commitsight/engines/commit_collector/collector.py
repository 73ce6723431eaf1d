"""Commit collector engine — GitHub commit history as ``CommitRecord`` values."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from commitsight.engines.commit_collector.github_client import GitHubClient, RateLimitError
from commitsight.engines.commit_collector.models import (
    CommitRecord,
    CommitStats,
    FileChange,
    RunParams,
)
from commitsight.exceptions import UpstreamError

log = structlog.get_logger("commitsight.engine")

DEFAULT_CONCURRENCY = 8

# Transport failures that surface as UpstreamError.
_TRANSPORT_ERRORS = (httpx.HTTPError, RateLimitError)


@runtime_checkable
class CommitSource(Protocol):
    """Anything that can produce the ordered commit records of a run."""

    async def fetch_commits(self, params: RunParams) -> list[CommitRecord]: ...


class GitHubCommitSource:
    """Commit source backed by the GitHub REST API.

    Lists the matching commits page by page, then fetches the detail of
    every listed commit through a semaphore capped at *concurrency*
    in-flight requests. The returned list keeps the listing order.
    """

    def __init__(
        self,
        client: GitHubClient,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        max_pages: int | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._client = client
        self._concurrency = concurrency
        self._max_pages = max_pages

    async def fetch_commits(self, params: RunParams) -> list[CommitRecord]:
        try:
            return await fetch_commits(
                self._client,
                params,
                concurrency=self._concurrency,
                max_pages=self._max_pages,
            )
        except _TRANSPORT_ERRORS as exc:
            raise UpstreamError("commit source", exc) from exc

    async def list_branches(self, owner: str, repo: str) -> list[str]:
        try:
            return await list_branches(self._client, owner, repo)
        except _TRANSPORT_ERRORS as exc:
            raise UpstreamError("commit source", exc) from exc

    async def list_repositories(self) -> list[dict[str, Any]]:
        try:
            return await list_repositories(self._client)
        except _TRANSPORT_ERRORS as exc:
            raise UpstreamError("commit source", exc) from exc


async def fetch_commits(
    client: GitHubClient,
    params: RunParams,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    max_pages: int | None = None,
) -> list[CommitRecord]:
    """GET /repos/{owner}/{repo}/commits, then one detail call per commit.

    Detail calls run with at most *concurrency* requests in flight.
    """
    query: dict[str, Any] = {
        "author": params.author,
        "since": params.since,
        "until": params.until,
    }
    if params.branch:
        query["sha"] = params.branch

    shas: list[str] = []
    async for item in client.get_paginated(
        f"/repos/{params.owner}/{params.repo}/commits", query, max_pages=max_pages
    ):
        shas.append(item["sha"])

    log.info("collector.listed", repo=params.slug, commits=len(shas))
    if not shas:
        return []

    sem = asyncio.Semaphore(concurrency)

    async def _detail(sha: str) -> CommitRecord:
        async with sem:
            data = await client.get(f"/repos/{params.owner}/{params.repo}/commits/{sha}")
        return parse_commit(data)

    # gather keeps input order regardless of completion order.
    tasks = [asyncio.ensure_future(_detail(sha)) for sha in shas]
    try:
        records = list(await asyncio.gather(*tasks))
    except BaseException:
        # Cancel the siblings before propagating the first failure.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    log.info("collector.detail_fetched", repo=params.slug, commits=len(records))
    return records


async def list_branches(client: GitHubClient, owner: str, repo: str) -> list[str]:
    """GET /repos/{owner}/{repo}/branches — branch names in API order."""
    return [
        item["name"]
        async for item in client.get_paginated(f"/repos/{owner}/{repo}/branches")
    ]


async def list_repositories(client: GitHubClient) -> list[dict[str, Any]]:
    """Repositories visible to the authenticated user, newest update first.

    Combines the user's own/collaborator repositories with the repositories
    of every organisation the user belongs to, de-duplicated by id. An
    organisation whose repositories cannot be listed is skipped; when the
    organisation list itself fails, only the user's repositories are returned.
    """
    repos: dict[int, dict[str, Any]] = {}
    async for item in client.get_paginated(
        "/user/repos",
        {"sort": "updated", "affiliation": "owner,collaborator,organization_member"},
    ):
        repos.setdefault(item["id"], item)

    try:
        orgs = [org.get("login", "") async for org in client.get_paginated("/user/orgs")]
    except _TRANSPORT_ERRORS as exc:
        log.warning("collector.orgs_failed", error=str(exc))
        orgs = []

    for login in orgs:
        try:
            async for item in client.get_paginated(
                f"/orgs/{login}/repos", {"sort": "updated", "type": "all"}
            ):
                repos.setdefault(item["id"], item)
        except _TRANSPORT_ERRORS as exc:
            log.warning("collector.org_repos_failed", org=login, error=str(exc))

    return sorted(repos.values(), key=lambda r: r.get("updated_at") or "", reverse=True)


# ── parsing ───────────────────────────────────────────────────────────────


def parse_commit(data: dict[str, Any]) -> CommitRecord:
    """Build a :class:`CommitRecord` from a GitHub commit-detail payload."""
    commit = data.get("commit") or {}
    author_info = commit.get("author") or {}
    account = data.get("author") or {}

    stats = None
    raw_stats = data.get("stats")
    if isinstance(raw_stats, dict):
        additions = int(raw_stats.get("additions") or 0)
        deletions = int(raw_stats.get("deletions") or 0)
        stats = CommitStats(
            additions=additions,
            deletions=deletions,
            total=int(raw_stats.get("total") or additions + deletions),
        )

    files = None
    raw_files = data.get("files")
    if isinstance(raw_files, list):
        files = tuple(
            FileChange(
                filename=f.get("filename", ""),
                status=f.get("status", "modified"),
                additions=int(f.get("additions") or 0),
                deletions=int(f.get("deletions") or 0),
                changes=f.get("changes"),
                patch=f.get("patch"),
            )
            for f in raw_files
        )

    return CommitRecord(
        sha=data.get("sha", ""),
        message=commit.get("message", ""),
        authored_at=_parse_datetime(author_info.get("date")),
        author_name=author_info.get("name"),
        author_email=author_info.get("email"),
        author_login=account.get("login"),
        stats=stats,
        files=files,
        html_url=data.get("html_url"),
    )


def _parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 datetime string, returning None on failure."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
