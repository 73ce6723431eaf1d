"""Commit collector engine — GitHub commit history without analysis logic."""

from commitsight.engines.commit_collector.collector import (
    CommitSource,
    GitHubCommitSource,
    fetch_commits,
    list_branches,
    list_repositories,
    parse_commit,
)
from commitsight.engines.commit_collector.github_client import GitHubClient, RateLimitError
from commitsight.engines.commit_collector.models import (
    CommitRecord,
    CommitStats,
    FileChange,
    RunParams,
)

__all__ = [
    "CommitRecord",
    "CommitSource",
    "CommitStats",
    "FileChange",
    "GitHubClient",
    "GitHubCommitSource",
    "RateLimitError",
    "RunParams",
    "fetch_commits",
    "list_branches",
    "list_repositories",
    "parse_commit",
]
