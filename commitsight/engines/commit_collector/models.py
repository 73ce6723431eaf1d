"""Data models for the commit collector engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from commitsight.exceptions import MissingParameterError


@dataclass(frozen=True)
class FileChange:
    """One file touched by a commit.

    ``changes`` is the per-file churn reported by the source; when the
    source omits it, it defaults to ``additions + deletions``.
    """

    filename: str
    status: str = "modified"  # added | modified | removed | renamed | ...
    additions: int = 0
    deletions: int = 0
    changes: int | None = None
    patch: str | None = None

    def __post_init__(self) -> None:
        if self.changes is None:
            object.__setattr__(self, "changes", self.additions + self.deletions)


@dataclass(frozen=True)
class CommitStats:
    additions: int = 0
    deletions: int = 0
    total: int = 0


@dataclass(frozen=True)
class CommitRecord:
    """One historical commit, as flattened by the commit source.

    ``stats`` and ``files`` are ``None`` when the source did not report
    them (listing endpoints, truncated responses).
    """

    sha: str
    message: str
    authored_at: datetime | None = None
    author_name: str | None = None
    author_email: str | None = None
    author_login: str | None = None
    stats: CommitStats | None = None
    files: tuple[FileChange, ...] | None = None
    html_url: str | None = None

    @property
    def additions(self) -> int:
        return self.stats.additions if self.stats else 0

    @property
    def deletions(self) -> int:
        return self.stats.deletions if self.stats else 0

    @property
    def churn(self) -> int:
        """Added plus removed lines; 0 without a stats block."""
        return self.additions + self.deletions

    @property
    def title(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]


@dataclass
class RunParams:
    """Parameters of a single analysis run."""

    owner: str
    repo: str
    author: str
    since: str
    until: str
    branch: str | None = None

    _REQUIRED = ("owner", "repo", "author", "since", "until")

    def validate(self) -> None:
        """Raise :class:`MissingParameterError` naming every blank required field."""
        missing = [name for name in self._REQUIRED if not str(getattr(self, name) or "").strip()]
        if missing:
            raise MissingParameterError(missing)

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"
