"""Custom exceptions for commitsight.

Every error carries a stable ``kind`` so callers can tell the failure modes
apart without matching on message text.
"""

from __future__ import annotations


class InsightError(Exception):
    """Base exception for all commitsight errors."""

    kind: str = "insight_error"


class MissingCredentialError(InsightError):
    """Raised when the generative-model API key is absent."""

    kind = "missing_credential"


class MissingParameterError(InsightError):
    """Raised when one or more required run parameters are blank."""

    kind = "missing_parameter"

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"missing required parameters: {', '.join(missing)}")


class EmptyResponseError(InsightError):
    """Raised when the model call succeeded but returned no content."""

    kind = "empty_response"


class MalformedResponseError(InsightError):
    """Raised when model content cannot be parsed into the insight schema."""

    kind = "malformed_response"

    def __init__(self, reason: str, content: str = ""):
        self.reason = reason
        self.content = content
        preview = f" (content starts with {content[:80]!r})" if content else ""
        super().__init__(f"{reason}{preview}")


class UpstreamError(InsightError):
    """Raised when a collaborator (commit source, model client) reports a failure.

    The original exception is kept on ``cause`` and as ``__cause__``.
    """

    kind = "upstream_failure"

    def __init__(self, source: str, cause: BaseException):
        self.source = source
        self.cause = cause
        super().__init__(f"{source} failed: {type(cause).__name__}: {cause}")
