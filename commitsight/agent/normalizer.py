"""Response normalizer — raw model text into a fully populated ``InsightResult``."""

from __future__ import annotations

import json
import math
import re
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from commitsight.exceptions import EmptyResponseError, MalformedResponseError
from commitsight.schemas import CommitQualityMetrics, InsightResult, XYZFeedback

log = structlog.get_logger("commitsight.agent")

_LEADING_FENCE_RE = re.compile(r"^```[ \t]*[\w+-]*[ \t]*\n?")
_TRAILING_FENCE_RE = re.compile(r"\n?```$")

# Model may output extended labels; fold them into the 3 feedback types.
_FEEDBACK_TYPE_MAP: dict[str, str] = {
    "positive": "positive",
    "strength": "positive",
    "praise": "positive",
    "good": "positive",
    "improvement": "improvement",
    "improve": "improvement",
    "negative": "improvement",
    "suggestion": "improvement",
    "weakness": "improvement",
    "neutral": "neutral",
    "info": "neutral",
    "observation": "neutral",
}


def strip_code_fences(text: str) -> str:
    """Remove one leading (optionally language-tagged) and one trailing fence.

    Unfenced text is returned trimmed; applying it twice changes nothing.
    """
    cleaned = text.strip()
    cleaned = _LEADING_FENCE_RE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


# ── coercion helpers ─────────────────────────────────────────────────────────


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "\n\n".join(t for t in (_as_text(v) for v in value) if t)
    return ""


def _as_text_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [t for t in (_as_text(v) for v in value if not isinstance(v, (dict, list))) if t]


def _as_score(value: Any) -> int:
    """Numeric score clamped to [0, 100]; anything unusable is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip().rstrip("%"))
        except ValueError:
            return 0
    if isinstance(value, int):
        return max(0, min(100, value))
    if not isinstance(value, float) or math.isnan(value):
        return 0
    if math.isinf(value):
        return 100 if value > 0 else 0
    return max(0, min(100, int(math.floor(value + 0.5))))


def _as_feedback(value: Any) -> XYZFeedback | None:
    if not isinstance(value, dict):
        return None
    raw_type = _as_text(value.get("type")).lower()
    return XYZFeedback(
        situation=_as_text(value.get("situation")),
        behavior=_as_text(value.get("behavior")),
        impact=_as_text(value.get("impact")),
        type=_FEEDBACK_TYPE_MAP.get(raw_type, "neutral"),
    )


class InsightPayload(BaseModel):
    """Schema of the JSON object the model is asked to return.

    Every field has a default and a coercing validator, so any JSON object
    validates; only non-objects are rejected.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    executive_summary: str = ""
    xyz_feedback: list[XYZFeedback] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    productivity_score: int = 0
    strengths: list[str] = Field(default_factory=list)
    areas_of_improvement: list[str] = Field(default_factory=list)
    commit_quality_suggestions: list[str] = Field(default_factory=list)
    implemented_features: list[str] = Field(default_factory=list)

    @field_validator("executive_summary", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator(
        "recommendations",
        "strengths",
        "areas_of_improvement",
        "commit_quality_suggestions",
        "implemented_features",
        mode="before",
    )
    @classmethod
    def _coerce_text_list(cls, value: Any) -> list[str]:
        return _as_text_list(value)

    @field_validator("xyz_feedback", mode="before")
    @classmethod
    def _coerce_feedback(cls, value: Any) -> list[XYZFeedback]:
        if isinstance(value, dict):
            value = [value]
        if not isinstance(value, list):
            return []
        return [fb for fb in (_as_feedback(v) for v in value) if fb is not None]

    @field_validator("productivity_score", mode="before")
    @classmethod
    def _coerce_score(cls, value: Any) -> int:
        return _as_score(value)


def parse_payload(raw: str | None) -> InsightPayload:
    """Strip fences and validate *raw* against :class:`InsightPayload`.

    Raises :class:`EmptyResponseError` for blank text and
    :class:`MalformedResponseError` when the remainder is not a JSON object.
    """
    if raw is None or not raw.strip():
        raise EmptyResponseError("model returned an empty response")

    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except ValueError as exc:
        # JSONDecodeError, or an integer literal past the int-conversion digit limit
        log.warning("normalizer.parse_failed", reason="invalid JSON", output=cleaned[:200])
        reason = exc.msg if isinstance(exc, json.JSONDecodeError) else str(exc)
        raise MalformedResponseError(f"response is not valid JSON: {reason}", cleaned) from exc

    if not isinstance(data, dict):
        log.warning("normalizer.parse_failed", reason="not an object", kind=type(data).__name__)
        raise MalformedResponseError(
            f"expected a JSON object, got {type(data).__name__}", cleaned
        )

    try:
        return InsightPayload.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(f"response does not match the schema: {exc}", cleaned) from exc


def normalize_response(
    raw: str | None, quality: CommitQualityMetrics | None = None
) -> InsightResult:
    """Turn raw model text into an :class:`InsightResult`.

    Numeric quality metrics come from *quality* (computed locally); only
    the textual suggestions are taken from the model.
    """
    payload = parse_payload(raw)
    metrics = (quality or CommitQualityMetrics()).model_copy(
        update={"suggestions": list(payload.commit_quality_suggestions)}
    )
    return InsightResult(
        executive_summary=payload.executive_summary,
        xyz_feedback=payload.xyz_feedback,
        recommendations=payload.recommendations,
        productivity_score=payload.productivity_score,
        strengths=payload.strengths,
        areas_of_improvement=payload.areas_of_improvement,
        commit_quality=metrics,
        implemented_features=payload.implemented_features,
    )
