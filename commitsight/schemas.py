"""Insight report schemas — the typed output surface of a run."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

FeedbackType = Literal["positive", "improvement", "neutral"]


class CommitQualityMetrics(BaseModel):
    """Message-hygiene heuristics; ``suggestions`` come from the model."""

    average_message_length: int = 0
    conventional_usage_percent: int = 0
    descriptive_score: int = 0
    suggestions: list[str] = Field(default_factory=list)


class XYZFeedback(BaseModel):
    """One situation → behavior → impact feedback item."""

    situation: str = ""
    behavior: str = ""
    impact: str = ""
    type: FeedbackType = "neutral"


class InsightResult(BaseModel):
    """Final synthesized report of one analysis run."""

    executive_summary: str = ""
    xyz_feedback: list[XYZFeedback] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    productivity_score: int = Field(default=0, ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    areas_of_improvement: list[str] = Field(default_factory=list)
    commit_quality: CommitQualityMetrics = Field(default_factory=CommitQualityMetrics)
    implemented_features: list[str] = Field(default_factory=list)
