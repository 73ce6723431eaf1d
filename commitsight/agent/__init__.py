"""Generative-model layer — client, prompt templates, response normalization."""

from commitsight.agent.llm_client import LLMClient, LLMResponse, ModelClient
from commitsight.agent.normalizer import (
    InsightPayload,
    normalize_response,
    parse_payload,
    strip_code_fences,
)

__all__ = [
    "InsightPayload",
    "LLMClient",
    "LLMResponse",
    "ModelClient",
    "normalize_response",
    "parse_payload",
    "strip_code_fences",
]
