"""Thin async wrapper around litellm.acompletion()."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import litellm
import openai

from commitsight.config import DEFAULT_MODEL, Settings
from commitsight.exceptions import MissingCredentialError, UpstreamError

logger = logging.getLogger(__name__)


@runtime_checkable
class ModelClient(Protocol):
    """Narrow capability the orchestrator needs from a generative model."""

    async def invoke(self, prompt: str, *, system: str = "") -> str: ...


# ── LLM Response ─────────────────────────────────────────────────────────────
@dataclass
class LLMResponse:
    """Standardised response from a single LLM call."""

    content: str = ""
    stop_reason: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0


# ── LLM Client ───────────────────────────────────────────────────────────────
class LLMClient:
    """Async wrapper around ``litellm.acompletion()`` bound to one credential.

    The API key is required up front so a run without one fails before any
    network traffic.

    Usage::

        client = LLMClient(api_key="sk-...", model="deepseek/deepseek-chat")
        text = await client.invoke(prompt, system=INSIGHT_SYSTEM_PROMPT)
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        model: str = DEFAULT_MODEL,
        api_base: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> None:
        if not api_key or not api_key.strip():
            raise MissingCredentialError("model API key is required")
        self._api_key = api_key
        self.model = model
        self.api_base = api_base
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMClient:
        return cls(
            settings.require_llm_api_key(),
            model=settings.llm_model,
            api_base=settings.llm_api_base,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
        )

    async def create(
        self,
        *,
        system: str,
        messages: list[dict[str, Any]],
    ) -> LLMResponse:
        """Send a chat completion request and return a standardised response.

        Provider errors raised by litellm surface as :class:`UpstreamError`.
        """
        full_messages: list[dict[str, Any]] = []
        if system:
            full_messages.append({"role": "system", "content": system})
        full_messages.extend(messages)

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": full_messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "api_key": self._api_key,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base

        t0 = time.monotonic()
        try:
            raw = await litellm.acompletion(**kwargs)
        except openai.OpenAIError as exc:
            raise UpstreamError("model client", exc) from exc
        latency_ms = int((time.monotonic() - t0) * 1000)

        if not raw.choices:
            return LLMResponse(latency_ms=latency_ms)

        choice = raw.choices[0]
        usage = getattr(raw, "usage", None)
        response = LLMResponse(
            content=choice.message.content or "",
            stop_reason=choice.finish_reason or "",
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            latency_ms=latency_ms,
        )
        logger.debug(
            "llm response model=%s stop=%s in=%d out=%d latency_ms=%d",
            self.model,
            response.stop_reason,
            response.input_tokens,
            response.output_tokens,
            response.latency_ms,
        )
        return response

    async def invoke(self, prompt: str, *, system: str = "") -> str:
        """Send *prompt* as the single user message and return the raw text."""
        response = await self.create(
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content
