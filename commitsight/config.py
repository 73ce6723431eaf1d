"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from commitsight.exceptions import MissingCredentialError

DEFAULT_MODEL = "deepseek/deepseek-chat"
DEFAULT_FETCH_CONCURRENCY = 8
DEFAULT_MAX_PAGES: int | None = None  # None: follow every page


def _env_str(*keys: str) -> str | None:
    """Return the first non-blank value among *keys*."""
    for key in keys:
        value = os.environ.get(key)
        if value and value.strip():
            return value.strip()
    return None


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


@dataclass
class Settings:
    """Everything a run needs besides its :class:`RunParams`."""

    llm_api_key: str | None = None
    llm_model: str = DEFAULT_MODEL
    llm_api_base: str | None = None
    llm_temperature: float = 0.7
    llm_max_tokens: int = 4000
    response_language: str = "English"
    github_token: str | None = None
    fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY
    max_pages: int | None = DEFAULT_MAX_PAGES

    def require_llm_api_key(self) -> str:
        """Return the model credential or raise :class:`MissingCredentialError`."""
        if not self.llm_api_key:
            raise MissingCredentialError(
                "model API key not configured; set COMMITSIGHT_LLM_API_KEY or OPENAI_API_KEY"
            )
        return self.llm_api_key


def load_settings() -> Settings:
    """Build :class:`Settings` from the process environment.

    Reads:
        COMMITSIGHT_LLM_API_KEY / OPENAI_API_KEY
        COMMITSIGHT_LLM_MODEL, COMMITSIGHT_LLM_API_BASE
        COMMITSIGHT_LLM_TEMPERATURE, COMMITSIGHT_LLM_MAX_TOKENS
        COMMITSIGHT_RESPONSE_LANGUAGE
        GITHUB_TOKEN / GH_TOKEN
        COMMITSIGHT_FETCH_CONCURRENCY, COMMITSIGHT_MAX_PAGES
    """
    concurrency = _env_int("COMMITSIGHT_FETCH_CONCURRENCY", DEFAULT_FETCH_CONCURRENCY)
    return Settings(
        llm_api_key=_env_str("COMMITSIGHT_LLM_API_KEY", "OPENAI_API_KEY"),
        llm_model=_env_str("COMMITSIGHT_LLM_MODEL") or DEFAULT_MODEL,
        llm_api_base=_env_str("COMMITSIGHT_LLM_API_BASE"),
        llm_temperature=_env_float("COMMITSIGHT_LLM_TEMPERATURE", 0.7),
        llm_max_tokens=_env_int("COMMITSIGHT_LLM_MAX_TOKENS", 4000),
        response_language=_env_str("COMMITSIGHT_RESPONSE_LANGUAGE") or "English",
        github_token=_env_str("GITHUB_TOKEN", "GH_TOKEN"),
        fetch_concurrency=max(concurrency, 1),
        max_pages=max(_env_int("COMMITSIGHT_MAX_PAGES", 0), 0) or DEFAULT_MAX_PAGES,
    )
