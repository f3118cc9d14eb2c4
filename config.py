"""Runtime configuration for the enhancement and discovery pipelines."""

from __future__ import annotations

import os
from dataclasses import dataclass

SERPER_SEARCH_URL = "https://google.serper.dev/search"
DEFAULT_DISCOVERY_BASE_URL = "https://beyondchats.com/blogs/"


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Explicit settings handed to every component at construction time.

    Build it with :meth:`from_env` at the process boundary; components never
    read the environment themselves, so tests can pass a hand-made config.
    """

    serper_api_key: str | None = None
    search_url: str = SERPER_SEARCH_URL
    llm_provider: str = "openai"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    anthropic_api_key: str | None = None
    claude_model: str = "claude-opus-4-6"
    article_store: str = "api"
    article_api_base: str | None = None
    article_api_key: str | None = None
    article_csv_path: str = "articles.csv"
    discovery_base_url: str = DEFAULT_DISCOVERY_BASE_URL
    discovery_max_articles: int = 5
    search_interval_seconds: float = 1.0
    fetch_interval_seconds: float = 2.0
    llm_interval_seconds: float = 0.0
    article_delay_seconds: float = 5.0
    search_timeout_seconds: float = 10.0
    fetch_timeout_seconds: float = 15.0
    store_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> PipelineConfig:
        """Read settings from environment variables, falling back to defaults."""
        return cls(
            serper_api_key=os.getenv("SERPER_API_KEY"),
            search_url=os.getenv("SERPER_SEARCH_URL", SERPER_SEARCH_URL),
            llm_provider=os.getenv("LLM_PROVIDER", "openai").strip().lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            claude_model=os.getenv("CLAUDE_MODEL", "claude-opus-4-6"),
            article_store=os.getenv("ARTICLE_STORE", "api").strip().lower(),
            article_api_base=os.getenv("ARTICLE_API_BASE") or os.getenv("API_BASE"),
            article_api_key=os.getenv("ARTICLE_API_KEY"),
            article_csv_path=os.getenv("ARTICLE_CSV_PATH", "articles.csv"),
            discovery_base_url=os.getenv("DISCOVERY_BASE_URL", DEFAULT_DISCOVERY_BASE_URL),
            discovery_max_articles=int(os.getenv("DISCOVERY_MAX_ARTICLES", "5")),
            search_interval_seconds=float(os.getenv("SEARCH_INTERVAL_SECONDS", "1.0")),
            fetch_interval_seconds=float(os.getenv("FETCH_INTERVAL_SECONDS", "2.0")),
            llm_interval_seconds=float(os.getenv("LLM_INTERVAL_SECONDS", "0.0")),
            article_delay_seconds=float(os.getenv("ARTICLE_DELAY_SECONDS", "5.0")),
        )


def require(value: str | None, env_name: str) -> str:
    """Return value, or raise the standard missing-variable error."""
    if not value:
        raise RuntimeError(f"{env_name} environment variable is required")
    return value
