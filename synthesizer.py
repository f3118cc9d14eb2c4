"""LLM rewrite of an article using two reference pages, with guaranteed citations."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from config import PipelineConfig
from rate_limiter import RateLimiter

LOGGER = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 2000
REFERENCE_PROMPT_CHARS = 1500
_CITATION_MARKERS = ("References", "Citations")

Completer = Callable[[str, int], str]

_PROMPT_TEMPLATE = """Rewrite and enhance the following article to match the professional tone, structure, and formatting of top-ranking blog articles. Make it more engaging, informative, and SEO-friendly while maintaining the core information.

Guidelines:
- Keep the main topic and key points from the original
- Improve readability with better paragraph structure
- Add relevant subheadings if appropriate
- Make it more comprehensive but concise
- Use professional language
- End with proper citations to the reference articles

Original Article:
{original}

Reference Article 1 (for style and tone):
{ref1}

Reference Article 2 (for style and tone):
{ref2}

Reference Links:
1. {url1}
2. {url2}

Please provide the rewritten article with citations at the end.
"""


def build_completer(config: PipelineConfig) -> Completer:
    """Return the completion callable for the configured LLM provider."""
    if config.llm_provider == "anthropic":
        from anthropic_client import ClaudeCompleter  # noqa: PLC0415

        return ClaudeCompleter(config)
    if config.llm_provider == "openai":
        from llm_client import OpenAICompleter  # noqa: PLC0415

        return OpenAICompleter(config)
    raise RuntimeError(f"Unsupported LLM_PROVIDER: {config.llm_provider!r}")


def build_prompt(original: str, ref1_text: str, ref2_text: str, urls: Sequence[str]) -> str:
    return _PROMPT_TEMPLATE.format(
        original=original,
        ref1=ref1_text[:REFERENCE_PROMPT_CHARS] or "(no content extracted)",
        ref2=ref2_text[:REFERENCE_PROMPT_CHARS] or "(no content extracted)",
        url1=urls[0],
        url2=urls[1],
    )


def ensure_citations(text: str, urls: Sequence[str]) -> str:
    """Append a numbered reference list unless the text already carries one."""
    if any(marker in text for marker in _CITATION_MARKERS):
        return text
    listing = "\n".join(f"{index}. {url}" for index, url in enumerate(urls[:2], start=1))
    return f"{text}\n\nReferences:\n{listing}"


class Synthesizer:
    """Produces the enhanced article body. Falls back to the original on any failure."""

    def __init__(self, completer: Completer, limiter: RateLimiter | None = None) -> None:
        self._complete = completer
        self._limiter = limiter or RateLimiter("llm", 0.0)

    def rewrite(self, original: str, ref1_text: str, ref2_text: str, urls: Sequence[str]) -> str:
        if len(urls) < 2:
            raise ValueError("rewrite needs two reference URLs")

        prompt = build_prompt(original, ref1_text, ref2_text, urls)
        self._limiter.acquire()
        try:
            rewritten = self._complete(prompt, MAX_OUTPUT_TOKENS)
            if not isinstance(rewritten, str) or not rewritten.strip():
                raise RuntimeError("LLM returned no text")
        except Exception as exc:  # broad: any provider error keeps the original text
            LOGGER.warning("Rewrite failed, keeping original content: %s", exc)
            return original

        return ensure_citations(rewritten, urls)
