"""Thin wrapper around the Anthropic Messages API."""

from __future__ import annotations

import logging

import anthropic

from config import PipelineConfig, require

LOGGER = logging.getLogger(__name__)


class ClaudeCompleter:
    """Single-prompt text completion against Claude, same call shape as OpenAICompleter."""

    def __init__(self, config: PipelineConfig) -> None:
        self._client = anthropic.Anthropic(api_key=require(config.anthropic_api_key, "ANTHROPIC_API_KEY"))
        self._model = config.claude_model

    def __call__(self, prompt: str, max_tokens: int) -> str:
        LOGGER.debug("Calling Claude model=%s max_tokens=%s", self._model, max_tokens)
        response = self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )

        text = "".join(block.text for block in response.content if getattr(block, "type", None) == "text")
        if not text:
            raise RuntimeError("Claude returned an empty response")
        return text
