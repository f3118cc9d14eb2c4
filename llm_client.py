"""OpenAI chat-completions client used for article rewriting."""

from __future__ import annotations

import logging

from openai import OpenAI

from config import PipelineConfig, require

LOGGER = logging.getLogger(__name__)


class OpenAICompleter:
    """Single-prompt text completion against the OpenAI chat API."""

    def __init__(self, config: PipelineConfig) -> None:
        self._client = OpenAI(api_key=require(config.openai_api_key, "OPENAI_API_KEY"))
        self._model = config.openai_model

    def __call__(self, prompt: str, max_tokens: int) -> str:
        LOGGER.debug("Calling OpenAI model=%s max_tokens=%s", self._model, max_tokens)
        response = self._client.chat.completions.create(
            model=self._model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )

        content = response.choices[0].message.content
        if not content:
            raise RuntimeError("OpenAI returned an empty response")
        return content
