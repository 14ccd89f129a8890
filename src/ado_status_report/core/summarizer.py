"""Single-turn OpenAI chat completion used to write the report."""

from __future__ import annotations

import logging

from openai import OpenAI

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a delivery lead writing concise project status reports "
    "for stakeholders. Only use the data you are given."
)


class SummarizerError(Exception):
    """Raised when the completion returns no usable text."""


class Summarizer:
    """Turn a prompt into report text with one chat completion call."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        timeout: float = 120.0,
        client: OpenAI | None = None,
    ) -> None:
        self._model = model
        self._client = client or OpenAI(api_key=api_key, timeout=timeout)

    @property
    def model(self) -> str:
        return self._model

    def summarize(self, prompt: str) -> str:
        """Return the completion text; raises on API errors or empty output."""
        logger.debug("Requesting completion from %s (%d chars)", self._model, len(prompt))
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        if not response.choices:
            raise SummarizerError("completion returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise SummarizerError("completion returned empty content")
        logger.info("Status report generated (%d chars)", len(content))
        return content
