from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from .http import HttpClient

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a careful grocery shopping assistant for a Swedish online store. "
    "Answer exactly in the format you are asked for."
)


class LlmError(RuntimeError):
    """The text-generation service could not produce a usable reply."""


class TextGenerator(Protocol):
    def generate(self, prompt: str, *, temperature: float, system: str | None = None) -> str:
        ...


class OllamaClient:
    """Minimal client for Ollama's non-streaming chat endpoint."""

    def __init__(self, *, url: str, model: str, timeout_s: float = 60.0):
        self.http = HttpClient(base_url=url, timeout_s=timeout_s)
        self.model = model

    def generate(self, prompt: str, *, temperature: float, system: str | None = None) -> str:
        body: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system or DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": temperature},
        }
        try:
            resp = self.http.post("/api/chat", json=body)
        except requests.RequestException as e:
            raise LlmError(f"Ollama request failed: {e}") from e

        if resp.status_code >= 400:
            raise LlmError(f"Ollama API error {resp.status_code}: {resp.text[:500]}")
        try:
            content = resp.json()["message"]["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise LlmError(f"Unexpected reply from Ollama: {e}") from e
        if not isinstance(content, str):
            raise LlmError("Ollama reply content is not text")

        logger.debug("LLM reply: %s", content)
        return content
