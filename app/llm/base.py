"""Base client for generative text endpoints."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an assistant that reviews legal documents. Answer precisely and follow the requested format."


class LlmConfigurationError(RuntimeError):
    """Provider cannot be called (e.g. missing API key)."""


@dataclass
class LlmResponse:
    """Raw response from an LLM API."""

    text: str
    model: str
    tokens: int = 0
    cost_usd: float = 0.0


class BaseLlmClient(ABC):
    """Base class for LLM clients. Subclasses implement ``query_llm``."""

    provider: str = "unknown"

    def __init__(self, api_key: str, model: str, timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @abstractmethod
    async def query_llm(self, prompt: str) -> LlmResponse:
        """Send a prompt to the LLM and return the raw response. Implemented by subclasses."""
        ...

    async def generate(self, prompt: str) -> str:
        """Return the model's text for ``prompt``.

        httpx timeouts surface as the builtin TimeoutError so callers can tell
        an expired deadline from a rejected request.
        """
        if not self.api_key:
            raise LlmConfigurationError(f"No API key configured for provider '{self.provider}'")

        try:
            response = await self.query_llm(prompt)
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"{self.provider} request timed out after {self.timeout}s") from exc

        logger.info(
            "LLM response: provider=%s, model=%s, tokens=%d, cost=$%.6f, chars=%d",
            self.provider,
            response.model,
            response.tokens,
            response.cost_usd,
            len(response.text),
        )
        return response.text

    def _chat_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.0,
            "max_tokens": 2048,
        }
