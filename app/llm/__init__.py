"""Clients for the generative text endpoint.

Every client exposes ``generate(prompt) -> str``, the interface the
analysis orchestrator depends on.
"""

from app.core.config import settings
from app.llm.base import BaseLlmClient, LlmConfigurationError, LlmResponse
from app.llm.gemini import GeminiClient
from app.llm.openai import OpenAIClient

CLIENT_REGISTRY: dict[str, type[BaseLlmClient]] = {
    GeminiClient.provider: GeminiClient,
    OpenAIClient.provider: OpenAIClient,
}


def get_llm_client() -> BaseLlmClient:
    """Build the client for ``settings.llm_provider``. Used as a FastAPI dependency."""
    provider = settings.llm_provider.lower()
    client_cls = CLIENT_REGISTRY.get(provider)
    if client_cls is None:
        raise LlmConfigurationError(f"Unknown LLM provider '{settings.llm_provider}'")
    return client_cls(
        api_key=getattr(settings, f"{provider}_api_key"),
        model=getattr(settings, f"{provider}_model"),
        timeout=settings.llm_request_timeout,
    )


__all__ = [
    "CLIENT_REGISTRY",
    "BaseLlmClient",
    "GeminiClient",
    "LlmConfigurationError",
    "LlmResponse",
    "OpenAIClient",
    "get_llm_client",
]
