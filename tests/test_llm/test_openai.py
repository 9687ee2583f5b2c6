"""Tests for the OpenAI client and the provider registry."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.config import settings
from app.llm import GeminiClient, LlmConfigurationError, OpenAIClient, get_llm_client


@pytest.fixture
def client():
    return OpenAIClient(api_key="sk-test-key", model="gpt-4o-mini")


class TestQueryLlm:
    async def test_query_llm_success(self, client):
        mock_resp = MagicMock()
        mock_resp.status_code = 200
        mock_resp.json.return_value = {
            "choices": [{"message": {"content": "Type: Gender Bias"}, "finish_reason": "stop"}],
            "model": "gpt-4o-mini",
            "usage": {"prompt_tokens": 20, "completion_tokens": 10},
        }
        mock_resp.raise_for_status = MagicMock()

        with patch("app.llm.openai.httpx.AsyncClient") as MockClient:
            mock_client = AsyncMock()
            mock_client.post.return_value = mock_resp
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=False)
            MockClient.return_value = mock_client

            result = await client.query_llm("prompt")

            call_args = mock_client.post.call_args
            assert call_args[0][0] == "https://api.openai.com/v1/chat/completions"
            assert call_args[1]["headers"]["Authorization"] == "Bearer sk-test-key"

        assert result.text == "Type: Gender Bias"
        assert result.tokens == 30

    def test_cost(self, client):
        # gpt-4o-mini: input=0.15/1M, output=0.60/1M
        assert client._calculate_cost(1_000_000, 0) == 0.15


class TestRegistry:
    def test_default_provider_is_gemini(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", "gemini")
        assert isinstance(get_llm_client(), GeminiClient)

    def test_openai_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", "OpenAI")
        monkeypatch.setattr(settings, "openai_api_key", "sk-x")
        monkeypatch.setattr(settings, "openai_model", "gpt-4.1-mini")
        llm = get_llm_client()
        assert isinstance(llm, OpenAIClient)
        assert llm.api_key == "sk-x"
        assert llm.model == "gpt-4.1-mini"

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "llm_provider", "mystery")
        with pytest.raises(LlmConfigurationError):
            get_llm_client()
