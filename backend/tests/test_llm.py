"""
Unit tests for the LLM module.
Tests LLMMessage, LLMResponse, providers, and factory.
"""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from learning_coach.llm.base import LLMMessage, LLMResponse
from learning_coach.llm.gemini_provider import GeminiProvider
from learning_coach.llm.openai_compatible_provider import OpenAICompatibleProvider
from learning_coach.llm.factory import create_llm_provider


def _mock_client(mock_client, payload):
    mock_response = MagicMock()
    mock_response.json.return_value = payload
    mock_response.raise_for_status = MagicMock()

    mock_instance = AsyncMock()
    mock_instance.post.return_value = mock_response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


class TestLLMMessage:
    """Tests for LLMMessage dataclass."""

    def test_text_message(self):
        msg = LLMMessage.text("user", "안녕하세요")
        assert msg.role == "user"
        assert msg.content == "안녕하세요"


class TestLLMResponse:
    """Tests for LLMResponse dataclass."""

    def test_basic_response(self):
        resp = LLMResponse(content="Hello!", model="gemini-2.0-flash")
        assert resp.content == "Hello!"
        assert resp.usage == {}
        assert resp.raw is None


class TestOpenAICompatibleProvider:
    """Tests for the OpenAI-compatible provider."""

    def test_init_defaults(self):
        provider = OpenAICompatibleProvider(api_key="test-key")
        assert provider.api_key == "test-key"
        assert provider.model == "gpt-4o-mini"
        assert provider.base_url == "https://api.openai.com/v1"

    def test_format_messages(self):
        provider = OpenAICompatibleProvider(api_key="test")
        formatted = provider._format_messages([
            LLMMessage.text("system", "sys prompt"),
            LLMMessage.text("user", "hello")
        ])
        assert formatted == [
            {"role": "system", "content": "sys prompt"},
            {"role": "user", "content": "hello"},
        ]

    def test_headers(self):
        provider = OpenAICompatibleProvider(api_key="sk-test123")
        headers = provider._get_headers()
        assert headers["Authorization"] == "Bearer sk-test123"
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = OpenAICompatibleProvider(api_key="test-key", base_url="https://llm.local/v1")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_client(mock_client, {
                "choices": [{"message": {"content": "Test response"}}],
                "model": "gpt-4o-mini",
                "usage": {"prompt_tokens": 10, "completion_tokens": 5}
            })

            result = await provider.chat_completion([LLMMessage.text("user", "Hello")], temperature=0.2)

            assert result.content == "Test response"
            assert result.usage["prompt_tokens"] == 10
            url = mock_instance.post.call_args.args[0]
            payload = mock_instance.post.call_args.kwargs["json"]
            assert url == "https://llm.local/v1/chat/completions"
            assert payload["temperature"] == 0.2
            assert payload["messages"] == [{"role": "user", "content": "Hello"}]

    @pytest.mark.asyncio
    async def test_null_content_becomes_empty(self):
        provider = OpenAICompatibleProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, {"choices": [{"message": {"content": None}}]})
            result = await provider.chat_completion([LLMMessage.text("user", "Hello")])

        assert result.content == ""

    @pytest.mark.asyncio
    async def test_errors_are_reraised(self):
        provider = OpenAICompatibleProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_client(mock_client, {})
            mock_instance.post.side_effect = RuntimeError("boom")

            with pytest.raises(RuntimeError, match="boom"):
                await provider.chat_completion([LLMMessage.text("user", "Hello")])


class TestGeminiProvider:
    """Tests for the Gemini provider."""

    def test_init_defaults(self):
        provider = GeminiProvider(api_key="test-key")
        assert provider.model == "gemini-2.0-flash"
        assert "generativelanguage.googleapis.com" in provider.base_url

    def test_headers(self):
        provider = GeminiProvider(api_key="g-key")
        assert provider._get_headers()["x-goog-api-key"] == "g-key"

    def test_build_payload_maps_roles(self):
        provider = GeminiProvider(api_key="key")
        payload = provider._build_payload([
            LLMMessage.text("system", "코치 역할"),
            LLMMessage.text("user", "질문"),
            LLMMessage.text("assistant", "답변"),
        ], temperature=0.5, max_tokens=100)

        assert payload["systemInstruction"] == {"parts": [{"text": "코치 역할"}]}
        assert [turn["role"] for turn in payload["contents"]] == ["user", "model"]
        assert payload["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 100}

    def test_build_payload_without_system(self):
        provider = GeminiProvider(api_key="key")
        payload = provider._build_payload([LLMMessage.text("user", "질문")], 0.7, 10)
        assert "systemInstruction" not in payload

    def test_extract_text(self):
        data = {"candidates": [{"content": {"parts": [{"text": "첫 "}, {"text": "번째"}]}}]}
        assert GeminiProvider._extract_text(data) == "첫 번째"
        assert GeminiProvider._extract_text({}) == ""

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = GeminiProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_client(mock_client, {
                "candidates": [{"content": {"parts": [{"text": "학습 계획을 추천합니다."}]}}],
                "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 8, "totalTokenCount": 20},
                "modelVersion": "gemini-2.0-flash-001",
            })

            result = await provider.chat_completion([LLMMessage.text("user", "안녕")])

            assert result.content == "학습 계획을 추천합니다."
            assert result.model == "gemini-2.0-flash-001"
            assert result.usage == {"prompt_tokens": 12, "completion_tokens": 8, "total_tokens": 20}
            url = mock_instance.post.call_args.args[0]
            assert url.endswith("/models/gemini-2.0-flash:generateContent")


class TestLLMFactory:
    """Tests for LLM provider factory."""

    def test_create_gemini_provider(self):
        provider = create_llm_provider(provider="gemini", api_key="key")
        assert isinstance(provider, GeminiProvider)

    def test_create_openai_provider_with_overrides(self):
        provider = create_llm_provider(
            provider="openai",
            api_key="key",
            model="local-model",
            base_url="http://localhost:11434/v1",
            timeout=30,
        )
        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.model == "local-model"
        assert provider.base_url == "http://localhost:11434/v1"
        assert provider.timeout == 30

    def test_no_api_key_returns_none(self):
        assert create_llm_provider(provider="gemini", api_key="") is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            create_llm_provider(provider="unknown", api_key="key")
