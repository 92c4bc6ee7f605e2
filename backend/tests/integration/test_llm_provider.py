"""LLM Provider Integration Tests

Drives GenericAdapter against an in-process HTTP transport:
1. Request shape - endpoint, auth header, messages and sampling config
2. Response parsing - content, usage and embedded JSON
3. Failure modes - HTTP errors, empty replies, timeouts
4. Factory - registration and generic fallback
"""

import json
from pathlib import Path

import httpx
import pytest
from unittest.mock import patch

from shared.llm import (
    GenericAdapter,
    LLMConfig,
    LLMProviderError,
    LLMProviderFactory,
)


def _completion(content, finish_reason="stop"):
    return {
        "model": "served-model",
        "choices": [{"message": {"role": "assistant", "content": content}, "finish_reason": finish_reason}],
        "usage": {"prompt_tokens": 20, "completion_tokens": 10, "total_tokens": 30},
    }


def _mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestGenericAdapterRequests:
    """Outgoing request shape"""

    @pytest.mark.asyncio
    async def test_posts_chat_completion(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion('{"data": {"method": "FORM"}, "confidence": 0.9}'))

        adapter = GenericAdapter("http://llm.local/v1/", "test-model", config=LLMConfig(temperature=0.1), api_key="sk-test")
        with patch.object(adapter, "_client", return_value=_mock_client(handler)):
            response = await adapter.generate("pick a method", system_prompt="You pick methods.")

        assert captured["url"] == "http://llm.local/v1/chat/completions"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"]["model"] == "test-model"
        assert captured["body"]["temperature"] == 0.1
        assert captured["body"]["messages"] == [
            {"role": "system", "content": "You pick methods."},
            {"role": "user", "content": "pick a method"},
        ]
        assert response.parsed_json == {"data": {"method": "FORM"}, "confidence": 0.9}
        assert response.tokens_used == 30
        assert response.model == "served-model"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers.get("authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion("plain text answer"))

        adapter = GenericAdapter("http://llm.local/v1", "test-model")
        with patch.object(adapter, "_client", return_value=_mock_client(handler)):
            response = await adapter.generate("hello")

        assert captured["auth"] is None
        assert captured["body"]["messages"] == [{"role": "user", "content": "hello"}]
        assert response.content == "plain text answer"
        assert response.parsed_json is None


class TestGenericAdapterFailures:
    """Errors surface as exceptions so the agent can fall back to rules"""

    @pytest.mark.asyncio
    async def test_http_error(self):
        adapter = GenericAdapter("http://llm.local/v1", "test-model")
        client = _mock_client(lambda request: httpx.Response(503, text="overloaded"))

        with patch.object(adapter, "_client", return_value=client):
            with pytest.raises(LLMProviderError, match="503"):
                await adapter.generate("hello")

    @pytest.mark.asyncio
    async def test_empty_content(self):
        adapter = GenericAdapter("http://llm.local/v1", "test-model")
        client = _mock_client(lambda request: httpx.Response(200, json=_completion("  ", "length")))

        with patch.object(adapter, "_client", return_value=client):
            with pytest.raises(LLMProviderError, match="finish_reason=length"):
                await adapter.generate("hello")

    @pytest.mark.asyncio
    async def test_timeout_propagates(self):
        def handler(request):
            raise httpx.ReadTimeout("slow model", request=request)

        adapter = GenericAdapter("http://llm.local/v1", "test-model")
        with patch.object(adapter, "_client", return_value=_mock_client(handler)):
            with pytest.raises(httpx.TimeoutException):
                await adapter.generate("hello")

    def test_no_choices(self):
        adapter = GenericAdapter("http://llm.local/v1", "test-model")
        with pytest.raises(LLMProviderError):
            adapter.parse_response({"choices": []})


class TestLLMProviderFactory:

    def test_registered_types(self):
        available = LLMProviderFactory.get_available_types()
        for model_type in ("generic", "gpt", "claude", "openai"):
            assert model_type in available

    def test_unknown_type_falls_back_to_generic(self):
        provider = LLMProviderFactory.create("mystery", "http://llm.local/v1", "m", api_key="k", timeout=5.0)

        assert isinstance(provider, GenericAdapter)
        assert provider.timeout == 5.0
        assert provider.is_configured

    def test_unconfigured_provider(self):
        assert not GenericAdapter("", "m").is_configured

    def test_shared_package_lives_beside_backend(self):
        import shared

        package_root = Path(shared.__file__).resolve().parent.parent
        assert (package_root / "backend").is_dir()
        assert not (package_root / "backend" / "shared").exists()
