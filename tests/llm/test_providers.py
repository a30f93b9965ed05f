"""Tests for the LLM providers (mock and OpenAI-compatible)."""

import json

import httpx
import pytest

from tilehub.core.errors import ConfigError, ExtractionError
from tilehub.llm.mock import MockLLMProvider
from tilehub.llm.openai_compat import OpenAICompatibleProvider
from tilehub.llm.protocol import LLMProvider, Message


class TestMockLLMProvider:
    @pytest.mark.asyncio
    async def test_default_response(self):
        provider = MockLLMProvider(default_response='{"a": 1}')
        response = await provider.complete([Message.user("hi")])
        assert response.content == '{"a": 1}'
        assert response.model == "mock-model-v1"
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_substring_match_then_sequence(self):
        provider = MockLLMProvider(responses={"market_size": "M"}, sequence=["first", "second"])
        assert (await provider.complete([Message.user("tile market_size")])).content == "M"
        assert (await provider.complete([Message.user("other")])).content == "first"
        assert (await provider.complete([Message.user("other")])).content == "second"
        assert (await provider.complete([Message.user("other")])).content == "{}"

    @pytest.mark.asyncio
    async def test_error(self):
        provider = MockLLMProvider(error=RuntimeError("rate limited"))
        with pytest.raises(RuntimeError):
            await provider.complete([Message.user("hi")])
        assert provider.calls[0]["json_mode"] is False

    def test_satisfies_protocol(self):
        assert isinstance(MockLLMProvider(), LLMProvider)


class TestOpenAICompatibleProvider:
    def test_requires_key(self):
        with pytest.raises(ConfigError):
            OpenAICompatibleProvider("")

    @pytest.mark.asyncio
    async def test_request_shape_and_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "id": "cmpl-1",
                    "model": "llama-test",
                    "choices": [{"message": {"content": '{"x": 1}'}, "finish_reason": "stop"}],
                    "usage": {"prompt_tokens": 10, "completion_tokens": 3, "total_tokens": 13},
                },
            )

        provider = OpenAICompatibleProvider(
            "sk-test",
            base_url="https://llm.example/v1/",
            default_model="llama-test",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        response = await provider.complete([Message.system("s"), Message.user("u")], json_mode=True)

        assert seen["url"] == "https://llm.example/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert seen["body"]["messages"][1] == {"role": "user", "content": "u"}
        assert response.content == '{"x": 1}'
        assert response.usage.total_tokens == 13

    @pytest.mark.asyncio
    async def test_http_error(self):
        provider = OpenAICompatibleProvider(
            "sk-test",
            client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(503, json={}))),
        )
        with pytest.raises(ExtractionError):
            await provider.complete([Message.user("u")])

    @pytest.mark.asyncio
    async def test_no_choices(self):
        provider = OpenAICompatibleProvider(
            "sk-test",
            client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"choices": []}))),
        )
        with pytest.raises(ExtractionError):
            await provider.complete([Message.user("u")])

    @pytest.mark.asyncio
    async def test_length_finish_marks_truncated(self):
        body = {"choices": [{"message": {"content": '{"market_size": '}, "finish_reason": "length"}]}
        provider = OpenAICompatibleProvider(
            "sk-test",
            client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body))),
        )
        response = await provider.complete([Message.user("u")])
        assert response.truncated is True
        assert response.usage.total_tokens == 0
