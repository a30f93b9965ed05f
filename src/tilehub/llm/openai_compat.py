"""OpenAI-compatible chat completions client over httpx.

Works against any endpoint that speaks ``POST {base_url}/chat/completions``
(Groq, OpenAI, vLLM, Ollama's OpenAI shim). Used by model-assisted
extraction; never used without an API key.

Tags:
    tilehub, llm, httpx, openai, groq
"""

from __future__ import annotations

from typing import Any

import httpx

from tilehub.core.errors import ConfigError, ErrorContext, ExtractionError
from tilehub.core.logging import get_logger
from tilehub.llm.protocol import LLMResponse, Message, TokenUsage

logger = get_logger(__name__)


class OpenAICompatibleProvider:
    """LLM provider for ``/chat/completions`` APIs.

    Args:
        api_key: Bearer token for the endpoint.
        base_url: API root, e.g. ``https://api.groq.com/openai/v1``.
        default_model: Model used when ``complete`` gets none.
        timeout: Request timeout in seconds.
        client: Pre-built ``httpx.AsyncClient`` (tests pass one with a MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.groq.com/openai/v1",
        default_model: str = "llama-3.1-8b-instant",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ConfigError("LLM API key is not configured")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.default_model = default_model
        self._timeout = timeout
        self._client = client

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        *,
        temperature: float = 0.1,
        max_tokens: int = 2000,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> LLMResponse:
        effective_model = model or self.default_model
        payload: dict[str, Any] = {
            "model": effective_model,
            "messages": [m.to_dict() for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        url = f"{self._base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self._api_key}"}

        if self._client is not None:
            response = await self._client.post(url, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=payload, headers=headers)

        if response.status_code >= 400:
            raise ExtractionError(
                f"LLM endpoint returned HTTP {response.status_code}",
                context=ErrorContext(source="llm", url=url, http_status=response.status_code),
            )

        body = response.json()
        try:
            choice = body["choices"][0]
            content = choice["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ExtractionError("LLM response has no choices", cause=e) from e

        usage = TokenUsage.from_payload(body.get("usage"))
        logger.debug("llm_completion", model=effective_model, total_tokens=usage.total_tokens)
        return LLMResponse(
            content=content,
            model=body.get("model", effective_model),
            usage=usage,
            provider="openai_compatible",
            request_id=body.get("id"),
            finish_reason=choice.get("finish_reason") or "stop",
        )


__all__ = ["OpenAICompatibleProvider"]
