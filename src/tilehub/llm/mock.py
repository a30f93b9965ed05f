"""Scripted chat provider for extraction tests.

Example::

    provider = MockLLMProvider(default_response='{"market_size": null}')
    provider = MockLLMProvider(responses={"market_size": '{"market_size": "4 billion"}'})
    provider = MockLLMProvider(sequence=["not json", '{"growth_rate": "12%"}'])

Tags:
    tilehub, llm, mock, testing
"""

from __future__ import annotations

from collections import deque
from typing import Any

from tilehub.llm.protocol import LLMResponse, Message, Role, TokenUsage


class MockLLMProvider:
    """Answers from a script and records every call.

    Each call resolves its content in this order: ``error`` (raised),
    the first ``responses`` key found in the last user message, the next
    ``sequence`` item, then ``default_response``.
    """

    def __init__(
        self,
        default_response: str = "{}",
        *,
        responses: dict[str, str] | None = None,
        sequence: list[str] | None = None,
        error: Exception | None = None,
        model_name: str = "mock-model-v1",
    ):
        self.default_response = default_response
        self.responses = dict(responses or {})
        self.error = error
        self.model_name = model_name
        self.calls: list[dict[str, Any]] = []
        self._pending = deque(sequence or [])

    @property
    def call_count(self) -> int:
        return len(self.calls)

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
        self.calls.append(
            {
                "messages": [m.to_dict() for m in messages],
                "model": model or self.model_name,
                "max_tokens": max_tokens,
                "json_mode": json_mode,
            }
        )
        if self.error is not None:
            raise self.error

        prompt = next((m.content for m in reversed(messages) if m.role is Role.USER), "")
        content = self._answer(prompt)
        return LLMResponse(
            content=content,
            model=model or self.model_name,
            usage=TokenUsage.estimate(prompt, content),
            provider="mock",
        )

    def _answer(self, prompt: str) -> str:
        for needle, content in self.responses.items():
            if needle in prompt:
                return content
        if self._pending:
            return self._pending.popleft()
        return self.default_response


__all__ = ["MockLLMProvider"]
