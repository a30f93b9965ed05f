"""Chat model interface used by model-assisted extraction.

The extraction tier sends one system prompt (the JSON-only contract) and one
user prompt (tile instruction, required points, truncated source summaries)
and reads back a single JSON object. Everything a backend must provide for
that exchange is defined here; backends live beside this module:

    mock.py          - scripted provider for tests
    openai_compat.py - httpx client for ``/chat/completions`` endpoints

Tags:
    tilehub, llm, protocol, extraction
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(Role.USER, content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @classmethod
    def from_payload(cls, usage: dict[str, Any] | None) -> TokenUsage:
        """Read the ``usage`` block of a chat completion (missing counts are 0)."""
        usage = usage or {}
        return cls(
            prompt_tokens=int(usage.get("prompt_tokens") or 0),
            completion_tokens=int(usage.get("completion_tokens") or 0),
        )

    @classmethod
    def estimate(cls, prompt: str, completion: str) -> TokenUsage:
        """Rough count (4 chars per token) for backends that report nothing."""
        return cls(max(1, len(prompt) // 4), max(1, len(completion) // 4))


@dataclass(frozen=True)
class LLMResponse:
    """What extraction reads from a completion.

    Only ``content`` feeds the JSON parser; the rest is logged.
    """

    content: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    provider: str = ""
    request_id: str | None = None
    finish_reason: str = "stop"

    @property
    def truncated(self) -> bool:
        """The backend stopped on the token limit, so the JSON is likely cut off."""
        return self.finish_reason == "length"


@runtime_checkable
class LLMProvider(Protocol):
    """A chat backend. Implementations raise on failure; the strategy catches."""

    async def complete(
        self,
        messages: list[Message],
        model: str | None = None,
        *,
        temperature: float = 0.1,
        max_tokens: int = 2000,
        json_mode: bool = False,
        **kwargs: Any,
    ) -> LLMResponse: ...


__all__ = ["Role", "Message", "TokenUsage", "LLMResponse", "LLMProvider"]
