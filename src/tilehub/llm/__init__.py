"""
LLM provider abstraction used by the model-assisted extraction tier.

Tags:
    tilehub, llm, provider
"""

from tilehub.llm.mock import MockLLMProvider
from tilehub.llm.openai_compat import OpenAICompatibleProvider
from tilehub.llm.protocol import LLMProvider, LLMResponse, Message, Role, TokenUsage

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "Message",
    "Role",
    "TokenUsage",
    "MockLLMProvider",
    "OpenAICompatibleProvider",
]
