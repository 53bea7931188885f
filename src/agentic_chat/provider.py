from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from agentic_chat.tool import Tool

DEFAULT_PROVIDER = "openai"


@dataclass
class ProviderResponse:
    """One model reply in the internal (Anthropic-style) block format."""

    message: dict
    tool_use_blocks: list[dict] = field(default_factory=list)
    stop_reason: str = "end_turn"
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def text(self) -> str:
        content = self.message.get("content", "")
        if isinstance(content, str):
            return content
        return "\n".join(b["text"] for b in content if b.get("type") == "text")

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@runtime_checkable
class LLMProvider(Protocol):
    async def create_message(
        self,
        model: str,
        max_tokens: int,
        temperature: float,
        system_prompt: str,
        messages: list[dict],
        tools: list[dict],
    ) -> ProviderResponse:
        """Send one request and return the reply with its token usage.

        Retries are the caller's concern; implementations make a single attempt.
        """
        ...

    def convert_tools(self, tools: list[Tool]) -> list[dict]:
        """Convert Tool protocol objects to provider-neutral tool dicts."""
        ...


def create_provider(provider_name: str, api_key: str) -> LLMProvider:
    """Factory: create an LLMProvider by name."""
    name = (provider_name or DEFAULT_PROVIDER).strip().lower()
    if name == "anthropic":
        from agentic_chat.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(api_key)
    if name == "openai":
        from agentic_chat.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'openai', 'anthropic'")
