import anthropic
from loguru import logger

from agentic_chat.provider import ProviderResponse
from agentic_chat.tool import Tool, tool_definitions


def _to_internal_block(block) -> dict | None:
    """SDK content block as a plain dict; block types the session does not use are dropped."""
    if block.type == "text":
        return {"type": "text", "text": block.text}
    if block.type == "tool_use":
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    return None


class AnthropicProvider:
    def __init__(self, api_key: str, *, client: anthropic.AsyncAnthropic | None = None):
        # Retries and timeouts are applied by the chat session.
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)

    def convert_tools(self, tools: list[Tool]) -> list[dict]:
        return tool_definitions(tools)

    async def create_message(
        self,
        model: str,
        max_tokens: int,
        temperature: float,
        system_prompt: str,
        messages: list[dict],
        tools: list[dict],
    ) -> ProviderResponse:
        optional = {"system": system_prompt, "tools": tools}
        response = await self._client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
            **{key: value for key, value in optional.items() if value},
        )

        content = [b for b in map(_to_internal_block, response.content) if b is not None]
        result = ProviderResponse(
            message={"role": "assistant", "content": content},
            tool_use_blocks=[b for b in content if b["type"] == "tool_use"],
            stop_reason=response.stop_reason or "end_turn",
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        logger.debug(
            f"Anthropic {model}: {len(messages)} message(s) in, stop_reason={result.stop_reason}, "
            f"tokens={result.input_tokens}+{result.output_tokens}"
        )
        return result
