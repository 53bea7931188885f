import json

import openai
from loguru import logger

from agentic_chat.provider import ProviderResponse
from agentic_chat.tool import Tool, tool_definitions

# OpenAI finish reasons in the internal stop-reason vocabulary.
_STOP_REASON_MAP = {
    "stop": "end_turn",
    "tool_calls": "tool_use",
    "length": "max_tokens",
}


def _block_text(blocks: list) -> str:
    return "\n".join(
        b if isinstance(b, str) else b.get("text", "")
        for b in blocks
        if isinstance(b, str) or b.get("type") == "text"
    )


def _assistant_to_openai(content) -> dict:
    if isinstance(content, str):
        return {"role": "assistant", "content": content}

    text = _block_text(content)
    calls = [
        {
            "id": b["id"],
            "type": "function",
            "function": {"name": b["name"], "arguments": json.dumps(b.get("input") or {})},
        }
        for b in content
        if isinstance(b, dict) and b.get("type") == "tool_use"
    ]
    converted: dict = {"role": "assistant", "content": text or None}
    if calls:
        converted["tool_calls"] = calls
    return converted


def _user_to_openai(content) -> list[dict]:
    if isinstance(content, str):
        return [{"role": "user", "content": content}]

    # Tool results become separate "tool" messages ahead of any user text.
    converted = [
        {"role": "tool", "tool_call_id": b["tool_use_id"], "content": str(b.get("content", ""))}
        for b in content
        if isinstance(b, dict) and b.get("type") == "tool_result"
    ]
    text = _block_text(content)
    if text:
        converted.append({"role": "user", "content": text})
    return converted


def to_openai_messages(system_prompt: str, messages: list[dict]) -> list[dict]:
    """Convert internal (Anthropic-style) messages to OpenAI chat format."""
    out: list[dict] = [{"role": "system", "content": system_prompt}] if system_prompt else []
    for msg in messages:
        if msg["role"] == "assistant":
            out.append(_assistant_to_openai(msg.get("content", "")))
        else:
            out.extend(_user_to_openai(msg.get("content", "")))
    return out


def to_openai_tools(tools: list[dict]) -> list[dict]:
    return [
        {
            "type": "function",
            "function": {
                "name": t["name"],
                "description": t.get("description", ""),
                "parameters": t.get("input_schema", {}),
            },
        }
        for t in tools
    ]


class OpenAIProvider:
    def __init__(self, api_key: str, *, client: openai.AsyncOpenAI | None = None):
        # Retries and timeouts are applied by the chat session.
        self._client = client or openai.AsyncOpenAI(api_key=api_key, max_retries=0)

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
        oai_messages = to_openai_messages(system_prompt, messages)
        kwargs: dict = dict(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=oai_messages,
        )
        if tools:
            kwargs["tools"] = to_openai_tools(tools)

        logger.debug(
            f"API request: model={model}, max_tokens={max_tokens}, "
            f"messages={len(oai_messages)}, tools={len(tools)}"
        )
        response = await self._client.chat.completions.create(**kwargs)

        choice = response.choices[0]
        text = choice.message.content or ""
        content: list[dict] = [{"type": "text", "text": text}] if text else []
        tool_use_blocks: list[dict] = []
        for call in choice.message.tool_calls or []:
            raw_args = call.function.arguments or ""
            try:
                parsed_input = json.loads(raw_args) if raw_args else {}
            except json.JSONDecodeError:
                logger.warning(f"Failed to parse tool call arguments: {raw_args[:200]}")
                parsed_input = {}
            block = {"type": "tool_use", "id": call.id, "name": call.function.name, "input": parsed_input}
            content.append(block)
            tool_use_blocks.append(block)

        usage = response.usage
        input_tokens = usage.prompt_tokens if usage else 0
        output_tokens = usage.completion_tokens if usage else 0
        stop_reason = _STOP_REASON_MAP.get(choice.finish_reason or "stop", "end_turn")
        logger.debug(
            f"API response: stop_reason={stop_reason}, input_tokens={input_tokens}, "
            f"output_tokens={output_tokens}, tool_calls={len(tool_use_blocks)}"
        )

        return ProviderResponse(
            message={"role": "assistant", "content": content},
            tool_use_blocks=tool_use_blocks,
            stop_reason=stop_reason,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
