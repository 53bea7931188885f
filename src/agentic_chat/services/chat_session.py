from __future__ import annotations

import asyncio

from loguru import logger

from agentic_chat.errors import user_friendly_message
from agentic_chat.provider import LLMProvider, ProviderResponse
from agentic_chat.reliability import CircuitBreaker, RetryOptions, with_retry, with_timeout
from agentic_chat.services.chat_history import ChatHistory
from agentic_chat.storage.models import Message, MessageMetadata, ToolCall
from agentic_chat.tool import Tool


class ChatSession:
    """Runs one user turn: persist the prompt, loop over model calls and tools,
    persist the reply."""

    def __init__(
        self,
        *,
        history: ChatHistory,
        provider: LLMProvider,
        model: str,
        max_tokens: int,
        temperature: float,
        system_prompt: str,
        tools: list[Tool],
        retry_options: RetryOptions | None = None,
        breaker: CircuitBreaker | None = None,
        request_timeout: float = 60.0,
        max_tool_rounds: int = 5,
        max_tool_result_chars: int = 40_000,
    ) -> None:
        self._history = history
        self._provider = provider
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._system_prompt = system_prompt
        self._tool_map = {t.name: t for t in tools}
        self._converted_tools = provider.convert_tools(tools)
        self._retry_options = retry_options or RetryOptions()
        self._breaker = breaker or CircuitBreaker(name="llm")
        self._request_timeout = request_timeout
        self._max_tool_rounds = max(1, max_tool_rounds)
        self._max_tool_result_chars = max_tool_result_chars

    @property
    def history(self) -> ChatHistory:
        return self._history

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def send(self, text: str) -> Message:
        """Record ``text`` as a user message and return the saved assistant reply.

        Model failures do not raise: they are saved as an assistant message with
        ``metadata.error`` set. Storage failures propagate.
        """
        await self._history.add_message("user", text)
        system_prompt, messages = self._build_request_messages()

        tool_calls: list[ToolCall] = []
        tokens = 0
        try:
            reply_text = ""
            finished = False
            for _ in range(self._max_tool_rounds):
                response = await self._call_provider(system_prompt, messages)
                tokens += response.total_tokens
                reply_text = response.text
                messages.append(response.message)

                if not response.tool_use_blocks:
                    finished = True
                    break

                results = await self.execute_tools(response.tool_use_blocks, tool_calls)
                messages.append({"role": "user", "content": results})

            if not finished:
                logger.warning(f"Stopped after {self._max_tool_rounds} tool round(s) without a final answer")
                notice = f"[Stopped after {self._max_tool_rounds} tool round(s) without a final answer]"
                reply_text = f"{reply_text}\n\n{notice}" if reply_text else notice
        except Exception as ex:
            logger.error(f"Chat turn failed: {type(ex).__name__}: {ex}")
            return await self._history.add_message(
                "assistant",
                user_friendly_message(ex),
                MessageMetadata(tokens=tokens or None, model=self._model, error=str(ex), tool_calls=tool_calls or None),
            )

        return await self._history.add_message(
            "assistant",
            reply_text,
            MessageMetadata(tokens=tokens, model=self._model, tool_calls=tool_calls or None),
        )

    async def execute_tools(self, tool_use_blocks: list[dict], tool_calls: list[ToolCall]) -> list[dict]:
        async def run_one(block: dict) -> tuple[dict, ToolCall]:
            tool_name = block["name"]
            tool_input = block.get("input") or {}
            tool = self._tool_map.get(tool_name)

            if tool is None:
                content = f'Error: unknown tool "{tool_name}"'
                is_error = True
            else:
                try:
                    content = self._truncate_tool_result(await tool.execute(tool_input), tool_name)
                    is_error = False
                except Exception as ex:
                    content = f'Error executing tool "{tool_name}": {ex}'
                    is_error = True

            result = {"type": "tool_result", "tool_use_id": block["id"], "content": content}
            if is_error:
                result["is_error"] = True
            return result, ToolCall(tool=tool_name, input=tool_input, output=content)

        outcomes = await asyncio.gather(*(run_one(b) for b in tool_use_blocks))
        tool_calls.extend(call for _, call in outcomes)
        return [result for result, _ in outcomes]

    async def _call_provider(self, system_prompt: str, messages: list[dict]) -> ProviderResponse:
        async def attempt() -> ProviderResponse:
            return await self._breaker.execute(
                lambda: with_timeout(
                    self._provider.create_message(
                        self._model,
                        self._max_tokens,
                        self._temperature,
                        system_prompt,
                        messages,
                        self._converted_tools,
                    ),
                    self._request_timeout,
                    f"Model request timed out after {self._request_timeout:g}s",
                )
            )

        return await with_retry(attempt, self._retry_options)

    def _build_request_messages(self) -> tuple[str, list[dict]]:
        """Provider messages from the stored transcript.

        System-role messages are appended to the system prompt and earlier failed
        turns are left out.
        """
        system_parts = [self._system_prompt] if self._system_prompt else []
        messages: list[dict] = []
        for message in self._history.messages:
            if message.role == "system":
                system_parts.append(message.content)
            elif message.metadata is not None and message.metadata.error:
                continue
            else:
                messages.append({"role": message.role, "content": message.content})
        return "\n\n".join(system_parts), messages

    def _truncate_tool_result(self, result: str, tool_name: str) -> str:
        if self._max_tool_result_chars <= 0 or len(result) <= self._max_tool_result_chars:
            return result

        original_length = len(result)
        logger.warning(
            f"{tool_name} output truncated from {original_length:,} "
            f"to {self._max_tool_result_chars:,} chars"
        )
        return (
            result[: self._max_tool_result_chars]
            + f"\n\n[OUTPUT TRUNCATED: Showing {self._max_tool_result_chars:,} "
            f"of {original_length:,} characters from {tool_name}]"
        )
