import asyncio
import copy
import unittest
from typing import Any

from agentic_chat.errors import ERROR_MESSAGES
from agentic_chat.provider import ProviderResponse
from agentic_chat.reliability import CircuitBreaker, RetryOptions
from agentic_chat.services.chat_history import ChatHistory
from agentic_chat.services.chat_session import ChatSession
from agentic_chat.storage import LocalChatStorageAdapter, SqliteKeyValueStore, ToolCall


async def _no_sleep(_: float) -> None:
    return None


class _EchoTool:
    def __init__(self, output: str = "echoed") -> None:
        self._output = output
        self.inputs: list[dict] = []

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo the input"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {"text": {"type": "string"}}}

    async def execute(self, tool_input: dict[str, Any]) -> str:
        self.inputs.append(tool_input)
        return self._output


class _ScriptedProvider:
    def __init__(self, outcomes: list) -> None:
        self._outcomes = list(outcomes)
        self.requests: list[dict] = []

    def convert_tools(self, tools: list) -> list[dict]:
        return [{"name": t.name, "description": t.description, "input_schema": t.input_schema} for t in tools]

    async def create_message(self, model, max_tokens, temperature, system_prompt, messages, tools) -> ProviderResponse:
        self.requests.append({"system_prompt": system_prompt, "messages": copy.deepcopy(messages), "tools": tools})
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _text_reply(text: str, input_tokens: int = 10, output_tokens: int = 5) -> ProviderResponse:
    return ProviderResponse(
        message={"role": "assistant", "content": [{"type": "text", "text": text}]},
        input_tokens=input_tokens,
        output_tokens=output_tokens,
    )


def _tool_reply(tool_id: str, name: str, tool_input: dict) -> ProviderResponse:
    block = {"type": "tool_use", "id": tool_id, "name": name, "input": tool_input}
    return ProviderResponse(
        message={"role": "assistant", "content": [block]},
        tool_use_blocks=[block],
        stop_reason="tool_use",
        input_tokens=7,
        output_tokens=3,
    )


class ChatSessionTests(unittest.TestCase):
    def _session(self, provider: _ScriptedProvider, tools: list | None = None, **overrides: Any) -> ChatSession:
        options = dict(
            history=ChatHistory(LocalChatStorageAdapter(SqliteKeyValueStore(":memory:"))),
            provider=provider,
            model="gpt-4o-mini",
            max_tokens=256,
            temperature=0.0,
            system_prompt="Be brief.",
            tools=tools or [],
            retry_options=RetryOptions(max_retries=2, sleep=_no_sleep),
            request_timeout=5.0,
        )
        options.update(overrides)
        return ChatSession(**options)

    def test_plain_reply_records_tokens_and_model(self) -> None:
        provider = _ScriptedProvider([_text_reply("Hi there", 30, 12)])
        session = self._session(provider)

        reply = asyncio.run(session.send("Hello"))

        self.assertEqual("Hi there", reply.content)
        self.assertEqual(42, reply.metadata.tokens)
        self.assertEqual("gpt-4o-mini", reply.metadata.model)
        self.assertIsNone(reply.metadata.tool_calls)
        self.assertEqual(["user", "assistant"], [m.role for m in session.history.messages])
        self.assertEqual(42, session.history.current_conversation.metadata.total_tokens)
        self.assertEqual([{"role": "user", "content": "Hello"}], provider.requests[0]["messages"])

    def test_tool_round_trip_records_tool_calls(self) -> None:
        tool = _EchoTool("echo output")
        provider = _ScriptedProvider([_tool_reply("t1", "echo", {"text": "x"}), _text_reply("Done")])
        session = self._session(provider, [tool])

        reply = asyncio.run(session.send("Use the tool"))

        self.assertEqual("Done", reply.content)
        self.assertEqual([ToolCall(tool="echo", input={"text": "x"}, output="echo output")], reply.metadata.tool_calls)
        self.assertEqual(10 + 15, reply.metadata.tokens)
        second_request = provider.requests[1]["messages"]
        self.assertEqual("tool_result", second_request[-1]["content"][0]["type"])
        self.assertEqual("t1", second_request[-1]["content"][0]["tool_use_id"])

    def test_unknown_tool_is_reported_to_model(self) -> None:
        provider = _ScriptedProvider([_tool_reply("t1", "missing", {}), _text_reply("Sorry")])
        session = self._session(provider)

        reply = asyncio.run(session.send("Go"))

        self.assertEqual('Error: unknown tool "missing"', reply.metadata.tool_calls[0].output)
        self.assertTrue(provider.requests[1]["messages"][-1]["content"][0]["is_error"])

    def test_long_tool_output_is_truncated(self) -> None:
        tool = _EchoTool("x" * 50)
        provider = _ScriptedProvider([_tool_reply("t1", "echo", {}), _text_reply("ok")])
        session = self._session(provider, [tool], max_tool_result_chars=10)

        reply = asyncio.run(session.send("Go"))

        output = reply.metadata.tool_calls[0].output
        self.assertTrue(output.startswith("x" * 10 + "\n\n[OUTPUT TRUNCATED"))

    def test_tool_rounds_are_bounded(self) -> None:
        tool = _EchoTool()
        provider = _ScriptedProvider([_tool_reply(f"t{i}", "echo", {}) for i in range(5)])
        session = self._session(provider, [tool], max_tool_rounds=2)

        reply = asyncio.run(session.send("Loop"))

        self.assertEqual(2, len(provider.requests))
        self.assertEqual(2, len(reply.metadata.tool_calls))
        self.assertEqual("[Stopped after 2 tool round(s) without a final answer]", reply.content)
        self.assertEqual(20, reply.metadata.tokens)

    def test_failed_turn_keeps_tokens_already_spent(self) -> None:
        provider = _ScriptedProvider([_tool_reply("t1", "echo", {}), ValueError("bad request")])
        session = self._session(provider, [_EchoTool()])

        reply = asyncio.run(session.send("Search then answer"))

        self.assertEqual("bad request", reply.metadata.error)
        self.assertEqual(10, reply.metadata.tokens)
        self.assertEqual(1, len(reply.metadata.tool_calls))

    def test_transient_failure_is_retried(self) -> None:
        provider = _ScriptedProvider([ConnectionError("connection reset"), _text_reply("Recovered")])
        session = self._session(provider)

        reply = asyncio.run(session.send("Hello"))

        self.assertEqual("Recovered", reply.content)
        self.assertEqual(2, len(provider.requests))

    def test_failed_turn_is_saved_as_error_message(self) -> None:
        provider = _ScriptedProvider([ConnectionError("network down"), ConnectionError("network down")])
        session = self._session(provider)

        reply = asyncio.run(session.send("Hello"))

        self.assertEqual(ERROR_MESSAGES["RETRY_EXHAUSTED"], reply.content)
        self.assertIn("network down", reply.metadata.error)
        self.assertEqual("assistant", session.history.messages[-1].role)

    def test_open_circuit_skips_provider(self) -> None:
        breaker = CircuitBreaker(threshold=1, timeout=60.0)
        provider = _ScriptedProvider([ValueError("bad request"), _text_reply("never")])
        session = self._session(provider, breaker=breaker)

        asyncio.run(session.send("first"))
        reply = asyncio.run(session.send("second"))

        self.assertEqual(ERROR_MESSAGES["SERVICE_UNAVAILABLE"], reply.content)
        self.assertEqual(1, len(provider.requests))

    def test_system_messages_and_failed_turns_shape_the_request(self) -> None:
        provider = _ScriptedProvider([ValueError("bad request"), _text_reply("ok")])
        session = self._session(provider)
        asyncio.run(session.history.add_message("system", "Answer in French."))

        asyncio.run(session.send("first"))
        asyncio.run(session.send("second"))

        request = provider.requests[1]
        self.assertEqual("Be brief.\n\nAnswer in French.", request["system_prompt"])
        self.assertEqual(
            [{"role": "user", "content": "first"}, {"role": "user", "content": "second"}],
            request["messages"],
        )


if __name__ == "__main__":
    unittest.main()
