from __future__ import annotations

from dataclasses import dataclass

from agentic_chat.app import ChatApp
from agentic_chat.app_config import AppConfig, RuntimeEnv
from agentic_chat.logging_config import setup_logging
from agentic_chat.provider import create_provider
from agentic_chat.reliability import CircuitBreaker
from agentic_chat.services.chat_history import ChatHistory
from agentic_chat.services.chat_session import ChatSession
from agentic_chat.storage.local import LocalChatStorageAdapter
from agentic_chat.system_prompt import build_system_prompt
from agentic_chat.tasks.board import TaskBoard
from agentic_chat.tool_registry import get_all


@dataclass
class AppRuntime:
    app: ChatApp
    history: ChatHistory
    tools: list
    storage_description: str
    log_descriptions: list[str]


async def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    task_board = TaskBoard()
    retry_options = app.retry_options()
    tools = get_all(
        task_board,
        env.exa_api_key,
        retry_options,
        app.circuit_breaker_threshold,
        app.circuit_breaker_timeout_seconds,
    )

    history = ChatHistory.create(app.storage_config(env), app.user_id)

    session = ChatSession(
        history=history,
        provider=create_provider(app.provider_name, env.provider_api_key),
        model=app.model,
        max_tokens=app.max_tokens,
        temperature=app.temperature,
        system_prompt=build_system_prompt(app.system_prompt),
        tools=tools,
        retry_options=retry_options,
        breaker=CircuitBreaker(
            app.circuit_breaker_threshold,
            app.circuit_breaker_timeout_seconds,
            name="llm",
        ),
        request_timeout=app.request_timeout_seconds,
        max_tool_rounds=app.max_tool_rounds,
        max_tool_result_chars=app.max_tool_result_chars,
    )

    chat_app = ChatApp(session=session, task_board=task_board)
    await chat_app.initialize()

    return AppRuntime(
        app=chat_app,
        history=history,
        tools=tools,
        storage_description=_describe_storage(history, app),
        log_descriptions=log_descriptions,
    )


def _describe_storage(history: ChatHistory, app: AppConfig) -> str:
    if isinstance(history.storage, LocalChatStorageAdapter):
        if app.local_store_path == ":memory:":
            return "local (in-memory, not persisted)"
        return f"local ({app.local_store_path})"
    return f"remote (user={app.user_id or 'unscoped'})"
