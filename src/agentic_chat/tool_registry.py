from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from agentic_chat.tool import Tool
from agentic_chat.tools.tasks.task_create_tool import TaskCreateTool
from agentic_chat.tools.tasks.task_delete_tool import TaskDeleteTool
from agentic_chat.tools.tasks.task_list_tool import TaskListTool
from agentic_chat.tools.tasks.task_move_tool import TaskMoveTool
from agentic_chat.tools.tasks.task_update_tool import TaskUpdateTool
from agentic_chat.tools.web.web_search_tool import UnconfiguredWebSearchTool


@dataclass(frozen=True)
class ToolGroup:
    enabled: Callable[[dict], bool]
    build: Callable[[dict], list[Tool]]


def _always(_: dict) -> bool:
    return True


def _task_tools(ctx: dict) -> list[Tool]:
    board = ctx["task_board"]
    return [
        TaskCreateTool(board),
        TaskUpdateTool(board),
        TaskMoveTool(board),
        TaskDeleteTool(board),
        TaskListTool(board),
    ]


def _web_search_enabled(ctx: dict) -> bool:
    return bool(ctx.get("exa_api_key"))


def _web_search_disabled(ctx: dict) -> bool:
    return not _web_search_enabled(ctx)


def _web_search_tools(ctx: dict) -> list[Tool]:
    from agentic_chat.reliability import CircuitBreaker
    from agentic_chat.tools.web.exa_search_provider import ExaSearchProvider
    from agentic_chat.tools.web.web_search_tool import WebSearchTool

    breaker_threshold, breaker_timeout = ctx["breaker_settings"]
    provider = ExaSearchProvider(
        ctx["exa_api_key"],
        retry_options=ctx.get("retry_options"),
        breaker=CircuitBreaker(breaker_threshold, breaker_timeout, name="exa-search"),
    )
    return [WebSearchTool(provider)]


def _web_search_placeholder(_: dict) -> list[Tool]:
    return [UnconfiguredWebSearchTool()]


_GROUPS = [
    ToolGroup(enabled=_always, build=_task_tools),
    ToolGroup(enabled=_web_search_enabled, build=_web_search_tools),
    ToolGroup(enabled=_web_search_disabled, build=_web_search_placeholder),
]


def get_all(
    task_board,
    exa_api_key: str | None = None,
    retry_options=None,
    breaker_threshold: int = 5,
    breaker_timeout: float = 60.0,
) -> list[Tool]:
    ctx = {
        "task_board": task_board,
        "exa_api_key": exa_api_key,
        "retry_options": retry_options,
        "breaker_settings": (breaker_threshold, breaker_timeout),
    }

    tools: list[Tool] = []
    for group in _GROUPS:
        if group.enabled(ctx):
            tools.extend(group.build(ctx))
    return tools
