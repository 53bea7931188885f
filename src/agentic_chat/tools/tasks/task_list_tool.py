from typing import Any

from loguru import logger

from agentic_chat.tasks.board import COLUMNS, TaskBoard
from agentic_chat.tools.tasks.task_formatter import format_task_summary


class TaskListTool:
    def __init__(self, board: TaskBoard):
        self._board = board

    @property
    def name(self) -> str:
        return "list_tasks"

    @property
    def description(self) -> str:
        return "List all tasks on the board, optionally filtered by column or tag."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "column": {
                    "type": "string",
                    "enum": list(COLUMNS),
                    "description": "Filter by column.",
                },
                "tag": {
                    "type": "string",
                    "description": "Filter by tag.",
                },
            },
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        try:
            tasks = self._board.list_tasks(tool_input.get("column"), tool_input.get("tag"))
            if not tasks:
                return "No tasks found."

            lines = [f"Tasks: {len(tasks)}", ""]
            lines.extend(format_task_summary(t) for t in tasks)
            return "\n".join(lines)

        except Exception as ex:
            logger.error(f"list_tasks error: {ex}")
            return f"Error listing tasks: {ex}"
