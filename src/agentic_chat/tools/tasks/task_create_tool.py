from typing import Any

from loguru import logger

from agentic_chat.tasks.board import COLUMNS, PRIORITIES, TaskBoard
from agentic_chat.tools.tasks.task_formatter import format_task_detail


class TaskCreateTool:
    def __init__(self, board: TaskBoard):
        self._board = board

    @property
    def name(self) -> str:
        return "create_task"

    @property
    def description(self) -> str:
        return "Create a new task in a specific column of the task board."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "The task title.",
                },
                "description": {
                    "type": "string",
                    "description": "Optional task description.",
                },
                "column": {
                    "type": "string",
                    "enum": list(COLUMNS),
                    "description": "Which column to add the task to.",
                },
                "priority": {
                    "type": "string",
                    "enum": list(PRIORITIES),
                    "description": "Task priority level.",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Tags for categorizing the task.",
                },
            },
            "required": ["title", "column"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        try:
            task = self._board.create_task(
                tool_input["title"],
                tool_input.get("column", "todo"),
                description=tool_input.get("description"),
                priority=tool_input.get("priority"),
                tags=tool_input.get("tags"),
            )
            return "Task created successfully.\n\n" + format_task_detail(task)

        except Exception as ex:
            logger.error(f"create_task error: {ex}")
            return f"Error creating task: {ex}"
