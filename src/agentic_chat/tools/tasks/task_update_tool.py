from typing import Any

from loguru import logger

from agentic_chat.tasks.board import PRIORITIES, TaskBoard
from agentic_chat.tools.tasks.task_formatter import format_task_detail


class TaskUpdateTool:
    def __init__(self, board: TaskBoard):
        self._board = board

    @property
    def name(self) -> str:
        return "update_task"

    @property
    def description(self) -> str:
        return (
            "Update an existing task's title, description, priority or tags. "
            "Only the supplied fields change. Use move_task to change its column."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "taskId": {
                    "type": "string",
                    "description": "The ID of the task to update.",
                },
                "title": {
                    "type": "string",
                    "description": "New task title.",
                },
                "description": {
                    "type": "string",
                    "description": "New task description.",
                },
                "priority": {
                    "type": "string",
                    "enum": list(PRIORITIES),
                    "description": "New priority level.",
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "New tags (replaces the existing ones).",
                },
            },
            "required": ["taskId"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        try:
            task = self._board.update_task(
                tool_input["taskId"],
                title=tool_input.get("title"),
                description=tool_input.get("description"),
                priority=tool_input.get("priority"),
                tags=tool_input.get("tags"),
            )
            return "Task updated successfully.\n\n" + format_task_detail(task)

        except Exception as ex:
            logger.error(f"update_task error: {ex}")
            return f"Error updating task: {ex}"
