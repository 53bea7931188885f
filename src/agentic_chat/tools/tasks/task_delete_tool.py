from typing import Any

from loguru import logger

from agentic_chat.tasks.board import TaskBoard


class TaskDeleteTool:
    def __init__(self, board: TaskBoard):
        self._board = board

    @property
    def name(self) -> str:
        return "delete_task"

    @property
    def description(self) -> str:
        return "Delete a task from the task board. This action cannot be undone."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "taskId": {
                    "type": "string",
                    "description": "The ID of the task to delete.",
                },
            },
            "required": ["taskId"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        try:
            task = self._board.delete_task(tool_input["taskId"])
            return f"Task '{task.title}' ({task.id}) deleted successfully."

        except Exception as ex:
            logger.error(f"delete_task error: {ex}")
            return f"Error deleting task: {ex}"
