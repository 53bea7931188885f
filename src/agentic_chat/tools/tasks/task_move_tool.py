from typing import Any

from loguru import logger

from agentic_chat.tasks.board import COLUMNS, TaskBoard


class TaskMoveTool:
    def __init__(self, board: TaskBoard):
        self._board = board

    @property
    def name(self) -> str:
        return "move_task"

    @property
    def description(self) -> str:
        return "Move a task from one column of the task board to another."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "taskId": {
                    "type": "string",
                    "description": "The ID of the task to move.",
                },
                "fromColumn": {
                    "type": "string",
                    "enum": list(COLUMNS),
                    "description": "Current column (checked against the board when given).",
                },
                "toColumn": {
                    "type": "string",
                    "enum": list(COLUMNS),
                    "description": "Destination column.",
                },
            },
            "required": ["taskId", "toColumn"],
        }

    async def execute(self, tool_input: dict[str, Any]) -> str:
        try:
            task_id = tool_input["taskId"]
            previous = self._board.get_task(task_id).column
            task = self._board.move_task(
                task_id,
                tool_input["toColumn"],
                from_column=tool_input.get("fromColumn"),
            )
            return f"Task '{task.title}' ({task.id}) moved from {previous} to {task.column}."

        except Exception as ex:
            logger.error(f"move_task error: {ex}")
            return f"Error moving task: {ex}"
