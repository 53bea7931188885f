import asyncio
import unittest

from agentic_chat.tasks.board import TaskBoard
from agentic_chat.tools.tasks.task_create_tool import TaskCreateTool
from agentic_chat.tools.tasks.task_delete_tool import TaskDeleteTool
from agentic_chat.tools.tasks.task_list_tool import TaskListTool
from agentic_chat.tools.tasks.task_move_tool import TaskMoveTool
from agentic_chat.tools.tasks.task_update_tool import TaskUpdateTool


class TaskToolTests(unittest.TestCase):
    def setUp(self) -> None:
        self.board = TaskBoard()

    # -- properties --

    def test_names_and_required_params(self) -> None:
        expected = {
            "create_task": ["title", "column"],
            "update_task": ["taskId"],
            "move_task": ["taskId", "toColumn"],
            "delete_task": ["taskId"],
        }
        tools = [
            TaskCreateTool(self.board),
            TaskUpdateTool(self.board),
            TaskMoveTool(self.board),
            TaskDeleteTool(self.board),
        ]
        for tool in tools:
            self.assertEqual(expected[tool.name], tool.input_schema["required"])
        self.assertNotIn("required", TaskListTool(self.board).input_schema)

    # -- execute --

    def test_create_task(self) -> None:
        result = asyncio.run(
            TaskCreateTool(self.board).execute(
                {"title": "Book flights", "column": "todo", "priority": "high", "tags": ["travel"]}
            )
        )

        self.assertTrue(result.startswith("Task created successfully."))
        self.assertIn("Title: Book flights", result)
        self.assertIn("Column: To Do (todo)", result)
        self.assertIn("Tags: travel", result)
        self.assertEqual(1, len(self.board))

    def test_create_task_with_bad_column_reports_error(self) -> None:
        result = asyncio.run(TaskCreateTool(self.board).execute({"title": "x", "column": "later"}))
        self.assertTrue(result.startswith("Error creating task:"))
        self.assertEqual(0, len(self.board))

    def test_update_task(self) -> None:
        task = self.board.create_task("Draft")
        result = asyncio.run(TaskUpdateTool(self.board).execute({"taskId": task.id, "description": "v2"}))
        self.assertIn("Description: v2", result)

    def test_move_task_reports_columns(self) -> None:
        task = self.board.create_task("Ship it")
        result = asyncio.run(TaskMoveTool(self.board).execute({"taskId": task.id, "toColumn": "review"}))
        self.assertEqual(f"Task 'Ship it' ({task.id}) moved from todo to review.", result)

    def test_move_unknown_task(self) -> None:
        result = asyncio.run(TaskMoveTool(self.board).execute({"taskId": "task-nope", "toColumn": "review"}))
        self.assertEqual("Error moving task: Task task-nope not found", result)

    def test_delete_task(self) -> None:
        task = self.board.create_task("Old")
        result = asyncio.run(TaskDeleteTool(self.board).execute({"taskId": task.id}))
        self.assertEqual(f"Task 'Old' ({task.id}) deleted successfully.", result)
        self.assertEqual(0, len(self.board))

    def test_delete_without_id_reports_error(self) -> None:
        result = asyncio.run(TaskDeleteTool(self.board).execute({}))
        self.assertTrue(result.startswith("Error deleting task:"))

    def test_list_tasks(self) -> None:
        tool = TaskListTool(self.board)
        self.assertEqual("No tasks found.", asyncio.run(tool.execute({})))

        task = self.board.create_task("Call bank", "inProgress", priority="low")
        result = asyncio.run(tool.execute({"column": "inProgress"}))

        self.assertEqual(
            f"Tasks: 1\n\n[{task.id}] Call bank | column=inProgress | priority=low",
            result,
        )


if __name__ == "__main__":
    unittest.main()
