from agentic_chat.tasks.board import COLUMN_TITLES, Task


def format_task_summary(task: Task) -> str:
    """One line per task for list results."""
    parts = [f"[{task.id}] {task.title}", f"column={task.column}"]
    if task.priority:
        parts.append(f"priority={task.priority}")
    if task.tags:
        parts.append(f"tags={', '.join(task.tags)}")
    return " | ".join(parts)


def format_task_detail(task: Task) -> str:
    lines = [
        f"Id: {task.id}",
        f"Title: {task.title}",
        f"Column: {COLUMN_TITLES[task.column]} ({task.column})",
    ]
    if task.description:
        lines.append(f"Description: {task.description}")
    if task.priority:
        lines.append(f"Priority: {task.priority}")
    if task.tags:
        lines.append(f"Tags: {', '.join(task.tags)}")
    lines.append(f"Updated: {task.updated_at.isoformat(timespec='seconds')}")
    return "\n".join(lines)
