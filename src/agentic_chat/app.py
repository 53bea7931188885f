from __future__ import annotations

import asyncio

from loguru import logger

from agentic_chat.commands.router import CommandRouter
from agentic_chat.errors import AppError, user_friendly_message
from agentic_chat.services.chat_history import ChatHistory
from agentic_chat.services.chat_session import ChatSession
from agentic_chat.services.conversation_controller import ConversationController
from agentic_chat.tasks.board import COLUMN_TITLES, COLUMNS, TaskBoard
from agentic_chat.tools.tasks.task_formatter import format_task_summary


class ChatApp:
    _LINE_PREFIX = "assistant> "
    _USER_PROMPT = "you> "

    def __init__(self, *, session: ChatSession, task_board: TaskBoard):
        self._session = session
        self._history: ChatHistory = session.history
        self._task_board = task_board
        self._controller = ConversationController(line_prefix=self._LINE_PREFIX)
        self._run_lock = asyncio.Lock()

        self._command_router = CommandRouter(
            {
                "/help": self._on_help,
                "/new": self._on_new,
                "/list": self._on_list,
                "/switch": self._on_switch,
                "/rename": self._on_rename,
                "/delete": self._on_delete,
                "/clear": self._on_clear,
                "/tasks": self._on_tasks,
            },
            on_unknown=self._on_unknown_command,
        )

    @property
    def history(self) -> ChatHistory:
        return self._history

    async def initialize(self) -> None:
        await self._history.load_conversations()
        if self._history.error:
            print(f"{self._LINE_PREFIX}Could not load chat history: {self._history.error}")
            return
        current = self._history.current_conversation
        if current is not None:
            for line in self._controller.format_summary_lines(current):
                print(line)

    async def run(self, user_message: str) -> None:
        async with self._run_lock:
            try:
                if await self._command_router.try_handle(user_message):
                    return
                reply = await self._session.send(user_message)
                print(f"{self._LINE_PREFIX}{reply.content}")
            except AppError as ex:
                logger.error(f"{type(ex).__name__}: {ex.message}")
                print(f"{self._LINE_PREFIX}{user_friendly_message(ex)}")

    async def _on_help(self, _: str) -> None:
        print(f"{self._LINE_PREFIX}Available commands:")
        print(f"{self._LINE_PREFIX}- /help")
        print(f"{self._LINE_PREFIX}- /new [title]")
        print(f"{self._LINE_PREFIX}- /list")
        print(f"{self._LINE_PREFIX}- /switch <id-or-prefix>")
        print(f"{self._LINE_PREFIX}- /rename <title>")
        print(f"{self._LINE_PREFIX}- /delete [id-or-prefix]")
        print(f"{self._LINE_PREFIX}- /clear")
        print(f"{self._LINE_PREFIX}- /tasks")
        print(f"{self._LINE_PREFIX}Anything else is sent to the assistant. Type 'exit' to quit.")

    def _on_unknown_command(self, trimmed: str) -> None:
        print(f"{self._LINE_PREFIX}Unknown local command: {trimmed}")

    async def _on_new(self, args: str) -> None:
        conversation = await self._history.create_new_conversation(args or None)
        print(
            f"{self._LINE_PREFIX}Started conversation: {conversation.title} "
            f"[{self._controller.short_id(conversation.id)}]"
        )

    async def _on_list(self, _: str) -> None:
        await self._history.refresh_conversations()
        if self._history.error:
            print(f"{self._LINE_PREFIX}Could not load conversations: {self._history.error}")
            return
        if not self._history.conversations:
            print(f"{self._LINE_PREFIX}No conversations found.")
            return
        current = self._history.current_conversation
        active_id = current.id if current else None
        print(f"{self._LINE_PREFIX}Conversations:")
        for conversation in self._history.conversations:
            print(self._controller.format_list_entry(conversation, active_id=active_id))

    async def _on_switch(self, args: str) -> None:
        if not args:
            print(f"{self._LINE_PREFIX}Usage: /switch <id-or-prefix>")
            return
        target = self._resolve(args)
        if target is None:
            return
        conversation = await self._history.switch_conversation(target.id)
        if conversation is None:
            print(f"{self._LINE_PREFIX}Conversation not found: {args}")
            return
        for line in self._controller.format_summary_lines(conversation):
            print(line)

    async def _on_rename(self, args: str) -> None:
        current = self._history.current_conversation
        if current is None:
            print(f"{self._LINE_PREFIX}No active conversation to rename")
            return
        if not args:
            print(f"{self._LINE_PREFIX}Usage: /rename <title>")
            return
        await self._history.update_conversation_title(current.id, args)
        print(f"{self._LINE_PREFIX}Conversation renamed: {args}")

    async def _on_delete(self, args: str) -> None:
        if args:
            target = self._resolve(args)
        else:
            target = self._history.current_conversation
            if target is None:
                print(f"{self._LINE_PREFIX}No active conversation to delete")
        if target is None:
            return
        await self._history.delete_conversation(target.id)
        print(f"{self._LINE_PREFIX}Deleted conversation: {target.title} [{self._controller.short_id(target.id)}]")

    async def _on_clear(self, _: str) -> None:
        await self._history.clear_all_history()
        print(f"{self._LINE_PREFIX}Chat history cleared.")

    async def _on_tasks(self, _: str) -> None:
        if not len(self._task_board):
            print(f"{self._LINE_PREFIX}The task board is empty.")
            return
        for column in COLUMNS:
            tasks = self._task_board.list_tasks(column)
            print(f"{self._LINE_PREFIX}{COLUMN_TITLES[column]} ({len(tasks)})")
            for task in tasks:
                print(f"{self._LINE_PREFIX}  {format_task_summary(task)}")

    def _resolve(self, identifier: str):
        try:
            target = self._controller.resolve(self._history.conversations, identifier)
        except ValueError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return None
        if target is None:
            print(f"{self._LINE_PREFIX}Conversation not found: {identifier}")
        return target
