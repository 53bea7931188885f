from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from loguru import logger

from agentic_chat.storage.factory import StorageConfig, create_chat_storage
from agentic_chat.storage.interface import ChatStorageAdapter
from agentic_chat.storage.models import Conversation, Message, MessageMetadata, utc_now


class ChatHistory:
    """Conversation state for one UI session on top of a storage adapter.

    The adapter is chosen once, at construction. Local state is updated
    optimistically after each successful write instead of re-reading the store.
    """

    def __init__(self, storage: ChatStorageAdapter, *, clock: Callable[[], datetime] = utc_now):
        self._storage = storage
        self._clock = clock
        self.conversations: list[Conversation] = []
        self.current_conversation: Conversation | None = None
        self.is_loading = False
        self.error: str | None = None

    @classmethod
    def create(cls, config: StorageConfig, user_id: str | None = None) -> ChatHistory:
        return cls(create_chat_storage(config, user_id))

    @property
    def storage(self) -> ChatStorageAdapter:
        return self._storage

    @property
    def messages(self) -> list[Message]:
        if self.current_conversation is None:
            return []
        return self.current_conversation.messages

    async def close(self) -> None:
        await self._storage.close()

    async def load_conversations(self) -> None:
        self.is_loading = True
        self.error = None
        try:
            self.conversations = await self._storage.list_conversations()
            if self.current_conversation is None and self.conversations:
                self.current_conversation = self.conversations[0]
        except Exception as ex:
            self.error = str(ex) or "Failed to load conversations"
            logger.error(f"Error loading conversations: {ex}")
        finally:
            self.is_loading = False

    refresh_conversations = load_conversations

    async def create_new_conversation(self, title: str | None = None) -> Conversation:
        self.error = None
        try:
            conversation = await self._storage.create_conversation(title)
        except Exception as ex:
            self._record_error("Failed to create conversation", ex)
            raise

        self.conversations = [conversation, *self.conversations]
        self.current_conversation = conversation
        return conversation

    async def switch_conversation(self, conversation_id: str) -> Conversation | None:
        self.error = None
        try:
            conversation = await self._storage.get_conversation(conversation_id)
        except Exception as ex:
            self._record_error("Failed to switch conversation", ex)
            return None

        if conversation is not None:
            self.current_conversation = conversation
        return conversation

    async def add_message(
        self,
        role: str,
        content: str,
        metadata: MessageMetadata | None = None,
    ) -> Message:
        self.error = None
        conversation = self.current_conversation
        if conversation is None:
            conversation = await self.create_new_conversation()

        message = Message.create(role, content, metadata, clock=self._clock)
        try:
            await self._storage.save_message(conversation.id, message)
        except Exception as ex:
            self._record_error("Failed to add message", ex)
            raise

        updated = self._with_message(conversation, message)
        if self.current_conversation is not None and self.current_conversation.id == conversation.id:
            self.current_conversation = updated
        others = [c for c in self.conversations if c.id != conversation.id]
        self.conversations = [updated, *others]
        return message

    async def delete_conversation(self, conversation_id: str) -> None:
        self.error = None
        try:
            await self._storage.delete_conversation(conversation_id)
        except Exception as ex:
            self._record_error("Failed to delete conversation", ex)
            raise

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.current_conversation is not None and self.current_conversation.id == conversation_id:
            self.current_conversation = None

    async def update_conversation_title(self, conversation_id: str, title: str) -> None:
        self.error = None
        try:
            await self._storage.update_conversation(conversation_id, title=title)
        except Exception as ex:
            self._record_error("Failed to update conversation", ex)
            raise

        self.conversations = [replace(c, title=title) if c.id == conversation_id else c for c in self.conversations]
        if self.current_conversation is not None and self.current_conversation.id == conversation_id:
            self.current_conversation = replace(self.current_conversation, title=title)

    async def clear_all_history(self) -> None:
        self.error = None
        try:
            await self._storage.clear_all()
        except Exception as ex:
            self._record_error("Failed to clear history", ex)
            raise

        self.conversations = []
        self.current_conversation = None

    def _with_message(self, conversation: Conversation, message: Message) -> Conversation:
        updated = replace(
            conversation,
            messages=[*conversation.messages, message],
            updated_at=self._clock(),
        )
        updated.refresh_totals()
        return updated

    def _record_error(self, fallback: str, ex: Exception) -> None:
        self.error = str(ex) or fallback
        logger.error(f"{fallback}: {ex}")
