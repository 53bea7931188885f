from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import uuid4

from loguru import logger

from agentic_chat.errors import AppError, BackingStoreError, ConfigurationError, NotFoundError
from agentic_chat.storage.interface import ChatStorageAdapter
from agentic_chat.storage.models import (
    DEFAULT_CONVERSATION_TITLE,
    Conversation,
    ConversationMetadata,
    Message,
    MessageMetadata,
    parse_timestamp,
    utc_now,
)
from agentic_chat.storage.postgrest import (
    FOREIGN_KEY_VIOLATION_CODE,
    NO_ROWS_CODE,
    PostgrestClient,
    PostgrestError,
)

_CONVERSATIONS = "conversations"
_MESSAGES = "messages"
_CONVERSATION_WITH_MESSAGES = "*,messages(*)"

# Failures raised by the client itself or by the reliability layer around it.
_STORE_FAILURES = (PostgrestError, AppError)


class RemoteChatStorageAdapter(ChatStorageAdapter):
    """Chat history in ``conversations``/``messages`` tables behind PostgREST.

    Rows are scoped to ``user_id`` for listing and clearing when one is bound.
    Cross-row writes are not transactional: ``save_message`` inserts the
    message and then bumps its conversation in a second request.
    """

    def __init__(
        self,
        client: PostgrestClient,
        user_id: str | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._client = client
        self._user_id = user_id
        self._clock = clock

    @property
    def user_id(self) -> str | None:
        return self._user_id

    async def close(self) -> None:
        await self._client.aclose()

    # Message operations

    async def save_message(self, conversation_id: str, message: Message) -> None:
        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")

        try:
            await self._client.insert(
                _MESSAGES,
                {
                    "id": message.id,
                    "conversation_id": conversation_id,
                    "role": message.role,
                    "content": message.content,
                    "created_at": message.timestamp.isoformat(),
                    "metadata": message.metadata.to_dict() if message.metadata is not None else None,
                },
            )
        except PostgrestError as ex:
            if ex.code == FOREIGN_KEY_VIOLATION_CODE:
                raise NotFoundError(f"Conversation {conversation_id} not found") from ex
            raise self._wrap("save message", ex) from ex
        except AppError as ex:
            raise self._wrap("save message", ex) from ex

        conversation.messages.append(message)
        await self._touch_conversation(conversation, "update conversation after saving message")

    async def get_messages(self, conversation_id: str) -> list[Message]:
        try:
            rows = await self._client.select(
                _MESSAGES,
                filters={"conversation_id": conversation_id},
                order="created_at.asc",
            )
        except _STORE_FAILURES as ex:
            raise self._wrap("get messages", ex) from ex

        if not rows and await self.get_conversation(conversation_id) is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return [self._map_message(row) for row in rows]

    async def delete_message(self, message_id: str) -> None:
        try:
            deleted = await self._client.delete(_MESSAGES, filters={"id": message_id})
        except _STORE_FAILURES as ex:
            raise self._wrap("delete message", ex) from ex
        if not deleted:
            raise NotFoundError(f"Message {message_id} not found")

        conversation = await self.get_conversation(deleted[0]["conversation_id"])
        if conversation is not None:
            await self._touch_conversation(conversation, "update conversation after deleting message")

    async def update_message(
        self,
        message_id: str,
        *,
        content: str | None = None,
        metadata: MessageMetadata | None = None,
    ) -> None:
        try:
            row = await self._client.select(_MESSAGES, filters={"id": message_id}, single=True)
        except PostgrestError as ex:
            if ex.code == NO_ROWS_CODE:
                raise NotFoundError(f"Message {message_id} not found") from ex
            raise self._wrap("update message", ex) from ex
        except AppError as ex:
            raise self._wrap("update message", ex) from ex

        values: dict[str, Any] = {}
        if content is not None:
            values["content"] = content
        if metadata is not None:
            existing = MessageMetadata.from_dict(row.get("metadata")) or MessageMetadata()
            values["metadata"] = existing.merged_with(metadata).to_dict()
        if values:
            try:
                await self._client.update(_MESSAGES, values, filters={"id": message_id})
            except _STORE_FAILURES as ex:
                raise self._wrap("update message", ex) from ex

        conversation = await self.get_conversation(row["conversation_id"])
        if conversation is not None:
            await self._touch_conversation(conversation, "update conversation after updating message")

    # Conversation operations

    async def list_conversations(self) -> list[Conversation]:
        filters = {"user_id": self._user_id} if self._user_id else None
        try:
            rows = await self._client.select(
                _CONVERSATIONS,
                columns=_CONVERSATION_WITH_MESSAGES,
                filters=filters,
                order="updated_at.desc",
                embedded_order={_MESSAGES: "created_at.asc"},
            )
        except _STORE_FAILURES as ex:
            raise self._wrap("list conversations", ex) from ex
        return [self._map_conversation(row) for row in rows or []]

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        try:
            row = await self._client.select(
                _CONVERSATIONS,
                columns=_CONVERSATION_WITH_MESSAGES,
                filters={"id": conversation_id},
                embedded_order={_MESSAGES: "created_at.asc"},
                single=True,
            )
        except PostgrestError as ex:
            if ex.code == NO_ROWS_CODE:
                return None
            raise self._wrap("get conversation", ex) from ex
        except AppError as ex:
            raise self._wrap("get conversation", ex) from ex
        return self._map_conversation(row)

    async def create_conversation(self, title: str | None = None) -> Conversation:
        now = self._clock().isoformat()
        try:
            row = await self._client.insert(
                _CONVERSATIONS,
                {
                    "id": str(uuid4()),
                    "title": title or DEFAULT_CONVERSATION_TITLE,
                    "user_id": self._user_id,
                    "created_at": now,
                    "updated_at": now,
                    "metadata": ConversationMetadata(total_tokens=0, message_count=0).to_dict(),
                },
                single=True,
            )
        except _STORE_FAILURES as ex:
            raise self._wrap("create conversation", ex) from ex
        return self._map_conversation(row)

    async def update_conversation(
        self,
        conversation_id: str,
        *,
        title: str | None = None,
        metadata: ConversationMetadata | None = None,
    ) -> None:
        conversation = await self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")

        if title is not None:
            conversation.title = title
        if metadata is not None:
            conversation.metadata = (conversation.metadata or ConversationMetadata()).merged_with(metadata)
        await self._touch_conversation(conversation, "update conversation")

    async def delete_conversation(self, conversation_id: str) -> None:
        # Messages are removed by the ON DELETE CASCADE foreign key.
        try:
            deleted = await self._client.delete(_CONVERSATIONS, filters={"id": conversation_id})
        except _STORE_FAILURES as ex:
            raise self._wrap("delete conversation", ex) from ex
        if not deleted:
            raise NotFoundError(f"Conversation {conversation_id} not found")

    async def clear_all(self) -> None:
        if not self._user_id:
            raise ConfigurationError("Cannot clear all conversations without a bound user id")
        try:
            await self._client.delete(_CONVERSATIONS, filters={"user_id": self._user_id})
        except _STORE_FAILURES as ex:
            raise self._wrap("clear all conversations", ex) from ex

    # Helpers

    async def _touch_conversation(self, conversation: Conversation, operation: str) -> None:
        conversation.updated_at = self._clock()
        conversation.refresh_totals()
        stored_metadata = conversation.metadata.to_dict() if conversation.metadata else {}
        stored_metadata.pop("userId", None)
        try:
            await self._client.update(
                _CONVERSATIONS,
                {
                    "title": conversation.title,
                    "updated_at": conversation.updated_at.isoformat(),
                    "metadata": stored_metadata,
                },
                filters={"id": conversation.id},
            )
        except _STORE_FAILURES as ex:
            raise self._wrap(operation, ex) from ex

    def _wrap(self, operation: str, ex: Exception) -> BackingStoreError:
        logger.error(f"Remote store error during {operation}: {ex}")
        return BackingStoreError(f"Failed to {operation}: {ex}")

    def _map_message(self, row: dict) -> Message:
        return Message(
            id=str(row["id"]),
            role=str(row["role"]),
            content=str(row.get("content") or ""),
            timestamp=parse_timestamp(row["created_at"]),
            metadata=MessageMetadata.from_dict(row.get("metadata")),
        )

    def _map_conversation(self, row: dict) -> Conversation:
        messages = sorted(
            (self._map_message(m) for m in row.get("messages") or []),
            key=lambda m: m.timestamp,
        )
        metadata = ConversationMetadata.from_dict(row.get("metadata")) or ConversationMetadata()
        metadata.user_id = row.get("user_id") or None
        conversation = Conversation(
            id=str(row["id"]),
            title=str(row.get("title") or DEFAULT_CONVERSATION_TITLE),
            created_at=parse_timestamp(row["created_at"]),
            updated_at=parse_timestamp(row["updated_at"]),
            messages=messages,
            metadata=metadata,
        )
        conversation.refresh_totals()
        return conversation
