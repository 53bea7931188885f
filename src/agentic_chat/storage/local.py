from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from loguru import logger

from agentic_chat.errors import BackingStoreError, NotFoundError
from agentic_chat.storage.interface import ChatStorageAdapter
from agentic_chat.storage.key_value_store import KeyValueStore
from agentic_chat.storage.models import (
    DEFAULT_CONVERSATION_TITLE,
    Conversation,
    ConversationMetadata,
    Message,
    MessageMetadata,
    utc_now,
)

DEFAULT_STORAGE_KEY = "agentic-web-chat-history"
DOCUMENT_VERSION = 1


@dataclass
class StorageDocument:
    conversations: dict[str, Conversation] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(
            {
                "version": DOCUMENT_VERSION,
                "conversations": {cid: conv.to_dict() for cid, conv in self.conversations.items()},
            },
            ensure_ascii=True,
        )

    @classmethod
    def from_json(cls, raw: str) -> StorageDocument:
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("Chat history document must be a JSON object")
        conversations = parsed.get("conversations") or {}
        return cls(conversations={cid: Conversation.from_dict(conv) for cid, conv in conversations.items()})


class LocalChatStorageAdapter(ChatStorageAdapter):
    """Chat history kept as one JSON document under a single key.

    Every operation loads the whole document, mutates it and writes it back, so
    concurrent writers race and the last write wins.
    """

    def __init__(
        self,
        store: KeyValueStore | None,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._storage_key = storage_key
        self._clock = clock

    @property
    def storage_key(self) -> str:
        return self._storage_key

    async def close(self) -> None:
        if self._store is not None:
            self._store.close()

    # Message operations

    async def save_message(self, conversation_id: str, message: Message) -> None:
        document = self._load()
        conversation = self._require_conversation(document, conversation_id)
        conversation.messages.append(message)
        conversation.updated_at = self._clock()
        conversation.refresh_totals()
        self._save(document)

    async def get_messages(self, conversation_id: str) -> list[Message]:
        document = self._load()
        return self._require_conversation(document, conversation_id).messages

    async def delete_message(self, message_id: str) -> None:
        document = self._load()
        for conversation in document.conversations.values():
            index = conversation.find_message(message_id)
            if index is not None:
                del conversation.messages[index]
                conversation.updated_at = self._clock()
                conversation.refresh_totals()
                self._save(document)
                return
        raise NotFoundError(f"Message {message_id} not found")

    async def update_message(
        self,
        message_id: str,
        *,
        content: str | None = None,
        metadata: MessageMetadata | None = None,
    ) -> None:
        document = self._load()
        for conversation in document.conversations.values():
            index = conversation.find_message(message_id)
            if index is None:
                continue
            message = conversation.messages[index]
            if content is not None:
                message.content = content
            if metadata is not None:
                message.metadata = (message.metadata or MessageMetadata()).merged_with(metadata)
            conversation.updated_at = self._clock()
            conversation.refresh_totals()
            self._save(document)
            return
        raise NotFoundError(f"Message {message_id} not found")

    # Conversation operations

    async def list_conversations(self) -> list[Conversation]:
        document = self._load()
        return sorted(document.conversations.values(), key=lambda c: c.updated_at, reverse=True)

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        return self._load().conversations.get(conversation_id)

    async def create_conversation(self, title: str | None = None) -> Conversation:
        document = self._load()
        now = self._clock()
        conversation = Conversation(
            id=str(uuid4()),
            title=title or DEFAULT_CONVERSATION_TITLE,
            created_at=now,
            updated_at=now,
            messages=[],
            metadata=ConversationMetadata(total_tokens=0, message_count=0),
        )
        document.conversations[conversation.id] = conversation
        self._save(document)
        logger.debug(f"Created conversation {conversation.id} ({conversation.title!r})")
        return conversation

    async def update_conversation(
        self,
        conversation_id: str,
        *,
        title: str | None = None,
        metadata: ConversationMetadata | None = None,
    ) -> None:
        document = self._load()
        conversation = self._require_conversation(document, conversation_id)
        if title is not None:
            conversation.title = title
        if metadata is not None:
            conversation.metadata = (conversation.metadata or ConversationMetadata()).merged_with(metadata)
        conversation.updated_at = self._clock()
        conversation.refresh_totals()
        self._save(document)

    async def delete_conversation(self, conversation_id: str) -> None:
        document = self._load()
        self._require_conversation(document, conversation_id)
        del document.conversations[conversation_id]
        self._save(document)

    async def clear_all(self) -> None:
        if self._store is None:
            return
        try:
            self._store.remove_item(self._storage_key)
        except Exception as ex:
            logger.error(f"Error clearing local chat history {self._storage_key!r}: {ex}")
            raise BackingStoreError("Failed to clear local chat history") from ex

    # Document access

    def _require_conversation(self, document: StorageDocument, conversation_id: str) -> Conversation:
        conversation = document.conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    def _load(self) -> StorageDocument:
        if self._store is None:
            return StorageDocument()
        try:
            raw = self._store.get_item(self._storage_key)
            if not raw:
                return StorageDocument()
            return StorageDocument.from_json(raw)
        except Exception as ex:
            logger.error(f"Error reading local chat history {self._storage_key!r}: {ex}")
            return StorageDocument()

    def _save(self, document: StorageDocument) -> None:
        if self._store is None:
            logger.debug("No local store available; chat history change not persisted")
            return
        try:
            self._store.set_item(self._storage_key, document.to_json())
        except Exception as ex:
            logger.error(f"Error writing local chat history {self._storage_key!r}: {ex}")
            raise BackingStoreError("Failed to save chat history to local storage") from ex
