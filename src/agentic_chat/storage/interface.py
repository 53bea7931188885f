from __future__ import annotations

from abc import ABC, abstractmethod

from agentic_chat.storage.models import Conversation, ConversationMetadata, Message, MessageMetadata


class ChatStorageAdapter(ABC):
    """Persistence contract shared by every chat history backend.

    Lookups of a missing conversation return ``None``; every operation that
    addresses a missing conversation or message by id raises ``NotFoundError``.
    """

    # Message operations

    @abstractmethod
    async def save_message(self, conversation_id: str, message: Message) -> None: ...

    @abstractmethod
    async def get_messages(self, conversation_id: str) -> list[Message]: ...

    @abstractmethod
    async def delete_message(self, message_id: str) -> None: ...

    @abstractmethod
    async def update_message(
        self,
        message_id: str,
        *,
        content: str | None = None,
        metadata: MessageMetadata | None = None,
    ) -> None: ...

    # Conversation operations

    @abstractmethod
    async def list_conversations(self) -> list[Conversation]: ...

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> Conversation | None: ...

    @abstractmethod
    async def create_conversation(self, title: str | None = None) -> Conversation: ...

    @abstractmethod
    async def update_conversation(
        self,
        conversation_id: str,
        *,
        title: str | None = None,
        metadata: ConversationMetadata | None = None,
    ) -> None: ...

    @abstractmethod
    async def delete_conversation(self, conversation_id: str) -> None: ...

    # Utility

    @abstractmethod
    async def clear_all(self) -> None: ...

    async def close(self) -> None:
        return None
