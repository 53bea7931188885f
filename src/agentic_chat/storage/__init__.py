from agentic_chat.storage.factory import StorageConfig, create_chat_storage
from agentic_chat.storage.interface import ChatStorageAdapter
from agentic_chat.storage.key_value_store import KeyValueStore, SqliteKeyValueStore
from agentic_chat.storage.local import LocalChatStorageAdapter
from agentic_chat.storage.models import (
    Conversation,
    ConversationMetadata,
    Message,
    MessageMetadata,
    ToolCall,
)
from agentic_chat.storage.remote import RemoteChatStorageAdapter

__all__ = [
    "ChatStorageAdapter",
    "Conversation",
    "ConversationMetadata",
    "KeyValueStore",
    "LocalChatStorageAdapter",
    "Message",
    "MessageMetadata",
    "RemoteChatStorageAdapter",
    "SqliteKeyValueStore",
    "StorageConfig",
    "ToolCall",
    "create_chat_storage",
]
