from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from loguru import logger

from agentic_chat.reliability import CircuitBreaker, RetryOptions
from agentic_chat.storage.interface import ChatStorageAdapter
from agentic_chat.storage.key_value_store import SqliteKeyValueStore
from agentic_chat.storage.local import DEFAULT_STORAGE_KEY, LocalChatStorageAdapter
from agentic_chat.storage.postgrest import PostgrestClient
from agentic_chat.storage.remote import RemoteChatStorageAdapter


@dataclass
class StorageConfig:
    remote_url: str | None = None
    remote_key: str | None = None
    local_store_path: str | None = None
    storage_key: str = DEFAULT_STORAGE_KEY
    request_timeout: float = 30.0
    retry_options: RetryOptions | None = None
    breaker_threshold: int = 5
    breaker_timeout: float = 60.0

    @property
    def has_remote(self) -> bool:
        return bool(self.remote_url and self.remote_key)


def create_chat_storage(config: StorageConfig, user_id: str | None = None) -> ChatStorageAdapter:
    """Pick the remote store when it is fully configured, otherwise the local one."""
    if config.has_remote:
        try:
            client = PostgrestClient(
                config.remote_url or "",
                config.remote_key or "",
                timeout=config.request_timeout,
                retry_options=config.retry_options,
                breaker=CircuitBreaker(
                    config.breaker_threshold,
                    config.breaker_timeout,
                    name="remote-store",
                ),
            )
            logger.info(f"Using remote chat storage at {config.remote_url} (user={user_id or 'unscoped'})")
            return RemoteChatStorageAdapter(client, user_id)
        except Exception as ex:
            logger.warning(f"Failed to initialize remote chat storage, falling back to local: {ex}")

    return _create_local_storage(config)


def _create_local_storage(config: StorageConfig) -> ChatStorageAdapter:
    if not config.local_store_path:
        logger.info("Using local chat storage without a persistent store")
        return LocalChatStorageAdapter(None, storage_key=config.storage_key)

    try:
        store = SqliteKeyValueStore(config.local_store_path)
    except (sqlite3.Error, OSError) as ex:
        logger.warning(f"Failed to open local chat store at {config.local_store_path}, history will not persist: {ex}")
        store = SqliteKeyValueStore(":memory:")
        return LocalChatStorageAdapter(store, storage_key=config.storage_key)

    logger.info(f"Using local chat storage at {config.local_store_path} (key={config.storage_key})")
    return LocalChatStorageAdapter(store, storage_key=config.storage_key)
