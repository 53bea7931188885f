from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

ROLES = ("user", "assistant", "system")
DEFAULT_CONVERSATION_TITLE = "New Conversation"


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: str | datetime) -> datetime:
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class ToolCall:
    tool: str
    input: Any = None
    output: Any = None

    def to_dict(self) -> dict:
        return {"tool": self.tool, "input": self.input, "output": self.output}

    @classmethod
    def from_dict(cls, data: dict) -> ToolCall:
        return cls(tool=str(data["tool"]), input=data.get("input"), output=data.get("output"))


@dataclass
class MessageMetadata:
    tokens: int | None = None
    model: str | None = None
    tool_calls: list[ToolCall] | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.tokens is not None and (not isinstance(self.tokens, int) or self.tokens < 0):
            raise ValueError(f"tokens must be a non-negative integer, got {self.tokens!r}")

    def merged_with(self, updates: MessageMetadata) -> MessageMetadata:
        return replace(
            self,
            tokens=updates.tokens if updates.tokens is not None else self.tokens,
            model=updates.model if updates.model is not None else self.model,
            tool_calls=list(updates.tool_calls) if updates.tool_calls is not None else self.tool_calls,
            error=updates.error if updates.error is not None else self.error,
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {}
        if self.tokens is not None:
            data["tokens"] = self.tokens
        if self.model is not None:
            data["model"] = self.model
        if self.tool_calls is not None:
            data["toolCalls"] = [call.to_dict() for call in self.tool_calls]
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: dict | None) -> MessageMetadata | None:
        if data is None:
            return None
        raw_calls = data.get("toolCalls")
        return cls(
            tokens=data.get("tokens"),
            model=data.get("model"),
            tool_calls=[ToolCall.from_dict(c) for c in raw_calls] if raw_calls is not None else None,
            error=data.get("error"),
        )


@dataclass
class Message:
    id: str
    role: str
    content: str
    timestamp: datetime
    metadata: MessageMetadata | None = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Invalid message role: {self.role!r}")

    @classmethod
    def create(
        cls,
        role: str,
        content: str,
        metadata: MessageMetadata | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> Message:
        return cls(id=str(uuid4()), role=role, content=content, timestamp=clock(), metadata=metadata)

    @property
    def tokens(self) -> int:
        if self.metadata is None or self.metadata.tokens is None:
            return 0
        return self.metadata.tokens

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        return cls(
            id=str(data["id"]),
            role=str(data["role"]),
            content=str(data.get("content", "")),
            timestamp=parse_timestamp(data["timestamp"]),
            metadata=MessageMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class ConversationMetadata:
    total_tokens: int | None = None
    message_count: int | None = None
    user_id: str | None = None

    def merged_with(self, updates: ConversationMetadata) -> ConversationMetadata:
        return replace(
            self,
            total_tokens=updates.total_tokens if updates.total_tokens is not None else self.total_tokens,
            message_count=updates.message_count if updates.message_count is not None else self.message_count,
            user_id=updates.user_id if updates.user_id is not None else self.user_id,
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {}
        if self.total_tokens is not None:
            data["totalTokens"] = self.total_tokens
        if self.message_count is not None:
            data["messageCount"] = self.message_count
        if self.user_id is not None:
            data["userId"] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: dict | None) -> ConversationMetadata | None:
        if data is None:
            return None
        return cls(
            total_tokens=data.get("totalTokens"),
            message_count=data.get("messageCount"),
            user_id=data.get("userId"),
        )


@dataclass
class Conversation:
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    messages: list[Message] = field(default_factory=list)
    metadata: ConversationMetadata | None = None

    def refresh_totals(self) -> None:
        """Recompute the cached token and message counts from ``messages``."""
        base = self.metadata or ConversationMetadata()
        self.metadata = replace(
            base,
            total_tokens=sum(m.tokens for m in self.messages),
            message_count=len(self.messages),
        )

    def find_message(self, message_id: str) -> int | None:
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        return None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Conversation:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or DEFAULT_CONVERSATION_TITLE),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
            messages=[Message.from_dict(m) for m in data.get("messages", [])],
            metadata=ConversationMetadata.from_dict(data.get("metadata")),
        )
