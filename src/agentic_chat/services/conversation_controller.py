from __future__ import annotations

from agentic_chat.storage.models import Conversation


class ConversationController:
    def __init__(self, *, line_prefix: str, short_id_len: int = 8):
        self._line_prefix = line_prefix
        self._short_id_len = short_id_len

    def short_id(self, value: str) -> str:
        if len(value) <= self._short_id_len:
            return value
        return value[: self._short_id_len]

    def resolve(self, conversations: list[Conversation], identifier: str) -> Conversation | None:
        """Find a conversation by full id or by a unique id prefix.

        Raises ``ValueError`` when the prefix matches more than one conversation.
        """
        identifier = identifier.strip()
        if not identifier:
            return None
        for conversation in conversations:
            if conversation.id == identifier:
                return conversation
        matches = [c for c in conversations if c.id.startswith(identifier)]
        if len(matches) > 1:
            raise ValueError(f"Ambiguous conversation id prefix {identifier!r} ({len(matches)} matches)")
        return matches[0] if matches else None

    def format_list_entry(self, conversation: Conversation, *, active_id: str | None) -> str:
        marker = "*" if conversation.id == active_id else " "
        metadata = conversation.metadata
        messages = metadata.message_count if metadata and metadata.message_count is not None else len(conversation.messages)
        tokens = metadata.total_tokens if metadata and metadata.total_tokens is not None else 0
        return (
            f"{self._line_prefix}{marker} {conversation.title} [{self.short_id(conversation.id)}] "
            f"(messages={messages}, tokens={tokens:,}, "
            f"updated={conversation.updated_at.isoformat(timespec='seconds')})"
        )

    def format_summary_lines(self, conversation: Conversation) -> list[str]:
        user_count = sum(1 for m in conversation.messages if m.role == "user")
        assistant_count = sum(1 for m in conversation.messages if m.role == "assistant")
        lines = [
            f"{self._line_prefix}Conversation: {conversation.title} [{self.short_id(conversation.id)}]",
            f"{self._line_prefix}- Created: {conversation.created_at.isoformat(timespec='seconds')} | "
            f"Updated: {conversation.updated_at.isoformat(timespec='seconds')}",
            f"{self._line_prefix}- Messages: {len(conversation.messages)} "
            f"(user={user_count}, assistant={assistant_count})",
        ]
        last_user = next((m for m in reversed(conversation.messages) if m.role == "user"), None)
        if last_user is not None:
            lines.append(f"{self._line_prefix}- Last user: {self._preview(last_user.content)}")
        return lines

    def _preview(self, text: str, limit: int = 80) -> str:
        flat = " ".join(text.split())
        return flat if len(flat) <= limit else flat[: limit - 3] + "..."
