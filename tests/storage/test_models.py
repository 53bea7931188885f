import unittest
from datetime import UTC, datetime

from agentic_chat.storage.models import (
    Conversation,
    ConversationMetadata,
    Message,
    MessageMetadata,
    ToolCall,
    parse_timestamp,
)


class MessageTests(unittest.TestCase):
    def test_rejects_unknown_role(self) -> None:
        with self.assertRaises(ValueError):
            Message(id="m1", role="tool", content="x", timestamp=datetime.now(UTC))

    def test_rejects_negative_tokens(self) -> None:
        with self.assertRaises(ValueError):
            MessageMetadata(tokens=-1)

    def test_create_assigns_id_and_timestamp(self) -> None:
        fixed = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
        message = Message.create("user", "hi", clock=lambda: fixed)
        self.assertEqual(fixed, message.timestamp)
        self.assertEqual(36, len(message.id))
        self.assertEqual(0, message.tokens)

    def test_dict_uses_persisted_field_names(self) -> None:
        message = Message(
            id="m1",
            role="assistant",
            content="Found it",
            timestamp=datetime(2026, 1, 2, tzinfo=UTC),
            metadata=MessageMetadata(
                tokens=12,
                model="gpt-4o-mini",
                tool_calls=[ToolCall(tool="web_search", input={"query": "x"}, output="1 result")],
            ),
        )
        data = message.to_dict()
        self.assertEqual("2026-01-02T00:00:00+00:00", data["timestamp"])
        self.assertEqual("web_search", data["metadata"]["toolCalls"][0]["tool"])
        self.assertEqual(message, Message.from_dict(data))

    def test_metadata_merge_keeps_unset_fields(self) -> None:
        merged = MessageMetadata(tokens=5, model="a").merged_with(MessageMetadata(error="boom"))
        self.assertEqual(MessageMetadata(tokens=5, model="a", error="boom"), merged)


class ConversationTests(unittest.TestCase):
    def test_refresh_totals_derives_from_messages(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        conversation = Conversation(
            id="c1",
            title="Trip Planning",
            created_at=now,
            updated_at=now,
            messages=[
                Message(id="m1", role="user", content="Plan a trip", timestamp=now),
                Message(id="m2", role="assistant", content="Sure", timestamp=now, metadata=MessageMetadata(tokens=42)),
            ],
            metadata=ConversationMetadata(user_id="u1"),
        )
        conversation.refresh_totals()
        self.assertEqual(ConversationMetadata(total_tokens=42, message_count=2, user_id="u1"), conversation.metadata)

    def test_find_message(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        conversation = Conversation(
            id="c1",
            title="t",
            created_at=now,
            updated_at=now,
            messages=[Message(id="m1", role="user", content="a", timestamp=now)],
        )
        self.assertEqual(0, conversation.find_message("m1"))
        self.assertIsNone(conversation.find_message("nope"))

    def test_from_dict_defaults_title(self) -> None:
        conversation = Conversation.from_dict(
            {"id": "c1", "createdAt": "2026-01-01T00:00:00Z", "updatedAt": "2026-01-01T00:00:00Z"}
        )
        self.assertEqual("New Conversation", conversation.title)
        self.assertEqual([], conversation.messages)


class ParseTimestampTests(unittest.TestCase):
    def test_naive_values_are_utc(self) -> None:
        self.assertEqual(datetime(2026, 1, 1, 8, 30, tzinfo=UTC), parse_timestamp("2026-01-01T08:30:00"))

    def test_offsets_are_kept(self) -> None:
        parsed = parse_timestamp("2026-01-01T08:30:00+02:00")
        self.assertEqual(datetime(2026, 1, 1, 6, 30, tzinfo=UTC), parsed)


if __name__ == "__main__":
    unittest.main()
