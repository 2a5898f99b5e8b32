"""Tests for the persisted chat data model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
import unittest

from pydantic import ValidationError

from omniassist.models import CodeBlock, FileAttachment, Message, Session


class MessageModelTests(unittest.TestCase):
    def test_camel_case_round_trip(self) -> None:
        message = Message(
            sender="ai",
            content="hi",
            extracted_code_blocks=[CodeBlock(language="python", code="x = 1")],
        )
        payload = message.to_json_dict()
        self.assertIn("extractedCodeBlocks", payload)
        self.assertIn("isLoading", payload)
        self.assertNotIn("image", payload)
        self.assertEqual(Message.model_validate(payload), message)

    def test_file_attachment_uses_type_key(self) -> None:
        attachment = FileAttachment(
            name="a.txt", mime_type="text/plain", data_uri="data:text/plain;base64,"
        )
        payload = attachment.to_json_dict()
        self.assertEqual(payload["type"], "text/plain")
        self.assertEqual(payload["dataUri"], "data:text/plain;base64,")

    def test_user_message_cannot_be_loading(self) -> None:
        with self.assertRaises(ValidationError):
            Message(sender="user", is_loading=True)

    def test_user_message_cannot_carry_code_blocks(self) -> None:
        with self.assertRaises(ValidationError):
            Message(sender="user", content="x", extracted_code_blocks=[])

    def test_naive_timestamp_is_treated_as_utc(self) -> None:
        message = Message.model_validate(
            {"sender": "user", "content": "x", "timestamp": "2024-01-01T10:00:00"}
        )
        self.assertEqual(message.timestamp.tzinfo, UTC)


class SessionModelTests(unittest.TestCase):
    def test_updated_at_never_before_created_at(self) -> None:
        created = datetime(2024, 5, 1, tzinfo=UTC)
        session = Session(
            title="t", created_at=created, updated_at=created - timedelta(days=1)
        )
        self.assertEqual(session.updated_at, created)

    def test_pending_message_and_find_message(self) -> None:
        loading = Message(sender="ai", is_loading=True)
        session = Session(title="t", messages=[Message(sender="user", content="q"), loading])
        self.assertIs(session.pending_message, loading)
        self.assertEqual(session.find_message(loading.id), 1)
        self.assertIsNone(session.find_message("missing"))

    def test_completed_ai_messages_skips_errors_and_loading(self) -> None:
        session = Session(
            title="t",
            messages=[
                Message(sender="user", content="q"),
                Message(sender="ai", content="Error: down", is_error=True),
                Message(sender="ai", content="answer"),
                Message(sender="ai", is_loading=True),
            ],
        )
        self.assertEqual(session.completed_ai_messages, 1)

    def test_ids_are_unique(self) -> None:
        self.assertNotEqual(Session(title="a").id, Session(title="b").id)


if __name__ == "__main__":
    unittest.main()
