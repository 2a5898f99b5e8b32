"""Tests for the data-URI codec and attachment loading."""

from __future__ import annotations

import base64
from pathlib import Path
import tempfile
import unittest

from omniassist.attachments import (
    DECODE_FAILURE_TEXT,
    AttachmentKind,
    AttachmentLoader,
    build_file_preview,
    classify_attachment,
    data_uri_payload,
    decode_data_uri,
    decode_data_uri_to_text,
    encode_data_uri,
    text_preview,
)
from omniassist.exceptions import AttachmentDecodeError, AttachmentValidationError
from omniassist.models import FileAttachment


class CodecTests(unittest.TestCase):
    def test_text_round_trip(self) -> None:
        text = "héllo wörld\nsecond line"
        uri = encode_data_uri(text.encode("utf-8"), "text/plain")
        self.assertTrue(uri.startswith("data:text/plain;base64,"))
        self.assertEqual(decode_data_uri_to_text(uri), text)

    def test_non_utf8_payload_returns_sentinel(self) -> None:
        uri = encode_data_uri(b"\xff\xfe\x00\x81", "text/plain")
        with self.assertLogs("omniassist.attachments", level="WARNING"):
            self.assertEqual(decode_data_uri_to_text(uri), DECODE_FAILURE_TEXT)

    def test_invalid_base64_returns_sentinel(self) -> None:
        with self.assertLogs("omniassist.attachments", level="WARNING"):
            self.assertEqual(
                decode_data_uri_to_text("data:text/plain;base64,@@@"),
                DECODE_FAILURE_TEXT,
            )

    def test_decode_data_uri_raises_for_non_uri(self) -> None:
        with self.assertRaises(AttachmentDecodeError):
            decode_data_uri("plain text")

    def test_decode_data_uri_returns_mime_and_bytes(self) -> None:
        mime, raw = decode_data_uri(encode_data_uri(b"\x89PNG", "image/png"))
        self.assertEqual(mime, "image/png")
        self.assertEqual(raw, b"\x89PNG")

    def test_payload_is_text_after_first_comma(self) -> None:
        payload = base64.b64encode(b"abc").decode("ascii")
        self.assertEqual(data_uri_payload(f"data:image/png;base64,{payload}"), payload)

    def test_text_preview_truncates(self) -> None:
        uri = encode_data_uri(("x" * 5000).encode("utf-8"), "text/plain")
        self.assertEqual(len(text_preview(uri)), 2000)
        self.assertEqual(text_preview(uri, 10), "x" * 10)


class ClassificationTests(unittest.TestCase):
    def test_prefix_classification(self) -> None:
        self.assertIs(classify_attachment("image/png"), AttachmentKind.IMAGE)
        self.assertIs(classify_attachment("text/markdown"), AttachmentKind.TEXT)
        self.assertIs(classify_attachment("application/pdf"), AttachmentKind.BINARY)

    def test_file_preview_flags(self) -> None:
        text_file = FileAttachment(
            name="notes.txt",
            mime_type="text/plain",
            data_uri=encode_data_uri(b"hello", "text/plain"),
        )
        preview = build_file_preview(text_file)
        self.assertTrue(preview.is_text)
        self.assertFalse(preview.is_image)
        self.assertEqual(preview.text_preview, "hello")

        pdf = FileAttachment(
            name="doc.pdf",
            mime_type="application/pdf",
            data_uri=encode_data_uri(b"%PDF", "application/pdf"),
        )
        preview = build_file_preview(pdf)
        self.assertFalse(preview.is_text)
        self.assertFalse(preview.is_image)
        self.assertIsNone(preview.text_preview)


class AttachmentLoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_load_file_builds_attachment(self) -> None:
        path = self.root / "notes.txt"
        path.write_text("remember the milk", encoding="utf-8")
        attachment = AttachmentLoader().load_file(str(path))
        self.assertEqual(attachment.name, "notes.txt")
        self.assertEqual(attachment.mime_type, "text/plain")
        self.assertEqual(decode_data_uri_to_text(attachment.data_uri), "remember the milk")

    def test_load_image_requires_image_type(self) -> None:
        path = self.root / "notes.txt"
        path.write_text("x", encoding="utf-8")
        with self.assertRaises(AttachmentValidationError):
            AttachmentLoader().load_image(str(path))

    def test_load_image_returns_data_uri(self) -> None:
        path = self.root / "pic.png"
        path.write_bytes(b"\x89PNG\r\n")
        uri = AttachmentLoader().load_image(str(path))
        self.assertTrue(uri.startswith("data:image/png;base64,"))

    def test_missing_path_rejected(self) -> None:
        with self.assertRaises(AttachmentValidationError) as ctx:
            AttachmentLoader().load_file(str(self.root / "nope.txt"))
        self.assertIn("not found", str(ctx.exception))

    def test_directory_rejected(self) -> None:
        with self.assertRaises(AttachmentValidationError):
            AttachmentLoader().load_file(str(self.root))

    def test_size_limit_enforced(self) -> None:
        path = self.root / "big.txt"
        path.write_bytes(b"x" * 64)
        with self.assertRaises(AttachmentValidationError) as ctx:
            AttachmentLoader(max_file_bytes=16).load_file(str(path))
        self.assertIn("too large", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
