"""Attachment codec, classification, and on-disk attachment loading."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
import logging
import mimetypes
from pathlib import Path
from typing import Any
from urllib.parse import unquote_to_bytes

from .exceptions import AttachmentDecodeError, AttachmentValidationError
from .models import FileAttachment

LOGGER = logging.getLogger(__name__)

DECODE_FAILURE_TEXT = "[Could not decode file content]"
DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_PREVIEW_CHARS = 2000
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_FILE_BYTES = 2 * 1024 * 1024


class AttachmentKind(str, Enum):
    """How an attachment is presented to the model."""

    IMAGE = "image"
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class FilePreview:
    """Pre-processed file flags consumed by the answer prompt."""

    is_image: bool
    is_text: bool
    text_preview: str | None = None


def classify_attachment(mime_type: str) -> AttachmentKind:
    """Classify by MIME prefix: ``image/`` first, then ``text/``."""
    normalized = mime_type.strip().lower()
    if normalized.startswith("image/"):
        return AttachmentKind.IMAGE
    if normalized.startswith("text/"):
        return AttachmentKind.TEXT
    return AttachmentKind.BINARY


def encode_data_uri(data: bytes, mime_type: str) -> str:
    """Encode raw bytes as ``data:<mime>;base64,<payload>``."""
    mime = mime_type.strip() or DEFAULT_MIME_TYPE
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{payload}"


def data_uri_payload(data_uri: str) -> str:
    """Return the text after the first comma (the encoded payload)."""
    _, _, payload = data_uri.partition(",")
    return payload


def decode_data_uri(data_uri: str) -> tuple[str, bytes]:
    """Split a data URI into its MIME type and decoded bytes.

    Raises:
        AttachmentDecodeError: when the URI is malformed or the payload is not
            valid base64.
    """
    if not data_uri.startswith("data:") or "," not in data_uri:
        raise AttachmentDecodeError("Not a data URI.")
    header, _, payload = data_uri[len("data:") :].partition(",")
    params = header.split(";")
    mime = params[0].strip() or "text/plain"
    if "base64" not in (p.strip().lower() for p in params[1:]):
        return mime, unquote_to_bytes(payload)
    try:
        return mime, base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AttachmentDecodeError(f"Invalid base64 payload: {exc}") from exc


def decode_data_uri_to_text(data_uri: str) -> str:
    """Decode a data URI payload as UTF-8 text, or return the failure sentinel."""
    try:
        _, raw = decode_data_uri(data_uri)
        return raw.decode("utf-8")
    except (AttachmentDecodeError, UnicodeDecodeError) as exc:
        LOGGER.warning(
            "attachment.decode.failed",
            extra={"event": "attachment.decode.failed", "reason": str(exc)},
        )
        return DECODE_FAILURE_TEXT


def text_preview(data_uri: str, limit: int = DEFAULT_PREVIEW_CHARS) -> str:
    """Return the first ``limit`` characters of the decoded text."""
    return decode_data_uri_to_text(data_uri)[: max(0, limit)]


def build_file_preview(
    file_data: FileAttachment, limit: int = DEFAULT_PREVIEW_CHARS
) -> FilePreview:
    kind = classify_attachment(file_data.mime_type)
    if kind is AttachmentKind.TEXT:
        return FilePreview(
            is_image=False,
            is_text=True,
            text_preview=text_preview(file_data.data_uri, limit),
        )
    return FilePreview(is_image=kind is AttachmentKind.IMAGE, is_text=False)


def guess_mime_type(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    return mime or DEFAULT_MIME_TYPE


class AttachmentLoader:
    """Validate attachment paths and read them into data URIs.

    Image attachments must carry an ``image/`` MIME type; any other file is
    accepted as a generic file attachment. Both are bounded by size limits.
    """

    def __init__(
        self,
        *,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    ) -> None:
        self.max_image_bytes = max_image_bytes
        self.max_file_bytes = max_file_bytes

    @classmethod
    def from_config(cls, attachments_config: dict[str, Any]) -> AttachmentLoader:
        return cls(
            max_image_bytes=int(
                attachments_config.get("max_image_bytes", DEFAULT_MAX_IMAGE_BYTES)
            ),
            max_file_bytes=int(
                attachments_config.get("max_file_bytes", DEFAULT_MAX_FILE_BYTES)
            ),
        )

    @staticmethod
    def validate_path(raw_path: str, *, kind: str, max_bytes: int) -> Path:
        """Resolve ``raw_path`` and check existence, type and size.

        Raises:
            AttachmentValidationError: with a user-facing message.
        """
        try:
            resolved = Path(raw_path).expanduser().resolve()
            if not resolved.exists():
                raise AttachmentValidationError(
                    f"{kind.capitalize()} not found: {raw_path}"
                )
            if not resolved.is_file():
                raise AttachmentValidationError(f"Not a file: {raw_path}")
            size = resolved.stat().st_size
        except OSError as exc:
            raise AttachmentValidationError(f"Error validating {kind}: {exc}") from exc

        if size > max_bytes:
            max_mb = max_bytes / (1024 * 1024)
            raise AttachmentValidationError(
                f"{kind.capitalize()} too large (max {max_mb:.1f}MB)"
            )
        return resolved

    def load_image(self, raw_path: str) -> str:
        """Return the image at ``raw_path`` as a data URI."""
        resolved = self.validate_path(
            raw_path, kind="image", max_bytes=self.max_image_bytes
        )
        mime = guess_mime_type(resolved)
        if classify_attachment(mime) is not AttachmentKind.IMAGE:
            raise AttachmentValidationError(
                f"Invalid image type {mime!r}: {resolved.name}"
            )
        data_uri = encode_data_uri(self._read(resolved, "image"), mime)
        LOGGER.info(
            "attachment.image.loaded",
            extra={"event": "attachment.image.loaded", "path": str(resolved)},
        )
        return data_uri

    def load_file(self, raw_path: str) -> FileAttachment:
        """Return the file at ``raw_path`` as a :class:`FileAttachment`."""
        resolved = self.validate_path(
            raw_path, kind="file", max_bytes=self.max_file_bytes
        )
        mime = guess_mime_type(resolved)
        attachment = FileAttachment(
            name=resolved.name,
            mime_type=mime,
            data_uri=encode_data_uri(self._read(resolved, "file"), mime),
        )
        LOGGER.info(
            "attachment.file.loaded",
            extra={
                "event": "attachment.file.loaded",
                "path": str(resolved),
                "mime_type": mime,
            },
        )
        return attachment

    @staticmethod
    def _read(path: Path, kind: str) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise AttachmentValidationError(f"Error reading {kind}: {exc}") from exc
