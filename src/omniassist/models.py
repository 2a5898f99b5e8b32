"""Persisted chat data model: sessions, messages, attachments, code blocks."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Sender = Literal["user", "ai"]
TitleSource = Literal["default", "interim", "generated", "user"]


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # Stored timestamps without an offset are treated as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump to the JSON-compatible, camelCase shape used for storage."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CodeBlock(CamelModel):
    """A fenced code region extracted from generated text."""

    language: str = "plaintext"
    code: str


class FileAttachment(CamelModel):
    """A non-image file attached to a message, carried as a data URI."""

    name: str
    mime_type: str = Field(alias="type")
    data_uri: str


class ConversationTurn(CamelModel):
    """One prior message as seen by the assistant query service."""

    sender: Sender
    content: str


class Message(CamelModel):
    """A single chat message."""

    id: str = Field(default_factory=new_id)
    sender: Sender
    content: str = ""
    timestamp: datetime = Field(default_factory=utc_now)
    is_loading: bool = False
    is_error: bool = False
    image: str | None = None
    file: FileAttachment | None = None
    extracted_code_blocks: list[CodeBlock] | None = None

    normalize_timestamp = field_validator("timestamp")(_as_utc)

    @model_validator(mode="after")
    def _ai_only_fields(self) -> Message:
        if self.sender != "ai" and (
            self.is_loading or self.is_error or self.extracted_code_blocks is not None
        ):
            raise ValueError(
                "Only ai messages may be loading, errors, or carry code blocks."
            )
        return self


class Session(CamelModel):
    """A persisted conversation thread."""

    id: str = Field(default_factory=new_id)
    title: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    is_pinned: bool = False
    title_source: TitleSource = "default"

    normalize_timestamps = field_validator("created_at", "updated_at")(_as_utc)

    @model_validator(mode="after")
    def _updated_not_before_created(self) -> Session:
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
        return self

    def touch(self) -> None:
        """Bump ``updated_at`` without letting it move backwards."""
        self.updated_at = max(utc_now(), self.created_at)

    def find_message(self, message_id: str) -> int | None:
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return index
        return None

    @property
    def pending_message(self) -> Message | None:
        for message in reversed(self.messages):
            if message.is_loading:
                return message
        return None

    @property
    def completed_ai_messages(self) -> int:
        """AI answers that finished successfully; errors do not count."""
        return sum(
            1
            for message in self.messages
            if message.sender == "ai" and not message.is_loading and not message.is_error
        )
