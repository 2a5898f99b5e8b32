"""Message bubble widget for conversation rendering."""

from __future__ import annotations

from typing import Any

from rich.markdown import Markdown
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

from ..codeblocks import split_message
from ..models import Message
from .code_block import CodeBlock

LOADING_TEXT = "Thinking..."


def _attachment_label(message: Message) -> str:
    if message.image is not None:
        return "[image attached]"
    if message.file is not None:
        return f"[file: {message.file.name} ({message.file.mime_type})]"
    return ""


class MessageBubble(Vertical):
    """Render one chat message: header, attachment note, prose and code segments."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > .bubble-header {
        padding: 0;
    }
    MessageBubble > .attachment-note {
        color: $text-muted;
    }
    MessageBubble > .prose-segment {
        height: auto;
    }
    MessageBubble.is-error > .prose-segment {
        color: $error;
    }
    """

    def __init__(
        self, message: Message, persona_name: str = "Assistant", **kwargs: Any
    ) -> None:
        super().__init__(**kwargs)
        self.message = message
        self.persona_name = persona_name
        self.add_class(f"message-{message.sender}")
        if message.is_error:
            self.add_class("is-error")

    @property
    def role_prefix(self) -> str:
        return "You" if self.message.sender == "user" else self.persona_name

    def compose(self) -> ComposeResult:
        stamp = self.message.timestamp.astimezone().strftime("%H:%M")
        yield Static(
            Markdown(f"**{self.role_prefix}**  _{stamp}_"), classes="bubble-header"
        )
        note = _attachment_label(self.message)
        if note:
            yield Static(Text(note, style="dim"), classes="attachment-note")

        if self.message.is_loading:
            yield Static(Text(LOADING_TEXT, style="dim italic"), classes="prose-segment")
            return

        for content, language in split_message(self.message.content.rstrip()):
            if language is None:
                yield Static(Markdown(content), classes="prose-segment")
            else:
                yield CodeBlock(code=content, language=language)

    def on_code_block_copy_requested(self, event: CodeBlock.CopyRequested) -> None:
        """Forward copy requests to the app clipboard."""
        event.stop()
        self.app.copy_to_clipboard(event.code)
        self.app.sub_title = "Code copied to clipboard."
