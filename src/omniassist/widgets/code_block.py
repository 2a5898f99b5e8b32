"""Code block widget with a copy-to-clipboard button."""

from __future__ import annotations

from typing import Any

from rich.syntax import Syntax
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Label, Static

from ..codeblocks import DEFAULT_LANGUAGE


class CodeBlock(Vertical):
    """Render a fenced code block with a copy button in the header."""

    DEFAULT_CSS = """
    CodeBlock {
        height: auto;
        margin: 1 0;
        border: solid $panel;
        background: $surface-darken-1;
    }
    CodeBlock > #code-header {
        height: 1;
        padding: 0 1;
        background: $panel;
    }
    CodeBlock > #code-header > #lang-label {
        width: 1fr;
        color: $text-muted;
    }
    CodeBlock > #code-header > #copy-btn {
        width: auto;
        min-width: 6;
        height: 1;
        border: none;
        background: $panel;
        padding: 0 1;
    }
    CodeBlock > #code-body {
        height: auto;
        padding: 0 1;
    }
    """

    class CopyRequested(Message):
        """Posted when the user clicks the copy button."""

        def __init__(self, code: str) -> None:
            super().__init__()
            self.code = code

    def __init__(self, code: str, language: str = "", **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.code = code
        self.language = language or DEFAULT_LANGUAGE

    def compose(self) -> ComposeResult:
        with Horizontal(id="code-header"):
            yield Label(self.language, id="lang-label")
            yield Button("copy", id="copy-btn")
        lexer = "text" if self.language == DEFAULT_LANGUAGE else self.language
        yield Static(
            Syntax(self.code, lexer, theme="monokai", word_wrap=True),
            id="code-body",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "copy-btn":
            event.stop()
            self.post_message(self.CopyRequested(self.code))
