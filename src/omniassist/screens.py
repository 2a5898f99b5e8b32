"""Modal screens: command results, single-line prompts and delete confirmation."""

from __future__ import annotations

from typing import Any

from rich.console import RenderableType
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static


class InfoScreen(ModalScreen[None]):
    """Scrollable dialog for help text and assistant command results."""

    CSS = """
    InfoScreen {
        align: center middle;
    }

    #info-dialog {
        width: 84;
        height: auto;
        max-height: 80%;
        padding: 1 2;
        border: round $accent;
        background: $surface;
    }

    #info-title {
        text-style: bold;
        padding-bottom: 1;
    }

    #info-scroll {
        height: auto;
        max-height: 20;
    }

    #info-actions {
        height: 3;
        align: right middle;
    }
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self, body: RenderableType, title: str = "") -> None:
        super().__init__()
        self.body = body
        self.heading = title

    def compose(self) -> ComposeResult:
        with Vertical(id="info-dialog"):
            if self.heading:
                yield Label(self.heading, id="info-title")
            with VerticalScroll(id="info-scroll"):
                yield Static(self.body, id="info-body")
            with Horizontal(id="info-actions"):
                yield Button("Close", id="info-close", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#info-close", Button).focus()

    def action_close(self) -> None:
        self.dismiss(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "info-close":
            event.stop()
            self.dismiss(None)


class TextPromptScreen(ModalScreen[str | None]):
    """Ask for one line of text; blank input is refused in place.

    Dismisses with the stripped text, or ``None`` when cancelled.
    """

    CSS = """
    TextPromptScreen {
        align: center middle;
    }

    #prompt-dialog {
        width: 64;
        height: auto;
        padding: 1 2;
        border: round $accent;
        background: $surface;
    }

    #prompt-title {
        text-style: bold;
        padding-bottom: 1;
    }

    #prompt-input {
        width: 100%;
    }

    #prompt-error {
        color: $error;
        height: auto;
    }

    #prompt-hint {
        color: $text-muted;
        padding-top: 1;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(
        self,
        title: str,
        placeholder: str = "",
        value: str = "",
        empty_error: str = "A value is required.",
    ) -> None:
        super().__init__()
        self.heading = title
        self.placeholder = placeholder
        self.initial_value = value
        self.empty_error = empty_error

    def compose(self) -> ComposeResult:
        with Vertical(id="prompt-dialog"):
            yield Label(self.heading, id="prompt-title")
            yield Input(
                value=self.initial_value,
                placeholder=self.placeholder,
                id="prompt-input",
            )
            yield Static("", id="prompt-error")
            yield Static("Enter to confirm, Esc to cancel", id="prompt-hint")

    def on_mount(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "prompt-input":
            return
        event.stop()
        text = event.value.strip()
        if not text:
            self.query_one("#prompt-error", Static).update(self.empty_error)
            return
        self.dismiss(text)


class ConfirmScreen(ModalScreen[bool]):
    """Yes/No confirmation dialog."""

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        border: round $error;
        background: $surface;
    }

    #confirm-actions {
        height: 3;
        align: right middle;
    }

    #confirm-actions > Button {
        margin-left: 1;
    }
    """

    def __init__(self, question: str) -> None:
        super().__init__()
        self._question = question

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Static(self._question, id="confirm-question")
            with Horizontal(id="confirm-actions"):
                yield Button("Cancel", id="confirm-no")
                yield Button("Delete", id="confirm-yes", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(event.button.id == "confirm-yes")

    def on_key(self, event: Any) -> None:  # noqa: ANN401
        if str(getattr(event, "key", "")).lower() == "escape":
            self.dismiss(False)
