"""Input row containing message field, attach buttons and send button."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, Input, Static


class InputBox(Vertical):
    """Input region with message field, attachment status, attach and send buttons."""

    class AttachRequested(Message):
        """Posted when the user clicks the image attach button."""

    class FileAttachRequested(Message):
        """Posted when the user clicks the file attach button."""

    def compose(self) -> ComposeResult:
        yield Static("", id="attachment_status")
        with Horizontal(id="input_row"):
            yield Input(
                placeholder="Type your message... (/help for commands)",
                id="message_input",
            )
            yield Button("Image", id="attach_button", variant="default")
            yield Button("File", id="file_button", variant="default")
            yield Button("Send", id="send_button", variant="success")

    def set_busy(self, busy: bool) -> None:
        """Disable every control while a response is pending."""
        for widget in self.query("Input, Button"):
            widget.disabled = busy
        if not busy:
            self.query_one("#message_input", Input).focus()

    def set_attachment_status(self, text: str) -> None:
        self.query_one("#attachment_status", Static).update(text)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "attach_button":
            event.stop()
            self.post_message(self.AttachRequested())
        elif event.button.id == "file_button":
            event.stop()
            self.post_message(self.FileAttachRequested())
