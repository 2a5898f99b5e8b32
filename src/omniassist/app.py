"""Main Textual application for chatting with the assistant."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Footer, Header, Input

from .attachments import AttachmentLoader
from .backend import GenerationBackend
from .config import load_config
from .controller import ChatController
from .exceptions import AttachmentError, OmniAssistError, SessionValidationError
from .kv_store import LocalStore
from .logging_utils import configure_logging
from .models import FileAttachment
from .screens import ConfirmScreen, InfoScreen, TextPromptScreen
from .sessions import SessionManager, SessionSettings
from .voice import VoiceAssistant, render_result
from .widgets.conversation import ConversationView
from .widgets.input_box import InputBox
from .widgets.session_list import SessionList

LOGGER = logging.getLogger(__name__)

_SlashCommand = Callable[[str], Awaitable[None]]


class OmniAssistApp(App):
    """Multi-session chat TUI backed by a local Ollama model."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        height: 1fr;
    }

    #session_list {
        width: 32;
        border-right: solid $panel;
        background: $surface;
    }

    #chat-pane {
        width: 1fr;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    InputBox {
        height: auto;
        padding: 0 1 1 1;
        border-top: solid $panel;
        background: $surface;
    }

    #attachment_status {
        color: $text-muted;
        height: auto;
    }

    #input_row {
        height: auto;
    }

    #message_input {
        width: 1fr;
    }

    #attach_button, #file_button, #send_button {
        margin-left: 1;
        min-width: 10;
    }

    MessageBubble {
        width: 85%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-user {
        background: $primary;
    }

    .message-ai {
        background: $surface;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "new_chat": "New Chat",
        "rename_chat": "Rename",
        "toggle_pin": "Pin",
        "delete_chat": "Delete",
        "quit": "Quit",
    }

    SLASH_COMMANDS: tuple[tuple[str, str], ...] = (
        ("/new", "Start a new chat"),
        ("/rename <title>", "Rename the current chat"),
        ("/pin", "Pin or unpin the current chat"),
        ("/delete", "Delete the current chat"),
        ("/image <path>", "Attach an image to the next message"),
        ("/file <path>", "Attach a file to the next message"),
        ("/do <command>", "Run a one-off assistant command"),
        ("/help", "Show this help"),
    )

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        backend: GenerationBackend | None = None,
        store: LocalStore | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        configure_logging(self.config["logging"])
        self.backend = backend or GenerationBackend.from_config(self.config["ollama"])
        storage = self.config["storage"]
        self.sessions = SessionManager(
            store or LocalStore(storage["path"], enabled=bool(storage["enabled"])),
            SessionSettings.from_config(self.config["sessions"]),
        )
        self.controller = ChatController.from_config(
            self.sessions, self.backend, self.config
        )
        self.controller.on_change = self._on_session_changed
        self.voice = VoiceAssistant.from_config(self.backend, self.config)
        self.attachments = AttachmentLoader.from_config(self.config["attachments"])
        self.persona_name = str(self.config["assistant"]["persona_name"])
        self._pending_image: str | None = None
        self._pending_file: FileAttachment | None = None
        self._binding_specs = self._binding_specs_from_config(self.config)
        self._slash_registry = self._build_slash_registry()
        super().__init__()

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name, description in cls.DEFAULT_ACTION_DESCRIPTIONS.items():
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=description,
                        show=True,
                    )
                )
        return bindings

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="app-root"):
            yield SessionList(id="session_list")
            with Vertical(id="chat-pane"):
                yield ConversationView(id="conversation")
                yield InputBox()
        yield Footer()

    async def on_mount(self) -> None:
        self.title = str(self.config["app"]["title"])
        self.sub_title = f"Model: {self.backend.model}"
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
            )
        self.query_one(ConversationView).persona_name = self.persona_name
        self.sessions.load()
        LOGGER.info(
            "app.started",
            extra={"event": "app.started", "sessions": len(self.sessions.sessions)},
        )
        await self._refresh_view()
        self.run_worker(self._check_connection(), group="startup")

    async def _check_connection(self) -> None:
        connected = await self.backend.check_connection()
        LOGGER.info(
            "app.connection.checked",
            extra={"event": "app.connection.checked", "connected": connected},
        )
        if not connected:
            self.sub_title = f"Model: {self.backend.model} (Ollama unreachable)"

    # -- rendering -------------------------------------------------------

    async def _refresh_view(self) -> None:
        """Redraw the sidebar, the active conversation and the input state."""
        active_id = self.sessions.active_session_id
        self.query_one(SessionList).show_sessions(self.sessions.sessions, active_id)
        await self.query_one(ConversationView).show_session(self.sessions.active_session)
        busy = active_id is not None and self.sessions.has_pending(active_id)
        self.query_one(InputBox).set_busy(busy)

    async def _on_session_changed(self, session_id: str) -> None:
        if not self.is_running:
            return
        await self._refresh_view()

    def _update_attachment_status(self) -> None:
        parts: list[str] = []
        if self._pending_image is not None:
            parts.append("image attached")
        if self._pending_file is not None:
            parts.append(f"file: {self._pending_file.name}")
        self.query_one(InputBox).set_attachment_status(" | ".join(parts))

    # -- sending ---------------------------------------------------------

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "message_input":
            await self.send_user_message()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send_button":
            await self.send_user_message()

    async def send_user_message(self) -> None:
        """Dispatch slash commands or start an exchange in a worker."""
        input_widget = self.query_one("#message_input", Input)
        raw_text = input_widget.value.strip()

        if raw_text.startswith("/"):
            if await self._dispatch_slash_command(raw_text):
                return
            self.sub_title = f"Unknown command: {raw_text.split()[0]}"
            return

        image, file = self._pending_image, self._pending_file
        if not raw_text and image is None and file is None:
            self.sub_title = "Cannot send an empty message."
            return

        active_id = self.sessions.active_session_id
        if active_id is not None and not await self.controller.can_send(active_id):
            self.sub_title = "A response is already pending for this chat."
            return

        input_widget.value = ""
        self._pending_image = None
        self._pending_file = None
        self._update_attachment_status()
        self.query_one(InputBox).set_busy(True)
        self.run_worker(self._run_exchange(raw_text, image, file), group="exchange")

    async def _run_exchange(
        self, text: str, image: str | None, file: FileAttachment | None
    ) -> None:
        try:
            await self.controller.send_message(text, image=image, file=file)
        except OmniAssistError as exc:
            self.sub_title = str(exc)
        finally:
            await self._refresh_view()

    # -- attachments -----------------------------------------------------

    def _attach_image(self, path: str | None) -> None:
        if not path:
            return
        try:
            self._pending_image = self.attachments.load_image(path)
        except AttachmentError as exc:
            self.sub_title = str(exc)
            return
        self.sub_title = "Image attached."
        self._update_attachment_status()

    def _attach_file(self, path: str | None) -> None:
        if not path:
            return
        try:
            self._pending_file = self.attachments.load_file(path)
        except AttachmentError as exc:
            self.sub_title = str(exc)
            return
        self.sub_title = f"Attached {self._pending_file.name}."
        self._update_attachment_status()

    def on_input_box_attach_requested(self, _message: InputBox.AttachRequested) -> None:
        self.push_screen(
            TextPromptScreen("Attach image", placeholder="~/pictures/photo.png"),
            callback=self._attach_image,
        )

    def on_input_box_file_attach_requested(
        self, _message: InputBox.FileAttachRequested
    ) -> None:
        self.push_screen(
            TextPromptScreen("Attach file", placeholder="~/documents/notes.txt"),
            callback=self._attach_file,
        )

    # -- session actions -------------------------------------------------

    async def on_session_list_session_selected(
        self, message: SessionList.SessionSelected
    ) -> None:
        self.sessions.select_session(message.session_id)
        await self._refresh_view()

    async def action_new_chat(self) -> None:
        self.sessions.create_session()
        await self._refresh_view()

    async def _rename_active(self, title: str | None) -> None:
        active_id = self.sessions.active_session_id
        if title is None or active_id is None:
            return
        try:
            self.sessions.rename_session(active_id, title)
        except SessionValidationError as exc:
            self.sub_title = str(exc)
            return
        await self._refresh_view()

    async def action_rename_chat(self) -> None:
        session = self.sessions.active_session
        if session is None:
            return
        self.push_screen(
            TextPromptScreen(
                "Rename chat",
                value=session.title,
                empty_error="Chat title cannot be empty.",
            ),
            callback=self._rename_active,
        )

    async def action_toggle_pin(self) -> None:
        active_id = self.sessions.active_session_id
        if active_id is None:
            return
        self.sessions.toggle_pin(active_id)
        await self._refresh_view()

    async def _delete_active(self, confirmed: bool | None) -> None:
        active_id = self.sessions.active_session_id
        if not confirmed or active_id is None:
            return
        await self.controller.delete_session(active_id)
        await self._refresh_view()

    async def action_delete_chat(self) -> None:
        session = self.sessions.active_session
        if session is None:
            return
        self.push_screen(
            ConfirmScreen(f'Delete "{session.title}"?'), callback=self._delete_active
        )

    async def action_quit(self) -> None:
        self.exit()

    # -- slash commands --------------------------------------------------

    async def _run_voice_command(self, command: str) -> None:
        result = await self.voice.handle_command(command)
        await self.push_screen(
            InfoScreen(render_result(result), title=command.strip())
        )

    def _build_slash_registry(self) -> dict[str, _SlashCommand]:
        async def _handle_new(_args: str) -> None:
            await self.action_new_chat()

        async def _handle_rename(args: str) -> None:
            if args.strip():
                await self._rename_active(args)
            else:
                await self.action_rename_chat()

        async def _handle_pin(_args: str) -> None:
            await self.action_toggle_pin()

        async def _handle_delete(_args: str) -> None:
            await self.action_delete_chat()

        async def _handle_image(args: str) -> None:
            if args.strip():
                self._attach_image(args.strip())
            else:
                self.on_input_box_attach_requested(InputBox.AttachRequested())

        async def _handle_file(args: str) -> None:
            if args.strip():
                self._attach_file(args.strip())
            else:
                self.on_input_box_file_attach_requested(InputBox.FileAttachRequested())

        async def _handle_do(args: str) -> None:
            if not args.strip():
                self.sub_title = "Usage: /do <command>"
                return
            self.run_worker(self._run_voice_command(args), group="voice")

        async def _handle_help(_args: str) -> None:
            lines = ["Commands:", ""]
            lines.extend(f"{command} - {desc}" for command, desc in self.SLASH_COMMANDS)
            lines.append("")
            lines.append("Keybindings:")
            lines.extend(
                f"{binding.key} - {binding.description}" for binding in self._binding_specs
            )
            await self.push_screen(InfoScreen("\n".join(lines), title="Help"))

        return {
            "/new": _handle_new,
            "/rename": _handle_rename,
            "/pin": _handle_pin,
            "/delete": _handle_delete,
            "/image": _handle_image,
            "/file": _handle_file,
            "/do": _handle_do,
            "/help": _handle_help,
        }

    async def _dispatch_slash_command(self, raw_text: str) -> bool:
        """Execute a slash command. Returns True if handled."""
        parts = raw_text.split(maxsplit=1)
        prefix = parts[0].lower()
        args = parts[1] if len(parts) == 2 else ""

        handler = self._slash_registry.get(prefix)
        if handler is None:
            return False

        self.query_one("#message_input", Input).value = ""
        await handler(args)
        return True
