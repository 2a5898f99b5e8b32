"""Tests for app-level bindings and runtime wiring."""

from __future__ import annotations

import logging
from pathlib import Path
import tempfile
from typing import Any
import unittest

from omniassist.config import DEFAULT_CONFIG
from omniassist.flows.answer_question import AnswerQuestionOutput
from omniassist.flows.chat_title import ChatTitle
from omniassist.kv_store import LocalStore

try:
    from textual.widgets import Input

    from omniassist.app import OmniAssistApp
    from omniassist.widgets.message import MessageBubble
except ModuleNotFoundError:
    Input = None  # type: ignore[assignment]
    OmniAssistApp = None  # type: ignore[assignment]
    MessageBubble = None  # type: ignore[assignment]


class _FakeBackend:
    model = "llama3.2"

    def __init__(self, connected: bool = True) -> None:
        self.prompts: list[str] = []
        self.connected = connected

    async def check_connection(self) -> bool:
        return self.connected

    async def generate_structured(self, prompt: str, schema: type, **_: Any) -> Any:
        self.prompts.append(prompt)
        if schema is AnswerQuestionOutput:
            return AnswerQuestionOutput(answer="Hello there!")
        if schema is ChatTitle:
            return ChatTitle(title="Friendly Greeting")
        raise AssertionError(f"unexpected schema {schema!r}")

    async def generate_text(self, prompt: str, **_: Any) -> str:
        return ""


def _config() -> dict[str, Any]:
    return {
        **DEFAULT_CONFIG,
        "logging": {**DEFAULT_CONFIG["logging"], "structured": False},
    }


@unittest.skipIf(OmniAssistApp is None, "textual is not installed")
class AppBindingTests(unittest.TestCase):
    """Validate binding derivation from config."""

    def test_binding_specs_created_from_keybinds(self) -> None:
        bindings = OmniAssistApp._binding_specs_from_config(_config())  # type: ignore[union-attr]
        self.assertEqual(
            [binding.action for binding in bindings],
            list(OmniAssistApp.DEFAULT_ACTION_DESCRIPTIONS),  # type: ignore[union-attr]
        )
        self.assertEqual(bindings[0].key, "ctrl+n")

    def test_blank_keybind_is_not_registered(self) -> None:
        config = {
            **DEFAULT_CONFIG,
            "keybinds": {**DEFAULT_CONFIG["keybinds"], "toggle_pin": " "},
        }
        bindings = OmniAssistApp._binding_specs_from_config(config)  # type: ignore[union-attr]
        self.assertNotIn("toggle_pin", {binding.action for binding in bindings})


@unittest.skipIf(OmniAssistApp is None, "textual is not installed")
class AppRuntimeTests(unittest.IsolatedAsyncioTestCase):
    """Drive the real app through Textual's test pilot."""

    def setUp(self) -> None:
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)
        self._tmp = tempfile.TemporaryDirectory()
        self.store_path = Path(self._tmp.name) / "store.json"
        self.backend = _FakeBackend()

    def tearDown(self) -> None:
        root = logging.getLogger()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)
        self._tmp.cleanup()

    def _app(self) -> OmniAssistApp:
        return OmniAssistApp(  # type: ignore[misc]
            config=_config(),
            backend=self.backend,
            store=LocalStore(self.store_path),
        )

    async def test_mount_creates_initial_session(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            await pilot.pause()
            self.assertEqual(len(app.sessions.sessions), 1)
            await app.workers.wait_for_complete()
            self.assertEqual(app.sub_title, "Model: llama3.2")

    async def test_unreachable_backend_is_reported(self) -> None:
        self.backend.connected = False
        app = self._app()
        async with app.run_test() as pilot:
            await app.workers.wait_for_complete()
            await pilot.pause()
            self.assertEqual(app.sub_title, "Model: llama3.2 (Ollama unreachable)")

    async def test_send_message_runs_exchange_and_titles_chat(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            await pilot.pause()
            app.query_one("#message_input", Input).value = "hi there"
            await app.send_user_message()
            await app.workers.wait_for_complete()
            await pilot.pause()

            session = app.sessions.active_session
            self.assertEqual(
                [(m.sender, m.content) for m in session.messages],
                [("user", "hi there"), ("ai", "Hello there!")],
            )
            self.assertEqual(session.title, "Friendly Greeting")
            self.assertEqual(len(app.query(MessageBubble)), 2)
            self.assertEqual(app.query_one("#message_input", Input).value, "")

        reloaded = LocalStore(self.store_path).get("chatSessions", [])
        self.assertEqual(reloaded[0]["title"], "Friendly Greeting")

    async def test_empty_message_is_not_sent(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            await pilot.pause()
            await app.send_user_message()
            self.assertEqual(app.sub_title, "Cannot send an empty message.")
            self.assertEqual(app.sessions.active_session.messages, [])

    async def test_slash_commands_manage_sessions(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            await pilot.pause()
            message_input = app.query_one("#message_input", Input)

            message_input.value = "/new"
            await app.send_user_message()
            self.assertEqual(len(app.sessions.sessions), 2)

            message_input.value = "/rename Trip planning"
            await app.send_user_message()
            self.assertEqual(app.sessions.active_session.title, "Trip planning")

            message_input.value = "/pin"
            await app.send_user_message()
            self.assertTrue(app.sessions.active_session.is_pinned)
            self.assertEqual(message_input.value, "")

    async def test_busy_session_keeps_input(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            await pilot.pause()
            active_id = app.sessions.active_session_id
            await app.controller.tracker.begin_exchange(active_id)
            app.query_one("#message_input", Input).value = "are you there?"
            await app.send_user_message()
            self.assertEqual(app.sub_title, "A response is already pending for this chat.")
            self.assertEqual(app.query_one("#message_input", Input).value, "are you there?")
            self.assertEqual(app.sessions.active_session.messages, [])

    async def test_confirmed_delete_drops_exchange_tracking(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            await pilot.pause()
            deleted_id = app.sessions.active_session_id
            await app.controller.tracker.begin_exchange(deleted_id)
            await app._delete_active(True)
            await pilot.pause()
            self.assertIsNone(app.sessions.get_session(deleted_id))
            self.assertNotEqual(app.sessions.active_session_id, deleted_id)
            self.assertTrue(await app.controller.tracker.can_send_message(deleted_id))

    async def test_unknown_slash_command_reports(self) -> None:
        app = self._app()
        async with app.run_test() as pilot:
            await pilot.pause()
            app.query_one("#message_input", Input).value = "/bogus now"
            await app.send_user_message()
            self.assertEqual(app.sub_title, "Unknown command: /bogus")


if __name__ == "__main__":
    unittest.main()
