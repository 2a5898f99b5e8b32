"""Tests for configuration loading and validation."""

from __future__ import annotations

import tempfile
from pathlib import Path
import unittest

from omniassist.config import DEFAULT_CONFIG, load_config


class ConfigTests(unittest.TestCase):
    """Validate config merge and fallback behavior."""

    def _load(self, text: str | None) -> dict:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.toml"
            if text is not None:
                config_path.write_text(text.strip(), encoding="utf-8")
            return load_config(config_path=config_path)

    def test_missing_config_uses_defaults(self) -> None:
        config = self._load(None)
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertEqual(config["sessions"]["store_key"], "chatSessions")
        self.assertEqual(config["sessions"]["default_title"], "New Chat")
        self.assertEqual(config["assistant"]["fallback_title"], "Chat with Assistant")
        self.assertEqual(
            [app["name"] for app in config["actions"]["installed_applications"]],
            ["Calculator", "Notepad"],
        )

    def test_partial_config_overrides_selected_values(self) -> None:
        config = self._load(
            """
[ollama]
model = "qwen2.5"

[sessions]
sort_by_pin = false

[assistant]
persona_name = "Omni"
            """
        )
        self.assertEqual(config["ollama"]["model"], "qwen2.5")
        self.assertFalse(config["sessions"]["sort_by_pin"])
        self.assertEqual(config["assistant"]["persona_name"], "Omni")
        self.assertEqual(config["app"]["title"], DEFAULT_CONFIG["app"]["title"])
        self.assertEqual(
            config["sessions"]["max_title_length"],
            DEFAULT_CONFIG["sessions"]["max_title_length"],
        )

    def test_installed_applications_are_deduplicated(self) -> None:
        config = self._load(
            """
[[actions.installed_applications]]
name = "Terminal"
executable_path = "/usr/bin/terminal"

[[actions.installed_applications]]
name = "terminal"
executable_path = "/usr/bin/other"
            """
        )
        self.assertEqual(
            config["actions"]["installed_applications"],
            [{"name": "Terminal", "executable_path": "/usr/bin/terminal"}],
        )

    def test_invalid_values_fallback_to_defaults(self) -> None:
        config = self._load(
            """
[ollama]
timeout = -1

[sessions]
store_key = "bad key!"

[keybinds]
new_chat = ""
            """
        )
        self.assertEqual(config["ollama"]["timeout"], DEFAULT_CONFIG["ollama"]["timeout"])
        self.assertEqual(
            config["sessions"]["store_key"], DEFAULT_CONFIG["sessions"]["store_key"]
        )
        self.assertEqual(
            config["keybinds"]["new_chat"], DEFAULT_CONFIG["keybinds"]["new_chat"]
        )

    def test_unparseable_toml_uses_defaults(self) -> None:
        with self.assertLogs("omniassist.config", level="WARNING"):
            config = self._load("[ollama\nmodel = ")
        self.assertEqual(config, DEFAULT_CONFIG)

    def test_remote_host_disallowed_by_default_policy(self) -> None:
        config = self._load(
            """
[ollama]
host = "http://example.com:11434"
            """
        )
        self.assertEqual(config["ollama"]["host"], DEFAULT_CONFIG["ollama"]["host"])
        self.assertFalse(config["security"]["allow_remote_hosts"])

    def test_remote_host_allowed_when_policy_enabled(self) -> None:
        config = self._load(
            """
[ollama]
host = "http://example.com:11434"

[security]
allow_remote_hosts = true
allowed_hosts = ["localhost"]
            """
        )
        self.assertEqual(config["ollama"]["host"], "http://example.com:11434")
        self.assertTrue(config["security"]["allow_remote_hosts"])


if __name__ == "__main__":
    unittest.main()
