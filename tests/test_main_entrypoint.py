"""Tests for CLI entrypoint wiring."""

from __future__ import annotations

import io
from pathlib import Path
import unittest
from unittest.mock import AsyncMock, patch

from omniassist.__main__ import main
from omniassist.config import DEFAULT_CONFIG


class MainEntrypointTests(unittest.TestCase):
    """Validate top-level main() behavior."""

    def test_main_ensures_config_and_runs_app(self) -> None:
        with patch("omniassist.__main__.ensure_config_dir") as ensure_mock, patch(
            "omniassist.__main__.load_config", return_value=DEFAULT_CONFIG
        ) as load_mock, patch("omniassist.__main__.OmniAssistApp") as app_cls_mock:
            app_instance = app_cls_mock.return_value
            main([])
            ensure_mock.assert_called_once()
            load_mock.assert_called_once_with(None)
            app_cls_mock.assert_called_once_with(config=DEFAULT_CONFIG)
            app_instance.run.assert_called_once()

    def test_explicit_config_path_skips_default_dir(self) -> None:
        with patch("omniassist.__main__.ensure_config_dir") as ensure_mock, patch(
            "omniassist.__main__.load_config", return_value=DEFAULT_CONFIG
        ) as load_mock, patch("omniassist.__main__.OmniAssistApp"):
            main(["--config", "/tmp/omni.toml"])
            ensure_mock.assert_not_called()
            load_mock.assert_called_once_with(Path("/tmp/omni.toml"))

    def test_version_flag_prints_and_exits(self) -> None:
        with patch("omniassist.__main__.OmniAssistApp") as app_cls_mock, patch(
            "sys.stdout", new_callable=io.StringIO
        ) as stdout:
            main(["--version"])
        self.assertTrue(stdout.getvalue().startswith("omniassist "))
        app_cls_mock.assert_not_called()

    def test_command_flag_runs_single_command(self) -> None:
        run_command = AsyncMock()
        with patch("omniassist.__main__.ensure_config_dir"), patch(
            "omniassist.__main__.load_config", return_value=DEFAULT_CONFIG
        ), patch("omniassist.__main__.configure_logging") as logging_mock, patch(
            "omniassist.__main__._run_command", run_command
        ), patch("omniassist.__main__.OmniAssistApp") as app_cls_mock:
            main(["--command", "open Calculator"])
        logging_mock.assert_called_once_with(DEFAULT_CONFIG["logging"])
        run_command.assert_awaited_once()
        self.assertEqual(run_command.await_args.args[1], "open Calculator")
        app_cls_mock.assert_not_called()


if __name__ == "__main__":
    unittest.main()
