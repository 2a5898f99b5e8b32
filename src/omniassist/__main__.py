"""CLI entrypoint for OmniAssist."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from importlib import metadata
from pathlib import Path
from typing import Any

from rich.console import Console

from .app import OmniAssistApp
from .backend import GenerationBackend
from .config import ensure_config_dir, load_config
from .logging_utils import configure_logging
from .voice import VoiceAssistant, render_result


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omniassist",
        description="OmniAssist - Terminal chat assistant for local Ollama models",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Read configuration from PATH instead of the default location",
    )
    parser.add_argument(
        "--command",
        default=None,
        metavar="TEXT",
        help="Run a single assistant command, print the result and exit",
    )
    return parser


async def _run_command(config: dict[str, Any], command: str, console: Console) -> None:
    backend = GenerationBackend.from_config(config["ollama"])
    assistant = VoiceAssistant.from_config(backend, config)
    result = await assistant.handle_command(command)
    console.print(render_result(result))


def main(argv: Sequence[str] | None = None) -> None:
    """Handle CLI flags, then run a single command or the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("omniassist")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"omniassist {version}")
        return

    if args.config is None:
        ensure_config_dir()
    config = load_config(args.config)

    if args.command is not None:
        configure_logging(config["logging"])
        asyncio.run(_run_command(config, args.command, Console()))
        return

    app = OmniAssistApp(config=config)
    app.run()


if __name__ == "__main__":
    main()
