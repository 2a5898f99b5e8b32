"""Top-level package for OmniAssist."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import OmniAssistApp
    from .backend import GenerationBackend
    from .config import ensure_config_dir, load_config
    from .controller import ChatController
    from .exceptions import (
        BackendConnectionError,
        BackendModelNotFoundError,
        ConfigValidationError,
        GenerationError,
        OmniAssistError,
        SessionBusyError,
        SessionValidationError,
    )
    from .kv_store import LocalStore
    from .sessions import SessionManager, SessionSettings
    from .voice import VoiceAssistant

__all__ = [
    "BackendConnectionError",
    "BackendModelNotFoundError",
    "ChatController",
    "ConfigValidationError",
    "GenerationBackend",
    "GenerationError",
    "LocalStore",
    "OmniAssistApp",
    "OmniAssistError",
    "SessionBusyError",
    "SessionManager",
    "SessionSettings",
    "SessionValidationError",
    "VoiceAssistant",
    "ensure_config_dir",
    "load_config",
]

_EXCEPTION_NAMES = {
    "BackendConnectionError",
    "BackendModelNotFoundError",
    "ConfigValidationError",
    "GenerationError",
    "OmniAssistError",
    "SessionBusyError",
    "SessionValidationError",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols so importing the package does not pull in Textual."""
    if name in _EXCEPTION_NAMES:
        from . import exceptions

        return getattr(exceptions, name)
    if name in {"ensure_config_dir", "load_config"}:
        from .config import ensure_config_dir, load_config

        return {"ensure_config_dir": ensure_config_dir, "load_config": load_config}[name]
    if name == "LocalStore":
        from .kv_store import LocalStore

        return LocalStore
    if name in {"SessionManager", "SessionSettings"}:
        from .sessions import SessionManager, SessionSettings

        return {"SessionManager": SessionManager, "SessionSettings": SessionSettings}[
            name
        ]
    if name == "GenerationBackend":
        from .backend import GenerationBackend

        return GenerationBackend
    if name == "ChatController":
        from .controller import ChatController

        return ChatController
    if name == "VoiceAssistant":
        from .voice import VoiceAssistant

        return VoiceAssistant
    if name == "OmniAssistApp":
        from .app import OmniAssistApp

        return OmniAssistApp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
