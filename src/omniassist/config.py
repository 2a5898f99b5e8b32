"""Configuration loading and validation for the OmniAssist TUI."""

from __future__ import annotations

from copy import deepcopy
import logging
import os
from pathlib import Path
import re
from typing import Any
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigValidationError

import tomllib  # stdlib since Python 3.11 (project requires >=3.11)

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "omniassist"
CONFIG_PATH = CONFIG_DIR / "config.toml"

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
STORE_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.:-]+$")


def _required_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    normalized = value.strip()
    if not normalized:
        raise ValueError("String value must not be empty.")
    return normalized


class AppConfig(BaseModel):
    """Application metadata."""

    title: str = "OmniAssist"

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: Any) -> str:
        return _required_string(value)


class OllamaConfig(BaseModel):
    """Ollama endpoint and model settings."""

    host: str = "http://localhost:11434"
    model: str = "llama3.2"
    timeout: int = Field(default=120, ge=1, le=3600)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    @field_validator("host", "model", mode="before")
    @classmethod
    def _validate_required_string(cls, value: Any) -> str:
        return _required_string(value)


class AssistantConfig(BaseModel):
    """Persona and fallback strings used by the generation flows."""

    persona_name: str = "Assistant"
    fallback_answer: str = (
        "Sorry, I couldn't find an answer to that. I'm still learning!"
    )
    fallback_title: str = "Chat with Assistant"

    @field_validator("persona_name", "fallback_answer", "fallback_title", mode="before")
    @classmethod
    def _validate_required_string(cls, value: Any) -> str:
        return _required_string(value)


class SessionsConfig(BaseModel):
    """Session list behavior and title limits."""

    store_key: str = "chatSessions"
    default_title: str = "New Chat"
    sort_by_pin: bool = True
    interim_title_length: int = Field(default=50, ge=8, le=200)
    max_title_length: int = Field(default=70, ge=8, le=200)

    @field_validator("store_key", mode="before")
    @classmethod
    def _validate_store_key(cls, value: Any) -> str:
        normalized = _required_string(value)
        if not STORE_KEY_PATTERN.match(normalized):
            raise ValueError(
                "store_key may only contain letters, digits, '_', '.', ':' and '-'."
            )
        return normalized

    @field_validator("default_title", mode="before")
    @classmethod
    def _validate_default_title(cls, value: Any) -> str:
        return _required_string(value)


class AttachmentsConfig(BaseModel):
    """Attachment size limits and preview length."""

    text_preview_chars: int = Field(default=2000, ge=1, le=1_000_000)
    max_image_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    max_file_bytes: int = Field(default=2 * 1024 * 1024, ge=1)


class StorageConfig(BaseModel):
    """Local key-value store settings."""

    enabled: bool = True
    path: str = "~/.local/state/omniassist/store.json"

    @field_validator("path", mode="before")
    @classmethod
    def _validate_path_string(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Path value must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("Path value must not be empty.")
        return normalized


class ApplicationEntry(BaseModel):
    """An application the action services can pretend to open."""

    name: str
    executable_path: str

    @field_validator("name", "executable_path", mode="before")
    @classmethod
    def _validate_required_string(cls, value: Any) -> str:
        return _required_string(value)


class ActionsConfig(BaseModel):
    """Data backing the mocked action services."""

    installed_applications: list[ApplicationEntry] = Field(
        default_factory=lambda: [
            ApplicationEntry(name="Calculator", executable_path="/usr/bin/calculator"),
            ApplicationEntry(name="Notepad", executable_path="/usr/bin/notepad"),
        ]
    )

    @field_validator("installed_applications", mode="after")
    @classmethod
    def _dedupe_names(cls, value: list[ApplicationEntry]) -> list[ApplicationEntry]:
        seen: set[str] = set()
        deduped: list[ApplicationEntry] = []
        for entry in value:
            key = entry.name.lower()
            if key in seen:
                continue
            seen.add(key)
            deduped.append(entry)
        return deduped


class KeybindsConfig(BaseModel):
    """Keyboard action mapping."""

    new_chat: str = "ctrl+n"
    rename_chat: str = "ctrl+r"
    toggle_pin: str = "ctrl+t"
    delete_chat: str = "ctrl+d"
    quit: str = "ctrl+q"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_keybind(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Keybind must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("Keybind must not be empty.")
        return normalized


class SecurityConfig(BaseModel):
    """Security policy for remote host access."""

    allow_remote_hosts: bool = False
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "::1"]

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def _validate_allowed_hosts(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("allowed_hosts must be a list.")
        normalized_hosts = [
            item.strip().lower()
            for item in value
            if isinstance(item, str) and item.strip()
        ]
        if not normalized_hosts:
            raise ValueError("allowed_hosts must contain at least one host.")
        return normalized_hosts


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/omniassist/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        return _required_string(value)


class Config(BaseModel):
    """Root configuration model for all sections."""

    model_config = ConfigDict(populate_by_name=True)
    app: AppConfig = AppConfig()
    ollama: OllamaConfig = OllamaConfig()
    assistant: AssistantConfig = AssistantConfig()
    sessions: SessionsConfig = SessionsConfig()
    attachments: AttachmentsConfig = AttachmentsConfig()
    storage: StorageConfig = StorageConfig()
    actions: ActionsConfig = ActionsConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    security: SecurityConfig = SecurityConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def _validate_security_policy(self) -> Config:
        parsed = urlparse(self.ollama.host)
        scheme = parsed.scheme.lower()
        hostname = (parsed.hostname or "").strip().lower()

        if scheme not in {"http", "https"}:
            raise ValueError("ollama.host must use http or https scheme.")
        if not hostname:
            raise ValueError("ollama.host must include a hostname.")
        if not self.security.allow_remote_hosts and hostname not in set(
            self.security.allowed_hosts
        ):
            raise ValueError(
                "ollama.host is not in security.allowed_hosts while allow_remote_hosts is false."
            )
        return self


DEFAULT_CONFIG: dict[str, Any] = Config().model_dump()


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Ensure that the config directory exists and return its path."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", directory, exc)
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _enforce_private_permissions(path: Path) -> None:
    """Best-effort enforcement of private file permissions on POSIX systems."""
    if os.name != "posix" or not path.exists():
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning("Unable to enforce 0600 permissions for %s: %s", path, exc)


def _safe_default_config() -> dict[str, Any]:
    """Return a deep copy of validated default config data."""
    return deepcopy(DEFAULT_CONFIG)


def _validate_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Validate merged config and fallback to safe defaults when possible."""
    try:
        config = Config.model_validate(raw)
        return config.model_dump()
    except ValidationError as exc:
        LOGGER.warning("Configuration validation failed, using safe defaults: %s", exc)
        return _safe_default_config()
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load configuration from TOML, merge with defaults, and validate.

    The optional ``config_path`` argument is intended for tests and tooling.
    """
    target_path = config_path or CONFIG_PATH
    ensure_config_dir(target_path.parent)

    raw_data: dict[str, Any] = {}
    if target_path.exists():
        _enforce_private_permissions(target_path)
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (
            Exception
        ) as exc:  # noqa: BLE001 - we must not crash on invalid user config.
            LOGGER.warning("Failed to parse config at %s: %s", target_path, exc)
            raw_data = {}

    merged = (
        _deep_merge(DEFAULT_CONFIG, raw_data)
        if isinstance(raw_data, dict)
        else _safe_default_config()
    )
    return _validate_config(merged)
