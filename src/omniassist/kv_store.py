"""Best-effort JSON key-value store backing session persistence."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class LocalStore:
    """Persist JSON values under string keys in a single private file.

    Reads never raise: a missing key, a corrupt file or an unavailable store
    all yield the caller's default. Writes are a cache refresh, not a
    durability guarantee, so failures are logged and swallowed.
    """

    def __init__(self, path: str | Path, enabled: bool = True) -> None:
        self.enabled = enabled
        self.path = Path(path).expanduser()

    def _enforce_permissions(self, path: Path, mode: int = 0o600) -> None:
        """Set POSIX permissions on a file or directory; silently ignores failures."""
        if os.name != "posix":
            return
        try:
            path.chmod(mode)
        except OSError:
            pass

    def _read_all(self) -> dict[str, Any]:
        if not self.enabled:
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            LOGGER.warning(
                "store.read.failed",
                extra={
                    "event": "store.read.failed",
                    "path": str(self.path),
                    "reason": str(exc),
                },
            )
            return {}
        if not isinstance(payload, dict):
            LOGGER.warning(
                "store.read.invalid",
                extra={"event": "store.read.invalid", "path": str(self.path)},
            )
            return {}
        return payload

    def _write_all(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._enforce_permissions(self.path.parent, 0o700)
        encoded = json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(encoded)
            self._enforce_permissions(temp_path)
            temp_path.replace(self.path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

    def get(self, key: str, default: T) -> Any | T:
        """Return the value stored under ``key`` or ``default``."""
        payload = self._read_all()
        if key not in payload:
            return default
        return payload[key]

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; failures are logged, never raised."""
        if not self.enabled:
            return
        try:
            payload = self._read_all()
            payload[key] = value
            self._write_all(payload)
        except (OSError, TypeError, ValueError) as exc:
            LOGGER.warning(
                "store.write.failed",
                extra={
                    "event": "store.write.failed",
                    "path": str(self.path),
                    "key": key,
                    "reason": str(exc),
                },
            )

    def delete(self, key: str) -> None:
        """Remove ``key`` if present; failures are logged, never raised."""
        if not self.enabled:
            return
        try:
            payload = self._read_all()
            if key not in payload:
                return
            del payload[key]
            self._write_all(payload)
        except OSError as exc:
            LOGGER.warning(
                "store.delete.failed",
                extra={
                    "event": "store.delete.failed",
                    "path": str(self.path),
                    "key": key,
                    "reason": str(exc),
                },
            )

    def keys(self) -> list[str]:
        """Return the stored keys in sorted order."""
        return sorted(self._read_all())
