"""Simulated application launcher."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Application:
    """An application that can be opened."""

    name: str
    executable_path: str


DEFAULT_APPLICATIONS: tuple[Application, ...] = (
    Application(name="Calculator", executable_path="/usr/bin/calculator"),
    Application(name="Notepad", executable_path="/usr/bin/notepad"),
)


class ApplicationManager:
    """Report installed applications and pretend to open them.

    Nothing is executed; opening an application only logs the request.
    """

    def __init__(self, applications: Iterable[Application] | None = None) -> None:
        self._applications = tuple(
            DEFAULT_APPLICATIONS if applications is None else applications
        )

    @classmethod
    def from_config(cls, actions_config: dict[str, Any]) -> ApplicationManager:
        rows = actions_config.get("installed_applications")
        if not isinstance(rows, list):
            return cls()
        return cls(
            Application(
                name=str(row["name"]), executable_path=str(row["executable_path"])
            )
            for row in rows
            if isinstance(row, dict) and "name" in row and "executable_path" in row
        )

    async def get_installed_applications(self) -> list[Application]:
        return list(self._applications)

    async def application_names(self) -> list[str]:
        return [app.name for app in await self.get_installed_applications()]

    def find(self, name: str) -> Application | None:
        """Case-insensitive lookup by application name."""
        wanted = name.strip().lower()
        for app in self._applications:
            if app.name.lower() == wanted:
                return app
        return None

    async def open_application(self, application_name: str) -> None:
        app = self.find(application_name)
        LOGGER.info(
            "actions.application.open",
            extra={
                "event": "actions.application.open",
                "application": application_name,
                "executable_path": app.executable_path if app else None,
                "simulated": True,
            },
        )
