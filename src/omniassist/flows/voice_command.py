"""Action dispatcher: classify a free-text command into a handler route."""

from __future__ import annotations

import logging
import re
from typing import Literal

from ..backend import GenerationBackend
from ..exceptions import OmniAssistError
from ..models import CamelModel
from ..services.applications import ApplicationManager

LOGGER = logging.getLogger(__name__)

ActionName = Literal[
    "openApplication", "searchFiles", "webSearch", "answerQuestion", "unknown"
]

_OPEN_COMMAND_RE = re.compile(
    r"^\s*(?:please\s+)?(?:open|launch|start|run)\s+(?:the\s+)?(?P<name>.+?)"
    r"(?:\s+app(?:lication)?)?[\s.!?]*$",
    re.IGNORECASE,
)

_DEFAULT_REASONS: dict[str, str] = {
    "openApplication": "The command asks to open an installed application.",
    "searchFiles": "The command asks to find files on this computer.",
    "webSearch": "The command asks for information best found on the web.",
    "answerQuestion": "The command is a direct question.",
    "unknown": "The command could not be matched to a supported action.",
}


class InterpretedAction(CamelModel):
    """Classification result; also the JSON schema the model fills in."""

    action: ActionName
    application_name: str | None = None
    search_query: str | None = None
    web_search_query: str | None = None
    question: str | None = None
    reason: str = ""


def _match_application(name: str, installed: list[str]) -> str | None:
    wanted = name.strip().lower()
    if not wanted:
        return None
    for candidate in installed:
        if candidate.lower() == wanted:
            return candidate
    for candidate in installed:
        lowered = candidate.lower()
        if wanted in lowered or lowered in wanted:
            return candidate
    return None


def match_open_command(command: str, installed: list[str]) -> str | None:
    """Return the installed application an ``open <name>`` command names."""
    match = _OPEN_COMMAND_RE.match(command)
    if match is None:
        return None
    wanted = match.group("name").strip().lower()
    for candidate in installed:
        if candidate.lower() == wanted:
            return candidate
    return None


def _build_prompt(voice_command: str, installed: list[str]) -> str:
    app_lines = "\n".join(f"- {name}" for name in installed) or "- (none)"
    return (
        "You are a voice command interpreter that helps users perform tasks on "
        "their computer and answers their questions.\n\n"
        "Decide the single best action for the command below:\n"
        "- openApplication: open one of the installed applications listed below; "
        "set applicationName to its exact name.\n"
        "- searchFiles: find files on this computer; set searchQuery.\n"
        "- webSearch: broad or current-events topics; set webSearchQuery.\n"
        "- answerQuestion: a direct factual or how-to question; set question to "
        "the command, verbatim.\n"
        "- unknown: the command cannot be resolved.\n"
        "Always explain your choice in reason.\n\n"
        f"Installed applications:\n{app_lines}\n\n"
        f"Voice command: {voice_command}"
    )


def normalize_action(
    result: InterpretedAction, voice_command: str, installed: list[str]
) -> InterpretedAction:
    """Keep only the fields belonging to the chosen action and fill gaps."""
    action = result.action
    reason = result.reason.strip()
    fields: dict[str, str | None] = {}

    if action == "openApplication":
        requested = (result.application_name or "").strip()
        if not requested:
            action = "unknown"
            reason = "No application name could be determined from the command."
        else:
            fields["application_name"] = (
                _match_application(requested, installed) or requested
            )
    elif action == "searchFiles":
        fields["search_query"] = (result.search_query or "").strip() or voice_command
    elif action == "webSearch":
        fields["web_search_query"] = (
            result.web_search_query or ""
        ).strip() or voice_command
    elif action == "answerQuestion":
        fields["question"] = voice_command

    return InterpretedAction(
        action=action, reason=reason or _DEFAULT_REASONS[action], **fields
    )


async def interpret_voice_command(
    backend: GenerationBackend,
    voice_command: str,
    installed_applications: list[str] | None = None,
) -> InterpretedAction:
    """Classify ``voice_command``; model failures resolve to ``unknown``."""
    if installed_applications is None:
        installed_applications = await ApplicationManager().application_names()

    command = voice_command.strip()
    if not command:
        return InterpretedAction(action="unknown", reason="The command was empty.")

    direct = match_open_command(command, installed_applications)
    if direct is not None:
        LOGGER.info(
            "dispatch.direct_match",
            extra={"event": "dispatch.direct_match", "application": direct},
        )
        return InterpretedAction(
            action="openApplication",
            application_name=direct,
            reason=f"The command asks to open {direct}, which is installed.",
        )

    try:
        result = await backend.generate_structured(
            _build_prompt(command, installed_applications), InterpretedAction
        )
    except OmniAssistError as exc:
        LOGGER.warning(
            "dispatch.model.failed",
            extra={
                "event": "dispatch.model.failed",
                "error_type": exc.__class__.__name__,
            },
        )
        return InterpretedAction(
            action="unknown", reason=f"The command could not be interpreted: {exc}"
        )

    normalized = normalize_action(result, command, installed_applications)
    LOGGER.info(
        "dispatch.classified",
        extra={"event": "dispatch.classified", "action": normalized.action},
    )
    return normalized
