"""Single-shot command assistant: classify, route, and render the result."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import Field
from rich.console import Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .backend import GenerationBackend
from .flows.answer_question import AnswerQuestionInput, AssistantService
from .flows.voice_command import InterpretedAction, interpret_voice_command
from .flows.web_search import summarize_web_search
from .models import CamelModel
from .services.applications import ApplicationManager
from .services.file_search import FileSearchService

LOGGER = logging.getLogger(__name__)


class InterpretedActionResult(CamelModel):
    kind: Literal["interpretedAction"] = "interpretedAction"
    interpretation: InterpretedAction
    performed: bool = False


class WebSummaryResult(CamelModel):
    kind: Literal["webSummary"] = "webSummary"
    query: str
    summary: str


class AnsweredQuestionResult(CamelModel):
    kind: Literal["answeredQuestion"] = "answeredQuestion"
    question: str
    answer: str


class FoundFile(CamelModel):
    name: str
    path: str


class FileListResult(CamelModel):
    kind: Literal["fileList"] = "fileList"
    query: str
    files: list[FoundFile]


class PlainMessageResult(CamelModel):
    kind: Literal["plainMessage"] = "plainMessage"
    message: str
    is_error: bool = False


AssistantResult = Annotated[
    Union[
        InterpretedActionResult,
        WebSummaryResult,
        AnsweredQuestionResult,
        FileListResult,
        PlainMessageResult,
    ],
    Field(discriminator="kind"),
]


class VoiceAssistant:
    """Route a free-text command to the matching (simulated) action."""

    def __init__(
        self,
        backend: GenerationBackend,
        assistant: AssistantService,
        applications: ApplicationManager | None = None,
        file_search: FileSearchService | None = None,
    ) -> None:
        self.backend = backend
        self.assistant = assistant
        self.applications = applications or ApplicationManager()
        self.file_search = file_search or FileSearchService()

    @classmethod
    def from_config(
        cls, backend: GenerationBackend, config: dict[str, Any]
    ) -> VoiceAssistant:
        return cls(
            backend,
            AssistantService.from_config(backend, config),
            ApplicationManager.from_config(config.get("actions", {})),
        )

    async def handle_command(self, text: str) -> AssistantResult:
        command = text.strip()
        if not command:
            return PlainMessageResult(message="Please enter a command.", is_error=True)

        installed = await self.applications.application_names()
        action = await interpret_voice_command(self.backend, command, installed)
        LOGGER.info(
            "voice.command.routed",
            extra={"event": "voice.command.routed", "action": action.action},
        )

        if action.action == "openApplication" and action.application_name:
            await self.applications.open_application(action.application_name)
            return InterpretedActionResult(interpretation=action, performed=True)

        if action.action == "searchFiles":
            query = action.search_query or command
            files = await self.file_search.search_files(query)
            return FileListResult(
                query=query,
                files=[FoundFile(name=item.name, path=item.path) for item in files],
            )

        if action.action == "webSearch":
            query = action.web_search_query or command
            summary = await summarize_web_search(self.backend, query)
            return WebSummaryResult(query=query, summary=summary.summary)

        if action.action == "answerQuestion":
            question = action.question or command
            output = await self.assistant.answer_question(
                AnswerQuestionInput(question=question)
            )
            return AnsweredQuestionResult(question=question, answer=output.answer)

        return InterpretedActionResult(interpretation=action)


def render_result(result: AssistantResult) -> RenderableType:
    """Build a rich renderable for any assistant result."""
    if isinstance(result, PlainMessageResult):
        style = "bold red" if result.is_error else ""
        return Text(result.message, style=style)

    if isinstance(result, FileListResult):
        table = Table(title=f"Files matching {result.query!r}")
        table.add_column("Name")
        table.add_column("Path", style="dim")
        for item in result.files:
            table.add_row(item.name, item.path)
        return table

    if isinstance(result, WebSummaryResult):
        return Panel(Markdown(result.summary), title=f"Web: {result.query}")

    if isinstance(result, AnsweredQuestionResult):
        return Panel(Markdown(result.answer), title=result.question)

    interpretation = result.interpretation
    lines = [Text(f"Action: {interpretation.action}", style="bold")]
    if interpretation.application_name:
        verb = "Opened" if result.performed else "Application"
        lines.append(Text(f"{verb}: {interpretation.application_name}"))
    if interpretation.reason:
        lines.append(Text(interpretation.reason, style="italic"))
    return Panel(Group(*lines), title="Command")
