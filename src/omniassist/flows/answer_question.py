"""Assistant query flow: answer a question with history and attachments."""

from __future__ import annotations

import logging
from typing import Any

from ..attachments import (
    DEFAULT_PREVIEW_CHARS,
    FilePreview,
    build_file_preview,
    data_uri_payload,
)
from ..backend import GenerationBackend
from ..exceptions import OmniAssistError
from ..models import CamelModel, ConversationTurn, FileAttachment

LOGGER = logging.getLogger(__name__)

DEFAULT_FALLBACK_ANSWER = "Sorry, I couldn't find an answer to that. I'm still learning!"


class AnswerQuestionInput(CamelModel):
    """Request accepted by :meth:`AssistantService.answer_question`."""

    question: str
    image_data_uri: str | None = None
    file_data: FileAttachment | None = None
    conversation_history: list[ConversationTurn] | None = None


class AnswerQuestionOutput(CamelModel):
    """Structured answer; also the JSON schema the model is asked to fill."""

    answer: str
    original_question: str = ""


class AssistantService:
    """Build the answer prompt, call the model, and fall back once on failure."""

    def __init__(
        self,
        backend: GenerationBackend,
        persona_name: str = "Assistant",
        fallback_answer: str = DEFAULT_FALLBACK_ANSWER,
        text_preview_chars: int = DEFAULT_PREVIEW_CHARS,
    ) -> None:
        self.backend = backend
        self.persona_name = persona_name
        self.fallback_answer = fallback_answer
        self.text_preview_chars = text_preview_chars

    @classmethod
    def from_config(
        cls, backend: GenerationBackend, config: dict[str, Any]
    ) -> AssistantService:
        assistant = config.get("assistant", {})
        attachments = config.get("attachments", {})
        return cls(
            backend,
            persona_name=str(assistant.get("persona_name", "Assistant")),
            fallback_answer=str(
                assistant.get("fallback_answer", DEFAULT_FALLBACK_ANSWER)
            ),
            text_preview_chars=int(
                attachments.get("text_preview_chars", DEFAULT_PREVIEW_CHARS)
            ),
        )

    def build_prompt(
        self, request: AnswerQuestionInput, preview: FilePreview | None
    ) -> str:
        lines = [
            f"You are {self.persona_name}, a friendly and empathetic AI assistant. "
            "Give clear, concise and accurate answers to the user's questions or "
            "instructions. Use the conversation history to keep context and give "
            "relevant follow-up answers, in a warm, conversational tone.",
            "",
            "When you include code, wrap it in markdown code fences tagged with "
            "the language, for example:",
            "```python",
            "print('hello')",
            "```",
            "",
        ]

        if request.conversation_history:
            lines.append("--- Conversation history (oldest to newest) ---")
            for turn in request.conversation_history:
                lines.append(f"{turn.sender}: {turn.content}")
            lines.append("--- End of conversation history ---")
            lines.append("")
            lines.append("Considering the history above, respond to the following.")
            lines.append("")

        lines.append(f"Current user input: {request.question}")

        if request.image_data_uri:
            lines.append("")
            lines.append(
                "The user also provided an image with this input. "
                "Analyze it as part of your answer."
            )

        if request.file_data is not None and preview is not None:
            name = request.file_data.name
            mime = request.file_data.mime_type
            lines.append("")
            lines.append(
                f'The user also uploaded a file named "{name}" (type: {mime}). '
                "Help the user understand, summarize or answer questions about it."
            )
            if preview.is_text:
                lines.append(
                    f"File content (first {self.text_preview_chars} characters):"
                )
                lines.append("```")
                lines.append(preview.text_preview or "")
                lines.append("```")
            elif preview.is_image:
                lines.append("The file is an image and is included with this input.")
            else:
                lines.append(
                    "This is not a text file. Discuss its likely contents or uses "
                    "based on its name and type."
                )

        lines.append("")
        lines.append("Put your reply in the 'answer' field.")
        lines.append(
            "Also return the user's current input, verbatim, in the "
            "'originalQuestion' field."
        )
        return "\n".join(lines)

    @staticmethod
    def _images_for(
        request: AnswerQuestionInput, preview: FilePreview | None
    ) -> list[str]:
        images: list[str] = []
        if request.image_data_uri:
            images.append(data_uri_payload(request.image_data_uri))
        if request.file_data is not None and preview is not None and preview.is_image:
            images.append(data_uri_payload(request.file_data.data_uri))
        return images

    async def _fallback(self, question: str) -> str:
        prompt = (
            f"As {self.persona_name}, answer the following question in a friendly "
            f"and empathetic tone: {question}"
        )
        try:
            text = await self.backend.generate_text(prompt)
        except OmniAssistError as exc:
            LOGGER.error(
                "assistant.fallback.failed",
                extra={
                    "event": "assistant.fallback.failed",
                    "error_type": exc.__class__.__name__,
                },
            )
            return self.fallback_answer
        return text or self.fallback_answer

    async def answer_question(
        self, request: AnswerQuestionInput
    ) -> AnswerQuestionOutput:
        """Answer ``request``; never raises for model failures.

        A failed structured call triggers exactly one reduced free-text call
        (no history, no attachments). If that fails too, the static fallback
        answer is returned.
        """
        preview = (
            build_file_preview(request.file_data, self.text_preview_chars)
            if request.file_data is not None
            else None
        )
        prompt = self.build_prompt(request, preview)
        images = self._images_for(request, preview)

        output: AnswerQuestionOutput | None = None
        try:
            output = await self.backend.generate_structured(
                prompt, AnswerQuestionOutput, images=images or None
            )
        except OmniAssistError as exc:
            LOGGER.warning(
                "assistant.structured.failed",
                extra={
                    "event": "assistant.structured.failed",
                    "error_type": exc.__class__.__name__,
                },
            )

        if output is not None and output.answer.strip():
            return AnswerQuestionOutput(
                answer=output.answer,
                original_question=output.original_question.strip() or request.question,
            )

        return AnswerQuestionOutput(
            answer=await self._fallback(request.question),
            original_question=request.question,
        )
