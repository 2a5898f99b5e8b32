"""Orchestrates one chat exchange: session updates, answer, code blocks, title."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .backend import GenerationBackend
from .codeblocks import extract_code_blocks
from .exceptions import SessionBusyError, SessionValidationError
from .flows.answer_question import AnswerQuestionInput, AssistantService
from .flows.chat_title import DEFAULT_FALLBACK_TITLE, MAX_TITLE_LENGTH, generate_chat_title
from .models import FileAttachment, Message
from .sessions import SessionManager
from .state import ExchangeState, ExchangeTracker

LOGGER = logging.getLogger(__name__)

IMAGE_ONLY_QUESTION = "Please describe the attached image."


def _question_for(content: str, image: str | None, file: FileAttachment | None) -> str:
    text = content.strip()
    if text:
        return text
    if image is not None:
        return IMAGE_ONLY_QUESTION
    if file is not None:
        return f'Please help me with the attached file "{file.name}".'
    return ""


class ChatController:
    """Drive the user → assistant exchange for the active session."""

    def __init__(
        self,
        sessions: SessionManager,
        assistant: AssistantService,
        backend: GenerationBackend,
        *,
        persona_name: str = "Assistant",
        fallback_title: str = DEFAULT_FALLBACK_TITLE,
        max_title_length: int = MAX_TITLE_LENGTH,
        tracker: ExchangeTracker | None = None,
        on_change: Callable[[str], Awaitable[None]] | None = None,
    ) -> None:
        self.sessions = sessions
        self.assistant = assistant
        self.backend = backend
        self.persona_name = persona_name
        self.fallback_title = fallback_title
        self.max_title_length = max_title_length
        self.tracker = tracker or ExchangeTracker()
        self.on_change = on_change

    @classmethod
    def from_config(
        cls,
        sessions: SessionManager,
        backend: GenerationBackend,
        config: dict[str, Any],
    ) -> ChatController:
        assistant_config = config.get("assistant", {})
        return cls(
            sessions,
            AssistantService.from_config(backend, config),
            backend,
            persona_name=str(assistant_config.get("persona_name", "Assistant")),
            fallback_title=str(
                assistant_config.get("fallback_title", DEFAULT_FALLBACK_TITLE)
            ),
            max_title_length=int(
                config.get("sessions", {}).get("max_title_length", MAX_TITLE_LENGTH)
            ),
        )

    def _message(self, session_id: str, message_id: str) -> Message | None:
        session = self.sessions.get_session(session_id)
        if session is None:
            return None
        index = session.find_message(message_id)
        return session.messages[index] if index is not None else None

    async def _notify(self, session_id: str) -> None:
        if self.on_change is not None:
            await self.on_change(session_id)

    async def _update_title(self, session_id: str, user_text: str, answer: str) -> None:
        # Attachment-only chats keep their interim title when the model fails.
        title = await generate_chat_title(
            self.backend,
            user_text,
            answer,
            persona_name=self.persona_name,
            default_title=self.fallback_title if user_text else "",
            max_length=self.max_title_length,
        )
        if self.sessions.apply_generated_title(session_id, title):
            LOGGER.info(
                "chat.title.updated",
                extra={"event": "chat.title.updated", "session_id": session_id},
            )

    async def can_send(self, session_id: str) -> bool:
        """Return True when the session has no exchange in flight."""
        if self.sessions.has_pending(session_id):
            return False
        return await self.tracker.can_send_message(session_id)

    async def delete_session(self, session_id: str) -> None:
        """Delete a session and drop its exchange tracking."""
        self.sessions.delete_session(session_id)
        await self.tracker.forget(session_id)

    async def send_message(
        self,
        content: str,
        image: str | None = None,
        file: FileAttachment | None = None,
    ) -> Message | None:
        """Run one exchange on the active session and return the final AI message.

        Raises:
            SessionValidationError: when there is neither text nor an attachment.
            SessionBusyError: when the session already has a pending response.
        """
        question = _question_for(content, image, file)
        if not question:
            raise SessionValidationError("Message cannot be empty.")

        session_id = self.sessions.active_session_id
        if session_id is None:
            session_id = self.sessions.create_session()

        if self.sessions.has_pending(session_id) or not await self.tracker.begin_exchange(
            session_id
        ):
            state = await self.tracker.get_state(session_id)
            LOGGER.info(
                "chat.exchange.busy",
                extra={
                    "event": "chat.exchange.busy",
                    "session_id": session_id,
                    "state": state.value,
                },
            )
            raise SessionBusyError("A response is already pending for this chat.")

        user_message = self.sessions.append_user_message(
            session_id, content.strip(), image=image, file=file
        )
        placeholder_id = self.sessions.append_ai_placeholder(session_id)
        if user_message is None or placeholder_id is None:
            await self.tracker.forget(session_id)
            return None
        await self.tracker.transition_if(
            session_id,
            ExchangeState.USER_MESSAGE_APPENDED,
            ExchangeState.AI_PLACEHOLDER_APPENDED,
        )
        await self._notify(session_id)

        request = AnswerQuestionInput(
            question=question,
            image_data_uri=image,
            file_data=file,
            conversation_history=self.sessions.conversation_history(
                session_id, exclude_message_id=user_message.id
            )
            or None,
        )
        LOGGER.info(
            "chat.exchange.start",
            extra={
                "event": "chat.exchange.start",
                "session_id": session_id,
                "has_image": image is not None,
                "has_file": file is not None,
            },
        )

        try:
            output = await self.assistant.answer_question(request)
        except Exception as exc:  # noqa: BLE001 - any failure must end the exchange.
            LOGGER.error(
                "chat.exchange.failed",
                extra={
                    "event": "chat.exchange.failed",
                    "session_id": session_id,
                    "error_type": exc.__class__.__name__,
                },
            )
            self.sessions.resolve_ai_error(session_id, placeholder_id, f"Error: {exc}")
            await self.tracker.transition_if(
                session_id,
                ExchangeState.AI_PLACEHOLDER_APPENDED,
                ExchangeState.AI_ERRORED,
            )
            await self._notify(session_id)
            return self._message(session_id, placeholder_id)

        needs_title = self.sessions.resolve_ai_message(
            session_id,
            placeholder_id,
            output.answer,
            extract_code_blocks(output.answer),
        )
        await self.tracker.transition_if(
            session_id,
            ExchangeState.AI_PLACEHOLDER_APPENDED,
            ExchangeState.AI_RESOLVED,
        )
        LOGGER.info(
            "chat.exchange.done",
            extra={"event": "chat.exchange.done", "session_id": session_id},
        )
        await self._notify(session_id)

        if needs_title:
            await self._update_title(session_id, user_message.content, output.answer)
            await self._notify(session_id)
        return self._message(session_id, placeholder_id)
