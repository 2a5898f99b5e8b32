"""Session list management: CRUD, message lifecycle, titles and persistence."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .exceptions import SessionValidationError
from .flows.chat_title import clamp_title
from .kv_store import LocalStore
from .models import CodeBlock, ConversationTurn, FileAttachment, Message, Session

LOGGER = logging.getLogger(__name__)

INTERRUPTED_TEXT = "Response was interrupted."
IMAGE_TITLE = "Image attachment"
IMAGE_PLACEHOLDER = "[user sent an image]"
AUTOMATIC_TITLE_SOURCES = frozenset({"default", "interim"})

_SESSION_LIST = TypeAdapter(list[Session])


@dataclass(frozen=True)
class SessionSettings:
    """Tunables for :class:`SessionManager`, normally read from config."""

    store_key: str = "chatSessions"
    default_title: str = "New Chat"
    sort_by_pin: bool = True
    interim_title_length: int = 50
    max_title_length: int = 70

    @classmethod
    def from_config(cls, sessions_config: dict[str, Any]) -> SessionSettings:
        return cls(
            store_key=str(sessions_config.get("store_key", cls.store_key)),
            default_title=str(sessions_config.get("default_title", cls.default_title)),
            sort_by_pin=bool(sessions_config.get("sort_by_pin", cls.sort_by_pin)),
            interim_title_length=int(
                sessions_config.get("interim_title_length", cls.interim_title_length)
            ),
            max_title_length=int(
                sessions_config.get("max_title_length", cls.max_title_length)
            ),
        )


class SessionManager:
    """Own the in-memory session list and mirror every change to the store.

    All mutations on an unknown session id are silent no-ops; methods that
    return a value return ``None`` or ``False`` in that case.
    """

    def __init__(self, store: LocalStore, settings: SessionSettings | None = None) -> None:
        self.store = store
        self.settings = settings or SessionSettings()
        self._sessions: list[Session] = []
        self._active_id: str | None = None

    # -- accessors -------------------------------------------------------

    @property
    def sessions(self) -> list[Session]:
        """Sessions in display order (shallow copy of the list)."""
        return list(self._sessions)

    @property
    def active_session_id(self) -> str | None:
        return self._active_id

    @property
    def active_session(self) -> Session | None:
        if self._active_id is None:
            return None
        return self.get_session(self._active_id)

    def get_session(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def has_pending(self, session_id: str) -> bool:
        session = self.get_session(session_id)
        return session is not None and session.pending_message is not None

    # -- persistence -----------------------------------------------------

    def _persist(self) -> None:
        self.store.set(
            self.settings.store_key,
            [session.to_json_dict() for session in self._sessions],
        )

    def _prepare_raw(self, raw: list[Any]) -> list[Any]:
        prepared: list[Any] = []
        for item in raw:
            if isinstance(item, dict) and "titleSource" not in item:
                item = dict(item)
                item["titleSource"] = (
                    "default"
                    if item.get("title") == self.settings.default_title
                    else "interim"
                )
            prepared.append(item)
        return prepared

    def _decode(self, raw: Any) -> list[Session]:
        if not isinstance(raw, list):
            LOGGER.warning(
                "sessions.load.invalid",
                extra={"event": "sessions.load.invalid", "reason": "not a list"},
            )
            return []
        try:
            sessions = _SESSION_LIST.validate_python(self._prepare_raw(raw))
        except ValidationError as exc:
            LOGGER.warning(
                "sessions.load.invalid",
                extra={
                    "event": "sessions.load.invalid",
                    "reason": f"{exc.error_count()} validation errors",
                },
            )
            return []

        unique: list[Session] = []
        seen: set[str] = set()
        for session in sessions:
            if session.id in seen:
                LOGGER.warning(
                    "sessions.load.duplicate_id",
                    extra={"event": "sessions.load.duplicate_id", "session_id": session.id},
                )
                continue
            seen.add(session.id)
            unique.append(session)
        return unique

    @staticmethod
    def _recover_placeholders(sessions: list[Session]) -> int:
        recovered = 0
        for session in sessions:
            for index, message in enumerate(session.messages):
                if message.is_loading:
                    session.messages[index] = Message(
                        id=message.id,
                        sender="ai",
                        content=INTERRUPTED_TEXT,
                        timestamp=message.timestamp,
                        is_error=True,
                    )
                    recovered += 1
        return recovered

    def _pin_sort(self) -> None:
        self._sessions.sort(key=lambda session: session.updated_at, reverse=True)
        self._sessions.sort(key=lambda session: not session.is_pinned)

    def _sort(self) -> None:
        if self.settings.sort_by_pin:
            self._pin_sort()

    def load(self) -> list[Session]:
        """Read the stored session list once and pick an active session."""
        self._sessions = self._decode(self.store.get(self.settings.store_key, []))
        recovered = self._recover_placeholders(self._sessions)
        self._sort()
        LOGGER.info(
            "sessions.loaded",
            extra={
                "event": "sessions.loaded",
                "count": len(self._sessions),
                "recovered_placeholders": recovered,
            },
        )
        if recovered:
            self._persist()

        if self._sessions:
            self._active_id = self._sessions[0].id
        else:
            self._active_id = None
            self.create_session()
        return self.sessions

    # -- session CRUD ----------------------------------------------------

    def create_session(self) -> str:
        """Create an empty session, make it active and return its id."""
        session = Session(title=self.settings.default_title)
        self._sessions.insert(0, session)
        self._sort()
        self._active_id = session.id
        self._persist()
        LOGGER.info(
            "sessions.created",
            extra={"event": "sessions.created", "session_id": session.id},
        )
        return session.id

    def select_session(self, session_id: str) -> None:
        if self.get_session(session_id) is not None:
            self._active_id = session_id

    def delete_session(self, session_id: str) -> None:
        """Remove a session; never leaves the active id dangling."""
        session = self.get_session(session_id)
        if session is None:
            return
        self._sessions.remove(session)
        LOGGER.info(
            "sessions.deleted",
            extra={"event": "sessions.deleted", "session_id": session_id},
        )
        if self._active_id == session_id:
            if self._sessions:
                latest = max(self._sessions, key=lambda item: item.updated_at)
                self._active_id = latest.id
            else:
                self._active_id = None
                # create_session persists the new list.
                self.create_session()
                return
        self._persist()

    def toggle_pin(self, session_id: str) -> None:
        session = self.get_session(session_id)
        if session is None:
            return
        session.is_pinned = not session.is_pinned
        session.touch()
        self._pin_sort()
        self._persist()

    def rename_session(self, session_id: str, new_title: str) -> None:
        """Rename a session.

        Raises:
            SessionValidationError: when ``new_title`` is empty or whitespace.
        """
        title = new_title.strip()
        if not title:
            raise SessionValidationError("Chat title cannot be empty.")
        session = self.get_session(session_id)
        if session is None:
            return
        session.title = clamp_title(title, self.settings.max_title_length)
        session.title_source = "user"
        session.touch()
        self._sort()
        self._persist()

    # -- message lifecycle -----------------------------------------------

    def _interim_title(
        self, content: str, image: str | None, file: FileAttachment | None
    ) -> str | None:
        text = content.strip()
        limit = self.settings.interim_title_length
        if text:
            return text[:limit] + ("..." if len(text) > limit else "")
        if image is not None:
            return IMAGE_TITLE
        if file is not None:
            return clamp_title(f"File: {file.name}", self.settings.max_title_length)
        return None

    def append_user_message(
        self,
        session_id: str,
        content: str,
        image: str | None = None,
        file: FileAttachment | None = None,
    ) -> Message | None:
        """Append a user message, deriving an interim title on the first one."""
        session = self.get_session(session_id)
        if session is None:
            return None
        is_first = not any(item.sender == "user" for item in session.messages)
        message = Message(sender="user", content=content, image=image, file=file)
        session.messages.append(message)

        if is_first and session.title_source == "default":
            interim = self._interim_title(content, image, file)
            if interim:
                session.title = interim
                session.title_source = "interim"

        session.touch()
        self._sort()
        self._persist()
        return message

    def append_ai_placeholder(self, session_id: str) -> str | None:
        """Append a loading AI message, or return the one already pending."""
        session = self.get_session(session_id)
        if session is None:
            return None
        pending = session.pending_message
        if pending is not None:
            return pending.id
        message = Message(sender="ai", is_loading=True)
        session.messages.append(message)
        self._persist()
        return message.id

    def _replace_placeholder(
        self, session_id: str, message_id: str, replacement: Message
    ) -> Session | None:
        session = self.get_session(session_id)
        if session is None:
            return None
        index = session.find_message(message_id)
        if index is None or not session.messages[index].is_loading:
            return None
        session.messages[index] = replacement
        session.touch()
        self._sort()
        return session

    def resolve_ai_message(
        self,
        session_id: str,
        message_id: str,
        content: str,
        extracted_code_blocks: list[CodeBlock] | None = None,
    ) -> bool:
        """Replace the placeholder with the final answer.

        Returns True exactly once per session: when the title is still
        automatic and this is the first successfully completed exchange.
        """
        session = self._replace_placeholder(
            session_id,
            message_id,
            Message(
                id=message_id,
                sender="ai",
                content=content,
                extracted_code_blocks=extracted_code_blocks or None,
            ),
        )
        if session is None:
            return False
        self._persist()
        return (
            session.title_source in AUTOMATIC_TITLE_SOURCES
            and session.completed_ai_messages == 1
        )

    def resolve_ai_error(self, session_id: str, message_id: str, error_text: str) -> None:
        session = self._replace_placeholder(
            session_id,
            message_id,
            Message(id=message_id, sender="ai", content=error_text, is_error=True),
        )
        if session is not None:
            self._persist()

    def apply_generated_title(self, session_id: str, title: str) -> bool:
        """Set a generated title unless the user has renamed the session."""
        session = self.get_session(session_id)
        if session is None or session.title_source not in AUTOMATIC_TITLE_SOURCES:
            return False
        cleaned = title.strip()
        if not cleaned:
            return False
        session.title = clamp_title(cleaned, self.settings.max_title_length)
        session.title_source = "generated"
        self._persist()
        return True

    def conversation_history(
        self, session_id: str, exclude_message_id: str | None = None
    ) -> list[ConversationTurn]:
        """Completed, non-error turns oldest first, as sent to the assistant."""
        session = self.get_session(session_id)
        if session is None:
            return []
        turns: list[ConversationTurn] = []
        for message in session.messages:
            if message.id == exclude_message_id:
                continue
            if message.is_loading or message.is_error:
                continue
            content = message.content
            if not content.strip():
                if message.image is not None:
                    content = IMAGE_PLACEHOLDER
                elif message.file is not None:
                    content = f"[user sent a file: {message.file.name}]"
                else:
                    continue
            turns.append(ConversationTurn(sender=message.sender, content=content))
        return turns
