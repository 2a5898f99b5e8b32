"""Per-session message-exchange state machine with lock-protected transitions."""

from __future__ import annotations

import asyncio
from enum import Enum


class ExchangeState(str, Enum):
    """Lifecycle of one user → assistant exchange within a session."""

    IDLE = "IDLE"
    USER_MESSAGE_APPENDED = "USER_MESSAGE_APPENDED"
    AI_PLACEHOLDER_APPENDED = "AI_PLACEHOLDER_APPENDED"
    AI_RESOLVED = "AI_RESOLVED"
    AI_ERRORED = "AI_ERRORED"


TERMINAL_STATES = frozenset(
    {ExchangeState.IDLE, ExchangeState.AI_RESOLVED, ExchangeState.AI_ERRORED}
)

_ALLOWED_TRANSITIONS: dict[ExchangeState, frozenset[ExchangeState]] = {
    ExchangeState.IDLE: frozenset({ExchangeState.USER_MESSAGE_APPENDED}),
    ExchangeState.USER_MESSAGE_APPENDED: frozenset(
        {ExchangeState.AI_PLACEHOLDER_APPENDED}
    ),
    ExchangeState.AI_PLACEHOLDER_APPENDED: frozenset(
        {ExchangeState.AI_RESOLVED, ExchangeState.AI_ERRORED}
    ),
    ExchangeState.AI_RESOLVED: frozenset({ExchangeState.USER_MESSAGE_APPENDED}),
    ExchangeState.AI_ERRORED: frozenset({ExchangeState.USER_MESSAGE_APPENDED}),
}


class ExchangeTracker:
    """Track exchange state per session id under a single async lock."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._states: dict[str, ExchangeState] = {}

    async def get_state(self, session_id: str) -> ExchangeState:
        """Return the current state under lock."""
        async with self._lock:
            return self._states.get(session_id, ExchangeState.IDLE)

    async def transition_if(
        self,
        session_id: str,
        expected_state: ExchangeState,
        new_state: ExchangeState,
    ) -> bool:
        """Transition only when the current state matches and the edge is allowed."""
        async with self._lock:
            current = self._states.get(session_id, ExchangeState.IDLE)
            if current != expected_state:
                return False
            if new_state not in _ALLOWED_TRANSITIONS[current]:
                return False
            self._states[session_id] = new_state
            return True

    async def begin_exchange(self, session_id: str) -> bool:
        """Enter USER_MESSAGE_APPENDED from any terminal state; False if busy."""
        async with self._lock:
            current = self._states.get(session_id, ExchangeState.IDLE)
            if current not in TERMINAL_STATES:
                return False
            self._states[session_id] = ExchangeState.USER_MESSAGE_APPENDED
            return True

    async def can_send_message(self, session_id: str) -> bool:
        """Return True when no exchange is in flight for the session."""
        async with self._lock:
            return self._states.get(session_id, ExchangeState.IDLE) in TERMINAL_STATES

    async def forget(self, session_id: str) -> None:
        """Drop tracking for a deleted session."""
        async with self._lock:
            self._states.pop(session_id, None)
