"""Sidebar listing chat sessions."""

from __future__ import annotations

from textual.message import Message
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from ..models import Session

PIN_MARKER = "* "


def session_label(session: Session) -> str:
    prefix = PIN_MARKER if session.is_pinned else "  "
    return f"{prefix}{session.title}"


class SessionList(OptionList):
    """Option list of sessions in display order; option ids are session ids."""

    class SessionSelected(Message):
        """Posted when the user picks a session."""

        def __init__(self, session_id: str) -> None:
            super().__init__()
            self.session_id = session_id

    def show_sessions(self, sessions: list[Session], active_id: str | None) -> None:
        self.clear_options()
        self.add_options(
            [Option(session_label(session), id=session.id) for session in sessions]
        )
        for index, session in enumerate(sessions):
            if session.id == active_id:
                self.highlighted = index
                break

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        if event.option.id is not None:
            self.post_message(self.SessionSelected(event.option.id))
