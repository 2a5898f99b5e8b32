"""Scrollable conversation view widget."""

from __future__ import annotations

from textual.containers import VerticalScroll

from ..models import Session
from .message import MessageBubble


class ConversationView(VerticalScroll):
    """A scrollable container that hosts message bubbles."""

    persona_name = "Assistant"

    async def show_session(self, session: Session | None) -> None:
        """Replace the rendered bubbles with ``session``'s messages."""
        await self.remove_children()
        if session is None:
            return
        bubbles = [
            MessageBubble(message, persona_name=self.persona_name)
            for message in session.messages
        ]
        if bubbles:
            await self.mount_all(bubbles)
        self.scroll_end(animate=False)
