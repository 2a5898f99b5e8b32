"""Title generation for a session's first exchange."""

from __future__ import annotations

import logging

from ..backend import GenerationBackend
from ..exceptions import OmniAssistError
from ..models import CamelModel

LOGGER = logging.getLogger(__name__)

DEFAULT_FALLBACK_TITLE = "Chat with Assistant"
MAX_TITLE_LENGTH = 70
ELLIPSIS = "..."
FALLBACK_WORDS = 5
# Longer user messages are unlikely to open with a usable label.
SHORT_MESSAGE_CHARS = 100
# Keep the title prompt cheap regardless of how long the exchange was.
PROMPT_EXCERPT_CHARS = 1000


class ChatTitle(CamelModel):
    title: str


def clamp_title(title: str, max_length: int = MAX_TITLE_LENGTH) -> str:
    """Collapse whitespace and cut to ``max_length`` with an ellipsis."""
    normalized = " ".join(title.split())
    if len(normalized) <= max_length:
        return normalized
    return normalized[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS


def fallback_title(
    user_message: str, default_title: str = DEFAULT_FALLBACK_TITLE
) -> str:
    """Derive a title from the opening words of the user message."""
    text = user_message.strip()
    if not text or len(text) > SHORT_MESSAGE_CHARS:
        return default_title
    words = text.split()
    if len(words) <= FALLBACK_WORDS:
        return " ".join(words)
    return " ".join(words[:FALLBACK_WORDS]) + ELLIPSIS


def _excerpt(text: str) -> str:
    if len(text) <= PROMPT_EXCERPT_CHARS:
        return text
    return text[:PROMPT_EXCERPT_CHARS] + ELLIPSIS


async def generate_chat_title(
    backend: GenerationBackend,
    user_message: str,
    ai_message: str,
    *,
    persona_name: str = "Assistant",
    default_title: str = DEFAULT_FALLBACK_TITLE,
    max_length: int = MAX_TITLE_LENGTH,
) -> str:
    """Ask the model for a short descriptive title, with deterministic fallbacks."""
    prompt = (
        "Based on the following opening exchange of a conversation, write a "
        "short, descriptive title (3-5 words) that captures the topic of the "
        f"user's query. The AI in this conversation is named {persona_name}.\n\n"
        f'User: "{_excerpt(user_message)}"\n'
        f'{persona_name}: "{_excerpt(ai_message)}"\n\n'
        "Suggest a title for this chat in the 'title' field."
    )
    title = ""
    try:
        result = await backend.generate_structured(prompt, ChatTitle)
        title = result.title.strip().strip("\"'").strip()
    except OmniAssistError as exc:
        LOGGER.warning(
            "title.generation.failed",
            extra={
                "event": "title.generation.failed",
                "error_type": exc.__class__.__name__,
            },
        )

    if not title:
        title = fallback_title(user_message, default_title)
    return clamp_title(title, max_length)
