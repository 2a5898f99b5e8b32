"""Web search summary flow."""

from __future__ import annotations

import logging

from ..backend import GenerationBackend
from ..exceptions import OmniAssistError
from ..models import CamelModel

LOGGER = logging.getLogger(__name__)


class WebSummary(CamelModel):
    summary: str


async def summarize_web_search(backend: GenerationBackend, query: str) -> WebSummary:
    """Summarize the top results for ``query``; failures yield an apology summary."""
    try:
        result = await backend.generate_structured(
            "Summarize the top web search results for the following query in a "
            f"few short paragraphs. Put the text in the 'summary' field.\n\n{query}",
            WebSummary,
        )
    except OmniAssistError as exc:
        LOGGER.warning(
            "web_search.summary.failed",
            extra={
                "event": "web_search.summary.failed",
                "error_type": exc.__class__.__name__,
            },
        )
        result = WebSummary(summary="")
    if not result.summary.strip():
        return WebSummary(
            summary=f'I couldn\'t summarize web results for "{query}" right now.'
        )
    return result
