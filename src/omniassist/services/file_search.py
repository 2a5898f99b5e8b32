"""Simulated local file search."""

from __future__ import annotations

from dataclasses import dataclass
import logging

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileInfo:
    """A file found during a search."""

    name: str
    path: str


_STATIC_RESULTS: tuple[FileInfo, ...] = (
    FileInfo(name="report.docx", path="/documents/reports/report.docx"),
    FileInfo(name="image.png", path="/pictures/image.png"),
)


class FileSearchService:
    """Return a fixed result set for any query."""

    async def search_files(self, query: str) -> list[FileInfo]:
        LOGGER.info(
            "actions.files.search",
            extra={"event": "actions.files.search", "query": query, "simulated": True},
        )
        return list(_STATIC_RESULTS)
