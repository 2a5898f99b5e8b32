"""Stand-in action services for the voice assistant.

These simulate OS integration and return static data:
- ApplicationManager: list and "open" installed applications
- FileSearchService: search local files
"""

from __future__ import annotations

from .applications import DEFAULT_APPLICATIONS, Application, ApplicationManager
from .file_search import FileInfo, FileSearchService

__all__ = [
    "Application",
    "ApplicationManager",
    "DEFAULT_APPLICATIONS",
    "FileInfo",
    "FileSearchService",
]
