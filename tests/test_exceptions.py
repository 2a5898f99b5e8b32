"""Tests for domain exception hierarchy."""

from __future__ import annotations

import unittest

from omniassist.exceptions import (
    AttachmentDecodeError,
    AttachmentError,
    AttachmentValidationError,
    BackendConnectionError,
    BackendModelNotFoundError,
    ConfigValidationError,
    GenerationError,
    OmniAssistError,
    SessionBusyError,
    SessionValidationError,
)


class ExceptionHierarchyTests(unittest.TestCase):
    """Validate exception inheritance contract."""

    def test_exception_hierarchy(self) -> None:
        for error_cls in (
            BackendConnectionError,
            BackendModelNotFoundError,
            GenerationError,
            ConfigValidationError,
            SessionValidationError,
            SessionBusyError,
            AttachmentError,
        ):
            self.assertTrue(issubclass(error_cls, OmniAssistError))

    def test_attachment_errors_share_base(self) -> None:
        self.assertTrue(issubclass(AttachmentDecodeError, AttachmentError))
        self.assertTrue(issubclass(AttachmentValidationError, AttachmentError))


if __name__ == "__main__":
    unittest.main()
