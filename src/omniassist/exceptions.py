"""Domain exception hierarchy for the OmniAssist application."""

from __future__ import annotations


class OmniAssistError(RuntimeError):
    """Base class for all domain-level assistant errors."""


class BackendConnectionError(OmniAssistError):
    """Raised when the Ollama host cannot be reached."""


class BackendModelNotFoundError(OmniAssistError):
    """Raised when the configured model is unavailable."""


class GenerationError(OmniAssistError):
    """Raised when the model fails to produce usable output."""


class ConfigValidationError(OmniAssistError):
    """Raised when configuration cannot be validated safely."""


class SessionValidationError(OmniAssistError):
    """Raised when a session operation is rejected for invalid user input."""


class SessionBusyError(OmniAssistError):
    """Raised when a message is sent while an exchange is still pending."""


class AttachmentError(OmniAssistError):
    """Base class for attachment handling failures."""


class AttachmentDecodeError(AttachmentError):
    """Raised when a data URI cannot be decoded."""


class AttachmentValidationError(AttachmentError):
    """Raised when an attachment path fails validation."""
