"""Prompt flows bound to typed request/response schemas.

Available flows:
- AssistantService.answer_question: answer with history and attachments
- generate_chat_title: short title for a session's first exchange
- interpret_voice_command: classify a command into an action route
- summarize_web_search: summarize web results for a query
"""

from __future__ import annotations

from .answer_question import (
    AnswerQuestionInput,
    AnswerQuestionOutput,
    AssistantService,
)
from .chat_title import ChatTitle, clamp_title, fallback_title, generate_chat_title
from .voice_command import InterpretedAction, interpret_voice_command
from .web_search import WebSummary, summarize_web_search

__all__ = [
    "AnswerQuestionInput",
    "AnswerQuestionOutput",
    "AssistantService",
    "ChatTitle",
    "InterpretedAction",
    "WebSummary",
    "clamp_title",
    "fallback_title",
    "generate_chat_title",
    "interpret_voice_command",
    "summarize_web_search",
]
