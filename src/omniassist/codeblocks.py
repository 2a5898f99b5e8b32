"""Fenced code-block scanning for generated assistant text."""

from __future__ import annotations

import re

from .models import CodeBlock

DEFAULT_LANGUAGE = "plaintext"

_FENCE_RE = re.compile(
    r"```(?P<lang>[^\n`]*)\n(?P<code>.*?)```",
    re.DOTALL,
)


def _language_from_info(info: str) -> str:
    # The info string may carry extra attributes after the language word.
    parts = info.strip().split()
    return parts[0] if parts else ""


def _trim_blank_lines(code: str) -> str:
    lines = code.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines)


def extract_code_blocks(text: str) -> list[CodeBlock]:
    """Return every fenced code region in ``text``, in order of appearance.

    The language defaults to ``"plaintext"`` when the fence has no tag. Blank
    lines around the code are dropped; indentation and inner blank lines are
    kept verbatim.
    """
    return [
        CodeBlock(
            language=_language_from_info(match.group("lang")) or DEFAULT_LANGUAGE,
            code=_trim_blank_lines(match.group("code")),
        )
        for match in _FENCE_RE.finditer(text)
    ]


def split_message(text: str) -> list[tuple[str, str | None]]:
    """Split *text* into alternating prose and code-block segments.

    Returns a list of ``(content, lang)`` tuples where ``lang`` is ``None``
    for prose segments and the fence language string (possibly empty) for
    code blocks.
    """
    segments: list[tuple[str, str | None]] = []
    cursor = 0
    for match in _FENCE_RE.finditer(text):
        start, end = match.span()
        if start > cursor:
            prose = text[cursor:start]
            if prose.strip():
                segments.append((prose, None))
        code = _trim_blank_lines(match.group("code"))
        segments.append((code, _language_from_info(match.group("lang"))))
        cursor = end
    tail = text[cursor:]
    if tail.strip():
        segments.append((tail, None))
    return segments
