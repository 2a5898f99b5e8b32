"""Tests for fenced code-block extraction."""

from __future__ import annotations

import unittest

from omniassist.codeblocks import extract_code_blocks, split_message
from omniassist.models import CodeBlock


class ExtractCodeBlocksTests(unittest.TestCase):
    def test_no_fences_yields_empty_list(self) -> None:
        self.assertEqual(extract_code_blocks("just prose, no code"), [])

    def test_language_tag_and_default(self) -> None:
        text = (
            "Here:\n```python\nprint('hi')\n```\n"
            "and\n```\nplain text\n```\n"
        )
        self.assertEqual(
            extract_code_blocks(text),
            [
                CodeBlock(language="python", code="print('hi')"),
                CodeBlock(language="plaintext", code="plain text"),
            ],
        )

    def test_blank_lines_trimmed_indentation_kept(self) -> None:
        text = "```js\n\n    const a = 1;\n\n    a++;\n\n```"
        [block] = extract_code_blocks(text)
        self.assertEqual(block.code, "    const a = 1;\n\n    a++;")

    def test_extraction_is_idempotent(self) -> None:
        text = "```sh\nls -la\n```"
        self.assertEqual(extract_code_blocks(text), extract_code_blocks(text))

    def test_unterminated_fence_is_ignored(self) -> None:
        self.assertEqual(extract_code_blocks("```python\nprint(1)\n"), [])


class SplitMessageTests(unittest.TestCase):
    def test_prose_and_code_segments_in_order(self) -> None:
        segments = split_message("Intro\n```py\nx = 1\n```\nOutro")
        self.assertEqual(
            segments, [("Intro\n", None), ("x = 1", "py"), ("\nOutro", None)]
        )

    def test_untagged_fence_has_empty_language(self) -> None:
        self.assertEqual(split_message("```\ncode\n```"), [("code", "")])


if __name__ == "__main__":
    unittest.main()
