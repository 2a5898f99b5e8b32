"""Tests for the simulated action services and the web summary flow."""

from __future__ import annotations

from typing import Any
import unittest

from omniassist.exceptions import GenerationError
from omniassist.flows.web_search import WebSummary, summarize_web_search
from omniassist.services import (
    Application,
    ApplicationManager,
    FileInfo,
    FileSearchService,
)


class ApplicationManagerTests(unittest.IsolatedAsyncioTestCase):
    async def test_default_applications(self) -> None:
        apps = await ApplicationManager().get_installed_applications()
        self.assertEqual(
            apps,
            [
                Application(name="Calculator", executable_path="/usr/bin/calculator"),
                Application(name="Notepad", executable_path="/usr/bin/notepad"),
            ],
        )

    async def test_from_config_rows(self) -> None:
        manager = ApplicationManager.from_config(
            {"installed_applications": [{"name": "Terminal", "executable_path": "/bin/sh"}]}
        )
        self.assertEqual(await manager.application_names(), ["Terminal"])
        self.assertEqual(manager.find("terminal").executable_path, "/bin/sh")

    async def test_open_application_only_logs(self) -> None:
        with self.assertLogs("omniassist.services.applications", level="INFO") as logs:
            await ApplicationManager().open_application("Calculator")
        self.assertTrue(
            any("actions.application.open" in line for line in logs.output)
        )


class FileSearchServiceTests(unittest.IsolatedAsyncioTestCase):
    async def test_static_results(self) -> None:
        files = await FileSearchService().search_files("anything")
        self.assertEqual(
            files,
            [
                FileInfo(name="report.docx", path="/documents/reports/report.docx"),
                FileInfo(name="image.png", path="/pictures/image.png"),
            ],
        )


class FakeBackend:
    def __init__(self, result: Any) -> None:
        self.result = result

    async def generate_structured(self, prompt: str, schema: type, **_: Any) -> Any:
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


class WebSummaryTests(unittest.IsolatedAsyncioTestCase):
    async def test_summary_passthrough(self) -> None:
        summary = await summarize_web_search(
            FakeBackend(WebSummary(summary="Python 3.13 is out.")), "python"
        )
        self.assertEqual(summary.summary, "Python 3.13 is out.")

    async def test_failure_yields_apology(self) -> None:
        summary = await summarize_web_search(FakeBackend(GenerationError("x")), "rust")
        self.assertIn("rust", summary.summary)


if __name__ == "__main__":
    unittest.main()
