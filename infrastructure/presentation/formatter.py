# infrastructure/presentation/formatter.py
"""
Terminal output for the radius CLI.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, TextIO

from application.outcome import FileOutcome
from domain.response import Response
from domain.script import AssertionOutcome

WIDTH = 55

Masker = Callable[[str], str]


class ResultFormatter:
    def __init__(self, masker: Optional[Masker] = None, out: Optional[TextIO] = None):
        self._masker = masker
        self._out = out

    def set_masker(self, masker: Masker) -> None:
        self._masker = masker

    def header(self) -> None:
        self._print()
        self._print(_box_top())
        self._print(_box_row("RADIUS"))
        self._print(_box_bottom())
        self._print()

    def environment(self, name: str) -> None:
        self._print(f"◆ Environment: {name}")
        self._print()

    def running(self, path: str) -> None:
        self._print(f"▶ Running: {path}")
        self._print()

    def running_batch(self, count: int, directory: str) -> None:
        self._print(f"▶ Running {count} requests in: {directory}/")

    def response(self, response: Response) -> None:
        icon = "✓" if response.is_http_success else "✗"
        self._print(_box_top("Response"))
        self._print(_box_row(f"{icon} {response.status} {response.status_text}"))
        if response.status == 0 and response.body:
            self._print(_box_row(self._mask(response.body)))
        self._print(_box_row(""))
        self._print(_box_row("Timing"))
        timing = response.timing
        if timing.ttfb is not None:
            self._print(_box_row(f"├─ TTFB:     {timing.ttfb}ms"))
        if timing.download is not None:
            self._print(_box_row(f"├─ Download: {timing.download}ms"))
        self._print(_box_row(f"└─ Total:    {timing.total}ms"))
        self._print(_box_bottom())
        self._print()

    def body(self, response: Response) -> None:
        # -v のときだけ本文を出す
        if response.json is not None:
            text = json.dumps(response.json, ensure_ascii=False, indent=2)
        else:
            text = response.body
        if not text:
            return
        self._print(_box_top("Body"))
        for line in text.splitlines():
            self._print(_box_row(self._mask(line)))
        self._print(_box_bottom())
        self._print()

    def assertions(self, assertions: Sequence[AssertionOutcome]) -> None:
        if not assertions:
            return
        passed = sum(1 for a in assertions if a.passed)
        failed = len(assertions) - passed

        self._print(_box_top("Assertions"))
        for a in assertions:
            icon = "✓" if a.passed else "✗"
            self._print(_box_row(f"{icon} {self._mask(a.message)}"))
            if not a.passed and a.expected is not None:
                self._print(_box_row(f"  Expected: {self._mask(_dump(a.expected))}"))
                self._print(_box_row(f"  Actual:   {self._mask(_dump(a.actual))}"))
        self._print(_box_row(""))
        summary = f"{passed} passed, {failed} failed" if failed else f"{passed} passed"
        self._print(_box_row(summary))
        self._print(_box_bottom())
        self._print()

    def logs(self, logs: Sequence[str]) -> None:
        if not logs:
            return
        self._print(_box_top("Logs"))
        for line in logs:
            self._print(_box_row(self._mask(line)))
        self._print(_box_bottom())
        self._print()

    def summary(self, response: Response, passed: bool) -> None:
        icon = "✓" if passed else "✗"
        action = "Completed" if passed else "Failed"
        self._print(f"{icon} {action} in {response.timing.total}ms")
        self._print()

    def batch_summary(self, results: Sequence[FileOutcome]) -> None:
        self._print()
        for r in results:
            icon = "✓" if r.passed else "✗"
            status = f"{r.response.status} {r.response.status_text}" if r.response.status > 0 else "Error"
            name = Path(r.file).name
            self._print(f"  {icon} {name:<25} {status:<15} {r.response.timing.total}ms")
            if r.error_message:
                self._print(f"      {self._mask(r.error_message)}")

        passed = sum(1 for r in results if r.passed)
        failed = len(results) - passed
        self._print()
        if failed:
            self._print(f"Summary: {passed} passed, {failed} failed")
        else:
            self._print(f"Summary: {passed} passed")
        total = sum(r.response.timing.total for r in results)
        self._print(f"Total time: {total}ms")
        self._print()

    def error(self, message: str) -> None:
        self._print()
        self._print(f"✗ Error: {self._mask(message)}")
        self._print()

    def session_saved(self, path: str, count: int) -> None:
        self._print(f"Session saved: {path} ({count} variables)")
        self._print()

    def session_loaded(self, path: str, count: int) -> None:
        self._print(f"Session loaded: {path} ({count} variables)")
        self._print()

    def _mask(self, text: str) -> str:
        return self._masker(text) if self._masker else text

    def _print(self, text: str = "") -> None:
        print(text, file=self._out or sys.stdout)


def _box_top(title: Optional[str] = None) -> str:
    if title:
        padding = max(0, WIDTH - 5 - len(title))
        return f"┌─ {title} {'─' * padding}┐"
    return f"┌{'─' * (WIDTH - 2)}┐"


def _box_bottom() -> str:
    return f"└{'─' * (WIDTH - 2)}┘"


def _box_row(content: str) -> str:
    padding = max(0, WIDTH - 4 - len(content))
    return f"│  {content}{' ' * padding}│"


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)
