"""
lazyrequest/reporting/reporter.py
Console reporter for execution results.

Output per result:
  - banner once, then a header the first time a source is seen
  - ✓ / ✗ line: request name (or request-N) > METHOD url [duration]
  - for failures: either the captured error, or one line per mismatch

Summary:
  - pass / fail / error counts and duration
  - exit code 1 iff anything failed

Errors (request could not be executed) and failed assertions are counted
separately so the caller can tell them apart.
"""

from __future__ import annotations

import json
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Sequence, Set

from lazyrequest.base.exceptions import error_message
from lazyrequest.executor.models import ExecutionResult, Mismatch


# ---------------------------------------------------------------------------
# ANSI colors, only used on a TTY
# ---------------------------------------------------------------------------

_COLORS: Dict[str, str] = {
    "green":     "\x1b[32m",
    "red":       "\x1b[31m",
    "gray":      "\x1b[90m",
    "boldWhite": "\x1b[1;37m",
    "white":     "\x1b[37m",
}
_RESET = "\x1b[0m"


class ReporterOutput(Protocol):
    def info(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class ConsoleOutput:
    def info(self, message: str) -> None:
        print(message, file=sys.stdout)

    def error(self, message: str) -> None:
        print(message, file=sys.stderr)


@dataclass(frozen=True)
class ResultSummary:
    total: int
    passed: int
    failed: int
    errors: int
    duration_ms: int


@dataclass(frozen=True)
class ResultReport:
    summary: ResultSummary
    exit_code: int


def summarize(results: Sequence[ExecutionResult], duration_ms: int = 0) -> ResultSummary:
    passed = sum(1 for r in results if r.passed)
    errors = sum(1 for r in results if not r.passed and r.error is not None)
    return ResultSummary(
        total=len(results),
        passed=passed,
        failed=len(results) - passed,
        errors=errors,
        duration_ms=max(0, duration_ms),
    )


class ResultReporter:
    def __init__(
        self,
        verbose: bool = False,
        output: Optional[ReporterOutput] = None,
        use_colors: Optional[bool] = None,
    ):
        self.verbose = verbose
        self.output = output or ConsoleOutput()
        self.use_colors = sys.stdout.isatty() if use_colors is None else use_colors
        self._banner_printed = False
        self._printed_sources: Set[str] = set()

    def report(self, results: Sequence[ExecutionResult], started_at_ms: Optional[float] = None) -> ResultReport:
        self._print_banner()
        for result in results:
            self.report_result(result)
        return self.report_summary(results, started_at_ms=started_at_ms)

    def report_result(self, result: ExecutionResult) -> None:
        self._print_banner()
        self._print_source_header(result.unit.source_name)

        if result.passed:
            self.output.info(self._format_line("✓", "green", result))
            return

        self.output.error(self._format_line("✗", "red", result))

        if result.error is not None:
            self.output.error(f"  error: {error_message(result.error)}")
            return

        mismatches = result.comparison.mismatches if result.comparison else ()
        for mismatch in mismatches:
            self.output.error(f"  - {self.format_mismatch(mismatch)}")

    def report_summary(self, results: Sequence[ExecutionResult], started_at_ms: Optional[float] = None) -> ResultReport:
        self._print_banner()
        now_ms = time.time() * 1000
        started = now_ms if started_at_ms is None else started_at_ms
        summary = summarize(results, duration_ms=round(now_ms - started))

        source_count = len({r.unit.source_name for r in results})
        file_word = "file" if source_count == 1 else "files"

        self.output.info("")
        self.output.info(f" {self._color('green', f'{summary.passed} pass')}")
        self.output.info(f" {self._color('red' if summary.failed else 'gray', f'{summary.failed} fail')}")
        if summary.errors:
            self.output.info(f" {summary.errors} error")
        self.output.info(
            f"{self._color('white', f'Ran {summary.total} requests across {source_count} {file_word}.')} "
            f"{self._color('gray', f'[{self._format_duration(summary.duration_ms)}]')}"
        )
        if self.verbose and summary.total == 0:
            self.output.info("No requests were executed.")

        return ResultReport(summary=summary, exit_code=1 if summary.failed else 0)

    def format_mismatch(self, mismatch: Mismatch) -> str:
        return (
            f"{mismatch.field}: {mismatch.message} "
            f"(expected={self._stringify(mismatch.expected)}, actual={self._stringify(mismatch.actual)})"
        )

    def _format_line(self, mark: str, color: str, result: ExecutionResult) -> str:
        if result.executed_unit is not None:
            method, url = result.executed_unit.request.method, result.executed_unit.request.url
            duration = result.executed_unit.response.duration_ms
        else:
            method, url = (result.unit.request.method or "GET").upper(), result.unit.request.url
            duration = 0
        label = (
            f"{result.unit.display_name} {self._color('gray', '>')} "
            f"{self._color('boldWhite', f'{method} {url}')}"
        )
        return f"{self._color(color, mark)} {label} {self._color('gray', f'[{self._format_duration(duration)}]')}"

    def _print_banner(self) -> None:
        if not self._banner_printed:
            self.output.info("lazyrequest")
            self._banner_printed = True

    def _print_source_header(self, source_name: str) -> None:
        if source_name in self._printed_sources:
            return
        self.output.info("")
        self.output.info(f"{self._format_source_name(source_name)}:")
        self._printed_sources.add(source_name)

    @staticmethod
    def _format_source_name(source_name: str) -> str:
        path = Path(source_name)
        if not path.is_absolute():
            return source_name
        try:
            relative = os.path.relpath(path, Path.cwd())
        except ValueError:
            return source_name
        return Path(relative).as_posix() if relative != "." else "."

    @staticmethod
    def _format_duration(duration_ms: float) -> str:
        return f"{duration_ms:.2f}ms"

    @staticmethod
    def _stringify(value: Any) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(value)

    def _color(self, kind: str, text: str) -> str:
        if not self.use_colors:
            return text
        return f"{_COLORS[kind]}{text}{_RESET}"
