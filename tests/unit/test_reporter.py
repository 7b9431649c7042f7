"""
Unit tests for ResultReporter and summarize().
"""
import pytest

from lazyrequest.base.exceptions import RequestTimeoutError
from lazyrequest.contracts.enums import ComparisonStrategy, SourceType
from lazyrequest.contracts.models import ResolvedRequestUnit
from lazyrequest.executor.models import (
    ComparisonResult,
    ExecutedRequest,
    ExecutedResponse,
    ExecutedUnit,
    ExecutionResult,
    Mismatch,
)
from lazyrequest.reporting.reporter import ResultReporter, summarize


class ListOutput:
    def __init__(self):
        self.lines = []

    def info(self, message):
        self.lines.append(("info", message))

    def error(self, message):
        self.lines.append(("error", message))

    def text(self):
        return "\n".join(message for _, message in self.lines)


def make_unit(index, source_name="inline", name=None):
    return ResolvedRequestUnit.model_validate({
        "sourceType": "inline",
        "sourceName": source_name,
        "requestIndex": index,
        "request": {"method": "get", "url": f"https://api.test/{index}", "name": name},
    })


def passed(unit):
    executed = ExecutedUnit(
        source_type=SourceType.INLINE,
        source_name=unit.source_name,
        request_index=unit.request_index,
        request_name=unit.request.name,
        request=ExecutedRequest(method="GET", url=unit.request.url, headers=(), body=None),
        response=ExecutedResponse(status_code=200, status_text="OK", headers=(), body=None,
                                  raw_body="", duration_ms=12),
    )
    comparison = ComparisonResult.from_mismatches(ComparisonStrategy.EXACT, [])
    return ExecutionResult(unit=unit, passed=True, executed_unit=executed, comparison=comparison)


def mismatched(unit):
    result = passed(unit)
    comparison = ComparisonResult.from_mismatches(ComparisonStrategy.JSON, [
        Mismatch(field="body", expected={"id": 1}, actual=None, message="JSON body does not match expected structure/value."),
    ])
    return ExecutionResult(unit=unit, passed=False, executed_unit=result.executed_unit, comparison=comparison)


@pytest.fixture
def output():
    return ListOutput()


@pytest.fixture
def reporter(output):
    return ResultReporter(output=output, use_colors=False)


def test_summarize_counts_errors_separately():
    results = [
        passed(make_unit(0)),
        mismatched(make_unit(1)),
        ExecutionResult.failure(make_unit(2), RequestTimeoutError("https://api.test/2", 5)),
    ]

    summary = summarize(results, duration_ms=-3)

    assert (summary.total, summary.passed, summary.failed, summary.errors) == (3, 1, 2, 1)
    assert summary.duration_ms == 0


def test_report_all_passed(reporter, output):
    report = reporter.report([passed(make_unit(0, name="ping")), passed(make_unit(1))], started_at_ms=None)

    text = output.text()
    assert report.exit_code == 0
    assert output.lines[0] == ("info", "lazyrequest")
    assert "✓ ping > GET https://api.test/0 [12.00ms]" in text
    assert "✓ request-2 > GET https://api.test/1" in text
    assert " 2 pass" in text
    assert " 0 fail" in text
    assert "error" not in text
    assert "Ran 2 requests across 1 file." in text


def test_report_failures(reporter, output):
    results = [
        mismatched(make_unit(0, source_name="a")),
        ExecutionResult.failure(make_unit(1, source_name="b"), RequestTimeoutError("https://api.test/1", 5)),
    ]

    report = reporter.report(results)

    errors = [message for kind, message in output.lines if kind == "error"]
    assert report.exit_code == 1
    assert errors[0].startswith("✗ request-1 > GET https://api.test/0")
    assert errors[1] == (
        '  - body: JSON body does not match expected structure/value. (expected={"id": 1}, actual=null)'
    )
    # Unexecuted requests fall back to the resolved request line.
    assert errors[2] == "✗ request-2 > GET https://api.test/1 [0.00ms]"
    assert errors[3] == "  error: Request timed out after 5ms: https://api.test/1"
    assert "Ran 2 requests across 2 files." in output.text()
    assert " 1 error" in output.text()


def test_banner_and_source_header_printed_once(reporter, output):
    reporter.report_result(passed(make_unit(0)))
    reporter.report_result(passed(make_unit(1)))
    reporter.report_summary([passed(make_unit(0)), passed(make_unit(1))])

    messages = [message for _, message in output.lines]
    assert messages.count("lazyrequest") == 1
    assert messages.count("inline:") == 1


def test_verbose_empty_run(output):
    report = ResultReporter(verbose=True, output=output, use_colors=False).report([])

    assert report.exit_code == 0
    assert "No requests were executed." in output.text()


def test_colors_wrap_marks(output):
    ResultReporter(output=output, use_colors=True).report_result(passed(make_unit(0)))

    line = output.lines[-1][1]
    assert line.startswith("\x1b[32m✓\x1b[0m")


@pytest.mark.parametrize("value, expected", [
    (None, "null"),
    (True, "true"),
    (404, "404"),
    ("OK", '"OK"'),
    ([1, "a"], '[1, "a"]'),
])
def test_stringify(value, expected):
    assert ResultReporter._stringify(value) == expected
