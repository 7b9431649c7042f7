"""
lazyrequest/comparator/response.py

Purpose:
    The "Judge". Compares an actual response with the expected-response
    block of its request and returns a ComparisonResult.

Rules:
    - No expected block: the only check is status 200.
    - Otherwise status code, status text, headers and body are all checked
      independently; every failing check adds one Mismatch, in that order.
    - Only headers listed in the expectation are checked, names compared
      case-insensitively.
    - An empty expected body is not asserted.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional, Sequence

from lazyrequest.contracts.enums import ComparisonStrategy
from lazyrequest.contracts.models import ExpectedResponse, HttpHeader
from lazyrequest.executor.models import ComparisonResult, ExecutedResponse, Mismatch

from .strategy import StrategySelector

log = logging.getLogger("comparator.response")

DEFAULT_EXPECTED_STATUS_CODE = 200

# Sentinel for "could not be read as JSON"; None is a valid JSON value.
_NOT_JSON = object()


def _normalize_numbers(value: Any) -> Any:
    # JSON has a single number type: 1 and 1.0 are the same value.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {key: _normalize_numbers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_numbers(item) for item in value]
    return value


def canonical_json(value: Any) -> str:
    """Key-sorted, whitespace-free serialization used for equality and display."""
    return json.dumps(
        _normalize_numbers(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def wildcard_to_pattern(expected: str) -> re.Pattern:
    """'*' matches any run of characters (including newlines); everything else is literal."""
    source = ".*".join(re.escape(part) for part in expected.split("*"))
    return re.compile(source, re.DOTALL | re.MULTILINE)


class ResponseComparator:
    def __init__(self, strategy_selector: Optional[StrategySelector] = None):
        self.strategy_selector = strategy_selector or StrategySelector()

    def compare(
        self,
        expected: Optional[ExpectedResponse],
        actual: ExecutedResponse,
        strategy: Optional[ComparisonStrategy] = None,
    ) -> ComparisonResult:
        mismatches: List[Mismatch] = []

        if expected is None:
            self._compare_status(DEFAULT_EXPECTED_STATUS_CODE, actual.status_code, mismatches)
            return ComparisonResult.from_mismatches(strategy or ComparisonStrategy.EXACT, mismatches)

        strategy = strategy or self.strategy_selector.select(expected, actual)

        self._compare_status(expected.status_code, actual.status_code, mismatches)
        self._compare_status_text(expected.status_text, actual.status_text, mismatches)
        self._compare_headers(expected.headers, actual.headers, mismatches)
        self._compare_body(strategy, expected.body, actual.body, mismatches)

        if mismatches:
            log.debug(f"{len(mismatches)} mismatch(es) using {strategy.value} strategy")
        return ComparisonResult.from_mismatches(strategy, mismatches)

    def _compare_status(self, expected: Any, actual: int, mismatches: List[Mismatch]) -> None:
        if isinstance(expected, bool) or not isinstance(expected, int) or expected <= 0:
            return
        if expected != actual:
            mismatches.append(Mismatch(
                field="statusCode",
                expected=expected,
                actual=actual,
                message=f"Expected status code {expected}, received {actual}.",
            ))

    def _compare_status_text(self, expected: Optional[str], actual: str, mismatches: List[Mismatch]) -> None:
        if expected is None:
            return
        if expected != actual:
            mismatches.append(Mismatch(
                field="statusText",
                expected=expected,
                actual=actual,
                message=f'Expected status text "{expected}", received "{actual}".',
            ))

    def _compare_headers(
        self,
        expected: Sequence[HttpHeader],
        actual: Sequence[HttpHeader],
        mismatches: List[Mismatch],
    ) -> None:
        if not expected:
            return

        actual_map = {header.name.lower(): header.value for header in actual}
        for header in expected:
            name = header.name.lower()
            actual_value = actual_map.get(name)

            if actual_value is None:
                mismatches.append(Mismatch(
                    field=f"headers.{name}",
                    expected=header.value,
                    actual=None,
                    message=f'Expected header "{header.name}" to be present.',
                ))
            elif actual_value != header.value:
                mismatches.append(Mismatch(
                    field=f"headers.{name}",
                    expected=header.value,
                    actual=actual_value,
                    message=f'Expected header "{header.name}" value "{header.value}", received "{actual_value}".',
                ))

    def _compare_body(self, strategy: ComparisonStrategy, expected: Any, actual: Any, mismatches: List[Mismatch]) -> None:
        if expected is None or expected == "":
            return

        if strategy == ComparisonStrategy.JSON:
            self._compare_json_body(expected, actual, mismatches)
        elif strategy == ComparisonStrategy.PARTIAL:
            self._compare_partial_body(expected, actual, mismatches)
        else:
            self._compare_exact_body(expected, actual, mismatches)

    def _compare_json_body(self, expected: Any, actual: Any, mismatches: List[Mismatch]) -> None:
        expected_json = self._to_json_comparable(expected)
        actual_json = self._to_json_comparable(actual)

        if expected_json is _NOT_JSON or actual_json is _NOT_JSON:
            mismatches.append(Mismatch(
                field="body",
                expected=expected,
                actual=actual,
                message="JSON comparison failed because one of the bodies is not valid JSON-compatible content.",
            ))
            return

        if canonical_json(expected_json) != canonical_json(actual_json):
            mismatches.append(Mismatch(
                field="body",
                expected=expected_json,
                actual=actual_json,
                message="JSON body does not match expected structure/value.",
            ))

    def _compare_exact_body(self, expected: Any, actual: Any, mismatches: List[Mismatch]) -> None:
        expected_text = self._to_text(expected)
        actual_text = self._to_text(actual)
        if expected_text != actual_text:
            mismatches.append(Mismatch(
                field="body",
                expected=expected_text,
                actual=actual_text,
                message="Response body does not match expected exact value.",
            ))

    def _compare_partial_body(self, expected: Any, actual: Any, mismatches: List[Mismatch]) -> None:
        expected_text = self._to_text(expected)
        actual_text = self._to_text(actual)

        if "*" in expected_text:
            if wildcard_to_pattern(expected_text).fullmatch(actual_text) is None:
                mismatches.append(Mismatch(
                    field="body",
                    expected=expected_text,
                    actual=actual_text,
                    message="Response body does not match expected wildcard pattern.",
                ))
            return

        if expected_text not in actual_text:
            mismatches.append(Mismatch(
                field="body",
                expected=expected_text,
                actual=actual_text,
                message="Response body does not contain expected partial content.",
            ))

    @staticmethod
    def _to_text(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return canonical_json(value)

    @staticmethod
    def _to_json_comparable(value: Any) -> Any:
        if value is None or isinstance(value, (dict, list, int, float, bool)):
            return value
        if not isinstance(value, str):
            return _NOT_JSON

        trimmed = value.strip()
        if not trimmed:
            return _NOT_JSON
        try:
            return json.loads(trimmed)
        except ValueError:
            return _NOT_JSON
