"""
lazyrequest/comparator/strategy.py

Purpose:
    Chooses how a response body is compared with its expectation, from the
    declared content types and the shape of both bodies.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from lazyrequest.contracts.enums import ComparisonStrategy
from lazyrequest.contracts.models import ExpectedResponse, HttpHeader
from lazyrequest.executor.models import ExecutedResponse


def header_value(headers: Iterable[HttpHeader], name: str) -> Optional[str]:
    wanted = name.lower()
    for header in headers:
        if header.name.lower() == wanted:
            return header.value
    return None


def is_json_content_type(content_type: Optional[str]) -> bool:
    if not content_type:
        return False
    normalized = content_type.lower()
    return "application/json" in normalized or "+json" in normalized


def is_html_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and "text/html" in content_type.lower()


def is_json_like_body(body: Any) -> bool:
    """Object/array bodies, or text that is a JSON object/array."""
    if body is None:
        return False
    if isinstance(body, (dict, list)):
        return True
    if not isinstance(body, str):
        return False

    trimmed = body.strip()
    if not trimmed:
        return False
    if (trimmed.startswith("{") and trimmed.endswith("}")) or (trimmed.startswith("[") and trimmed.endswith("]")):
        try:
            json.loads(trimmed)
        except ValueError:
            return False
        return True
    return False


def has_wildcard(body: Any) -> bool:
    return isinstance(body, str) and "*" in body


class StrategySelector:
    """
    Picks the body comparison algorithm, first match wins:
        json    - either content type is JSON, or either body is JSON-shaped
        partial - either content type is text/html, or the expected body has '*'
        exact   - everything else
    """

    def select(self, expected: Optional[ExpectedResponse], actual: ExecutedResponse) -> ComparisonStrategy:
        if expected is None:
            return ComparisonStrategy.EXACT

        expected_type = header_value(expected.headers, "content-type")
        actual_type = actual.header("content-type")

        if (
            is_json_content_type(expected_type)
            or is_json_content_type(actual_type)
            or is_json_like_body(expected.body)
            or is_json_like_body(actual.body)
        ):
            return ComparisonStrategy.JSON

        if is_html_content_type(expected_type) or is_html_content_type(actual_type) or has_wildcard(expected.body):
            return ComparisonStrategy.PARTIAL

        return ComparisonStrategy.EXACT
