"""
lazyrequest/executor/models.py

Purpose:
    Data structures produced once a resolved unit has been sent.

Semantics:
    - ExecutedUnit: what was literally sent and what came back.
    - ComparisonResult: the verdict of comparing a response with its
      expectation. `mismatches` is empty exactly when `passed` is True.
    - ExecutionResult: one per scheduled unit. `executed_unit` and
      `comparison` are None when execution failed, and `error` then holds
      the captured exception. A failed assertion keeps `error` None.

All of these are created once and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from lazyrequest.contracts.enums import ComparisonStrategy, SourceType
from lazyrequest.contracts.models import HttpHeader, ResolvedRequestUnit


@dataclass(frozen=True)
class ExecutedRequest:
    method: str
    url: str
    headers: Tuple[HttpHeader, ...]
    body: Optional[str]


@dataclass(frozen=True)
class ExecutedResponse:
    status_code: int
    status_text: str
    headers: Tuple[HttpHeader, ...]
    body: Any  # parsed JSON (dict/list) or text, None when empty
    raw_body: str
    duration_ms: int

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for header in self.headers:
            if header.name.lower() == wanted:
                return header.value
        return None


@dataclass(frozen=True)
class ExecutedUnit:
    source_type: SourceType
    source_name: str
    request_index: int
    request_name: Optional[str]
    request: ExecutedRequest
    response: ExecutedResponse


@dataclass(frozen=True)
class Mismatch:
    field: str
    expected: Any
    actual: Any
    message: str


@dataclass(frozen=True)
class ComparisonResult:
    passed: bool
    strategy: ComparisonStrategy
    mismatches: Tuple[Mismatch, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.passed and self.mismatches:
            raise ValueError("A passing ComparisonResult cannot carry mismatches.")
        if not self.passed and not self.mismatches:
            raise ValueError("A failing ComparisonResult must carry at least one mismatch.")

    @classmethod
    def from_mismatches(cls, strategy: ComparisonStrategy, mismatches) -> "ComparisonResult":
        mismatches = tuple(mismatches)
        return cls(passed=not mismatches, strategy=strategy, mismatches=mismatches)


@dataclass(frozen=True)
class ExecutionResult:
    unit: ResolvedRequestUnit
    passed: bool
    executed_unit: Optional[ExecutedUnit] = None
    comparison: Optional[ComparisonResult] = None
    error: Optional[BaseException] = None

    @property
    def errored(self) -> bool:
        """True for request errors, as opposed to failed assertions."""
        return self.error is not None

    @classmethod
    def failure(cls, unit: ResolvedRequestUnit, error: BaseException) -> "ExecutionResult":
        return cls(unit=unit, passed=False, executed_unit=None, comparison=None, error=error)
