from .models import (
    ComparisonResult,
    ExecutedRequest,
    ExecutedResponse,
    ExecutedUnit,
    ExecutionResult,
    Mismatch,
)
from .harness import Harness
from .http_harness import HttpHarness

__all__ = [
    "ComparisonResult",
    "ExecutedRequest",
    "ExecutedResponse",
    "ExecutedUnit",
    "ExecutionResult",
    "Mismatch",
    "Harness",
    "HttpHarness",
]
