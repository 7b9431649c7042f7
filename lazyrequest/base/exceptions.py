"""
lazyrequest/base/exceptions.py

Structured error taxonomy for the runner.

Two families matter to callers:
    - Input errors (configuration, malformed sources, strict-mode unresolved
      variables) abort the whole run before anything is sent.
    - Per-request errors (build, network, timeout) are captured into that
      request's ExecutionResult and never escape the orchestrator.

Assertion mismatches are not errors at all; they live in ComparisonResult.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    # Input errors
    CONFIG_INVALID = "CONFIG_001"
    INPUT_INVALID = "INPUT_001"
    INPUT_NOT_FOUND = "INPUT_002"
    VARIABLE_UNRESOLVED = "VAR_001"

    # Request errors
    REQUEST_INVALID = "REQUEST_001"
    REQUEST_TIMEOUT = "REQUEST_002"
    REQUEST_FAILED = "REQUEST_003"

    # System errors
    SYSTEM_INTERNAL_ERROR = "SYSTEM_001"


class LazyRequestError(Exception):
    """
    Base exception with structured error information.

    Attributes:
        code: ErrorCode enum value
        message: Human-readable error message
        details: Optional dictionary with additional context
    """

    default_code: ErrorCode = ErrorCode.SYSTEM_INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "type": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(LazyRequestError):
    """Raised when the run configuration is invalid or self-contradictory."""

    default_code = ErrorCode.CONFIG_INVALID


class TemplateInputError(LazyRequestError):
    """Raised when a source document is unreadable, malformed or empty."""

    default_code = ErrorCode.INPUT_INVALID


class UnresolvedVariableError(LazyRequestError):
    """Raised in strict mode when a placeholder has no value in scope."""

    default_code = ErrorCode.VARIABLE_UNRESOLVED

    def __init__(self, variable: str, details: Optional[Dict[str, Any]] = None):
        self.variable = variable
        super().__init__(
            f"Unresolved variable: {{{{{variable}}}}}",
            details={"variable": variable, **(details or {})},
        )


class RequestBuildError(LazyRequestError):
    """Raised when a resolved request cannot be turned into an HTTP call."""

    default_code = ErrorCode.REQUEST_INVALID


class RequestTimeoutError(LazyRequestError):
    """Raised when a single HTTP call exceeds its timeout."""

    default_code = ErrorCode.REQUEST_TIMEOUT

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Request timed out after {timeout_ms}ms: {url}",
            details={"url": url, "timeout_ms": timeout_ms},
        )


class RequestExecutionError(LazyRequestError):
    """Raised on network-level failures (DNS, refused connection, protocol)."""

    default_code = ErrorCode.REQUEST_FAILED


def error_message(error: BaseException, fallback: str = "Unknown error") -> str:
    """Best-effort human message for any exception."""
    if isinstance(error, LazyRequestError) and error.message.strip():
        return error.message
    text = str(error).strip()
    if text:
        return text
    return f"{type(error).__name__}: {fallback}"


__all__ = [
    "ErrorCode",
    "LazyRequestError",
    "ConfigurationError",
    "TemplateInputError",
    "UnresolvedVariableError",
    "RequestBuildError",
    "RequestTimeoutError",
    "RequestExecutionError",
    "error_message",
]
