from __future__ import annotations

from enum import Enum


class SourceType(str, Enum):
    INLINE = "inline"
    FILE = "file"


class ExecutionMode(str, Enum):
    INLINE = "inline"
    SINGLE_FILE = "single-file"
    FOLDER = "folder"


class RequestExecutionStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class ComparisonStrategy(str, Enum):
    JSON = "json"
    EXACT = "exact"
    PARTIAL = "partial"
