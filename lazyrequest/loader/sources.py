"""
lazyrequest/loader/sources.py

Purpose:
    Turns pre-parsed template documents into ParsedSource objects and finds
    them on disk.

    Template syntax is parsed upstream; what arrives here is the AST as a
    JSON document ({"fileVariables": [...], "requests": [...]}).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from lazyrequest.base.config import RunConfig
from lazyrequest.base.exceptions import ErrorCode, TemplateInputError
from lazyrequest.contracts.enums import ExecutionMode, SourceType
from lazyrequest.contracts.models import HttpAst, ParsedSource

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".json",)


@dataclass(frozen=True)
class DiscoveryResult:
    files: Tuple[str, ...]
    mode: ExecutionMode

    @property
    def total_found(self) -> int:
        return len(self.files)


def parse_ast(text: str, source_name: str) -> HttpAst:
    if not isinstance(text, str) or not text.strip():
        raise TemplateInputError(f"Template document is empty: {source_name}")

    try:
        document = json.loads(text)
    except ValueError as e:
        raise TemplateInputError(
            f"Template document is not valid JSON: {source_name} ({e})",
            details={"source": source_name},
        ) from e

    try:
        ast = HttpAst.model_validate(document)
    except ValidationError as e:
        raise TemplateInputError(
            f"Template document does not match the AST contract: {source_name} "
            f"({e.error_count()} validation error(s))",
            details={"source": source_name, "errors": e.errors(include_url=False)},
        ) from e

    if not ast.requests:
        raise TemplateInputError(f"No HTTP requests found in source: {source_name}")
    return ast


def load_inline(text: str, source_name: str = "inline") -> ParsedSource:
    return ParsedSource(
        source_type=SourceType.INLINE,
        source_name=source_name,
        ast=parse_ast(text, source_name),
    )


def load_file(path: str | os.PathLike) -> ParsedSource:
    file_path = str(path)
    if not file_path.strip():
        raise TemplateInputError("File path must be a non-empty string.")

    try:
        text = Path(file_path).read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateInputError(
            f"Failed to read template file: {file_path}. {e.strerror or e}",
            code=ErrorCode.INPUT_NOT_FOUND,
            details={"path": file_path},
        ) from e

    logger.debug(f"Loaded template document {file_path}")
    return ParsedSource(
        source_type=SourceType.FILE,
        source_name=file_path,
        file_path=file_path,
        ast=parse_ast(text, file_path),
    )


def load_files(paths: Iterable[str | os.PathLike]) -> List[ParsedSource]:
    """Load every non-blank path, preserving order."""
    return [load_file(p) for p in paths if str(p).strip()]


def load_sources(config: RunConfig, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[ParsedSource]:
    """Everything the configuration points at, in deterministic order."""
    if config.execution_mode == ExecutionMode.INLINE:
        return [load_inline(config.inline_source_text or "", "inline")]
    return load_files(discover_files(config, extensions).files)


def discover_files(config: RunConfig, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> DiscoveryResult:
    """
    inline      -> nothing to discover
    single-file -> the configured path as-is
    folder      -> recursive search, hidden entries and ignore_paths excluded
    """
    if config.execution_mode == ExecutionMode.INLINE:
        return DiscoveryResult(files=(), mode=ExecutionMode.INLINE)

    if config.execution_mode == ExecutionMode.SINGLE_FILE:
        return DiscoveryResult(files=(str(config.search_paths[0]),), mode=ExecutionMode.SINGLE_FILE)

    files = find_files(config.search_paths, extensions, config.ignore_paths, config.max_depth)
    logger.debug(f"Discovered {len(files)} template document(s)")
    return DiscoveryResult(files=tuple(files), mode=ExecutionMode.FOLDER)


def find_files(
    search_paths: Iterable[Path],
    extensions: Sequence[str],
    ignore_paths: Sequence[str] = (),
    max_depth: Optional[int] = None,
) -> List[str]:
    """
    Sorted absolute paths of matching files below every search path.

    max_depth counts directory levels below a search path: 0 only looks at
    files directly inside it, None is unlimited.
    """
    suffixes = tuple(ext if ext.startswith(".") else f".{ext}" for ext in extensions)
    found = set()

    for root in search_paths:
        root = Path(root)
        if not root.is_dir():
            raise TemplateInputError(
                f"Search path is not a directory: {root}",
                code=ErrorCode.INPUT_NOT_FOUND,
                details={"path": str(root)},
            )

        for current, dirs, files in os.walk(root):
            relative = Path(current).relative_to(root)
            depth = len(relative.parts)

            if max_depth is not None and depth >= max_depth:
                dirs[:] = []
            dirs[:] = sorted(d for d in dirs if not _is_excluded(d, relative / d, ignore_paths))

            for name in files:
                if _is_excluded(name, relative / name, ignore_paths):
                    continue
                if name.endswith(suffixes):
                    found.add(str((Path(current) / name).resolve()))

    return sorted(found)


def _is_excluded(name: str, relative: Path, ignore_paths: Sequence[str]) -> bool:
    if name.startswith("."):
        return True
    for pattern in ignore_paths:
        if any(ch in pattern for ch in "*?["):
            if fnmatch(name, pattern) or fnmatch(relative.as_posix(), pattern):
                return True
        elif name == pattern:
            return True
    return False
