# ============================================================================
# lazyrequest/base/config.py
# Run Configuration Management
# ============================================================================
#
# PURPOSE:
# Defines the normalized run configuration consumed by the pipeline. No other
# part of the system reads CLI arguments or environment variables directly.
#
# KEY CONCEPTS:
# 1. Dataclasses: frozen containers, validated once after construction
# 2. Environment Variables: LAZYREQUEST_* defaults (e.g. LAZYREQUEST_TIMEOUT=2000)
# 3. CLI overlay: parsed arguments win over environment defaults
# 4. Singleton: get_config()/set_config() share one instance per process
#
# ============================================================================

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from lazyrequest.contracts.enums import ExecutionMode, RequestExecutionStrategy

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_MS = 5000
DEFAULT_TIME_BETWEEN_REQUESTS_MS = 300
DEFAULT_MAX_DEPTH = 10
DEFAULT_IGNORE_PATHS = ("node_modules", ".git")
DEFAULT_HEADERS = {
    "User-Agent": "lazyrequest/1.0",
    "Accept": "*/*",
}

_STRATEGY_ALIASES = {
    "sequential": RequestExecutionStrategy.SEQUENTIAL,
    "runinband": RequestExecutionStrategy.SEQUENTIAL,
    "run-in-band": RequestExecutionStrategy.SEQUENTIAL,
    "concurrent": RequestExecutionStrategy.CONCURRENT,
}


def normalize_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    """Lowercase header names and drop blank ones."""
    normalized: Dict[str, str] = {}
    for name, value in headers.items():
        key = name.strip().lower()
        if key:
            normalized[key] = value
    return normalized


def _is_non_empty(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _env_int(name: str, default: Optional[int], nullable: bool = False) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    if nullable and raw.strip().lower() in ("none", "null"):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", details={"variable": name}) from None


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() in ("1", "true", "yes")


def parse_strategy(value: Any) -> RequestExecutionStrategy:
    if isinstance(value, RequestExecutionStrategy):
        return value
    strategy = _STRATEGY_ALIASES.get(str(value).strip().lower())
    if strategy is None:
        raise ConfigurationError(
            f"Unknown request execution strategy: {value!r}",
            details={"allowed": sorted(s.value for s in RequestExecutionStrategy)},
        )
    return strategy


# ============================================================================
# Logging Configuration
# ============================================================================

@dataclass(frozen=True)
class LogConfig:
    # DEBUG / INFO / WARNING / ERROR
    level: str = "WARNING"

    # %(name)s is the component logger, e.g. "executor.http_harness"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ============================================================================
# Run Configuration
# ============================================================================

@dataclass(frozen=True)
class RunConfig:
    # Per-request timeout in milliseconds (> 0)
    timeout: int = DEFAULT_TIMEOUT_MS

    # Added to every request unless the template sets the same header
    default_headers: Mapping[str, str] = field(default_factory=lambda: normalize_headers(DEFAULT_HEADERS))

    # Stop scheduling after this many failed results; None = never
    bail: Optional[int] = None

    # Truncate the unit list before scheduling; None = unlimited
    max_requests: Optional[int] = None

    # Delay between consecutive requests in sequential mode (ms, >= 0)
    default_time_between_requests: int = DEFAULT_TIME_BETWEEN_REQUESTS_MS

    request_execution_strategy: RequestExecutionStrategy = RequestExecutionStrategy.CONCURRENT

    # Where sources come from
    execution_mode: ExecutionMode = ExecutionMode.FOLDER
    search_paths: Tuple[Path, ...] = ()
    inline_source_text: Optional[str] = None

    # Discovery limits
    ignore_paths: Tuple[str, ...] = DEFAULT_IGNORE_PATHS
    max_depth: Optional[int] = DEFAULT_MAX_DEPTH

    # Output behavior
    verbose: bool = False
    show_after_done: bool = False

    log: LogConfig = field(default_factory=LogConfig)

    def validate(self) -> "RunConfig":
        """Raise ConfigurationError on the first violated rule, else return self."""
        def check(condition: bool, message: str) -> None:
            if not condition:
                raise ConfigurationError(message)

        check(isinstance(self.timeout, int) and not isinstance(self.timeout, bool) and self.timeout > 0,
              "Timeout must be a positive integer.")
        check(
            isinstance(self.default_time_between_requests, int)
            and not isinstance(self.default_time_between_requests, bool)
            and self.default_time_between_requests >= 0,
            "Default time between requests must be >= 0.",
        )
        if self.bail is not None:
            check(isinstance(self.bail, int) and self.bail > 0, "Bail count must be a positive integer.")
        if self.max_requests is not None:
            check(isinstance(self.max_requests, int) and self.max_requests > 0,
                  "Max requests must be a positive integer.")
        if self.max_depth is not None:
            check(isinstance(self.max_depth, int) and self.max_depth >= 0, "Max depth must be >= 0.")

        if self.execution_mode == ExecutionMode.INLINE:
            check(_is_non_empty(self.inline_source_text), "Inline source text is required in inline mode.")
            check(len(self.search_paths) == 0, "Search paths must be empty in inline mode.")
        elif self.execution_mode == ExecutionMode.SINGLE_FILE:
            check(len(self.search_paths) == 1, "Exactly one file path is required in single-file mode.")
            check(self.inline_source_text is None, "Inline source text is not allowed in single-file mode.")
        else:
            check(len(self.search_paths) >= 1, "At least one folder path is required in folder mode.")
            check(self.inline_source_text is None, "Inline source text is not allowed in folder mode.")

        for search_path in self.search_paths:
            check(Path(search_path).is_absolute(), "All search paths must be absolute.")
        return self

    @classmethod
    def from_env(cls) -> "RunConfig":
        """Defaults from LAZYREQUEST_* environment variables; sources are set by from_args."""
        strategy = os.getenv("LAZYREQUEST_STRATEGY")
        return cls(
            timeout=_env_int("LAZYREQUEST_TIMEOUT", DEFAULT_TIMEOUT_MS),
            bail=_env_int("LAZYREQUEST_BAIL", None, nullable=True),
            max_requests=_env_int("LAZYREQUEST_MAX_REQUESTS", None, nullable=True),
            default_time_between_requests=_env_int("LAZYREQUEST_DELAY_MS", DEFAULT_TIME_BETWEEN_REQUESTS_MS),
            request_execution_strategy=(
                parse_strategy(strategy) if strategy else RequestExecutionStrategy.CONCURRENT
            ),
            max_depth=_env_int("LAZYREQUEST_MAX_DEPTH", DEFAULT_MAX_DEPTH, nullable=True),
            verbose=_env_bool("LAZYREQUEST_VERBOSE", False),
            log=LogConfig(level=os.getenv("LAZYREQUEST_LOG_LEVEL", "WARNING")),
            search_paths=(Path.cwd().resolve(),),
        )

    @classmethod
    def from_args(cls, args: Any, base: Optional["RunConfig"] = None) -> "RunConfig":
        """
        Overlay parsed CLI arguments on top of `base` (environment defaults
        when omitted) and validate the result.

        `args` is an argparse.Namespace; missing attributes mean "not given".
        """
        base = base or cls.from_env()

        inline = getattr(args, "inline", None)
        file_path = getattr(args, "file", None)
        folder = getattr(args, "folder", None)
        provided = [v for v in (inline, file_path, folder) if _is_non_empty(v)]
        if len(provided) > 1:
            raise ConfigurationError("Only one of --inline, --file, or --folder may be provided.")

        run_in_band = bool(getattr(args, "run_in_band", False))
        concurrent = bool(getattr(args, "concurrent", False))
        if run_in_band and concurrent:
            raise ConfigurationError("Only one of --run-in-band or --concurrent may be provided.")

        if _is_non_empty(inline):
            mode, paths, text = ExecutionMode.INLINE, (), inline
        elif _is_non_empty(file_path):
            mode, paths, text = ExecutionMode.SINGLE_FILE, (Path(file_path.strip()).resolve(),), None
        else:
            folder_path = Path(folder.strip()) if _is_non_empty(folder) else Path.cwd()
            mode, paths, text = ExecutionMode.FOLDER, (folder_path.resolve(),), None

        strategy = base.request_execution_strategy
        if run_in_band:
            strategy = RequestExecutionStrategy.SEQUENTIAL
        elif concurrent:
            strategy = RequestExecutionStrategy.CONCURRENT

        overrides: Dict[str, Any] = {
            "execution_mode": mode,
            "search_paths": paths,
            "inline_source_text": text,
            "request_execution_strategy": strategy,
        }
        for attr, key in (
            ("timeout", "timeout"),
            ("bail", "bail"),
            ("max_requests", "max_requests"),
            ("delay", "default_time_between_requests"),
            ("max_depth", "max_depth"),
        ):
            value = getattr(args, attr, None)
            if value is not None:
                overrides[key] = value

        verbose = bool(getattr(args, "verbose", False)) or base.verbose
        overrides["verbose"] = verbose
        overrides["show_after_done"] = bool(getattr(args, "show_after_done", False)) or base.show_after_done
        if verbose:
            overrides["log"] = replace(base.log, level="DEBUG")

        return replace(base, **overrides).validate()


# ============================================================================
# Global Configuration Singleton
# ============================================================================

_config: Optional[RunConfig] = None


def get_config() -> RunConfig:
    """
    Get the global configuration instance, loading it from the environment
    the first time.
    """
    global _config
    if _config is None:
        _config = RunConfig.from_env().validate()
    return _config


def set_config(config: Optional[RunConfig]) -> None:
    """Replace (or with None, reset) the global configuration. Mainly for tests."""
    global _config
    _config = config


def setup_logging(config: Optional[RunConfig] = None) -> None:
    """
    Configure Python's logging system based on our settings.
    Call this once at application startup.
    """
    cfg = config or get_config()
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    logging.basicConfig(
        level=getattr(logging, cfg.log.level.upper(), logging.WARNING),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
