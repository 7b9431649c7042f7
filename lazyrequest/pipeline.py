"""
lazyrequest/pipeline.py

Wires the run together:
    config -> load sources -> resolve -> execute -> report -> exit code

Input errors (bad configuration, malformed sources, strict-mode unresolved
variables) abort the run before any request is sent and yield exit code 1.
Per-request failures never reach this level; they are part of the results.
"""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from lazyrequest.base.config import RunConfig, setup_logging
from lazyrequest.base.exceptions import LazyRequestError
from lazyrequest.comparator.response import ResponseComparator
from lazyrequest.contracts.models import ParsedSource
from lazyrequest.engine.orchestrator import ExecutionOrchestrator
from lazyrequest.executor.harness import Harness
from lazyrequest.executor.http_harness import HttpHarness
from lazyrequest.executor.models import ExecutionResult
from lazyrequest.loader.sources import load_sources
from lazyrequest.reporting.reporter import ResultReport, ResultReporter
from lazyrequest.resolver.variables import VariableResolver

logger = logging.getLogger(__name__)


@dataclass
class PipelineDependencies:
    """Injection points, mainly for tests. Anything left None uses the default."""
    load_sources: Optional[Callable[[RunConfig], List[ParsedSource]]] = None
    resolver: Optional[VariableResolver] = None
    executor: Optional[Harness] = None
    reporter: Optional[ResultReporter] = None


async def execute_sources(
    sources: Sequence[ParsedSource],
    config: RunConfig,
    executor: Optional[Harness] = None,
    resolver: Optional[VariableResolver] = None,
    on_result=None,
) -> List[ExecutionResult]:
    """Resolve and execute already-loaded sources. Input errors propagate."""
    units = (resolver or VariableResolver()).resolve_sources(list(sources))

    owned: Optional[HttpHarness] = None
    if executor is None:
        owned = HttpHarness(timeout=config.timeout, default_headers=config.default_headers)
        executor = owned

    orchestrator = ExecutionOrchestrator.from_config(config, executor=executor, comparator=ResponseComparator())
    try:
        return await orchestrator.execute(units, on_result=on_result)
    finally:
        if owned is not None:
            await owned.aclose()


async def run(config: RunConfig, dependencies: Optional[PipelineDependencies] = None) -> int:
    deps = dependencies or PipelineDependencies()
    reporter = deps.reporter or ResultReporter(verbose=config.verbose)

    try:
        logger.debug(f"Execution mode: {config.execution_mode.value}")
        sources = (deps.load_sources or load_sources)(config)

        started_at_ms = time.time() * 1000
        stream = None if config.show_after_done else reporter.report_result
        results = await execute_sources(
            sources,
            config,
            executor=deps.executor,
            resolver=deps.resolver,
            on_result=stream,
        )
    except LazyRequestError as e:
        logger.error(f"lazyrequest execution failed: {e.message}")
        logger.debug(f"Error details: {e.to_dict()}")
        print(e.message, file=sys.stderr)
        return 1

    report: ResultReport
    if config.show_after_done:
        # Concurrent results arrive in completion order.
        ordered = sorted(results, key=lambda r: r.unit.sort_key)
        report = reporter.report(ordered, started_at_ms=started_at_ms)
    else:
        report = reporter.report_summary(results, started_at_ms=started_at_ms)
    return report.exit_code


async def run_from_args(args, dependencies: Optional[PipelineDependencies] = None) -> int:
    try:
        config = RunConfig.from_args(args)
    except LazyRequestError as e:
        print(e.message, file=sys.stderr)
        return 1
    setup_logging(config)
    return await run(config, dependencies)
