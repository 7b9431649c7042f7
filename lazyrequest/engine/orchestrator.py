"""
lazyrequest/engine/orchestrator.py

Purpose:
    Schedules resolved request units against a Harness, compares each
    response, and collects one ExecutionResult per scheduled unit.

Scheduling (a tagged choice, see _STRATEGIES):
    - sequential: one request in flight, source+index order. The delay is
      applied between requests (never before the first) and bail is exact:
      nothing is dispatched once the failure count reaches the threshold.
    - concurrent: every unit is dispatched up front with no delay. Results
      arrive in completion order. Bail is best-effort: requests already in
      flight are never cancelled, so the result set can exceed the bail
      count.

Failure containment:
    execute_unit() turns any exception from the harness or the comparator
    into a failed ExecutionResult. Nothing a single request does can abort
    the batch or cancel its siblings.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from lazyrequest.base.exceptions import ConfigurationError, LazyRequestError
from lazyrequest.comparator.response import ResponseComparator
from lazyrequest.contracts.enums import RequestExecutionStrategy
from lazyrequest.contracts.models import ResolvedRequestUnit
from lazyrequest.executor.harness import Harness
from lazyrequest.executor.models import ExecutionResult
from lazyrequest.utils.async_helpers import create_safe_task, sleep_ms

logger = logging.getLogger(__name__)

ResultListener = Callable[[ExecutionResult], Optional[Awaitable[Any]]]


def _positive_or_none(name: str, value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"{name} must be a positive integer or None, got {value!r}")
    return value


class ExecutionOrchestrator:
    def __init__(
        self,
        executor: Optional[Harness] = None,
        comparator: Optional[ResponseComparator] = None,
        bail: Optional[int] = None,
        max_requests: Optional[int] = None,
        default_time_between_requests: int = 0,
        request_execution_strategy: RequestExecutionStrategy = RequestExecutionStrategy.CONCURRENT,
        sleep: Optional[Callable[[int], Awaitable[Any]]] = None,
    ):
        if executor is None:
            from lazyrequest.executor.http_harness import HttpHarness
            executor = HttpHarness()
        if default_time_between_requests < 0:
            raise ConfigurationError("default_time_between_requests must be >= 0")

        self.executor = executor
        self.comparator = comparator or ResponseComparator()
        self.bail = _positive_or_none("bail", bail)
        self.max_requests = _positive_or_none("max_requests", max_requests)
        self.default_time_between_requests = default_time_between_requests
        self.request_execution_strategy = RequestExecutionStrategy(request_execution_strategy)
        self._sleep = sleep or sleep_ms

    @classmethod
    def from_config(cls, config, executor: Optional[Harness] = None, **kwargs) -> "ExecutionOrchestrator":
        """Build from a RunConfig; the default executor honors its timeout and default headers."""
        if executor is None:
            from lazyrequest.executor.http_harness import HttpHarness
            executor = HttpHarness(timeout=config.timeout, default_headers=config.default_headers)
        return cls(
            executor=executor,
            bail=config.bail,
            max_requests=config.max_requests,
            default_time_between_requests=config.default_time_between_requests,
            request_execution_strategy=config.request_execution_strategy,
            **kwargs,
        )

    async def execute(
        self,
        units: Sequence[ResolvedRequestUnit],
        on_result: Optional[ResultListener] = None,
    ) -> List[ExecutionResult]:
        scheduled = self.apply_max_requests(units)
        logger.info(
            f"Executing {len(scheduled)} of {len(units)} request(s) "
            f"({self.request_execution_strategy.value}, bail={self.bail})"
        )

        run = self._STRATEGIES[self.request_execution_strategy]
        results = await run(self, scheduled, on_result)

        failed = sum(1 for r in results if not r.passed)
        logger.info(f"Finished: {len(results)} result(s), {failed} failed")
        return results

    def apply_max_requests(self, units: Sequence[ResolvedRequestUnit]) -> List[ResolvedRequestUnit]:
        if self.max_requests is None:
            return list(units)
        return list(units[: self.max_requests])

    async def _execute_sequential(
        self,
        units: List[ResolvedRequestUnit],
        on_result: Optional[ResultListener],
    ) -> List[ExecutionResult]:
        results: List[ExecutionResult] = []
        failed = 0

        for index, unit in enumerate(units):
            if index > 0 and self.default_time_between_requests > 0:
                await self._sleep(self.default_time_between_requests)

            result = await self.execute_unit(unit)
            results.append(result)
            await _notify(on_result, result)

            if not result.passed:
                failed += 1
            if self.bail is not None and failed >= self.bail:
                remaining = len(units) - index - 1
                if remaining:
                    logger.warning(f"Bail threshold {self.bail} reached; skipping {remaining} request(s)")
                break

        return results

    async def _execute_concurrent(
        self,
        units: List[ResolvedRequestUnit],
        on_result: Optional[ResultListener],
    ) -> List[ExecutionResult]:
        results: List[ExecutionResult] = []
        failed = 0
        bail_reported = False

        tasks = [
            create_safe_task(self.execute_unit(unit), name=f"{unit.source_name}#{unit.request_index}")
            for unit in units
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                result = await next_done
                results.append(result)
                await _notify(on_result, result)

                if not result.passed:
                    failed += 1
                if self.bail is not None and failed >= self.bail and not bail_reported:
                    bail_reported = True
                    in_flight = sum(1 for t in tasks if not t.done())
                    # Dispatched requests are not cancelled.
                    logger.warning(
                        f"Bail threshold {self.bail} reached; {in_flight} request(s) already in flight will complete"
                    )
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        return results

    async def execute_unit(self, unit: ResolvedRequestUnit) -> ExecutionResult:
        """Run one unit end to end. Never raises for request-level failures."""
        try:
            executed = await self.executor.execute(unit)
            comparison = self.comparator.compare(unit.request.expected_response, executed.response)
        except Exception as e:
            if isinstance(e, LazyRequestError):
                logger.warning(f"{unit.source_name} #{unit.request_index} failed: {e.message}")
            else:
                logger.error(
                    f"Unexpected error executing {unit.source_name} #{unit.request_index}: {e}",
                    exc_info=True,
                )
            return ExecutionResult.failure(unit, e)

        return ExecutionResult(
            unit=unit,
            passed=comparison.passed,
            executed_unit=executed,
            comparison=comparison,
            error=None,
        )

    _STRATEGIES: Dict[RequestExecutionStrategy, Callable[..., Awaitable[List[ExecutionResult]]]] = {
        RequestExecutionStrategy.SEQUENTIAL: _execute_sequential,
        RequestExecutionStrategy.CONCURRENT: _execute_concurrent,
    }


async def _notify(listener: Optional[ResultListener], result: ExecutionResult) -> None:
    if listener is None:
        return
    outcome = listener(result)
    if inspect.isawaitable(outcome):
        await outcome
