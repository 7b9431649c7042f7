"""
lazyrequest/executor/harness.py

Purpose:
    The abstract interface for "sending a request".
    Defines how a ResolvedRequestUnit is turned into an ExecutedUnit.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lazyrequest.contracts.models import ResolvedRequestUnit

from .models import ExecutedUnit


@runtime_checkable
class Harness(Protocol):
    """
    Interface for execution strategies.
    Implementations might include:
    - HttpHarness (Uses httpx)
    - Recorded/fake harnesses in tests
    """

    async def execute(self, unit: ResolvedRequestUnit) -> ExecutedUnit:
        """
        Sends the request described by the unit.
        Raises on network failure or timeout; the orchestrator captures it.
        """
        ...
