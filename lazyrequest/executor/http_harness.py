"""
lazyrequest/executor/http_harness.py

Purpose:
    The HTTP Executor. Sends one resolved request with httpx, enforces the
    per-call timeout and normalizes the response into an ExecutedUnit.

Standards:
    - Timeout: every call is bounded; expiry raises RequestTimeoutError.
    - Headers: default headers sit beneath request headers (request wins,
      case-insensitive). A declared body content type is only applied when
      no header already sets one.
    - No retries. A failure is reported once and the orchestrator records it.
    - Client: one pooled AsyncClient per harness to prevent fd exhaustion.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from lazyrequest.base.exceptions import (
    RequestBuildError,
    RequestExecutionError,
    RequestTimeoutError,
)
from lazyrequest.contracts.models import HttpHeader, HttpRequest, RequestBody, ResolvedRequestUnit
from lazyrequest.utils.async_helpers import call_with_timeout

from .models import ExecutedRequest, ExecutedResponse, ExecutedUnit

log = logging.getLogger("executor.http_harness")

DEFAULT_TIMEOUT_MS = 5_000
MAX_REDIRECTS = 20


class HttpHarness:
    """
    httpx-backed Harness.
    Owns its client unless one is injected, in which case the caller closes it.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT_MS,
        default_headers: Optional[Mapping[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be a positive number of milliseconds")
        self.timeout = timeout
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self._client = client
        self._owns_client = client is None
        self._transport = transport

    async def get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
            self._client = httpx.AsyncClient(
                limits=limits,
                follow_redirects=True,
                max_redirects=MAX_REDIRECTS,
                timeout=httpx.Timeout(self.timeout / 1000),
                transport=self._transport,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            log.debug("HttpHarness client closed.")
        if self._owns_client:
            self._client = None

    async def __aenter__(self) -> "HttpHarness":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def execute(self, unit: ResolvedRequestUnit) -> ExecutedUnit:
        request = unit.request
        method = self._normalize_method(request.method)
        url = (request.url or "").strip()
        if not url:
            raise RequestBuildError(
                f"Request URL is required (source: {unit.source_name}, requestIndex: {unit.request_index}).",
                details={"source": unit.source_name, "request_index": unit.request_index},
            )

        headers = self.build_headers(request)
        body = self._to_request_body(request.body)

        log.debug(f"{method} {url} ({unit.source_name} #{unit.request_index})")
        client = await self.get_client()

        started = time.perf_counter()
        try:
            response = await call_with_timeout(
                client.request(method, url, headers=headers, content=body),
                timeout=self.timeout / 1000,
                name=f"{unit.source_name}#{unit.request_index}",
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            log.warning(f"Timeout after {self.timeout}ms: {method} {url}")
            raise RequestTimeoutError(url, self.timeout) from e
        except httpx.HTTPError as e:
            log.warning(f"Network error for {method} {url}: {e}")
            raise RequestExecutionError(
                f"{type(e).__name__}: {e}" if str(e) else type(e).__name__,
                details={"url": url, "method": method},
            ) from e
        duration_ms = max(0, round((time.perf_counter() - started) * 1000))

        raw_body = response.text
        response_headers = tuple(HttpHeader(name=k, value=v) for k, v in response.headers.multi_items())

        return ExecutedUnit(
            source_type=unit.source_type,
            source_name=unit.source_name,
            request_index=unit.request_index,
            request_name=request.name,
            request=ExecutedRequest(
                method=method,
                url=url,
                headers=tuple(HttpHeader(name=k, value=v) for k, v in headers),
                body=body,
            ),
            response=ExecutedResponse(
                status_code=response.status_code,
                status_text=response.reason_phrase,
                headers=response_headers,
                body=self.parse_response_body(raw_body, response.headers.get("content-type")),
                raw_body=raw_body,
                duration_ms=duration_ms,
            ),
        )

    def build_headers(self, request: HttpRequest) -> List[Tuple[str, str]]:
        """Defaults first, then request headers. Names are lowercased like fetch does."""
        merged: Dict[str, str] = {}
        for name, value in self.default_headers.items():
            merged[name.lower()] = value
        for header in request.headers:
            merged[header.name.lower()] = header.value

        if request.body is not None and request.body.content_type and "content-type" not in merged:
            merged["content-type"] = request.body.content_type

        return list(merged.items())

    @staticmethod
    def _normalize_method(method: Optional[str]) -> str:
        if isinstance(method, str) and method.strip():
            return method.strip().upper()
        return "GET"

    @staticmethod
    def _to_request_body(body: Optional[RequestBody]) -> Optional[str]:
        if body is None or not body.raw:
            return None
        return body.raw

    @staticmethod
    def parse_response_body(raw_body: str, content_type: Optional[str]) -> Any:
        if not raw_body:
            return None
        if content_type and "application/json" in content_type.lower():
            try:
                return json.loads(raw_body)
            except ValueError:
                return raw_body
        return raw_body
