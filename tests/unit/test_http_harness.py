"""
Unit tests for HttpHarness.

Uses httpx.MockTransport so no sockets are opened.

Covers:
- Header merging (defaults under request headers, case-insensitive)
- Body content type handling
- Response normalization (status text, headers, JSON parsing)
- Timeout and network failures mapped to the error taxonomy
"""
import asyncio
import json

import httpx
import pytest

from lazyrequest.base.exceptions import (
    ErrorCode,
    RequestBuildError,
    RequestExecutionError,
    RequestTimeoutError,
)
from lazyrequest.contracts.models import ResolvedRequestUnit
from lazyrequest.executor.harness import Harness
from lazyrequest.executor.http_harness import HttpHarness


def make_unit(**request):
    request.setdefault("url", "https://api.test/items")
    return ResolvedRequestUnit.model_validate({
        "sourceType": "inline",
        "sourceName": "inline",
        "requestIndex": 0,
        "request": request,
    })


class Recorder:
    """MockTransport handler that remembers what it was sent."""

    def __init__(self, status=200, **response_kwargs):
        self.requests = []
        self.status = status
        self.response_kwargs = response_kwargs or {"text": "ok"}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, **self.response_kwargs)


def test_harness_satisfies_protocol():
    assert isinstance(HttpHarness(), Harness)


def test_rejects_non_positive_timeout():
    with pytest.raises(ValueError):
        HttpHarness(timeout=0)


@pytest.mark.asyncio
async def test_request_headers_override_defaults():
    recorder = Recorder()
    harness = HttpHarness(
        default_headers={"User-Agent": "lazyrequest/1.0", "Accept": "*/*"},
        transport=httpx.MockTransport(recorder),
    )
    unit = make_unit(headers=[{"name": "accept", "value": "application/json"}, {"name": "X-Trace", "value": "1"}])

    async with harness:
        executed = await harness.execute(unit)

    sent = recorder.requests[0]
    assert sent.headers["accept"] == "application/json"
    assert sent.headers["user-agent"] == "lazyrequest/1.0"
    assert sent.headers["x-trace"] == "1"
    assert {h.name for h in executed.request.headers} == {"user-agent", "accept", "x-trace"}


@pytest.mark.asyncio
async def test_body_content_type_only_when_absent():
    recorder = Recorder()
    harness = HttpHarness(transport=httpx.MockTransport(recorder))

    async with harness:
        await harness.execute(make_unit(method="post", body={"raw": '{"a": 1}', "contentType": "application/json"}))
        await harness.execute(make_unit(
            method="POST",
            headers=[("Content-Type", "text/plain")],
            body={"raw": "hi", "contentType": "application/json"},
        ))

    first, second = recorder.requests
    assert first.method == "POST"
    assert first.headers["content-type"] == "application/json"
    assert first.content == b'{"a": 1}'
    assert second.headers["content-type"] == "text/plain"


@pytest.mark.asyncio
async def test_empty_body_is_not_sent():
    recorder = Recorder()
    harness = HttpHarness(transport=httpx.MockTransport(recorder))

    async with harness:
        executed = await harness.execute(make_unit(method="  ", body={"raw": ""}))

    assert recorder.requests[0].method == "GET"
    assert recorder.requests[0].content == b""
    assert executed.request.body is None


@pytest.mark.asyncio
async def test_json_response_is_parsed():
    payload = {"id": 7, "tags": ["a"]}
    harness = HttpHarness(transport=httpx.MockTransport(
        Recorder(201, json=payload, headers={"X-Request-Id": "abc"})
    ))

    async with harness:
        executed = await harness.execute(make_unit(name="create"))

    response = executed.response
    assert response.status_code == 201
    assert response.status_text == "Created"
    assert response.body == payload
    assert json.loads(response.raw_body) == payload
    assert response.header("x-request-id") == "abc"
    assert response.duration_ms >= 0
    assert executed.request_name == "create"


@pytest.mark.asyncio
async def test_invalid_json_falls_back_to_text():
    harness = HttpHarness(transport=httpx.MockTransport(
        Recorder(text="{oops", headers={"Content-Type": "application/json"})
    ))

    async with harness:
        executed = await harness.execute(make_unit())

    assert executed.response.body == "{oops"


@pytest.mark.asyncio
async def test_empty_response_body_is_none():
    harness = HttpHarness(transport=httpx.MockTransport(Recorder(204, content=b"")))

    async with harness:
        executed = await harness.execute(make_unit())

    assert executed.response.body is None
    assert executed.response.raw_body == ""


@pytest.mark.asyncio
async def test_timeout_raises_request_timeout_error():
    async def slow(request):
        await asyncio.sleep(1)
        return httpx.Response(200)

    harness = HttpHarness(timeout=20, transport=httpx.MockTransport(slow))

    async with harness:
        with pytest.raises(RequestTimeoutError) as exc_info:
            await harness.execute(make_unit())

    assert exc_info.value.code == ErrorCode.REQUEST_TIMEOUT
    assert "20ms" in exc_info.value.message


@pytest.mark.asyncio
async def test_network_error_raises_execution_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    harness = HttpHarness(transport=httpx.MockTransport(refuse))

    async with harness:
        with pytest.raises(RequestExecutionError) as exc_info:
            await harness.execute(make_unit())

    assert "connection refused" in exc_info.value.message
    assert exc_info.value.details["url"] == "https://api.test/items"


@pytest.mark.asyncio
async def test_blank_url_is_a_build_error():
    harness = HttpHarness(transport=httpx.MockTransport(Recorder()))

    with pytest.raises(RequestBuildError):
        await harness.execute(make_unit(url="   "))


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
    client = httpx.AsyncClient(transport=httpx.MockTransport(Recorder()))
    harness = HttpHarness(client=client)

    await harness.execute(make_unit())
    await harness.aclose()

    assert client.is_closed is False
    await client.aclose()
