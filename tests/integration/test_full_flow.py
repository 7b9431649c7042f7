"""
End-to-end tests: config -> load -> resolve -> execute -> compare -> report.

The network is replaced with httpx.MockTransport; everything else is real.
"""
import asyncio
import json

import httpx
import pytest

from lazyrequest.base.config import RunConfig
from lazyrequest.contracts.enums import ExecutionMode, RequestExecutionStrategy
from lazyrequest.executor.http_harness import HttpHarness
from lazyrequest.pipeline import PipelineDependencies, execute_sources, run
from lazyrequest.loader.sources import load_inline
from lazyrequest.reporting.reporter import ResultReporter


class ListOutput:
    def __init__(self):
        self.lines = []

    def info(self, message):
        self.lines.append(message)

    def error(self, message):
        self.lines.append(message)


def api(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/users" and request.method == "GET":
        return httpx.Response(200, json=[{"name": "A", "id": 1}])
    if request.url.path == "/users" and request.method == "POST":
        body = json.loads(request.content)
        return httpx.Response(201, json={"id": 2, **body}, headers={"X-Auth-Seen": request.headers.get("authorization", "")})
    if request.url.path == "/health":
        return httpx.Response(200, text="<html><body>status: healthy</body></html>",
                              headers={"Content-Type": "text/html"})
    return httpx.Response(404, text="not found")


DOCUMENT = {
    "fileVariables": [
        {"key": "host", "value": "https://api.test"},
        {"key": "token", "value": "secret"},
        {"key": "auth", "value": "Bearer {{token}}"},
    ],
    "requests": [
        {
            "name": "list users",
            "url": "{{host}}/users",
            "expectedResponse": {"statusCode": 200, "body": '[{"id": 1, "name": "A"}]'},
        },
        {
            "name": "create user",
            "method": "POST",
            "url": "{{host}}/users",
            "headers": [{"name": "Authorization", "value": "{{auth}}"}],
            "body": {"raw": '{"name": "{{user}}"}', "contentType": "application/json"},
            "blockVariables": [{"key": "user", "value": "B"}],
            "expectedResponse": {
                "statusCode": 201,
                "headers": [{"name": "x-auth-seen", "value": "Bearer secret"}],
                "body": {"id": 2, "name": "B"},
            },
        },
        {
            "name": "health",
            "url": "{{host}}/health",
            "expectedResponse": {"statusCode": 200, "body": "<html>*healthy*</html>"},
        },
        {"name": "missing", "url": "{{host}}/missing"},
    ],
}


def inline_config(**overrides):
    values = dict(
        execution_mode=ExecutionMode.INLINE,
        inline_source_text=json.dumps(DOCUMENT),
        request_execution_strategy=RequestExecutionStrategy.SEQUENTIAL,
        default_time_between_requests=0,
    )
    values.update(overrides)
    return RunConfig(**values).validate()


@pytest.mark.asyncio
async def test_execute_sources_end_to_end():
    async with HttpHarness(transport=httpx.MockTransport(api)) as harness:
        results = await execute_sources([load_inline(json.dumps(DOCUMENT))], inline_config(), executor=harness)

    by_name = {r.unit.display_name: r for r in results}
    assert [r.unit.request_index for r in results] == [0, 1, 2, 3]
    assert by_name["list users"].passed is True
    assert by_name["create user"].passed is True
    assert by_name["create user"].executed_unit.request.body == '{"name": "B"}'
    assert by_name["health"].passed is True
    assert by_name["missing"].passed is False
    assert by_name["missing"].comparison.mismatches[0].field == "statusCode"


@pytest.mark.asyncio
async def test_run_streams_results_and_returns_exit_code():
    output = ListOutput()
    deps = PipelineDependencies(
        executor=HttpHarness(transport=httpx.MockTransport(api)),
        reporter=ResultReporter(output=output, use_colors=False),
    )

    exit_code = await run(inline_config(), deps)
    await deps.executor.aclose()

    assert exit_code == 1
    assert " 3 pass" in output.lines
    assert " 1 fail" in output.lines
    assert any(line.startswith("Ran 4 requests across 1 file.") for line in output.lines)


@pytest.mark.asyncio
async def test_run_with_bail_and_max_requests():
    output = ListOutput()
    deps = PipelineDependencies(
        executor=HttpHarness(transport=httpx.MockTransport(lambda request: httpx.Response(500))),
        reporter=ResultReporter(output=output, use_colors=False),
    )

    exit_code = await run(inline_config(bail=1, max_requests=3, show_after_done=True), deps)
    await deps.executor.aclose()

    assert exit_code == 1
    assert any(line.startswith("Ran 1 requests across 1 file.") for line in output.lines)


@pytest.mark.asyncio
async def test_show_after_done_reports_in_source_order():
    async def slow_first(request):
        if request.url.path == "/users" and request.method == "GET":
            await asyncio.sleep(0.05)
        return api(request)

    output = ListOutput()
    deps = PipelineDependencies(
        executor=HttpHarness(transport=httpx.MockTransport(slow_first)),
        reporter=ResultReporter(output=output, use_colors=False),
    )
    config = inline_config(request_execution_strategy=RequestExecutionStrategy.CONCURRENT, show_after_done=True)

    await run(config, deps)
    await deps.executor.aclose()

    result_lines = [line for line in output.lines if line[:1] in ("✓", "✗")]
    names = [line.split(" > ")[0][2:] for line in result_lines]
    assert names == ["list users", "create user", "health", "missing"]


@pytest.mark.asyncio
async def test_run_folder_concurrently(tmp_path):
    (tmp_path / "a.json").write_text(json.dumps(DOCUMENT), encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "b.json").write_text(json.dumps({"requests": [{"url": "https://api.test/users"}]}), encoding="utf-8")

    output = ListOutput()
    config = RunConfig(search_paths=(tmp_path.resolve(),), default_time_between_requests=0).validate()
    deps = PipelineDependencies(
        executor=HttpHarness(transport=httpx.MockTransport(api)),
        reporter=ResultReporter(output=output, use_colors=False),
    )

    exit_code = await run(config, deps)
    await deps.executor.aclose()

    assert exit_code == 1
    assert " 4 pass" in output.lines
    assert any(line.startswith("Ran 5 requests across 2 files.") for line in output.lines)


@pytest.mark.asyncio
async def test_input_errors_abort_before_any_request(capsys):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    config = RunConfig(execution_mode=ExecutionMode.INLINE, inline_source_text="{broken").validate()
    deps = PipelineDependencies(executor=HttpHarness(transport=httpx.MockTransport(handler)))

    assert await run(config, deps) == 1
    assert calls == []
    assert "not valid JSON" in capsys.readouterr().err
