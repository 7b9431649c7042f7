"""
Unit tests for the lazyrequest CLI entry point.
"""
import json
from unittest.mock import AsyncMock, patch

import pytest

from lazyrequest.cli.lazyrequest import build_parser, main


def test_parser_defaults():
    args = build_parser().parse_args([])

    assert args.inline is None
    assert args.file is None
    assert args.folder is None
    assert args.bail is None
    assert args.run_in_band is False
    assert args.concurrent is False


def test_bare_bail_means_one():
    assert build_parser().parse_args(["--bail"]).bail == 1
    assert build_parser().parse_args(["--bail", "3"]).bail == 3


@pytest.mark.parametrize("argv", [
    ["--inline", "{}", "--file", "x.json"],
    ["--run-in-band", "--concurrent"],
    ["--timeout", "0"],
    ["--max-requests", "-1"],
    ["--delay", "soon"],
])
def test_parser_rejects(argv, capsys):
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(argv)
    assert exc_info.value.code == 2


def test_main_passes_namespace_to_pipeline():
    with patch("lazyrequest.cli.lazyrequest.run_from_args", new=AsyncMock(return_value=0)) as run_from_args:
        assert main(["--file", "requests.json", "-t", "2000", "--run-in-band"]) == 0

    args = run_from_args.await_args.args[0]
    assert args.file == "requests.json"
    assert args.timeout == 2000
    assert args.run_in_band is True


def test_main_reports_invalid_source(capsys):
    assert main(["--inline", json.dumps({"requests": []})]) == 1
    assert "No HTTP requests found" in capsys.readouterr().err
