from __future__ import annotations

import asyncio
import json
import os
import signal
import sys

import httpx
import pytest

from httptest import cli
from httptest.loadgen import runner
from httptest.storage import Storage


@pytest.fixture
def mock_run(monkeypatch):
    real = runner.run_load_test

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200 if request.url.path == "/ok" else 404)

    async def fake(config):
        return await real(
            config,
            transport=httpx.MockTransport(handler),
            live=False,
            handle_signals=False,
        )

    monkeypatch.setattr(cli, "run_load_test", fake)


@pytest.mark.parametrize(
    ("argv", "message"),
    [
        (["-requests", "5"], "-url is required"),
        (["-url", "example.com"], "Either -requests or -duration"),
        (["-url", "example.com", "-requests", "5", "-duration", "10s"], "mutually exclusive"),
        (["-url", "example.com", "-requests", "5", "-body", "x", "-body-file", "f"], "-body and -body-file"),
        (["-url", "example.com", "-requests", "5", "-header", "broken"], "invalid header"),
        (["-url", "example.com", "-duration", "soon"], "invalid duration"),
    ],
)
def test_config_errors_exit_1(argv, message, capsys) -> None:
    assert cli.main(argv) == 1
    assert message in capsys.readouterr().out


def test_unreadable_body_file(tmp_path, capsys) -> None:
    missing = tmp_path / "missing.json"
    code = cli.main(["-url", "example.com", "-requests", "1", "-body-file", str(missing)])
    assert code == 1
    assert "Error reading body file" in capsys.readouterr().out


def test_build_config(tmp_path) -> None:
    body = tmp_path / "body.json"
    body.write_bytes(b'{"a": 1}')
    args = cli._build_parser().parse_args(
        [
            "--url",
            "api.example.com/v1",
            "-requests",
            "20",
            "-concurrency",
            "4",
            "-method",
            "post",
            "-body-file",
            str(body),
            "-header",
            "X-Api-Key: k1",
            "-header",
            "Accept: application/json",
        ]
    )
    config = cli.build_config(args)
    assert config.target.url == "https://api.example.com/v1"
    assert config.target.method == "POST"
    assert config.target.body == b'{"a": 1}'
    assert config.target.headers == (("X-Api-Key", "k1"), ("Accept", "application/json"))
    assert config.concurrency == 4
    assert config.total_requests == 20
    assert not config.duration_mode


def test_full_run_writes_report_and_history(tmp_path, capsys, mock_run) -> None:
    report = tmp_path / "out" / "report.json"
    report.parent.mkdir()
    db = tmp_path / "history.duckdb"
    code = cli.main(
        [
            "-url",
            "http://svc.local/ok",
            "-requests",
            "6",
            "-concurrency",
            "2",
            "-output",
            str(report),
            "-history-db",
            str(db),
        ]
    )
    assert code == 0
    out = capsys.readouterr().out
    assert "Load Test Summary" in out
    assert f"Summary report saved to {report}" in out

    data = json.loads(report.read_text())
    assert data["totalRequestsSent"] == 6
    assert data["successRate"] == 100.0
    assert data["statusCodeDistribution"] == {"200": 6}

    runs = Storage(db).list_runs()
    assert len(runs) == 1
    assert runs["url"].tolist() == ["http://svc.local/ok"]


def test_report_write_failure_keeps_exit_code(tmp_path, capsys, mock_run) -> None:
    target = tmp_path / "no-such-dir" / "report.json"
    code = cli.main(["-url", "http://svc.local/missing", "-requests", "3", "-output", str(target)])
    assert code == 0
    out = capsys.readouterr().out
    assert "Status Code 404" in out
    assert "Error writing summary to file" in out


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signal delivery")
def test_sigint_run_exits_cleanly(monkeypatch, capsys) -> None:
    real = runner.run_load_test

    async def slow(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.005)
        return httpx.Response(200)

    async def fake(config):
        asyncio.get_running_loop().call_later(0.1, os.kill, os.getpid(), signal.SIGINT)
        return await real(config, transport=httpx.MockTransport(slow), live=False)

    monkeypatch.setattr(cli, "run_load_test", fake)
    code = cli.main(["-url", "http://svc.local/ok", "-requests", "100000", "-concurrency", "4"])
    assert code == 0
    assert "Load Test Summary" in capsys.readouterr().out
