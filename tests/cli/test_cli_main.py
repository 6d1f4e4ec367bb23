from __future__ import annotations

import json
import sys

import pytest
from rich.console import Console
from typer.testing import CliRunner

from bashrun import __version__
from bashrun.cli.cmd.bench import BenchResult, Workload, render, run_benchmarks
from bashrun.cli.main import app


runner = CliRunner()

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


def test_cli_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"bashrun {__version__}" in result.stdout


@posix_only
def test_cli_run_prints_output() -> None:
    result = runner.invoke(app, ["run", "echo", "hello"])

    assert result.exit_code == 0
    assert "hello" in result.stdout


@posix_only
def test_cli_run_code_mode_exits_with_child_code() -> None:
    result = runner.invoke(app, ["run", "--mode", "code", "exit 3"])

    assert result.exit_code == 3
    assert "3" in result.stdout


@posix_only
def test_cli_run_bool_mode_reports_failure() -> None:
    result = runner.invoke(app, ["run", "--mode", "bool", "echo bad >&2; exit 2"])

    assert result.exit_code == 2
    assert "Command failed with exit code 2: bad" in result.output


@posix_only
def test_cli_run_timeout_exits_124() -> None:
    result = runner.invoke(app, ["run", "--timeout", "100", "sleep 5"])

    assert result.exit_code == 124
    assert "timed out after 100 ms" in result.output


@posix_only
def test_cli_run_keeps_long_lines_intact() -> None:
    result = runner.invoke(app, ["run", "printf '%0200d' 0"])

    assert result.exit_code == 0
    assert "0" * 200 in result.stdout.splitlines()


@posix_only
def test_cli_run_prints_output_literally() -> None:
    result = runner.invoke(app, ["run", "echo '[bold]x[/bold] :rocket:'"])

    assert result.exit_code == 0
    assert "[bold]x[/bold] :rocket:" in result.stdout.splitlines()


@posix_only
def test_cli_run_json_result() -> None:
    result = runner.invoke(app, ["run", "--json", "echo out; echo err >&2; exit 4"])

    assert result.exit_code == 4
    payload = json.loads(result.stdout)
    assert payload == {"output": "out", "error": "err", "exit_code": 4}


def test_cli_run_blank_command_is_usage_error() -> None:
    result = runner.invoke(app, ["run", "   "])

    assert result.exit_code == 2
    assert "Invalid command" in result.output


def test_cli_invalid_config_exits_2(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("BASHRUN_TIMEOUT_MS", "soon")

    result = runner.invoke(app, ["config", "--show"])

    assert result.exit_code == 2
    assert "BASHRUN_TIMEOUT_MS" in result.stdout


def test_cli_config_show() -> None:
    result = runner.invoke(app, ["config", "--show"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["timeout_ms"] == 30_000
    assert payload["wsl_executable"] == "wsl"


@posix_only
@pytest.mark.anyio
async def test_run_benchmarks_collects_samples() -> None:
    workloads = [Workload("echo", "echo hi"), Workload("echo with results", "echo hi", with_results=True)]

    results = await run_benchmarks(workloads, iterations=2)

    assert [r.workload.name for r in results] == ["echo", "echo with results"]
    assert all(len(r.samples_ms) == 2 for r in results)
    assert all(r.min_ms <= r.mean_ms <= r.max_ms for r in results)


def test_render_reports_ratio_against_first_workload() -> None:
    results = [
        BenchResult(Workload("base", "true"), [2.0, 2.0]),
        BenchResult(Workload("slow", "true"), [4.0, 6.0]),
    ]
    console = Console(record=True, width=120)

    console.print(render(results))
    text = console.export_text()

    assert "base" in text
    assert "1.00" in text
    assert "2.50" in text
