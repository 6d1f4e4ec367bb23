from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from bashrun.core.global_paths import GlobalPath
from bashrun.util.log import MAX_LOG_FILES, Log, LogFormat, LogLevel


@pytest.fixture
def log_dir(monkeypatch, tmp_path: Path) -> Path:  # type: ignore[no-untyped-def]
    target = tmp_path / "log"
    monkeypatch.setattr(GlobalPath, "log", classmethod(lambda cls: str(target)))
    return target


def test_kv_lines_reach_console_and_file(log_dir: Path, capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(level=LogLevel.INFO, format=LogFormat.KV, console=True, file=True, dev=True)

    log = Log.create({"service": "test.kv"})
    log.info("command exited", {"exit_code": 3, "command": "echo hi"})
    Log.close()

    stderr = capsys.readouterr().err
    text = (log_dir / "dev.log").read_text(encoding="utf-8")

    assert "msg=\"command exited\"" in stderr
    assert "service=test.kv" in stderr
    assert "exit_code=3" in text
    assert 'command="echo hi"' in text


def test_json_lines(log_dir: Path) -> None:
    Log.configure(level=LogLevel.INFO, format=LogFormat.JSON, console=False, file=True, dev=True)

    log = Log.create({"service": "test.json"})
    log.info("launched", {"argv": ["bash", "-c", "true"], "pid": None})
    Log.close()

    payload = json.loads((log_dir / "dev.log").read_text(encoding="utf-8").strip())

    assert payload["level"] == "info"
    assert payload["msg"] == "launched"
    assert payload["service"] == "test.json"
    assert payload["argv"] == ["bash", "-c", "true"]
    assert "pid" not in payload


def test_level_filter_and_silence_without_sinks(capsys) -> None:  # type: ignore[no-untyped-def]
    log = Log.create({"service": "test.level"})
    log.error("nobody listens")
    assert capsys.readouterr().err == ""

    Log.configure(level=LogLevel.WARN, console=True)
    log.info("dropped")
    log.warning("kept")

    stderr = capsys.readouterr().err
    assert "dropped" not in stderr
    assert "msg=kept" in stderr
    assert Log.level() == LogLevel.WARN


def test_error_values_include_cause_chain(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(format=LogFormat.JSON, console=True)
    try:
        try:
            raise FileNotFoundError("bash")
        except FileNotFoundError as inner:
            raise RuntimeError("launch failed") from inner
    except RuntimeError as e:
        Log.create({"service": "test.error"}).error("failed", {"error": e})

    payload = json.loads(capsys.readouterr().err.strip())
    assert payload["error"] == "launch failed Caused by: bash"


def test_timer_logs_start_and_completion(capsys) -> None:  # type: ignore[no-untyped-def]
    Log.configure(format=LogFormat.JSON, console=True)

    with Log.create({"service": "test.timer"}).time("bench", {"workload": "echo"}):
        pass

    lines = [json.loads(line) for line in capsys.readouterr().err.splitlines()]
    assert [line["status"] for line in lines] == ["started", "completed"]
    assert lines[1]["workload"] == "echo"
    assert isinstance(lines[1]["duration"], int)


def test_old_log_files_are_pruned(log_dir: Path) -> None:
    log_dir.mkdir(parents=True)
    for i in range(MAX_LOG_FILES + 3):
        old = log_dir / f"2024-01-{i + 1:02d}T000000.log"
        old.write_text("", encoding="utf-8")
        os.utime(old, (1_000_000 + i, 1_000_000 + i))

    Log.configure(file=True)
    current = Path(Log.file())
    Log.close()

    remaining = sorted(p.name for p in log_dir.glob("*.log") if p != current)
    assert len(remaining) == MAX_LOG_FILES
    assert "2024-01-01T000000.log" not in remaining


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("debug", LogLevel.DEBUG), ("WARNING", LogLevel.WARN), (None, LogLevel.INFO)],
)
def test_level_parse(raw, expected) -> None:  # type: ignore[no-untyped-def]
    assert LogLevel.parse(raw) == expected


def test_level_parse_rejects_unknown() -> None:
    with pytest.raises(ValueError):
        LogLevel.parse("verbose")
