"""Run command - execute one shell command through an entry point."""

import json
import platform
from typing import Literal, Optional

from rich.console import Console

from ...shell import (
    CommandCancelledError,
    CommandFailedError,
    InvalidArgumentError,
    LaunchFailureError,
    Shell,
    ShellResult,
)
from ...util.error import format_error, format_unknown_error
from ...util.log import Log

_is_windows = platform.system() == "Windows"
console = Console(legacy_windows=_is_windows)
err_console = Console(stderr=True, legacy_windows=_is_windows)
log = Log.create({"service": "cli.run"})

Mode = Literal["bool", "code", "result"]

EXIT_USAGE = 2
EXIT_TIMEOUT = 124
EXIT_LAUNCH_FAILED = 127


def _exit_status(code: int) -> int:
    """Clamp a child exit code into the range a process can return."""
    if 0 <= code <= 255:
        return code
    return 1


async def run_command(
    command: str,
    *,
    mode: Mode = "result",
    timeout_ms: Optional[int] = None,
    json_output: bool = False,
) -> int:
    """Run ``command`` through the entry point selected by ``mode``.

    Returns the exit status for the CLI process.
    """
    try:
        if mode == "bool":
            ok = await Shell.execute(command, timeout_ms)
            _emit({"success": ok}, "true" if ok else "false", json_output)
            return 0

        if mode == "code":
            code = await Shell.execute_with_code(command, timeout_ms)
            _emit({"exit_code": code}, str(code), json_output)
            return _exit_status(code)

        result = await Shell.execute_with_results(command, ShellResult, timeout_ms)
        if json_output:
            console.print_json(json.dumps(result.to_dict()))
        else:
            if result.output is not None:
                _print_verbatim(console, result.output)
            if result.error is not None:
                _print_verbatim(err_console, result.error)
        return _exit_status(result.exit_code or 0)

    except CommandCancelledError as e:
        return _fail(e, EXIT_TIMEOUT, json_output)
    except LaunchFailureError as e:
        return _fail(e, EXIT_LAUNCH_FAILED, json_output)
    except InvalidArgumentError as e:
        return _fail(e, EXIT_USAGE, json_output)
    except CommandFailedError as e:
        return _fail(e, _exit_status(e.exit_code) or 1, json_output)


def _print_verbatim(target: Console, text: str) -> None:
    """Print captured output exactly as the command wrote it."""
    target.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


def _emit(payload: dict, text: str, json_output: bool) -> None:
    if json_output:
        console.print_json(json.dumps(payload))
    else:
        _print_verbatim(console, text)


def _fail(error: Exception, status: int, json_output: bool) -> int:
    message = format_error(error) or format_unknown_error(error)
    log.error("command failed", {"error": error, "status": status})
    if json_output:
        console.print_json(json.dumps({"error": message, "type": type(error).__name__}))
    else:
        err_console.print(f"[red]Error:[/red] {message}", highlight=False)
    return status
