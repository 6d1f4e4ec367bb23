from __future__ import annotations

import pytest

from bashrun.core.config import ConfigError
from bashrun.shell.errors import (
    CommandCancelledError,
    CommandFailedError,
    InvalidArgumentError,
    LaunchFailureError,
    NonZeroExitError,
    PlatformNotSupportedError,
    StderrProducedError,
)
from bashrun.util.error import format_error, format_unknown_error


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (CommandCancelledError(timed_out=True, timeout_ms=250), "Command timed out after 250 ms and was killed"),
        (CommandCancelledError(timed_out=False), "Command was cancelled and killed"),
        (StderrProducedError(0, "warn\n"), "Command wrote to stderr (exit code 0): warn"),
        (NonZeroExitError(3, "boom"), "Command failed with exit code 3: boom"),
        (NonZeroExitError(1, ""), "Command failed with exit code 1"),
        (
            PlatformNotSupportedError("windows", "WSL is not installed"),
            "Platform not supported (windows): WSL is not installed",
        ),
        (
            LaunchFailureError("cannot start", cause=FileNotFoundError("bash")),
            "Could not start the shell: bash",
        ),
        (InvalidArgumentError("command", "must not be blank"), "Invalid command: must not be blank"),
        (ConfigError("bashrun.json", "bad"), "Config error in bashrun.json: bad"),
    ],
)
def test_known_errors(error: Exception, expected: str) -> None:
    assert format_error(error) == expected


def test_unknown_errors_fall_through() -> None:
    assert format_error(RuntimeError("x")) is None
    assert format_unknown_error(RuntimeError("x")) == "RuntimeError: x"
    assert format_unknown_error({"a": 1}) == '{\n  "a": 1\n}'


def test_failure_message_and_hierarchy() -> None:
    error = NonZeroExitError(2, "oops")

    assert str(error) == "Error: oops - Process exited with code 2"
    assert isinstance(error, CommandFailedError)
    assert not isinstance(CommandCancelledError(timed_out=True, timeout_ms=1), CommandFailedError)
    assert isinstance(InvalidArgumentError("timeout", "must be positive"), ValueError)
