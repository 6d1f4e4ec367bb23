"""Shell execution exceptions."""

from __future__ import annotations


class ShellError(Exception):
    """Base class for every error raised by bashrun."""


class InvalidArgumentError(ShellError, ValueError):
    """Raised before launch when the command or an option is unusable."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"Invalid {name}: {message}")


class LaunchFailureError(ShellError):
    """Raised when the process could not be started."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)


class PlatformNotSupportedError(LaunchFailureError):
    """Raised when the host has no usable shell subsystem."""

    def __init__(self, platform: str, reason: str):
        self.platform = platform
        super().__init__(f"Platform not supported ({platform}): {reason}")


class CommandFailedError(ShellError):
    """Raised when a command ran but its exit status or stderr signals failure."""

    def __init__(self, exit_code: int, stderr: str):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Error: {stderr} - Process exited with code {exit_code}")


class NonZeroExitError(CommandFailedError):
    """Raised when the command exited with a non-zero code."""


class StderrProducedError(CommandFailedError):
    """Raised when the command wrote to stderr."""


class CommandCancelledError(ShellError):
    """Raised when the run was cancelled or its timeout elapsed.

    The process tree has already been killed when this is raised.
    """

    def __init__(self, *, timed_out: bool, timeout_ms: int | None = None):
        self.timed_out = timed_out
        self.timeout_ms = timeout_ms
        if timed_out:
            message = f"Command timed out after {timeout_ms} ms"
        else:
            message = "Command was cancelled"
        super().__init__(message)
