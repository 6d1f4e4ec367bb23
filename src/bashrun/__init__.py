"""bashrun - run shell commands from asyncio with typed results.

A single flat command string is handed to the host shell (``bash -c`` on
Linux and macOS, WSL on Windows). Output is drained concurrently, a timeout
and an optional cancel event bound the run, and the caller awaits exactly
one outcome.

Example:
    from bashrun import Shell, ShellResult

    ok = await Shell.execute("echo hello")
    code = await Shell.execute_with_code("exit 3")
    result = await Shell.execute_with_results("ls -la", ShellResult)
"""

__version__ = "0.1.0"

# Lazy imports to keep `bashrun --version` cheap
def __getattr__(name: str):
    """Lazy import module components."""
    if name in (
        "Shell",
        "ShellResult",
        "CommandResult",
        "ExecutionConfig",
        "execute_command",
        "execute_command_with_code",
        "execute_command_with_results",
    ):
        from . import shell
        return getattr(shell, name)
    if name in (
        "ShellError",
        "InvalidArgumentError",
        "LaunchFailureError",
        "PlatformNotSupportedError",
        "CommandFailedError",
        "NonZeroExitError",
        "StderrProducedError",
        "CommandCancelledError",
    ):
        from .shell import errors
        return getattr(errors, name)
    if name == "Log":
        from .util.log import Log
        return Log
    if name == "GlobalPath":
        from .core.global_paths import GlobalPath
        return GlobalPath
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Version
    "__version__",
    # Entry points
    "Shell",
    "ShellResult",
    "CommandResult",
    "ExecutionConfig",
    "execute_command",
    "execute_command_with_code",
    "execute_command_with_results",
    # Errors
    "ShellError",
    "InvalidArgumentError",
    "LaunchFailureError",
    "PlatformNotSupportedError",
    "CommandFailedError",
    "NonZeroExitError",
    "StderrProducedError",
    "CommandCancelledError",
    # Core
    "GlobalPath",
    "Log",
]
