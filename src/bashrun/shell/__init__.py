"""Shell execution.

Cross-platform execution of a single command string with concurrent
output draining, timeout and cancellation handling, and typed results.

Example:
    from bashrun.shell import Shell, ShellResult

    # Boolean success
    ok = await Shell.execute("make build")

    # Exit code, failing on any stderr output
    code = await Shell.execute_with_code("test -f setup.cfg")

    # Typed result
    result = await Shell.execute_with_results("ls -la", ShellResult)
    print(result.output)

    # Get preferred shell
    shell = Shell.preferred()
"""

from .errors import (
    CommandCancelledError,
    CommandFailedError,
    InvalidArgumentError,
    LaunchFailureError,
    NonZeroExitError,
    PlatformNotSupportedError,
    ShellError,
    StderrProducedError,
)
from .lifecycle import ExecutionState, LifecycleCoordinator
from .platform import OperatingSystem, PlatformResolver, ShellInvocation, detect_os
from .result import (
    Cancelled,
    CommandResult,
    ExecutionOutcome,
    Failure,
    LaunchError,
    ShellResult,
    Success,
)
from .shell import (
    DEFAULT_TIMEOUT_MS,
    ExecutionConfig,
    Shell,
    execute_command,
    execute_command_with_code,
    execute_command_with_results,
)

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "Cancelled",
    "CommandCancelledError",
    "CommandFailedError",
    "CommandResult",
    "ExecutionConfig",
    "ExecutionOutcome",
    "ExecutionState",
    "Failure",
    "InvalidArgumentError",
    "LaunchError",
    "LaunchFailureError",
    "LifecycleCoordinator",
    "NonZeroExitError",
    "OperatingSystem",
    "PlatformNotSupportedError",
    "PlatformResolver",
    "Shell",
    "ShellError",
    "ShellInvocation",
    "ShellResult",
    "StderrProducedError",
    "Success",
    "detect_os",
    "execute_command",
    "execute_command_with_code",
    "execute_command_with_results",
]
