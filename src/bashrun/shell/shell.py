"""Public entry points for running shell commands."""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..core.config import ConfigManager
from ..util.log import Log
from .errors import (
    CommandCancelledError,
    InvalidArgumentError,
    LaunchFailureError,
    NonZeroExitError,
    StderrProducedError,
)
from .lifecycle import Launcher, LifecycleCoordinator
from .platform import PlatformResolver
from .process import build_launch_spec, validate_command
from .result import (
    Cancelled,
    ExecutionOutcome,
    Failure,
    LaunchError,
    ResultFactory,
    ShellResult,
    Success,
    T,
    project_result,
)

log = Log.create({"service": "shell"})

DEFAULT_TIMEOUT_MS = 30_000


@dataclass(frozen=True)
class ExecutionConfig:
    """Per-call settings, fixed for the lifetime of one execution."""

    timeout_ms: int = DEFAULT_TIMEOUT_MS
    cancel: Optional[asyncio.Event] = None
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = field(default=None, hash=False)

    def __post_init__(self) -> None:
        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int):
            raise InvalidArgumentError("timeout", f"expected milliseconds as int, got {self.timeout_ms!r}")
        if self.timeout_ms <= 0:
            raise InvalidArgumentError("timeout", f"{self.timeout_ms} ms; timeout must be a positive number")


def _interrupted(outcome: ExecutionOutcome, config: ExecutionConfig) -> Exception | None:
    if isinstance(outcome, Cancelled):
        return CommandCancelledError(timed_out=outcome.timed_out, timeout_ms=config.timeout_ms)
    if isinstance(outcome, LaunchError):
        error = LaunchFailureError(f"Failed to start process: {outcome.cause}", cause=outcome.cause)
        error.__cause__ = outcome.cause
        return error
    return None


class Shell:
    """Run a flat command string through the host shell.

    Every entry point accepts ``timeout_ms`` (defaults to the configured
    timeout, 30 s out of the box), an optional ``cancel`` event, and an
    optional working directory and extra environment. A blank command raises
    InvalidArgumentError before anything is launched.
    """

    @staticmethod
    def preferred(resolver: Optional[PlatformResolver] = None) -> str:
        """Executable that commands are handed to on this host."""
        return (resolver or ConfigManager.resolver()).resolve().executable

    @staticmethod
    async def run_outcome(
        command: str,
        timeout_ms: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None,
        *,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        resolver: Optional[PlatformResolver] = None,
        launcher: Optional[Launcher] = None,
    ) -> ExecutionOutcome:
        """Run a command and return its outcome variant without raising for it.

        Raises:
            InvalidArgumentError: Blank command or non-positive timeout.
            PlatformNotSupportedError: No usable shell host on this platform.
        """
        outcome, _ = await Shell._run(
            command, timeout_ms, cancel, cwd=cwd, env=env, resolver=resolver, launcher=launcher
        )
        return outcome

    @staticmethod
    async def execute(
        command: str,
        timeout_ms: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None,
        *,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        resolver: Optional[PlatformResolver] = None,
    ) -> bool:
        """Return True when the command exits 0.

        Raises:
            NonZeroExitError: The command exited with a non-zero code.
            CommandCancelledError: Timeout elapsed or ``cancel`` was set.
            LaunchFailureError: The shell could not be started.
        """
        outcome, config = await Shell._run(command, timeout_ms, cancel, cwd=cwd, env=env, resolver=resolver)
        error = _interrupted(outcome, config)
        if error is not None:
            raise error
        assert isinstance(outcome, (Success, Failure))
        if outcome.exit_code != 0:
            raise NonZeroExitError(outcome.exit_code, outcome.stderr)
        return True

    @staticmethod
    async def execute_with_code(
        command: str,
        timeout_ms: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None,
        *,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        resolver: Optional[PlatformResolver] = None,
    ) -> int:
        """Return the command's exit code.

        Any stderr output counts as failure here, even with exit code 0.

        Raises:
            StderrProducedError: The command wrote non-whitespace to stderr.
            CommandCancelledError: Timeout elapsed or ``cancel`` was set.
            LaunchFailureError: The shell could not be started.
        """
        outcome, config = await Shell._run(command, timeout_ms, cancel, cwd=cwd, env=env, resolver=resolver)
        error = _interrupted(outcome, config)
        if error is not None:
            raise error
        assert isinstance(outcome, (Success, Failure))
        if outcome.stderr.strip():
            raise StderrProducedError(outcome.exit_code, outcome.stderr)
        return outcome.exit_code

    @staticmethod
    async def execute_with_results(
        command: str,
        factory: ResultFactory[T] = ShellResult,  # type: ignore[assignment]
        timeout_ms: Optional[int] = None,
        cancel: Optional[asyncio.Event] = None,
        *,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        resolver: Optional[PlatformResolver] = None,
    ) -> T:
        """Run the command and fold its output into a new ``factory()`` object.

        Non-zero exit and stderr output never raise here; they end up in the
        result object.

        Raises:
            CommandCancelledError: Timeout elapsed or ``cancel`` was set.
            LaunchFailureError: The shell could not be started.
        """
        if not callable(factory):
            raise InvalidArgumentError("factory", "must be a zero-argument callable")
        outcome, config = await Shell._run(command, timeout_ms, cancel, cwd=cwd, env=env, resolver=resolver)
        error = _interrupted(outcome, config)
        if error is not None:
            raise error
        assert isinstance(outcome, (Success, Failure))
        return project_result(factory, outcome)

    @staticmethod
    async def _run(
        command: str,
        timeout_ms: Optional[int],
        cancel: Optional[asyncio.Event],
        *,
        cwd: Optional[str],
        env: Optional[Dict[str, str]],
        resolver: Optional[PlatformResolver],
        launcher: Optional[Launcher] = None,
    ) -> tuple[ExecutionOutcome, ExecutionConfig]:
        validate_command(command)

        settings = await ConfigManager.get()
        config = ExecutionConfig(
            timeout_ms=settings.timeout_ms if timeout_ms is None else timeout_ms,
            cancel=cancel,
            cwd=cwd,
            env=env,
        )
        resolver = resolver or ConfigManager.resolver()
        invocation = await resolver.invocation()
        spec = build_launch_spec(command, invocation, cwd=config.cwd, env=config.env)

        log.info("executing command", {
            "shell": invocation.executable,
            "command": command,
            "timeout_ms": config.timeout_ms,
        })
        coordinator = LifecycleCoordinator(
            spec,
            timeout_ms=config.timeout_ms,
            cancel=config.cancel,
            launcher=launcher,
        )
        outcome = await coordinator.run()
        return outcome, config


execute_command = Shell.execute
execute_command_with_code = Shell.execute_with_code
execute_command_with_results = Shell.execute_with_results
