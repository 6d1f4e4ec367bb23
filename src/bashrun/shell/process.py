"""Child process construction, start and process-tree termination."""

import asyncio
import os
import signal
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..util.log import Log
from .errors import InvalidArgumentError, LaunchFailureError
from .platform import ShellInvocation

log = Log.create({"service": "shell.process"})

IS_WINDOWS = sys.platform == "win32"


@dataclass(frozen=True)
class LaunchSpec:
    """Everything needed to start one child process."""

    argv: tuple[str, ...]
    cwd: Optional[str] = None
    env: Optional[Dict[str, str]] = None

    @property
    def executable(self) -> str:
        return self.argv[0]


def validate_command(command: Any) -> str:
    """Reject anything that is not a non-blank string."""
    if not isinstance(command, str):
        raise InvalidArgumentError("command", f"expected a string, got {type(command).__name__}")
    if not command.strip():
        raise InvalidArgumentError("command", "must not be empty or whitespace")
    return command


def build_launch_spec(
    command: str,
    invocation: ShellInvocation,
    *,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> LaunchSpec:
    """Build the launch spec for a command under the given shell invocation.

    ``env`` entries are layered over the current environment.
    """
    validate_command(command)
    merged_env = None
    if env:
        merged_env = os.environ.copy()
        merged_env.update(env)
    return LaunchSpec(argv=tuple(invocation.argv(command)), cwd=cwd, env=merged_env)


def _platform_kwargs() -> Dict[str, Any]:
    if IS_WINDOWS:
        flags = getattr(subprocess, "CREATE_NO_WINDOW", 0) | getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
        return {"creationflags": flags}
    # Own session: the child leads a process group that kill_tree() can signal
    return {"start_new_session": True}


class ChildProcess:
    """One started OS process, exclusively owned by a single execution."""

    def __init__(self, process: asyncio.subprocess.Process, spec: LaunchSpec):
        self._process = process
        self.spec = spec
        self._disposed = False

    @classmethod
    async def start(cls, spec: LaunchSpec) -> "ChildProcess":
        """Start the process with piped stdout/stderr and no stdin.

        Raises:
            LaunchFailureError: The executable is missing, not permitted, or
                the arguments were rejected by the OS.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                *spec.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=spec.cwd,
                env=spec.env,
                **_platform_kwargs(),
            )
        except (OSError, ValueError) as e:
            log.error("process start failed", {"executable": spec.executable, "error": e})
            raise LaunchFailureError(f"Failed to start {spec.executable}: {e}", cause=e) from e

        log.info("process started", {"pid": process.pid, "executable": spec.executable})
        return cls(process, spec)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    @property
    def stdout(self) -> asyncio.StreamReader:
        if self._process.stdout is None:
            raise RuntimeError("stdout is not piped")
        return self._process.stdout

    @property
    def stderr(self) -> asyncio.StreamReader:
        if self._process.stderr is None:
            raise RuntimeError("stderr is not piped")
        return self._process.stderr

    async def wait(self) -> int:
        return await self._process.wait()

    async def kill_tree(self) -> bool:
        """Forcefully kill the process and everything it spawned.

        Best effort: a process that is already gone or cannot be signalled
        is logged and reported as ``False``.
        """
        if IS_WINDOWS:
            killed = await self._taskkill()
        else:
            killed = self._killpg()
        if not killed:
            try:
                self._process.kill()
                killed = True
            except (ProcessLookupError, PermissionError, OSError) as e:
                log.debug("kill skipped", {"pid": self.pid, "error": e})
        return killed

    def _killpg(self) -> bool:
        try:
            os.killpg(self.pid, signal.SIGKILL)
            return True
        except (ProcessLookupError, PermissionError, OSError) as e:
            log.debug("process group kill failed", {"pid": self.pid, "error": e})
            return False

    async def _taskkill(self) -> bool:
        try:
            proc = await asyncio.create_subprocess_exec(
                "taskkill", "/F", "/T", "/PID", str(self.pid),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            return await proc.wait() == 0
        except OSError as e:
            log.debug("taskkill failed", {"pid": self.pid, "error": e})
            return False

    async def dispose(self) -> None:
        """Reap the process; safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        if self._process.returncode is None:
            await self.kill_tree()
        await self._process.wait()
        log.debug("process disposed", {"pid": self.pid, "exit_code": self._process.returncode})
