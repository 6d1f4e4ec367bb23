"""Shell selection per host operating system.

Linux and macOS run commands through a native shell with ``-c``. Windows has
no bash of its own, so commands are delegated to WSL after a ``wsl --status``
probe confirms the subsystem is installed and healthy.
"""

import asyncio
import shutil
import sys
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from ..util.log import Log
from .errors import PlatformNotSupportedError

if TYPE_CHECKING:
    from ..core.config_schema import Config

log = Log.create({"service": "shell.platform"})

DEFAULT_PROBE_TIMEOUT_MS = 10_000
FALLBACK_SHELL = "/bin/sh"

ProbeRunner = Callable[[list[str], float], Awaitable[int]]


class OperatingSystem(str, Enum):
    """Host operating systems bashrun knows how to drive."""
    LINUX = "linux"
    WINDOWS = "windows"
    MAC = "mac"

    @property
    def shell_native(self) -> bool:
        return self is not OperatingSystem.WINDOWS


def detect_os(platform_name: Optional[str] = None) -> OperatingSystem:
    """Map a ``sys.platform`` value to an OperatingSystem."""
    name = (platform_name or sys.platform).lower()
    if name == "darwin":
        return OperatingSystem.MAC
    if name.startswith(("win32", "cygwin")):
        return OperatingSystem.WINDOWS
    return OperatingSystem.LINUX


@dataclass(frozen=True)
class ShellInvocation:
    """How to hand a command string to the shell on one platform."""

    os: OperatingSystem
    executable: str
    prefix: tuple[str, ...]

    def argv(self, command: str) -> list[str]:
        """Build the full argument vector; the command is passed as one argument."""
        return [self.executable, *self.prefix, command]


async def run_probe(argv: list[str], timeout_s: float) -> int:
    """Run a status probe with all output discarded and return its exit code."""
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    try:
        return await asyncio.wait_for(proc.wait(), timeout=timeout_s)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise


class PlatformResolver:
    """Resolves the shell invocation for one host.

    Instances are cheap and carry no global state; pass ``os`` to simulate a
    different platform and ``probe`` to replace the WSL status check.
    """

    def __init__(
        self,
        os: Optional[OperatingSystem] = None,
        *,
        shell: Optional[str] = None,
        wsl_executable: str = "wsl",
        cache_probe: bool = False,
        probe_timeout_ms: int = DEFAULT_PROBE_TIMEOUT_MS,
        probe: Optional[ProbeRunner] = None,
    ):
        self.os = os or detect_os()
        self._shell = shell
        self._wsl = wsl_executable
        self._cache_probe = cache_probe
        self._probe_timeout_s = probe_timeout_ms / 1000
        self._probe = probe or run_probe
        self._probe_ok = False

    @classmethod
    def from_config(cls, config: "Config", os: Optional[OperatingSystem] = None) -> "PlatformResolver":
        return cls(
            os,
            shell=config.shell,
            wsl_executable=config.wsl_executable,
            cache_probe=config.cache_probe,
            probe_timeout_ms=config.probe_timeout_ms,
        )

    def preferred_shell(self) -> str:
        """Shell executable used on shell-native platforms."""
        if self._shell:
            return self._shell
        return shutil.which("bash") or FALLBACK_SHELL

    def resolve(self) -> ShellInvocation:
        """Return the invocation for this platform without probing."""
        if self.os.shell_native:
            return ShellInvocation(os=self.os, executable=self.preferred_shell(), prefix=("-c",))
        return ShellInvocation(os=self.os, executable=self._wsl, prefix=("bash", "-c"))

    async def ensure_available(self) -> None:
        """Fail fast when the shell host is unusable.

        Raises:
            PlatformNotSupportedError: WSL is missing, hung, or reports a
                non-zero status.
        """
        if self.os.shell_native:
            return
        if self._cache_probe and self._probe_ok:
            return

        argv = [self._wsl, "--status"]
        try:
            code = await self._probe(argv, self._probe_timeout_s)
        except asyncio.TimeoutError as e:
            log.error("wsl probe timed out", {"argv": argv})
            raise PlatformNotSupportedError(self.os.value, "WSL status probe timed out") from e
        except OSError as e:
            log.error("wsl probe could not start", {"argv": argv, "error": e})
            raise PlatformNotSupportedError(self.os.value, f"WSL is not available: {e}") from e

        if code != 0:
            log.error("wsl probe failed", {"argv": argv, "exit_code": code})
            raise PlatformNotSupportedError(self.os.value, f"WSL status probe exited with code {code}")

        log.debug("wsl probe succeeded", {"argv": argv})
        self._probe_ok = True

    async def invocation(self) -> ShellInvocation:
        """Probe if needed, then return the invocation."""
        await self.ensure_available()
        return self.resolve()
