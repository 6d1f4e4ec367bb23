"""Shared test helpers."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Tuple

from bashrun.shell.process import LaunchSpec


SPEC = LaunchSpec(argv=("bash", "-c", "true"))


class RecordingResult:
    """Result object that records every call made on it, in order."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def set_exit_code(self, exit_code: int) -> None:
        self.calls.append(("set_exit_code", exit_code))

    def parse_result(self, result: str) -> None:
        self.calls.append(("parse_result", result))

    def parse_error(self, error: str) -> None:
        self.calls.append(("parse_error", error))

    def called(self, name: str) -> List[Any]:
        return [value for method, value in self.calls if method == name]


class FakeChild:
    """In-memory stand-in for ChildProcess with manually driven events.

    Must be created inside a running event loop.
    """

    def __init__(self, pid: int = 4242) -> None:
        self.pid = pid
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.returncode: Optional[int] = None
        self.kill_calls = 0
        self.dispose_calls = 0
        self._exited = asyncio.Event()

    def exit(self, code: int = 0) -> None:
        if self.returncode is None:
            self.returncode = code
        self._exited.set()

    def write_stdout(self, data: bytes, eof: bool = True) -> None:
        self.stdout.feed_data(data)
        if eof:
            self.stdout.feed_eof()

    def write_stderr(self, data: bytes, eof: bool = True) -> None:
        self.stderr.feed_data(data)
        if eof:
            self.stderr.feed_eof()

    async def wait(self) -> int:
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode

    async def kill_tree(self) -> bool:
        self.kill_calls += 1
        self.exit(-9)
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        return True

    async def dispose(self) -> None:
        self.dispose_calls += 1


def launcher_for(child: FakeChild):
    async def launch(spec: LaunchSpec) -> FakeChild:
        return child

    return launch
