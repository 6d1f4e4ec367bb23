"""Lifecycle of one execution: launch, race exit against cancel, resolve once.

Three things happen independently once the child is running: the process
exits, stdout reaches EOF, stderr reaches EOF. They can arrive in any order.
The coordinator first races the exit against the combined timeout/cancel
signal, then races the join of both streams against the same signal, and
only then builds the outcome. Any win by the signal kills the process tree.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..util.log import Log
from .errors import LaunchFailureError
from .process import ChildProcess, LaunchSpec
from .result import (
    Cancelled,
    ExecutionOutcome,
    Failure,
    LaunchError,
    Success,
    classify,
)
from .stream import StreamDrainer

log = Log.create({"service": "shell.lifecycle"})

# Seconds the drain tasks get to reach EOF after a kill before being cancelled
KILL_DRAIN_GRACE = 1.0

Launcher = Callable[[LaunchSpec], Awaitable[ChildProcess]]


class ExecutionState(str, Enum):
    """Coordinator states."""
    STARTING = "starting"
    RUNNING = "running"
    EXITED = "exited"
    CANCELLED = "cancelled"
    LAUNCH_FAILED = "launch_failed"

    @property
    def terminal(self) -> bool:
        return self not in (ExecutionState.STARTING, ExecutionState.RUNNING)


class LifecycleCoordinator:
    """Runs a single launch spec to exactly one ExecutionOutcome.

    Not reusable: ``run()`` may be awaited once per instance.
    """

    def __init__(
        self,
        spec: LaunchSpec,
        *,
        timeout_ms: int,
        cancel: Optional[asyncio.Event] = None,
        launcher: Optional[Launcher] = None,
    ):
        self.spec = spec
        self.timeout_ms = timeout_ms
        self._cancel = cancel
        self._launcher = launcher or ChildProcess.start
        self.state = ExecutionState.STARTING
        self.drainer = StreamDrainer()
        self._outcome: Optional[ExecutionOutcome] = None
        self._child: Optional[ChildProcess] = None
        self._started = False
        self._disposed = False

    @property
    def outcome(self) -> Optional[ExecutionOutcome]:
        return self._outcome

    @property
    def child(self) -> Optional[ChildProcess]:
        return self._child

    def resolve(self, outcome: ExecutionOutcome) -> bool:
        """Record the terminal outcome. Only the first call has any effect."""
        if self._outcome is not None:
            log.debug("duplicate resolution ignored", {"state": self.state.value})
            return False
        self._outcome = outcome
        if isinstance(outcome, (Success, Failure)):
            self.state = ExecutionState.EXITED
        elif isinstance(outcome, Cancelled):
            self.state = ExecutionState.CANCELLED
        else:
            self.state = ExecutionState.LAUNCH_FAILED
        return True

    async def run(self) -> ExecutionOutcome:
        if self._started:
            raise RuntimeError("coordinator has already been run")
        self._started = True

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_ms / 1000
        started_at = time.monotonic()

        exit_task: Optional["asyncio.Task[int]"] = None
        cancel_task: Optional["asyncio.Task[bool]"] = None
        # Shielded so a spawn that completes after cancellation is still reaped
        launch_task = asyncio.create_task(self._launcher(self.spec), name="process-launch")

        try:
            try:
                child = await asyncio.shield(launch_task)
            except LaunchFailureError as e:
                self.resolve(LaunchError(cause=e.cause or e))
                return self._outcome  # type: ignore[return-value]

            self._child = child
            self.state = ExecutionState.RUNNING
            self.drainer.start(child.stdout, child.stderr)

            exit_task = asyncio.create_task(child.wait(), name="process-exit")
            if self._cancel is not None:
                cancel_task = asyncio.create_task(self._cancel.wait(), name="cancel-signal")

            stopped = await self._race(exit_task, cancel_task, deadline)
            if stopped is None:
                # Exit can be observed before the pipes are drained
                join_task = asyncio.create_task(self.drainer.wait(), name="drain-join")
                try:
                    stopped = await self._race(join_task, cancel_task, deadline)
                finally:
                    join_task.cancel()

            if stopped is not None:
                await self._cancel_run(stopped)
            else:
                exit_code = exit_task.result()
                stdout = await self.drainer.stdout.text()
                stderr = await self.drainer.stderr.text()
                self.resolve(classify(exit_code, stdout, stderr))
                log.info("process exited", {
                    "pid": child.pid,
                    "exit_code": exit_code,
                    "duration": int((time.monotonic() - started_at) * 1000),
                })
        except asyncio.CancelledError:
            await self._adopt(launch_task)
            await self._cancel_run(Cancelled(timed_out=False))
            raise
        finally:
            # Revoke the cancel registration before touching the process again
            for task in (exit_task, cancel_task):
                if task is not None and not task.done():
                    task.cancel()
            await self._dispose()

        return self._outcome  # type: ignore[return-value]

    async def _race(
        self,
        task: "asyncio.Future[object]",
        cancel_task: Optional["asyncio.Task[object]"],
        deadline: float,
    ) -> Optional[Cancelled]:
        """Wait for ``task`` or the combined signal; None means ``task`` won."""
        waiters = {task}
        if cancel_task is not None:
            waiters.add(cancel_task)
        remaining = max(0.0, deadline - asyncio.get_running_loop().time())
        done, _ = await asyncio.wait(waiters, timeout=remaining, return_when=asyncio.FIRST_COMPLETED)
        if task in done:
            return None
        return Cancelled(timed_out=cancel_task is None or cancel_task not in done)

    async def _adopt(self, launch_task: "asyncio.Task[ChildProcess]") -> None:
        """Take ownership of a child whose launch outlived the caller's cancellation."""
        if self._child is not None:
            return
        try:
            self._child = await launch_task
        except LaunchFailureError:
            return

    async def _cancel_run(self, outcome: Cancelled) -> None:
        if not self.resolve(outcome):
            return
        if self._child is None:
            log.info("cancelled before launch completed", {"timed_out": outcome.timed_out})
            return
        killed = await self._child.kill_tree()
        log.info("process cancelled", {
            "pid": self._child.pid,
            "timed_out": outcome.timed_out,
            "timeout_ms": self.timeout_ms,
            "killed": killed,
        })

    async def _dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._child is not None:
            await self._child.dispose()
        grace = KILL_DRAIN_GRACE if self.state is ExecutionState.CANCELLED else None
        await self.drainer.aclose(grace=grace)
