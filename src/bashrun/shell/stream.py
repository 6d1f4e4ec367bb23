"""Concurrent line-oriented draining of a child's stdout and stderr."""

import asyncio
import codecs
from typing import List, Optional

from ..util.log import Log

log = Log.create({"service": "shell.stream"})

CHUNK_SIZE = 64 * 1024


class StreamBuffer:
    """Append-only line buffer for one output stream.

    The completion flag means "no more data will arrive" and is independent
    of whether any line was ever appended.
    """

    def __init__(self, name: str):
        self.name = name
        self._lines: List[str] = []
        self._lock = asyncio.Lock()
        self._closed = asyncio.Event()

    async def append(self, line: str) -> None:
        async with self._lock:
            if self._closed.is_set():
                raise RuntimeError(f"{self.name} buffer is already closed")
            self._lines.append(line)

    def close(self) -> None:
        """Mark end-of-stream. Idempotent."""
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    async def text(self) -> str:
        """Join the received lines with ``\\n``; only valid after close()."""
        if not self._closed.is_set():
            raise RuntimeError(f"{self.name} buffer read before end-of-stream")
        async with self._lock:
            return "\n".join(self._lines)


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


async def drain_stream(
    reader: asyncio.StreamReader,
    buffer: StreamBuffer,
    chunk_size: int = CHUNK_SIZE,
) -> None:
    """Read ``reader`` to EOF, appending each decoded line to ``buffer``.

    Bytes are decoded incrementally as UTF-8 so a character split across two
    reads is kept intact; invalid bytes become U+FFFD. A final line without a
    terminator is still appended. The buffer is closed on every exit path.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    try:
        while True:
            chunk = await reader.read(chunk_size)
            if not chunk:
                break
            pending += decoder.decode(chunk)
            *lines, pending = pending.split("\n")
            for line in lines:
                await buffer.append(_strip_cr(line))

        pending += decoder.decode(b"", final=True)
        if pending:
            await buffer.append(_strip_cr(pending))
    finally:
        buffer.close()


class StreamDrainer:
    """Owns the stdout/stderr buffers and the two tasks that fill them."""

    def __init__(self) -> None:
        self.stdout = StreamBuffer("stdout")
        self.stderr = StreamBuffer("stderr")
        self._tasks: List[asyncio.Task[None]] = []

    def start(self, stdout: asyncio.StreamReader, stderr: asyncio.StreamReader) -> None:
        if self._tasks:
            raise RuntimeError("drainer already started")
        self._tasks = [
            asyncio.create_task(drain_stream(stdout, self.stdout), name="drain-stdout"),
            asyncio.create_task(drain_stream(stderr, self.stderr), name="drain-stderr"),
        ]

    @property
    def drained(self) -> bool:
        return self.stdout.closed and self.stderr.closed

    async def wait(self) -> None:
        """Wait until both streams reached end-of-stream, in any order."""
        await asyncio.gather(self.stdout.wait_closed(), self.stderr.wait_closed())

    async def aclose(self, grace: Optional[float] = None) -> None:
        """Stop the drain tasks, giving them ``grace`` seconds to finish first."""
        pending = [task for task in self._tasks if not task.done()]
        if pending and grace:
            await asyncio.wait(pending, timeout=grace)
        for task in self._tasks:
            if not task.done():
                task.cancel()
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results):
            if isinstance(result, Exception):
                log.error("stream drain failed", {"task": task.get_name(), "error": result})
        self.stdout.close()
        self.stderr.close()
