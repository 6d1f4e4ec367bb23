"""Execution outcomes and projection onto caller-supplied result objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol, TypeVar, Union, runtime_checkable


@runtime_checkable
class CommandResult(Protocol):
    """Capabilities a typed result must offer.

    ``parse_result`` only ever receives non-empty stdout and ``parse_error``
    only non-empty stderr; ``set_exit_code`` is always called last.
    """

    def set_exit_code(self, exit_code: int) -> None: ...

    def parse_result(self, result: str) -> None: ...

    def parse_error(self, error: str) -> None: ...


T = TypeVar("T", bound=CommandResult)
ResultFactory = Callable[[], T]


@dataclass(frozen=True)
class Success:
    """Process exited 0 and wrote nothing to stderr."""
    exit_code: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class Failure:
    """Process exited non-zero, or wrote to stderr."""
    exit_code: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class Cancelled:
    """Timeout elapsed or the cancel signal fired; the process tree was killed."""
    timed_out: bool


@dataclass(frozen=True)
class LaunchError:
    """Process could not be started."""
    cause: BaseException


ExecutionOutcome = Union[Success, Failure, Cancelled, LaunchError]


def classify(exit_code: int, stdout: str, stderr: str) -> Union[Success, Failure]:
    """Success only for exit code 0 with empty stderr."""
    if exit_code == 0 and not stderr:
        return Success(exit_code=exit_code, stdout=stdout, stderr=stderr)
    return Failure(exit_code=exit_code, stdout=stdout, stderr=stderr)


def project_result(factory: ResultFactory[T], outcome: Union[Success, Failure]) -> T:
    """Feed a finished run into a fresh result object and return it."""
    result = factory()
    if outcome.stdout:
        result.parse_result(outcome.stdout)
    if outcome.stderr:
        result.parse_error(outcome.stderr)
    result.set_exit_code(outcome.exit_code)
    return result


class ShellResult:
    """Stock result object that keeps the raw text and exit code."""

    def __init__(self) -> None:
        self.output: Optional[str] = None
        self.error: Optional[str] = None
        self.exit_code: Optional[int] = None

    def set_exit_code(self, exit_code: int) -> None:
        self.exit_code = exit_code

    def parse_result(self, result: str) -> None:
        self.output = result

    def parse_error(self, error: str) -> None:
        self.error = error

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict[str, object]:
        return {"exit_code": self.exit_code, "output": self.output, "error": self.error}

    def __repr__(self) -> str:
        return f"ShellResult(exit_code={self.exit_code!r}, output={self.output!r}, error={self.error!r})"
