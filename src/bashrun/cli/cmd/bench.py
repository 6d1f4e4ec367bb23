"""Bench command - latency of representative shell workloads."""

import statistics
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List

from rich.console import Console
from rich.table import Table

from ...shell import Shell, ShellResult
from ...util.log import Log

console = Console()
log = Log.create({"service": "cli.bench"})


@dataclass(frozen=True)
class Workload:
    name: str
    command: str
    with_results: bool = False


WORKLOADS: List[Workload] = [
    Workload("simple command", "echo 'test'"),
    Workload("command with output", "echo 'test'", with_results=True),
    Workload("large output", "seq 1 1000", with_results=True),
    Workload("multiline output", "printf 'line1\\nline2\\nline3\\nline4\\nline5\\n'", with_results=True),
    Workload("command with pipe", "echo 'test' | grep test"),
    Workload("environment variables", "TEST_VAR='test' bash -c 'echo $TEST_VAR'"),
]


@dataclass(frozen=True)
class BenchResult:
    workload: Workload
    samples_ms: List[float]

    @property
    def mean_ms(self) -> float:
        return statistics.fmean(self.samples_ms)

    @property
    def min_ms(self) -> float:
        return min(self.samples_ms)

    @property
    def max_ms(self) -> float:
        return max(self.samples_ms)


def _runner(workload: Workload) -> Callable[[], Awaitable[object]]:
    if workload.with_results:
        return lambda: Shell.execute_with_results(workload.command, ShellResult)
    return lambda: Shell.execute(workload.command)


async def run_benchmarks(workloads: List[Workload], iterations: int) -> List[BenchResult]:
    """Run each workload ``iterations`` times, sequentially."""
    results: List[BenchResult] = []
    for workload in workloads:
        run = _runner(workload)
        samples: List[float] = []
        with log.time("bench workload", {"workload": workload.name, "iterations": iterations}):
            for _ in range(iterations):
                start = time.perf_counter()
                await run()
                samples.append((time.perf_counter() - start) * 1000)
        results.append(BenchResult(workload=workload, samples_ms=samples))
    return results


def render(results: List[BenchResult]) -> Table:
    table = Table(title="bashrun benchmarks")
    table.add_column("Workload", style="cyan")
    table.add_column("Runs", justify="right")
    table.add_column("Mean (ms)", justify="right")
    table.add_column("Min (ms)", justify="right")
    table.add_column("Max (ms)", justify="right")
    table.add_column("Ratio", justify="right")
    # First workload is the baseline
    baseline = results[0].mean_ms if results else 0.0
    for result in results:
        ratio = result.mean_ms / baseline if baseline else 0.0
        table.add_row(
            result.workload.name,
            str(len(result.samples_ms)),
            f"{result.mean_ms:.2f}",
            f"{result.min_ms:.2f}",
            f"{result.max_ms:.2f}",
            f"{ratio:.2f}",
        )
    return table


async def bench_command(iterations: int) -> None:
    results = await run_benchmarks(WORKLOADS, iterations)
    console.print(render(results))
