"""CLI entry point for bashrun."""

import asyncio
import json
from enum import Enum
from typing import List, Optional

import typer
from rich.console import Console

from .. import __version__
from ..core.config import ConfigError, ConfigManager, apply_logging
from ..core.global_paths import GlobalPath

app = typer.Typer(
    name="bashrun",
    help="bashrun - run shell commands with timeouts and typed results",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()


class RunMode(str, Enum):
    """Entry point used by `bashrun run`."""
    BOOL = "bool"
    CODE = "code"
    RESULT = "result"


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"bashrun {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Minimum log level (debug, info, warn, error)",
    ),
    print_logs: bool = typer.Option(
        False,
        "--print-logs",
        help="Print logs to stderr",
    ),
):
    """bashrun - run shell commands with timeouts and typed results."""
    # Bind the manager in this context so later asyncio.run calls share its cache
    ConfigManager.current()
    try:
        config = asyncio.run(ConfigManager.get())
        apply_logging(config.logging, console=print_logs or None, level=log_level)
    except (ConfigError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}", highlight=False)
        raise typer.Exit(2)


@app.command()
def run(
    command: List[str] = typer.Argument(
        ...,
        help="Command to run; multiple words are joined with spaces",
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        "-t",
        help="Timeout in milliseconds (default from config, 30000)",
    ),
    mode: RunMode = typer.Option(
        RunMode.RESULT,
        "--mode",
        "-m",
        help="bool: fail on non-zero exit; code: print exit code, fail on stderr; result: print output",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output JSON",
    ),
):
    """Run a shell command."""
    from .cmd.run import run_command

    status = asyncio.run(run_command(
        " ".join(command),
        mode=mode.value,
        timeout_ms=timeout,
        json_output=json_output,
    ))
    raise typer.Exit(status)


@app.command()
def bench(
    iterations: int = typer.Option(
        20,
        "--iterations",
        "-n",
        min=1,
        help="Runs per workload",
    ),
):
    """Benchmark representative shell workloads."""
    from .cmd.bench import bench_command

    asyncio.run(bench_command(iterations))


@app.command()
def config(
    show: bool = typer.Option(
        False,
        "--show",
        help="Show current configuration",
    ),
    path: bool = typer.Option(
        False,
        "--path",
        help="Show configuration directory",
    ),
):
    """Show configuration."""
    if path:
        console.print(GlobalPath.config(), highlight=False)
        return

    if show:
        settings = asyncio.run(ConfigManager.get())
        console.print_json(json.dumps(settings.model_dump(mode="json")))
        return

    console.print("Use --show to display configuration or --path to show config path")


if __name__ == "__main__":
    app()
