"""Error formatting utilities.

Turns bashrun errors into one-line messages for the CLI.
"""

import json
import traceback
from typing import Any

from ..core.config import ConfigError
from ..shell.errors import (
    CommandCancelledError,
    CommandFailedError,
    InvalidArgumentError,
    LaunchFailureError,
    PlatformNotSupportedError,
    StderrProducedError,
)


def format_error(error: Any) -> str | None:
    """Format known application errors into user-friendly messages.

    Returns None if the error type is not recognized, allowing
    fallback to format_unknown_error.
    """
    if isinstance(error, CommandCancelledError):
        if error.timed_out:
            return f"Command timed out after {error.timeout_ms} ms and was killed"
        return "Command was cancelled and killed"
    if isinstance(error, StderrProducedError):
        return f"Command wrote to stderr (exit code {error.exit_code}): {error.stderr.strip()}"
    if isinstance(error, CommandFailedError):
        detail = f": {error.stderr.strip()}" if error.stderr.strip() else ""
        return f"Command failed with exit code {error.exit_code}{detail}"
    if isinstance(error, PlatformNotSupportedError):
        return str(error)
    if isinstance(error, LaunchFailureError):
        cause = error.cause if error.cause is not None else error
        return f"Could not start the shell: {cause}"
    if isinstance(error, InvalidArgumentError):
        return str(error)
    if isinstance(error, ConfigError):
        return str(error)
    return None


def format_unknown_error(error: Any) -> str:
    """Format any error into a string representation.

    Handles Exception objects, serializable objects, and primitives.
    """
    if isinstance(error, Exception):
        if error.__traceback__:
            return ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {str(error)}"

    if isinstance(error, (dict, list)):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return "Unexpected error (unserializable)"

    return str(error)
