"""Shared CLI utilities.

This module provides:
- Standardized exit codes
- Mapping from sidecar errors to exit codes
- Console utilities for error handling
"""

from __future__ import annotations

from enum import IntEnum
from typing import TYPE_CHECKING, Never

from sidecar.exceptions import (
    ConfigError,
    HealthCheckError,
    LaunchError,
    MainProcessFailedError,
    TeardownError,
)

if TYPE_CHECKING:
    from rich.console import Console

    from sidecar.exceptions import SidecarError

__all__ = [
    "ExitCode",
    "exit_code_for",
    "exit_with_error",
    "get_error_console",
]

# Shells report a child killed by signal N as 128 + N
_SIGNAL_EXIT_BASE = 128
_MAX_EXIT_CODE = 255


class ExitCode(IntEnum):
    """Standard exit codes for the sidecar CLI.

    A failing main process is the exception: sidecar exits with the main
    process's own status so that wrapping a tool is transparent.
    """

    SUCCESS = 0
    INTERNAL_ERROR = 1
    CONFIG_ERROR = 2
    LAUNCH_ERROR = 3
    HEALTH_CHECK_ERROR = 4
    TEARDOWN_ERROR = 5


def exit_code_for(error: SidecarError) -> int:
    """Return the process exit code for an error.

    Args:
        error: The error that ended the run.

    Returns:
        The exit code sidecar should terminate with.
    """
    if isinstance(error, MainProcessFailedError):
        if error.exit_code < 0:
            return _SIGNAL_EXIT_BASE + (-error.exit_code)
        return min(error.exit_code, _MAX_EXIT_CODE)
    if isinstance(error, ConfigError):
        return ExitCode.CONFIG_ERROR
    if isinstance(error, LaunchError):
        return ExitCode.LAUNCH_ERROR
    if isinstance(error, HealthCheckError):
        return ExitCode.HEALTH_CHECK_ERROR
    if isinstance(error, TeardownError):
        return ExitCode.TEARDOWN_ERROR
    return ExitCode.INTERNAL_ERROR


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr.

    Returns:
        Console instance writing to stderr.
    """
    from rich.console import Console

    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: int = ExitCode.INTERNAL_ERROR,
    *,
    console: Console | None = None,
) -> Never:
    """Print a one-line error message and exit with the specified code.

    Args:
        message: The error message to display.
        code: The exit code to use (defaults to INTERNAL_ERROR).
        console: Optional Rich console for output. If not provided,
            a new stderr console will be created.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    from rich.markup import escape

    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    raise SystemExit(code)
