"""Sidecar exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class SidecarError(Exception):
    """Base exception for sidecar errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(SidecarError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(SidecarError):
    """Base exception for supervisor errors."""


class LaunchError(SupervisorError):
    """Raised when a process cannot be started.

    Attributes:
        role: The role of the process that failed to start.
        command: The command that was executed.
        cause: The underlying OS error.
    """

    def __init__(
        self,
        message: str,
        *,
        role: str,
        command: Sequence[str] = (),
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context.

        Args:
            message: Human-readable error message.
            role: The role of the process that failed to start.
            command: The command that was executed.
            cause: The underlying OS error.
        """
        super().__init__(message)
        self.role: str = role
        self.command: tuple[str, ...] = tuple(command)
        self.cause: Exception | None = cause


class HealthCheckError(SupervisorError):
    """Base exception for health check failures."""


class HealthCheckExhaustedError(HealthCheckError):
    """Raised when every health check attempt failed.

    Attributes:
        kind: The health check kind that was probed.
        attempts: Number of probes performed.
        last_reason: Failure reason reported by the last probe.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        attempts: int,
        last_reason: str | None = None,
    ) -> None:
        """Initialize with error message and retry context."""
        super().__init__(message)
        self.kind: str = kind
        self.attempts: int = attempts
        self.last_reason: str | None = last_reason


class UnknownHealthCheckKindError(HealthCheckError):
    """Raised when a health check kind is not recognized.

    Attributes:
        kind: The unrecognized kind.
    """

    def __init__(self, message: str, *, kind: str) -> None:
        """Initialize with error message and the offending kind."""
        super().__init__(message)
        self.kind: str = kind


class MainProcessFailedError(SupervisorError):
    """Raised when the main process exits with a non-zero status.

    Attributes:
        exit_code: Exit status of the main process. Negative values
            mean the process was killed by that signal number.
    """

    def __init__(self, message: str, *, exit_code: int) -> None:
        """Initialize with error message and exit status."""
        super().__init__(message)
        self.exit_code: int = exit_code


class TeardownError(SupervisorError):
    """Raised when the pre-exec process cannot be signalled to stop.

    Attributes:
        role: The role of the process being torn down.
        pid: Process ID that could not be signalled.
        cause: The underlying OS error.
    """

    def __init__(
        self,
        message: str,
        *,
        role: str,
        pid: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and process context."""
        super().__init__(message)
        self.role: str = role
        self.pid: int | None = pid
        self.cause: Exception | None = cause
