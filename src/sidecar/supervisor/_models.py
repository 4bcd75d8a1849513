"""Data models for the supervisor system.

This module defines the core data types for a sidecar run:
- ProcessRole: Which of the two supervised processes a handle belongs to
- SupervisorState: Lifecycle states of a run
- HealthCheckKind: Supported reachability probes
- ProcessSpec: Command to launch
- HealthCheckSpec: Health check configuration
- ProbeResult: Outcome of a single probe
- SupervisorRun: Everything a run needs
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from enum import StrEnum


class ProcessRole(StrEnum):
    """Role of a supervised process."""

    PRE_EXEC = "pre-exec"
    MAIN = "main"


class SupervisorState(StrEnum):
    """Supervisor lifecycle states.

    A run moves forward through these states exactly once:
    - IDLE: Run has not started
    - PRE_EXEC_STARTING: Pre-exec process is being launched
    - HEALTH_GATING: Waiting for the pre-exec process to report healthy
    - MAIN_STARTING: Main process is being launched
    - RUNNING: Waiting for the main process to exit
    - FINISHING: Main process exited, pre-exec is being torn down
    - DONE: Run completed
    - FAILED: Run aborted with an error
    - CANCELLED: Run was cancelled from outside
    """

    IDLE = "idle"
    PRE_EXEC_STARTING = "pre_exec_starting"
    HEALTH_GATING = "health_gating"
    MAIN_STARTING = "main_starting"
    RUNNING = "running"
    FINISHING = "finishing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class HealthCheckKind(StrEnum):
    """Supported health check kinds."""

    HTTP = "http"
    TCP = "tcp"


@dataclass(frozen=True, slots=True)
class ProcessSpec:
    """Command for a supervised process.

    Attributes:
        command: Executable followed by its arguments.
    """

    command: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.command:
            msg = "Process command must not be empty"
            raise ValueError(msg)

    @classmethod
    def from_string(cls, command: str) -> ProcessSpec:
        """Build a spec by splitting a shell-like command string.

        Args:
            command: Command line, e.g. ``"python3 -m http.server 8000"``.

        Returns:
            A ProcessSpec with the split tokens.

        Raises:
            ValueError: If the string is empty or has unbalanced quotes.
        """
        return cls(tuple(shlex.split(command)))

    @property
    def executable(self) -> str:
        """Return the executable name or path."""
        return self.command[0]

    def __str__(self) -> str:
        return shlex.join(self.command)


@dataclass(frozen=True, slots=True)
class HealthCheckSpec:
    """Health check configuration for the pre-exec process.

    The kind is kept as a plain string so that unrecognized kinds can be
    rejected when the gate runs instead of at construction.

    Attributes:
        kind: Probe kind, one of HealthCheckKind.
        port: Port on localhost to probe.
        path: Request path for HTTP probes.
        retries: Maximum number of probe attempts.
        interval: Seconds to wait between failed attempts.
        timeout: Seconds bounding a single probe (0 disables the bound).
    """

    kind: str
    port: int
    path: str = "/"
    retries: int = 5
    interval: float = 1.0
    timeout: float = 10.0

    @property
    def url(self) -> str:
        """Return the HTTP probe target."""
        return f"http://localhost:{self.port}{self.path}"


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """Outcome of a single health probe.

    Attributes:
        healthy: Whether the probe succeeded.
        reason: Why the probe failed, None on success.
    """

    healthy: bool
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class SupervisorRun:
    """A single sidecar invocation.

    Attributes:
        pre_exec: The auxiliary process started first.
        main: The primary process.
        health_check: Optional gate between pre-exec and main.
        shutdown_timeout: Seconds to wait for pre-exec to exit after SIGTERM
            before it is killed.
    """

    pre_exec: ProcessSpec
    main: ProcessSpec
    health_check: HealthCheckSpec | None = None
    shutdown_timeout: float = 5.0
