"""Supervisor package for running a pre-exec/main process pair.

This package starts an auxiliary "pre-exec" process, optionally waits for
it to become healthy, runs a "main" process and stops the pre-exec process
once main exits, using anyio for structured concurrency.

Key Components:
    - ProcessSpec: Command for a supervised process
    - HealthCheckSpec: Health check configuration
    - SupervisorRun: Everything a single run needs
    - SupervisorState: Lifecycle state enumeration
    - HealthChecker: Single HTTP/TCP probe
    - HealthGate: Bounded probe retries with a fixed delay
    - ProcessLauncher: Process spawning
    - LaunchedProcess: Handle to a started process
    - Supervisor: Run coordinator

Example:
    >>> from sidecar.supervisor import ProcessSpec, Supervisor, SupervisorRun
    >>> run = SupervisorRun(
    ...     pre_exec=ProcessSpec.from_string("python3 -m http.server 8000"),
    ...     main=ProcessSpec(("echo", "hello")),
    ... )
    >>> await Supervisor(run).run()  # Blocks until main exits
"""

from ._gate import HealthGate
from ._health import HealthChecker
from ._launcher import LaunchedProcess, ProcessLauncher
from ._models import (
    HealthCheckKind,
    HealthCheckSpec,
    ProbeResult,
    ProcessRole,
    ProcessSpec,
    SupervisorRun,
    SupervisorState,
)
from ._supervisor import Supervisor

__all__ = [
    "HealthCheckKind",
    "HealthCheckSpec",
    "HealthChecker",
    "HealthGate",
    "LaunchedProcess",
    "ProbeResult",
    "ProcessLauncher",
    "ProcessRole",
    "ProcessSpec",
    "Supervisor",
    "SupervisorRun",
    "SupervisorState",
]
