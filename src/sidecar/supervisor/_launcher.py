"""Process launching for the supervisor.

This module provides the ProcessLauncher that spawns the pre-exec and main
processes, and the LaunchedProcess handle the Supervisor uses to wait on
and signal them.
"""

from __future__ import annotations

import contextlib
import subprocess
from typing import TYPE_CHECKING, cast, final

import anyio

from sidecar.exceptions import LaunchError

from ._models import ProcessRole, ProcessSpec

if TYPE_CHECKING:
    import anyio.abc


@final
class LaunchedProcess:
    """Runtime handle for a started process.

    The handle owns the underlying process until it has been reaped. After
    that it is released: the exit status is kept, but terminate() and kill()
    become no-ops so no signal can reach a recycled PID.

    Attributes:
        role: Which supervised process this is.
        spec: The command that was launched.
        pid: OS process identifier.
        inherit_stdio: Whether the process shares the supervisor's streams.
    """

    __slots__ = ("_process", "_returncode", "inherit_stdio", "pid", "role", "spec")

    def __init__(
        self,
        process: anyio.abc.Process,
        *,
        role: ProcessRole,
        spec: ProcessSpec,
        inherit_stdio: bool,
    ) -> None:
        self._process: anyio.abc.Process | None = process
        self._returncode: int | None = None
        self.role = role
        self.spec = spec
        self.pid: int = process.pid
        self.inherit_stdio = inherit_stdio

    @property
    def released(self) -> bool:
        """Return True once the process has been reaped."""
        return self._process is None

    @property
    def returncode(self) -> int | None:
        """Return the exit status, or None while the process runs."""
        if self._process is not None:
            return self._process.returncode
        return self._returncode

    def is_running(self) -> bool:
        """Check if the process has not exited yet."""
        return self._process is not None and self._process.returncode is None

    async def wait(self) -> int:
        """Wait for the process to exit and release the handle.

        Returns:
            The exit status. Negative values mean the process was killed by
            that signal number.
        """
        if self._process is None:
            # Released handles always carry the status they were reaped with
            return cast("int", self._returncode)

        returncode = await self._process.wait()
        self._returncode = returncode
        self._process = None
        return returncode

    def terminate(self) -> None:
        """Send SIGTERM to the process.

        Does nothing if the handle has been released.

        Raises:
            ProcessLookupError: If the process is already gone.
            OSError: If the signal cannot be delivered.
        """
        if self._process is not None:
            self._process.terminate()

    def kill(self) -> None:
        """Send SIGKILL to the process if it is still around."""
        if self._process is not None:
            with contextlib.suppress(ProcessLookupError):
                self._process.kill()


@final
class ProcessLauncher:
    """Starts supervised processes.

    The pre-exec process is isolated in its own session (and therefore its
    own process group) with its standard streams bound to /dev/null, so
    terminal signals such as Ctrl-C aimed at the supervisor's group do not
    reach it. The main process shares the supervisor's stdin, stdout and
    stderr so that a wrapped tool behaves as if it were run directly. Both
    inherit the supervisor's environment.
    """

    __slots__ = ()

    async def launch_pre_exec(self, spec: ProcessSpec) -> LaunchedProcess:
        """Start the pre-exec process.

        Args:
            spec: Command to run.

        Returns:
            Handle to the started process.

        Raises:
            LaunchError: If the process cannot be started.
        """
        return await self.launch(
            spec,
            role=ProcessRole.PRE_EXEC,
            isolate=True,
            inherit_stdio=False,
        )

    async def launch_main(self, spec: ProcessSpec) -> LaunchedProcess:
        """Start the main process with inherited standard streams.

        Args:
            spec: Command to run.

        Returns:
            Handle to the started process.

        Raises:
            LaunchError: If the process cannot be started.
        """
        return await self.launch(
            spec,
            role=ProcessRole.MAIN,
            isolate=False,
            inherit_stdio=True,
        )

    async def launch(
        self,
        spec: ProcessSpec,
        *,
        role: ProcessRole,
        isolate: bool,
        inherit_stdio: bool,
    ) -> LaunchedProcess:
        """Start a process without waiting for it to complete.

        Args:
            spec: Command to run.
            role: Role of the process, used in errors and logs.
            isolate: Start the process in a new session and process group.
            inherit_stdio: Share the supervisor's standard streams instead of
                binding them to /dev/null.

        Returns:
            Handle to the started process.

        Raises:
            LaunchError: If the executable is missing, not runnable, or the
                OS refuses to spawn it.
        """
        stdio = None if inherit_stdio else subprocess.DEVNULL

        try:
            process = await anyio.open_process(
                spec.command,
                stdin=stdio,
                stdout=stdio,
                stderr=stdio,
                start_new_session=isolate,
            )
        except OSError as e:
            msg = f"Failed to start {role} command '{spec}': {e}"
            raise LaunchError(msg, role=role, command=spec.command, cause=e) from e

        return LaunchedProcess(
            process,
            role=role,
            spec=spec,
            inherit_stdio=inherit_stdio,
        )
