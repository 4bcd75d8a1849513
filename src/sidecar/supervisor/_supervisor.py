"""Sidecar supervisor coordinating the pre-exec and main processes.

This module provides the Supervisor class that sequences a single run:
launch pre-exec, optionally wait for it to become healthy, launch main,
wait for main to exit or the run to be cancelled, and stop pre-exec.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import anyio

from sidecar.exceptions import MainProcessFailedError, SupervisorError, TeardownError
from sidecar.utils import create_logger

from ._gate import HealthGate
from ._launcher import ProcessLauncher
from ._models import SupervisorState

if TYPE_CHECKING:
    from anyio.streams.memory import MemoryObjectSendStream
    from structlog.typing import FilteringBoundLogger

    from ._launcher import LaunchedProcess
    from ._models import SupervisorRun


async def _deliver_exit_code(
    process: LaunchedProcess,
    send_stream: MemoryObjectSendStream[int],
) -> None:
    """Wait for a process and send its exit status into a stream."""
    async with send_stream:
        await send_stream.send(await process.wait())


@final
class Supervisor:
    """Runs one pre-exec/main process pair.

    The run owns a cancel scope that plays the role of its execution
    context. Cancelling it (via cancel() or an enclosing scope) aborts any
    in-flight health probe, kills processes that are still running and
    makes run() return without tearing pre-exec down through SIGTERM.

    Attributes:
        config: The run being executed.
    """

    __slots__ = (
        "_cancel_requested",
        "_cancel_scope",
        "_gate",
        "_launcher",
        "_logger",
        "_main",
        "_pre_exec",
        "_started",
        "_state",
        "config",
    )

    def __init__(
        self,
        config: SupervisorRun,
        *,
        logger: FilteringBoundLogger | None = None,
        launcher: ProcessLauncher | None = None,
        gate: HealthGate | None = None,
    ) -> None:
        """Initialize the supervisor.

        Args:
            config: Processes and health check for this run.
            logger: Logger for lifecycle events. Uses a stderr logger if None.
            launcher: Process launcher. Uses ProcessLauncher if None.
            gate: Health gate. Uses a HealthGate sharing this logger if None.
        """
        self.config = config
        self._logger: FilteringBoundLogger = logger or create_logger()
        self._launcher = launcher or ProcessLauncher()
        self._gate = gate or HealthGate(logger=self._logger)
        # Created in run(); a cancel scope needs a running event loop
        self._cancel_scope: anyio.CancelScope | None = None
        self._cancel_requested = False
        self._state = SupervisorState.IDLE
        self._pre_exec: LaunchedProcess | None = None
        self._main: LaunchedProcess | None = None
        self._started = False

    @property
    def state(self) -> SupervisorState:
        """Return the current state of the run."""
        return self._state

    @property
    def pre_exec(self) -> LaunchedProcess | None:
        """Return the pre-exec process handle, if it was started."""
        return self._pre_exec

    @property
    def main(self) -> LaunchedProcess | None:
        """Return the main process handle, if it was started."""
        return self._main

    def cancel(self) -> None:
        """Cancel the run.

        Safe to call before or during run(), and more than once.
        """
        self._logger.debug("cancel_requested", state=self._state.value)
        self._cancel_requested = True
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    async def run(self) -> None:
        """Execute the run.

        Returns normally when main exits with status 0 or when the run is
        cancelled.

        Raises:
            SupervisorError: If run() was already called.
            LaunchError: If either process cannot be started.
            HealthCheckError: If the pre-exec process never became healthy.
            MainProcessFailedError: If main exited with a non-zero status.
            TeardownError: If pre-exec could not be signalled to stop.
        """
        if self._started:
            msg = "Supervisor run can only be executed once"
            raise SupervisorError(msg)
        self._started = True

        if self._cancel_requested:
            self._transition(SupervisorState.CANCELLED)
            return

        self._cancel_scope = anyio.CancelScope()
        with self._cancel_scope:
            try:
                await self._run()
            except anyio.get_cancelled_exc_class():
                self._transition(SupervisorState.CANCELLED)
                with anyio.CancelScope(shield=True):
                    await self._kill_running()
                raise
            except Exception:
                self._transition(SupervisorState.FAILED)
                raise

        if self._cancel_scope.cancelled_caught:
            self._logger.debug("context_canceled")

    async def _run(self) -> None:
        self._transition(SupervisorState.PRE_EXEC_STARTING)
        self._pre_exec = await self._launcher.launch_pre_exec(self.config.pre_exec)
        self._logger.debug(
            "pre_exec_started",
            pid=self._pre_exec.pid,
            command=str(self.config.pre_exec),
        )

        try:
            exit_code = await self._gate_and_run_main()
        except Exception:
            # The run is failing anyway; pre-exec must not outlive it
            await self._stop_pre_exec_after_failure()
            raise

        self._transition(SupervisorState.FINISHING)
        if exit_code == 0:
            await self._stop_pre_exec()
        else:
            await self._stop_pre_exec_after_failure()
            raise MainProcessFailedError(
                self._describe_main_failure(exit_code),
                exit_code=exit_code,
            )

        self._transition(SupervisorState.DONE)

    async def _gate_and_run_main(self) -> int:
        health_check = self.config.health_check
        if health_check is not None:
            self._transition(SupervisorState.HEALTH_GATING)
            await self._gate.wait_healthy(health_check)

        self._transition(SupervisorState.MAIN_STARTING)
        self._main = await self._launcher.launch_main(self.config.main)
        self._logger.debug(
            "main_started",
            pid=self._main.pid,
            command=str(self.config.main),
        )

        self._transition(SupervisorState.RUNNING)
        return await self._wait_for_main(self._main)

    async def _wait_for_main(self, main: LaunchedProcess) -> int:
        """Race main's exit against cancellation of the run.

        A child task delivers the exit status through a single-slot stream;
        cancellation of the run scope interrupts the receive.
        """
        send_stream, receive_stream = anyio.create_memory_object_stream[int](1)

        async with anyio.create_task_group() as tg:
            tg.start_soon(_deliver_exit_code, main, send_stream)
            with receive_stream:
                exit_code = await receive_stream.receive()

        self._logger.debug("main_finished", pid=main.pid, exit_code=exit_code)
        return exit_code

    async def _stop_pre_exec(self) -> None:
        """Send SIGTERM to pre-exec and wait for it to be reaped.

        Raises:
            TeardownError: If the signal cannot be delivered.
        """
        process = self._pre_exec
        if process is None or not process.is_running():
            self._logger.debug("pre_exec_already_finished")
            if process is not None:
                _ = await process.wait()
            return

        self._logger.debug("pre_exec_terminating", pid=process.pid)
        try:
            process.terminate()
        except ProcessLookupError:
            self._logger.debug("pre_exec_already_finished", pid=process.pid)
            _ = await process.wait()
            return
        except OSError as e:
            self._logger.error(
                "pre_exec_terminate_failed",
                pid=process.pid,
                error=str(e),
            )
            msg = f"Failed to send SIGTERM to pre-exec command (pid {process.pid}): {e}"
            raise TeardownError(
                msg,
                role=process.role,
                pid=process.pid,
                cause=e,
            ) from e
        self._logger.debug("pre_exec_sigterm_sent", pid=process.pid)

        with anyio.move_on_after(self.config.shutdown_timeout):
            _ = await process.wait()

        if process.is_running():
            self._logger.warning(
                "pre_exec_kill",
                pid=process.pid,
                shutdown_timeout=self.config.shutdown_timeout,
            )
            process.kill()
            _ = await process.wait()

        self._logger.debug(
            "pre_exec_stopped",
            pid=process.pid,
            exit_code=process.returncode,
        )

    async def _stop_pre_exec_after_failure(self) -> None:
        try:
            await self._stop_pre_exec()
        except TeardownError as e:
            # The original failure is the one worth reporting
            self._logger.error("pre_exec_teardown_failed", error=str(e))

    async def _kill_running(self) -> None:
        """Kill and reap processes still running when the run is cancelled."""
        for process in (self._main, self._pre_exec):
            if process is None or process.released:
                continue
            if process.is_running():
                self._logger.debug(
                    "process_killed",
                    role=process.role.value,
                    pid=process.pid,
                )
                process.kill()
            _ = await process.wait()

    def _describe_main_failure(self, exit_code: int) -> str:
        command = self.config.main
        if exit_code < 0:
            return f"Main command '{command}' was killed by signal {-exit_code}"
        return f"Main command '{command}' exited with code {exit_code}"

    def _transition(self, state: SupervisorState) -> None:
        self._logger.debug(
            "state_changed",
            from_state=self._state.value,
            to_state=state.value,
        )
        self._state = state
