"""Async runner for the sidecar command.

This module provides the async entry point that runs the supervisor next
to a signal watcher that cancels the run on SIGINT or SIGTERM.
"""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING

import anyio

from sidecar.exceptions import SupervisorError

if TYPE_CHECKING:
    from sidecar.supervisor import Supervisor


async def cancel_on_signal(supervisor: Supervisor) -> None:
    """Cancel the supervisor's run on the first SIGINT or SIGTERM.

    Args:
        supervisor: The supervisor to cancel.
    """
    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for _signum in signals:
            supervisor.cancel()
            break


async def run_sidecar(supervisor: Supervisor) -> None:
    """Run the supervisor until it finishes or a signal cancels it.

    Args:
        supervisor: The supervisor to run.

    Raises:
        SupervisorError: If the run failed.
    """
    error: SupervisorError | None = None

    async with anyio.create_task_group() as tg:
        tg.start_soon(cancel_on_signal, supervisor)

        try:
            await supervisor.run()
        except SupervisorError as e:
            # Re-raised outside the task group so it is not wrapped
            error = e

        # Run is over, stop the signal watcher
        tg.cancel_scope.cancel()

    if error is not None:
        raise error
