"""Health gate between the pre-exec and main processes.

This module provides the HealthGate that turns a bounded series of health
probes into a single pass/fail decision.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import anyio

from sidecar.exceptions import HealthCheckExhaustedError
from sidecar.utils import create_logger

from ._health import HealthChecker, resolve_kind

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from ._models import HealthCheckSpec


@final
class HealthGate:
    """Retries health probes with a fixed delay until one succeeds.

    Probes and the delays between them are ordinary checkpoints, so
    cancelling the enclosing scope stops the gate immediately instead of
    letting it run out its retries.
    """

    __slots__ = ("_checker", "_logger")

    def __init__(
        self,
        checker: HealthChecker | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the gate.

        Args:
            checker: Probe implementation. Uses HealthChecker if None.
            logger: Logger for probe failures. Uses a stderr logger if None.
        """
        self._checker = checker or HealthChecker()
        self._logger = logger or create_logger()

    async def wait_healthy(self, spec: HealthCheckSpec) -> None:
        """Block until a probe succeeds or the retries run out.

        Performs at most spec.retries probes, sleeping spec.interval seconds
        after every failed probe except the last one.

        Args:
            spec: Health check to perform.

        Raises:
            UnknownHealthCheckKindError: If spec.kind is not supported. No
                probe is attempted.
            HealthCheckExhaustedError: If no probe succeeded.
        """
        kind = resolve_kind(spec.kind)
        last_reason: str | None = None

        for attempt in range(spec.retries):
            result = await self._checker.probe(spec)
            if result.healthy:
                self._logger.debug(
                    "health_check_passed",
                    type=kind.value,
                    port=spec.port,
                    path=spec.path,
                    attempt=attempt,
                )
                return

            last_reason = result.reason
            self._logger.warning(
                "health_check_failed",
                type=kind.value,
                port=spec.port,
                path=spec.path,
                attempt=attempt,
                retries=spec.retries,
                error=result.reason,
            )

            if attempt < spec.retries - 1:
                await anyio.sleep(spec.interval)

        msg = (
            f"Health check '{kind.value}' on port {spec.port} did not pass "
            f"after {spec.retries} attempts"
        )
        if last_reason:
            msg = f"{msg}: {last_reason}"
        raise HealthCheckExhaustedError(
            msg,
            kind=kind.value,
            attempts=spec.retries,
            last_reason=last_reason,
        )
