"""Reachability probes for the pre-exec process.

This module provides the HealthChecker that performs a single HTTP or TCP
probe against a port on localhost.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import anyio
import httpx

from sidecar.exceptions import UnknownHealthCheckKindError

from ._models import HealthCheckKind, ProbeResult

if TYPE_CHECKING:
    from ._models import HealthCheckSpec

_PROBE_HOST = "localhost"


def resolve_kind(kind: str) -> HealthCheckKind:
    """Resolve a configured kind string to a HealthCheckKind.

    Args:
        kind: Kind as configured, e.g. "http".

    Returns:
        The matching HealthCheckKind.

    Raises:
        UnknownHealthCheckKindError: If the kind is not supported.
    """
    try:
        return HealthCheckKind(kind.lower())
    except ValueError as e:
        msg = f"Unknown health check type: {kind}"
        raise UnknownHealthCheckKindError(msg, kind=kind) from e


@final
class HealthChecker:
    """Performs single health probes.

    Probes never retry. A failed probe is reported as an unhealthy
    ProbeResult with a reason; cancellation of the calling scope is never
    turned into a result and always propagates.
    """

    __slots__ = ("_transport",)

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Initialize the checker.

        Args:
            transport: Optional httpx transport for HTTP probes. Uses the
                default network transport if None.
        """
        self._transport = transport

    async def probe(self, spec: HealthCheckSpec) -> ProbeResult:
        """Probe the endpoint described by spec once.

        Args:
            spec: Health check to perform.

        Returns:
            Healthy result on success, unhealthy result with a reason otherwise.

        Raises:
            UnknownHealthCheckKindError: If spec.kind is not supported.
        """
        kind = resolve_kind(spec.kind)
        if kind is HealthCheckKind.HTTP:
            return await self._probe_http(spec)
        return await self._probe_tcp(spec)

    async def _probe_http(self, spec: HealthCheckSpec) -> ProbeResult:
        timeout = spec.timeout if spec.timeout > 0 else None
        url = spec.url

        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException:
            return ProbeResult(
                healthy=False,
                reason=f"request to {url} timed out after {spec.timeout}s",
            )
        except httpx.InvalidURL as e:
            return ProbeResult(
                healthy=False,
                reason=f"failed to create request for {url}: {e}",
            )
        except httpx.HTTPError as e:
            return ProbeResult(healthy=False, reason=f"request to {url} failed: {e}")

        if response.status_code >= 300:
            return ProbeResult(
                healthy=False,
                reason=f"status code is not success: {response.status_code}",
            )
        return ProbeResult(healthy=True)

    async def _probe_tcp(self, spec: HealthCheckSpec) -> ProbeResult:
        timeout = spec.timeout if spec.timeout > 0 else None

        try:
            with anyio.fail_after(timeout):
                stream = await anyio.connect_tcp(_PROBE_HOST, spec.port)
        except TimeoutError:
            return ProbeResult(
                healthy=False,
                reason=f"connect to {_PROBE_HOST}:{spec.port} timed out "
                f"after {spec.timeout}s",
            )
        except OSError as e:
            return ProbeResult(
                healthy=False,
                reason=f"connect to {_PROBE_HOST}:{spec.port} failed: {e}",
            )

        await stream.aclose()
        return ProbeResult(healthy=True)
