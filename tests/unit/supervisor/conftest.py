"""Fakes for supervisor unit tests.

FakeProcess stands in for anyio.abc.Process and records every signal it
receives in a shared event list, so tests can assert on the order in which
the supervisor launched, waited on and signalled its processes.
"""

import itertools
from collections.abc import Callable
from typing import Any

import anyio
import anyio.lowlevel
import pytest

from sidecar.exceptions import SupervisorError
from sidecar.supervisor import (
    HealthCheckSpec,
    LaunchedProcess,
    ProbeResult,
    ProcessRole,
    ProcessSpec,
)

_pids = itertools.count(1000)

SIGTERM_EXIT = -15
SIGKILL_EXIT = -9


class FakeProcess:
    """In-memory process.

    With exit_code set, the process exits with it as soon as it is waited
    on. Without it, the process runs until terminated or killed.
    """

    def __init__(
        self,
        name: str,
        events: list[str],
        *,
        exit_code: int | None = None,
        ignores_sigterm: bool = False,
        terminate_error: OSError | None = None,
    ) -> None:
        self.name = name
        self.events = events
        self.pid = next(_pids)
        self.returncode: int | None = None
        self._exit_code = exit_code
        self._ignores_sigterm = ignores_sigterm
        self._terminate_error = terminate_error
        self._exited = anyio.Event()

    def finish(self, code: int) -> None:
        if self.returncode is None:
            self.returncode = code
            self.events.append(f"{self.name}:exited")
            self._exited.set()

    async def wait(self) -> int:
        if self._exit_code is not None:
            await anyio.lowlevel.checkpoint()
            self.finish(self._exit_code)
        await self._exited.wait()
        assert self.returncode is not None
        return self.returncode

    def terminate(self) -> None:
        self.events.append(f"{self.name}:SIGTERM")
        if self._terminate_error is not None:
            raise self._terminate_error
        if not self._ignores_sigterm:
            self.finish(SIGTERM_EXIT)

    def kill(self) -> None:
        self.events.append(f"{self.name}:SIGKILL")
        self.finish(SIGKILL_EXIT)


class FakeLauncher:
    """Hands out pre-made FakeProcess instances instead of spawning."""

    def __init__(
        self,
        events: list[str],
        *,
        pre_exec: FakeProcess | None = None,
        main: FakeProcess | None = None,
        pre_exec_error: SupervisorError | None = None,
        main_error: SupervisorError | None = None,
    ) -> None:
        self.events = events
        self.pre_exec = pre_exec or FakeProcess("pre-exec", events)
        self.main = main or FakeProcess("main", events, exit_code=0)
        self._pre_exec_error = pre_exec_error
        self._main_error = main_error

    async def launch_pre_exec(self, spec: ProcessSpec) -> LaunchedProcess:
        self.events.append("launch:pre-exec")
        if self._pre_exec_error is not None:
            raise self._pre_exec_error
        return LaunchedProcess(
            self.pre_exec,  # pyright: ignore[reportArgumentType]
            role=ProcessRole.PRE_EXEC,
            spec=spec,
            inherit_stdio=False,
        )

    async def launch_main(self, spec: ProcessSpec) -> LaunchedProcess:
        self.events.append("launch:main")
        if self._main_error is not None:
            raise self._main_error
        return LaunchedProcess(
            self.main,  # pyright: ignore[reportArgumentType]
            role=ProcessRole.MAIN,
            spec=spec,
            inherit_stdio=True,
        )


class FakeGate:
    """Health gate that passes, fails or blocks without probing."""

    def __init__(
        self,
        events: list[str],
        *,
        error: SupervisorError | None = None,
        block: bool = False,
    ) -> None:
        self.events = events
        self.specs: list[HealthCheckSpec] = []
        self._error = error
        self._block = block

    async def wait_healthy(self, spec: HealthCheckSpec) -> None:
        self.events.append("gate")
        self.specs.append(spec)
        if self._block:
            await anyio.sleep_forever()
        if self._error is not None:
            raise self._error


class ScriptedChecker:
    """Health checker returning a fixed sequence of probe results."""

    def __init__(self, results: list[ProbeResult]) -> None:
        self.results = list(results)
        self.probes = 0

    async def probe(self, spec: HealthCheckSpec) -> ProbeResult:
        self.probes += 1
        if self.results:
            return self.results.pop(0)
        return ProbeResult(healthy=False, reason="no more scripted results")


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def make_process(events: list[str]) -> Callable[..., FakeProcess]:
    def _make(name: str, **kwargs: Any) -> FakeProcess:
        return FakeProcess(name, events, **kwargs)

    return _make


@pytest.fixture
def make_launcher(events: list[str]) -> Callable[..., FakeLauncher]:
    def _make(**kwargs: Any) -> FakeLauncher:
        return FakeLauncher(events, **kwargs)

    return _make


@pytest.fixture
def make_gate(events: list[str]) -> Callable[..., FakeGate]:
    def _make(**kwargs: Any) -> FakeGate:
        return FakeGate(events, **kwargs)

    return _make


@pytest.fixture
def make_checker() -> Callable[[list[ProbeResult]], ScriptedChecker]:
    return ScriptedChecker
