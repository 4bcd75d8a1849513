"""Shared test fixtures for sidecar tests."""

import io
import json
from collections.abc import Callable
from typing import Any

import pytest
from structlog.typing import FilteringBoundLogger

LogEvents = Callable[[], list[dict[str, Any]]]  # pyright: ignore[reportExplicitAny]


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SIDECAR_ settings from the developer's shell out of tests."""
    for name in ("SIDECAR_DEBUG", "SIDECAR_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> FilteringBoundLogger:
    """Debug-level JSON logger writing to log_stream."""
    from sidecar.utils import create_logger

    return create_logger(level="debug", stream=log_stream)


@pytest.fixture
def log_events(log_stream: io.StringIO) -> LogEvents:
    """Return a function that parses everything logged so far."""

    def _read() -> list[dict[str, Any]]:  # pyright: ignore[reportExplicitAny]
        return [
            json.loads(line) for line in log_stream.getvalue().splitlines() if line
        ]

    return _read
