import socket
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path

import pytest


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


def pick_free_port() -> int:
    """Return a localhost port that nothing is listening on right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def free_port() -> int:
    return pick_free_port()


@pytest.fixture
def http_server_command() -> Callable[[int], str]:
    """Return a function building a pre-exec command serving HTTP on a port."""

    def _command(port: int) -> str:
        return f"{sys.executable} -m http.server {port} --bind 127.0.0.1"

    return _command


@pytest.fixture
def run_cli() -> Callable[..., subprocess.CompletedProcess[str]]:
    """Return a function running `python -m sidecar` to completion."""

    def _run(*args: str, timeout: float = 30) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            [sys.executable, "-m", "sidecar", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )

    return _run
