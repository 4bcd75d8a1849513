"""Tests for sidecar exceptions."""

from pathlib import Path

import pytest

from sidecar.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    HealthCheckError,
    HealthCheckExhaustedError,
    LaunchError,
    MainProcessFailedError,
    SidecarError,
    SupervisorError,
    TeardownError,
    UnknownHealthCheckKindError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error_class", "parent"),
        [
            (ConfigError, SidecarError),
            (ConfigLoadError, ConfigError),
            (ConfigValidationError, ConfigError),
            (SupervisorError, SidecarError),
            (LaunchError, SupervisorError),
            (HealthCheckError, SupervisorError),
            (HealthCheckExhaustedError, HealthCheckError),
            (UnknownHealthCheckKindError, HealthCheckError),
            (MainProcessFailedError, SupervisorError),
            (TeardownError, SupervisorError),
        ],
    )
    def test_inheritance(self, error_class: type, parent: type) -> None:
        assert issubclass(error_class, parent)


class TestConfigLoadError:
    def test_location_defaults(self) -> None:
        error = ConfigLoadError("bad file")

        assert str(error) == "bad file"
        assert error.path is None
        assert error.line is None
        assert error.column is None

    def test_with_location(self) -> None:
        error = ConfigLoadError("bad", path=Path("x.toml"), line=3, column=7)

        assert error.path == Path("x.toml")
        assert error.line == 3
        assert error.column == 7


class TestConfigValidationError:
    def test_attributes(self) -> None:
        error = ConfigValidationError(
            "invalid",
            key="health_check.port",
            value=0,
            expected="greater than 0",
            source="sidecar.toml",
        )

        assert error.key == "health_check.port"
        assert error.value == 0
        assert error.expected == "greater than 0"
        assert error.source == "sidecar.toml"


class TestLaunchError:
    def test_command_is_stored_as_tuple(self) -> None:
        cause = FileNotFoundError("missing")
        error = LaunchError("failed", role="main", command=["app", "-v"], cause=cause)

        assert error.role == "main"
        assert error.command == ("app", "-v")
        assert error.cause is cause

    def test_defaults(self) -> None:
        error = LaunchError("failed", role="pre-exec")

        assert error.command == ()
        assert error.cause is None


class TestHealthCheckExhaustedError:
    def test_attributes(self) -> None:
        error = HealthCheckExhaustedError(
            "unhealthy", kind="tcp", attempts=5, last_reason="refused"
        )

        assert error.kind == "tcp"
        assert error.attempts == 5
        assert error.last_reason == "refused"


class TestMainProcessFailedError:
    def test_exit_code(self) -> None:
        assert MainProcessFailedError("failed", exit_code=2).exit_code == 2


class TestTeardownError:
    def test_attributes(self) -> None:
        cause = PermissionError("denied")
        error = TeardownError("failed", role="pre-exec", pid=42, cause=cause)

        assert error.role == "pre-exec"
        assert error.pid == 42
        assert error.cause is cause
