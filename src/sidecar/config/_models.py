"""Configuration models.

This module provides the Pydantic models for sidecar settings that come
from a config file, the environment or CLI flags.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from sidecar.supervisor import HealthCheckSpec


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold. None defers to SIDECAR_LOG_LEVEL.
        format: Log output format.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel | None = None
    format: LogFormat = LogFormat.JSON


class HealthCheckConfig(BaseModel):
    """Health check configuration section.

    The type is deliberately a free-form string: unsupported types are
    reported by the health gate when the run reaches it.

    Attributes:
        type: Probe kind ("http" or "tcp").
        port: Port on localhost to probe.
        path: Request path for HTTP probes.
        retries: Maximum number of probe attempts.
        interval: Seconds between failed attempts.
        timeout: Seconds bounding one probe, 0 for no bound.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    type: str = "http"
    port: int = Field(gt=0, le=65535)
    path: str = "/"
    retries: int = Field(default=5, ge=0)
    interval: float = Field(default=1.0, ge=0)
    timeout: float = Field(default=10.0, ge=0)

    def to_spec(self) -> HealthCheckSpec:
        """Convert to the runtime health check spec."""
        return HealthCheckSpec(
            kind=self.type,
            port=self.port,
            path=self.path,
            retries=self.retries,
            interval=self.interval,
            timeout=self.timeout,
        )


class Config(BaseModel):
    """Sidecar configuration.

    Attributes:
        logging: Logging settings.
        health_check: Optional health check for the pre-exec process.
        shutdown_timeout: Seconds to wait for pre-exec after SIGTERM.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = LoggingConfig()
    health_check: HealthCheckConfig | None = None
    shutdown_timeout: float = Field(default=5.0, ge=0)
