"""Configuration for sidecar.

Settings are read from an optional TOML file, SIDECAR_-prefixed
environment variables and CLI flags, in increasing precedence, and are
validated with Pydantic.

Example TOML file:

    shutdown_timeout = 10.0

    [logging]
    level = "debug"
    format = "text"

    [health_check]
    type = "http"
    port = 8000
    path = "/healthz"
    retries = 10
    interval = 0.5
    timeout = 2.0
"""

from ._loader import (
    ENV_PREFIX,
    deep_merge,
    load_config,
    parse_env_value,
    parse_env_vars,
    read_toml_file,
    set_nested_key,
)
from ._models import Config, HealthCheckConfig, LogFormat, LoggingConfig, LogLevel

__all__ = [
    "ENV_PREFIX",
    "Config",
    "HealthCheckConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "deep_merge",
    "load_config",
    "parse_env_value",
    "parse_env_vars",
    "read_toml_file",
    "set_nested_key",
]
