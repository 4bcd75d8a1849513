# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration loading and merging.

Sources are merged in increasing precedence: defaults, TOML file,
environment variables (SIDECAR_ prefix), CLI overrides.
"""

from __future__ import annotations

import json
import os
import tomllib
from typing import TYPE_CHECKING, Any, Never

from pydantic import ValidationError

from sidecar.exceptions import ConfigLoadError, ConfigValidationError

from ._models import Config

if TYPE_CHECKING:
    from pathlib import Path

ENV_PREFIX = "SIDECAR_"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        ConfigLoadError: If the file is missing or cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        msg = f"Config file not found: {path}"
        raise ConfigLoadError(msg, path=path) from e
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified. Nested dictionaries are merged; any other value in
    `override` replaces the one in `base`.

    Args:
        base: Base configuration (lower precedence).
        override: Override configuration (higher precedence).

    Returns:
        Merged configuration dictionary.
    """
    result: dict[str, Any] = dict(base)  # pyright: ignore[reportExplicitAny]

    for key, override_val in override.items():
        base_val = result.get(key)
        if isinstance(base_val, dict) and isinstance(override_val, dict):
            result[key] = deep_merge(base_val, override_val)
        else:
            result[key] = override_val

    return result


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Set a value at a dotted key path in a nested dictionary.

    Creates intermediate dictionaries as needed.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "health_check.port", 8000)
        >>> d
        {'health_check': {'port': 8000}}
    """
    parts = key_path.split(".")
    current = d

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value


def parse_env_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Parse an environment variable value with type inference.

    Args:
        value: The raw string value from the environment variable.

    Returns:
        The parsed value with appropriate type.

    Order of type inference:
        1. Boolean: true/false (case-insensitive)
        2. Integer: parseable as int
        3. Float: parseable as float (with decimal point)
        4. JSON array or object
        5. String: anything else
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    try:
        return int(value)
    except ValueError:
        pass

    if "." in value:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def parse_env_vars(
    environ: dict[str, str] | None = None,
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a config dictionary.

    Environment variable naming:
        - Add prefix (SIDECAR_)
        - Convert to uppercase
        - Replace dots with double underscores
        - Example: health_check.port -> SIDECAR_HEALTH_CHECK__PORT

    Args:
        environ: Mapping to read from. Defaults to os.environ.
        prefix: Environment variable prefix.

    Returns:
        Dictionary of parsed config values with nested structure.
    """
    source = os.environ if environ is None else environ
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key, value in source.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix) :]
        if not config_key:
            continue

        # SIDECAR_HEALTH_CHECK__PORT -> health_check.port
        config_path = config_key.replace("__", ".").lower()

        set_nested_key(result, config_path, parse_env_value(value))

    return result


def _raise_validation_error(error: ValidationError, source: str | None) -> Never:
    details = error.errors()[0]
    key = ".".join(str(part) for part in details.get("loc", ()))
    message = str(details.get("msg", "Validation error"))
    msg = f"Invalid configuration value for '{key}': {message}"
    raise ConfigValidationError(
        msg,
        key=key,
        value=details.get("input"),
        expected=message,
        source=source,
    ) from error


def load_config(
    *,
    config_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
    environ: dict[str, str] | None = None,
) -> Config:
    """Load merged configuration from all sources.

    Args:
        config_path: Optional TOML config file (--config flag).
        cli_overrides: Values from CLI flags, using the config's nested
            structure. Highest precedence.
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        The validated configuration.

    Raises:
        ConfigLoadError: If the config file cannot be read or parsed.
        ConfigValidationError: If the merged values are invalid.
    """
    data: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    if config_path is not None:
        data = read_toml_file(config_path)

    data = deep_merge(data, parse_env_vars(environ))
    if cli_overrides:
        data = deep_merge(data, cli_overrides)

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        _raise_validation_error(e, source=str(config_path) if config_path else None)
