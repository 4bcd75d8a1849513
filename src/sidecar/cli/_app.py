# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""The command-line interface for sidecar."""

import shlex
from pathlib import Path
from typing import Annotated, Any, Never

import anyio
from cyclopts import App, Parameter
from rich.console import Console

from sidecar.config import LogFormat, load_config
from sidecar.exceptions import ConfigError, SupervisorError
from sidecar.supervisor import ProcessSpec, Supervisor, SupervisorRun
from sidecar.utils import create_logger

from ._runner import run_sidecar
from ._shared import ExitCode, exit_code_for, exit_with_error

_HELP = "sidecar is a one-shot multi-process manager."


def _build_overrides(  # noqa: PLR0913
    *,
    health_check_type: str | None,
    health_check_port: int | None,
    health_check_path: str | None,
    health_check_retries: int | None,
    health_check_interval: float | None,
    health_check_timeout: float | None,
    shutdown_timeout: float | None,
    debug: bool,
    log_format: LogFormat | None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect the CLI flags that were actually given into config overrides."""
    health_check = {
        key: value
        for key, value in (
            ("type", health_check_type),
            ("port", health_check_port),
            ("path", health_check_path),
            ("retries", health_check_retries),
            ("interval", health_check_interval),
            ("timeout", health_check_timeout),
        )
        if value is not None
    }

    overrides: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    if health_check:
        overrides["health_check"] = health_check
    if shutdown_timeout is not None:
        overrides["shutdown_timeout"] = shutdown_timeout

    logging: dict[str, str] = {}
    if debug:
        logging["level"] = "debug"
    if log_format is not None:
        logging["format"] = log_format.value
    if logging:
        overrides["logging"] = logging

    return overrides


def sidecar(  # noqa: PLR0913
    *command: Annotated[
        str,
        Parameter(
            allow_leading_hyphen=True,
            help="Main command and its arguments.",
        ),
    ],
    pre_exec: Annotated[
        str,
        Parameter(name="--pre-exec", help="Command started before the main command."),
    ],
    health_check_type: Annotated[
        str | None,
        Parameter(help="Health check type for the pre-exec command (http or tcp)."),
    ] = None,
    health_check_port: Annotated[
        int | None,
        Parameter(help="Port on localhost to probe. Enables the health check."),
    ] = None,
    health_check_path: Annotated[
        str | None,
        Parameter(help="Request path for HTTP health checks."),
    ] = None,
    health_check_retries: Annotated[
        int | None,
        Parameter(help="Maximum number of health check attempts."),
    ] = None,
    health_check_interval: Annotated[
        float | None,
        Parameter(help="Seconds between failed health check attempts."),
    ] = None,
    health_check_timeout: Annotated[
        float | None,
        Parameter(help="Seconds bounding a single health check, 0 for no bound."),
    ] = None,
    shutdown_timeout: Annotated[
        float | None,
        Parameter(help="Seconds to wait for pre-exec to exit after SIGTERM."),
    ] = None,
    config: Annotated[
        Path | None,
        Parameter(name="--config", help="Path to a TOML config file."),
    ] = None,
    debug: Annotated[
        bool,
        Parameter(negative="", help="Show debug log."),
    ] = False,
    log_format: Annotated[
        LogFormat | None,
        Parameter(help="Log output format."),
    ] = None,
) -> Never:
    """Run a pre-exec command next to a main command.

    The pre-exec command starts first. If a health check is configured,
    the main command starts only once the pre-exec command reports
    healthy. When the main command exits, the pre-exec command is sent
    SIGTERM.

    Example:
        sidecar --pre-exec "python3 -m http.server 8000" \\
            --health-check-port 8000 -- echo hello
    """
    if not command:
        exit_with_error("Missing main command", ExitCode.CONFIG_ERROR)

    try:
        pre_exec_spec = ProcessSpec.from_string(pre_exec)
    except ValueError as e:
        exit_with_error(f"Invalid --pre-exec command: {e}", ExitCode.CONFIG_ERROR)

    overrides = _build_overrides(
        health_check_type=health_check_type,
        health_check_port=health_check_port,
        health_check_path=health_check_path,
        health_check_retries=health_check_retries,
        health_check_interval=health_check_interval,
        health_check_timeout=health_check_timeout,
        shutdown_timeout=shutdown_timeout,
        debug=debug,
        log_format=log_format,
    )

    try:
        loaded_config = load_config(config_path=config, cli_overrides=overrides)
    except ConfigError as e:
        exit_with_error(str(e), exit_code_for(e))

    level = loaded_config.logging.level
    logger = create_logger(
        level=level.value if level is not None else None,
        log_format=loaded_config.logging.format.value,  # type: ignore[arg-type]
    )
    logger.debug(
        "start_sidecar",
        pre_exec=str(pre_exec_spec),
        main=shlex.join(command),
    )

    run = SupervisorRun(
        pre_exec=pre_exec_spec,
        main=ProcessSpec(tuple(command)),
        health_check=(
            loaded_config.health_check.to_spec()
            if loaded_config.health_check is not None
            else None
        ),
        shutdown_timeout=loaded_config.shutdown_timeout,
    )

    try:
        anyio.run(run_sidecar, Supervisor(run, logger=logger))
    except SupervisorError as e:
        exit_with_error(str(e), exit_code_for(e))

    raise SystemExit(ExitCode.SUCCESS)


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Create the sidecar CLI application.

    Args:
        console: Console for regular output (help, version).
        error_console: Console for parse errors.
        exit_on_error: Exit on argument parsing errors instead of raising.

    Returns:
        The cyclopts App with the sidecar command as its default.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="sidecar",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    app.default(sidecar)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `sidecar` CLI."""
    app()


if __name__ == "__main__":
    main()
