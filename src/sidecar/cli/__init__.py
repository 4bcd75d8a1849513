"""The sidecar command-line interface."""

from ._app import app, create_app, main
from ._runner import cancel_on_signal, run_sidecar
from ._shared import ExitCode, exit_code_for, exit_with_error

__all__ = [
    "ExitCode",
    "app",
    "cancel_on_signal",
    "create_app",
    "exit_code_for",
    "exit_with_error",
    "main",
    "run_sidecar",
]
