"""CLI helper functions shared by commands."""

from __future__ import annotations

__all__ = [
    "echo_json",
    "exit_with_error",
    "load_config_or_exit",
    "open_manager",
]

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, NoReturn

import click

from launcher_auth.config import AuthConfig
from launcher_auth.exceptions import LauncherAuthError
from launcher_auth.manager import TokenSessionManager

from .styling import style_error


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Print an error to stderr and exit.

    Raises:
        SystemExit: Always, with exit_code.
    """
    click.echo(style_error(message), err=True)
    sys.exit(exit_code)


def load_config_or_exit(config_path: Path | None) -> AuthConfig:
    """Load configuration from a file or the environment, exiting on failure.

    Args:
        config_path: JSON config file (--config), or None for environment.

    Raises:
        SystemExit: With ConfigurationError.exit_code if the file is missing or invalid.
    """
    try:
        if config_path is not None:
            return AuthConfig.load_from_file(config_path)
        return AuthConfig.from_env()
    except LauncherAuthError as e:
        exit_with_error(f"Failed to load configuration: {e}", e.exit_code)


@contextmanager
def open_manager(ctx: click.Context) -> Iterator[TokenSessionManager]:
    """Build the manager for a command and exit with the error's code on auth failures.

    Raises:
        SystemExit: With the exit_code of any LauncherAuthError.
    """
    config = load_config_or_exit(ctx.obj.get("config_path") if ctx.obj else None)
    with TokenSessionManager(config) as manager:
        try:
            yield manager
        except LauncherAuthError as e:
            exit_with_error(f"Error: {e}", e.exit_code)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))
