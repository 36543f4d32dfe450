"""Main CLI entry point for launcher-auth.

Defines the CLI group and registers all subcommands.

Commands:
    status          - Show stored credential, offline token and key set state
    profile         - Show the premium primary profile
    launch-auth     - Create a premium game session for launching
    fallback-tokens - Fetch session tokens from the fallback provider
    offline-token   - Return (or issue) an offline token
    jwks            - Show or refresh an issuer's signing keys
    logout          - Delete the premium credential file

Subcommand help:
    launcher-auth COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli"]

import sys
from pathlib import Path

import click

from launcher_auth import __version__

from .commands.auth import fallback_tokens, launch_auth, logout, profile, status
from .commands.jwks import jwks
from .commands.offline import offline_token


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  launcher-auth status                          Show stored auth state
  launcher-auth launch-auth                     Premium game-session tokens
  launcher-auth offline-token --account-type nopremium \\
    --username Player --uuid <uuid>             Offline token (community issuer)

Configuration:
  Settings come from environment variables (VITE_AUTH_URL, BUTTER_SESSIONS_BASE,
  HYTALE_OAUTH_TOKEN_URL, LAUNCHER_META_DIR, ...) unless --config points to a
  JSON configuration file.
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON configuration file (default: environment)",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, config_path: Path | None) -> None:
    """launcher-auth: token and session manager for the game launcher."""
    if version:
        click.echo(f"launcher-auth {__version__}")
        sys.exit(0)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(status)
cli.add_command(profile)
cli.add_command(launch_auth)
cli.add_command(fallback_tokens)
cli.add_command(offline_token)
cli.add_command(jwks)
cli.add_command(logout)


def main() -> None:
    """CLI entry point."""
    cli()
