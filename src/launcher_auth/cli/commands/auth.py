"""Premium and fallback authentication commands for launcher-auth CLI.

Commands:
    status          - Show stored auth state (no network)
    profile         - Show the premium primary profile
    launch-auth     - Create a premium game session
    fallback-tokens - Fetch session tokens from the fallback provider
    logout          - Delete the premium credential file
"""

from __future__ import annotations

__all__ = [
    "fallback_tokens",
    "launch_auth",
    "logout",
    "profile",
    "status",
]

from datetime import datetime, timezone
from typing import Any

import click

from launcher_auth.utils.logging.logging_helpers import mask_uuid

from ..helpers import echo_json, open_manager
from ..styling import style_dim, style_label, style_success, style_warning


def _mask_token(token: str) -> str:
    """Show only the head and tail of a token."""
    if len(token) <= 16:
        return "<redacted>"
    return f"{token[:8]}…{token[-4:]}"


def _format_expiry(expires_at: int | None) -> str:
    if expires_at is None:
        return "unknown"
    return datetime.fromtimestamp(expires_at, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show stored credential, offline token and key set state.

    Reads local files only; nothing is refreshed.
    """
    with open_manager(ctx) as manager:
        result = manager.status().to_dict()

    if as_json:
        echo_json(result)
        return

    click.echo(style_label("Credentials") + f" {result['credential_path']}")
    if not result["logged_in"]:
        click.echo(style_dim("  Not logged in (premium)."))
    else:
        state = "valid" if result["access_token_valid"] else "expired (refresh on next use)"
        click.echo(f"  Access token: {state}, expires {_format_expiry(result['expires_at'])}")
        click.echo(f"  Refresh token: {'stored' if result['has_refresh_token'] else 'missing'}")
    profile_data = result["profile"]
    if profile_data:
        click.echo(f"  Profile: {profile_data['username']} ({mask_uuid(profile_data['uuid'])})")

    click.echo(style_label("Offline tokens"))
    if not result["offline_tokens"]:
        click.echo(style_dim("  None stored."))
    for issuer, count in result["offline_tokens"].items():
        click.echo(f"  {issuer}: {count}")

    click.echo(style_label("Signing keys"))
    for issuer, count in result["jwks_keys"].items():
        click.echo(f"  {issuer}: {count if count else style_dim('not cached')}")


@click.command()
@click.option("--refresh", is_flag=True, help="Ignore the cached profile and ask the provider")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def profile(ctx: click.Context, refresh: bool, as_json: bool) -> None:
    """Show the premium account's primary profile."""
    with open_manager(ctx) as manager:
        resolved = manager.fetch_premium_launcher_primary_profile(force_network=refresh)

    if as_json:
        echo_json(resolved.model_dump())
    else:
        click.echo(style_label("Username") + f" {resolved.username}")
        click.echo(style_label("UUID") + f" {resolved.uuid}")


@click.command("launch-auth")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--show-tokens", is_flag=True, help="Print full tokens instead of masked ones")
@click.pass_context
def launch_auth(ctx: click.Context, as_json: bool, show_tokens: bool) -> None:
    """Create a premium game session for launching the game.

    Uses the cached profile; if the provider reports it stale, the profile
    is re-resolved and the session retried once.
    """
    with open_manager(ctx) as manager:
        auth = manager.fetch_premium_launch_auth()

    shown = (lambda token: token) if show_tokens else _mask_token
    result: dict[str, Any] = {
        "username": auth.username,
        "uuid": auth.uuid,
        "identityToken": shown(auth.identity_token),
        "sessionToken": shown(auth.session_token),
    }
    if as_json:
        echo_json(result)
        return

    click.echo(style_success(f"Game session created for {auth.username}"))
    click.echo(style_label("UUID") + f" {auth.uuid}")
    click.echo(style_label("Identity token") + f" {result['identityToken']}")
    click.echo(style_label("Session token") + f" {result['sessionToken']}")


@click.command("fallback-tokens")
@click.option("--username", required=True, help="Player name")
@click.option("--uuid", required=True, help="Player uuid")
@click.option("--show-tokens", is_flag=True, help="Print full tokens instead of masked ones")
@click.pass_context
def fallback_tokens(ctx: click.Context, username: str, uuid: str, show_tokens: bool) -> None:
    """Fetch session tokens from the fallback auth provider."""
    with open_manager(ctx) as manager:
        if manager.config.fallback.insecure:
            click.echo(
                style_warning("TLS certificate verification is disabled for auth requests."), err=True
            )
        tokens = manager.fetch_auth_tokens(username, uuid)

    shown = (lambda token: token) if show_tokens else _mask_token
    click.echo(style_label("Identity token") + f" {shown(tokens.identity_token)}")
    click.echo(style_label("Session token") + f" {shown(tokens.session_token)}")


@click.command()
@click.pass_context
def logout(ctx: click.Context) -> None:
    """Delete the premium credential file.

    Offline tokens and cached signing keys are kept.
    """
    with open_manager(ctx) as manager:
        removed = manager.logout()

    if removed:
        click.echo(style_success("Premium credentials removed"))
    else:
        click.echo(style_dim("No premium credentials stored."))
