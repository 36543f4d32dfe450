"""Issuer key set command for launcher-auth CLI."""

from __future__ import annotations

__all__ = ["jwks"]

import click

from ..helpers import echo_json, open_manager
from ..styling import style_dim, style_label


@click.command()
@click.option("--issuer", default="community", show_default=True, help="community, official or an issuer URL")
@click.option("--refresh", is_flag=True, help="Fetch the key set even if cached")
@click.option("--json", "as_json", is_flag=True, help="Output the key set as JSON")
@click.pass_context
def jwks(ctx: click.Context, issuer: str, refresh: bool, as_json: bool) -> None:
    """Show an issuer's signing keys (fetched when not cached).

    A failed fetch falls back to the cached key set.
    """
    with open_manager(ctx) as manager:
        key_set = manager.ensure_jwks(issuer, force_refresh=refresh)

    if key_set is None:
        click.echo(style_dim("No signing keys available."))
        return

    if as_json:
        echo_json(key_set.model_dump())
        return

    click.echo(style_label("Keys") + f" {len(key_set.keys)}")
    for key in key_set.keys:
        click.echo(f"  {key.get('kid', '<no kid>')}  {key.get('kty', '?')}  {key.get('alg', '')}".rstrip())
