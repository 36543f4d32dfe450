"""Offline token command for launcher-auth CLI."""

from __future__ import annotations

__all__ = ["offline_token"]

import click

from launcher_auth.security.auth.offline_issuer import AccountType

from ..helpers import echo_json, open_manager


@click.command("offline-token")
@click.option("--uuid", required=True, help="Account uuid")
@click.option(
    "--account-type",
    type=click.Choice([kind.value for kind in AccountType]),
    required=True,
    help="premium (first-party issuer) or nopremium (community issuer)",
)
@click.option("--username", help="Player name (required for nopremium)")
@click.option("--issuer", help="community, official or an issuer URL (default: stored precedence)")
@click.option("--force-refresh", is_flag=True, help="Always issue a new token")
@click.option("--verify", is_flag=True, help="Verify the token against the keys of the issuer that stored it")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def offline_token(
    ctx: click.Context,
    uuid: str,
    account_type: str,
    username: str | None,
    issuer: str | None,
    force_refresh: bool,
    verify: bool,
    as_json: bool,
) -> None:
    """Return a stored offline token, issuing one if needed.

    Examples:
        launcher-auth offline-token --account-type nopremium --username Player --uuid <uuid>
        launcher-auth offline-token --account-type premium --uuid <uuid> --issuer official
    """
    with open_manager(ctx) as manager:
        token = manager.ensure_offline_token(
            account_type, username, uuid, issuer=issuer, force_refresh=force_refresh
        )
        verified = None
        if verify:
            verify_issuer = issuer or manager.stored_offline_token_issuer(uuid, token)
            if verify_issuer is None:
                raise click.UsageError("Stored token has no known issuer, pass --issuer with --verify")
            verified = manager.verify_offline_token(token, issuer=verify_issuer)

    if not as_json:
        click.echo(token)
        return

    result: dict[str, object] = {"uuid": uuid, "offlineToken": token}
    if verified is not None:
        result["verified"] = {
            "subject": verified.subject,
            "issuer": verified.issuer,
            "keyId": verified.key_id,
            "expiresAt": verified.expires_at.isoformat(),
        }
    echo_json(result)
