"""``auth``: interactive login for user-mode configurations and credential status."""

from pathlib import Path

import click

from gworkspace_admin.auth import OAuthManager, TokenStatus, TokenStorage, load_client_secrets
from gworkspace_admin.cli.runtime import get_runtime, run_async
from gworkspace_admin.config import AdminConfig, token_path
from gworkspace_admin.errors import ConfigError


def _credentials_file(path: Path, config: AdminConfig) -> Path:
    credentials_file = Path(config.credentials_file).expanduser()
    if not credentials_file.is_absolute():
        credentials_file = path.parent / credentials_file
    return credentials_file


@click.group()
def auth() -> None:
    """Authenticate and inspect credentials."""


@auth.command()
@click.option("--force", is_flag=True, help="Re-authenticate without asking when a token exists.")
@click.pass_context
def login(ctx: click.Context, force: bool) -> None:
    """Run the OAuth consent flow for a user-mode configuration.

    This will:
    1. Open the browser for the OAuth2 consent flow
    2. Store the refresh token beside the configuration (<name>_token.json)

    Delegated (dwd) configurations use a service account key and need no login.
    """
    runtime = get_runtime(ctx)
    try:
        path, config = runtime.load()
        if config.mode != "user":
            raise click.ClickException(f"configuration '{config.name}' uses dwd mode and needs no login")
        client_id, client_secret = load_client_secrets(_credentials_file(path, config))
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    manager = OAuthManager(TokenStorage(token_path(path, config)), config.name)
    if manager.has_valid_tokens() and not force:
        click.echo("✓ Already authenticated!", err=True)
        click.echo(f"Token stored at: {manager.token_path}", err=True)
        if not click.confirm("Re-authenticate?", err=True):
            return

    click.echo("Starting OAuth authentication flow...", err=True)
    click.echo("Browser will open for Google consent...", err=True)
    run_async(manager.authenticate(config.scopes, client_id, client_secret))
    click.echo("✓ Authentication successful!", err=True)
    click.echo(f"Token stored at: {manager.token_path}", err=True)


@auth.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show how the selected configuration authenticates and whether it is ready."""
    runtime = get_runtime(ctx)
    try:
        path, config = runtime.load()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Configuration: {config.name} ({path})")
    click.echo(f"  Mode: {config.mode}")
    click.echo(f"  Credentials: {_credentials_file(path, config)}")
    if config.mode == "dwd":
        subject = runtime.dwd_subject or config.subject
        click.echo(f"  Subject: {subject}")
        if not _credentials_file(path, config).is_file():
            raise click.ClickException("service account key not found")
        click.echo("✓ Ready to use!")
        return

    manager = OAuthManager(TokenStorage(token_path(path, config)), config.name)
    token_status, stored = manager.get_status()
    click.echo(f"  Token file: {manager.token_path}")
    if token_status == TokenStatus.MISSING:
        raise click.ClickException("Not authenticated. Run 'gworkspace-admin auth login' first.")
    if token_status == TokenStatus.INVALID:
        raise click.ClickException("Token file corrupted. Run 'gworkspace-admin auth login' to re-authenticate.")
    if token_status == TokenStatus.EXPIRED:
        click.echo("  ⚠️  Token expired (refreshed automatically on use)")
    elif stored:
        click.echo(f"  Token expires: {stored.token.expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        click.echo(f"  Scopes: {len(stored.token.scopes)} configured")
    click.echo("✓ Ready to use!")
