"""``configs``: create and inspect named configurations."""

from pathlib import Path
from typing import Any

import click

from gworkspace_admin.cli.runtime import get_runtime
from gworkspace_admin.config import (
    DEFAULT_DELAY_MS,
    DEFAULT_THREADS,
    AdminConfig,
    config_dir,
    create_config,
    list_configs,
    load_config,
    update_config,
)
from gworkspace_admin.errors import ConfigError
from gworkspace_admin.output import write_document


def _describe(path: Path, config: AdminConfig) -> dict[str, Any]:
    return {"path": str(path), **config.model_dump(exclude_none=True)}


@click.group()
def configs() -> None:
    """Manage configurations (authentication mode, credentials and tuning)."""


@configs.command()
@click.option("--name", "name", prompt="Configuration name", help="Name of the configuration.")
@click.option(
    "--mode",
    "mode",
    type=click.Choice(["dwd", "user"]),
    prompt="Mode (dwd = service account with domain-wide delegation, user = OAuth login)",
    help="Authentication mode.",
)
@click.option(
    "--credentialsFile",
    "credentials_file",
    prompt="Path to the service account key or OAuth client secrets",
    help="Service account key (dwd) or OAuth client secrets (user).",
)
@click.option("--subject", "subject", default=None, help="User to impersonate (dwd mode only).")
@click.option("--scopes", "scopes", multiple=True, help="OAuth scope to request. Repeatable.")
@click.option("--threads", "threads", type=int, default=DEFAULT_THREADS, show_default=True, help="Batch workers.")
@click.option(
    "--standardDelay",
    "standard_delay",
    type=int,
    default=DEFAULT_DELAY_MS,
    show_default=True,
    help="Milliseconds to wait after each call in batch mode.",
)
@click.option("--retryOn", "retry_on", type=int, multiple=True, help="Extra HTTP status code to retry. Repeatable.")
@click.option("--logFile", "log_file", default=None, help="File to log to.")
@click.option("--default", "default", is_flag=True, help="Use this configuration when --config is omitted.")
def new(**options: Any) -> None:
    """Create a new configuration."""
    values = {k: list(v) if isinstance(v, tuple) else v for k, v in options.items() if v not in (None, ())}
    if options["mode"] == "dwd" and not values.get("subject"):
        values["subject"] = click.prompt("User to impersonate")
    try:
        path = create_config(values)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"✓ Configuration written to {path}", err=True)


@configs.command("list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List the configurations in the configuration directory."""
    runtime = get_runtime(ctx)
    found = [_describe(path, config) for path, config in list_configs()]
    if not found:
        click.echo(f"No configurations in {config_dir()}. Create one with: gworkspace-admin configs new", err=True)
    write_document(found, runtime.compress, runtime.out)


@configs.command()
@click.option("--name", "name", default=None, help="Configuration to show. Defaults to --config or the default one.")
@click.pass_context
def get(ctx: click.Context, name: str | None) -> None:
    """Show a configuration."""
    runtime = get_runtime(ctx)
    try:
        path, config = load_config(name or runtime.config_name)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    write_document(_describe(path, config), runtime.compress, runtime.out)


@configs.command()
@click.option("--name", "name", required=True, help="Configuration to update.")
@click.option("--newName", "new_name", default=None, help="Rename the configuration.")
@click.option("--mode", "mode", type=click.Choice(["dwd", "user"]), default=None, help="Authentication mode.")
@click.option("--credentialsFile", "credentials_file", default=None, help="Service account key or client secrets.")
@click.option("--subject", "subject", default=None, help="User to impersonate (dwd mode only).")
@click.option("--scopes", "scopes", multiple=True, help="Replace the OAuth scopes. Repeatable.")
@click.option("--threads", "threads", type=int, default=None, help="Batch workers.")
@click.option("--standardDelay", "standard_delay", type=int, default=None, help="Post-call delay in milliseconds.")
@click.option("--retryOn", "retry_on", type=int, multiple=True, help="Replace the extra retry codes. Repeatable.")
@click.option("--logFile", "log_file", default=None, help="File to log to.")
@click.option("--default/--no-default", "default", default=None, help="Mark or unmark as default configuration.")
@click.pass_context
def update(ctx: click.Context, name: str, new_name: str | None, **options: Any) -> None:
    """Change settings of an existing configuration."""
    runtime = get_runtime(ctx)
    changes = {k: list(v) if isinstance(v, tuple) else v for k, v in options.items() if v not in (None, ())}
    if new_name:
        changes["name"] = new_name
    if not changes:
        raise click.UsageError("nothing to update")
    try:
        path, config = update_config(name, changes)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    write_document(_describe(path, config), runtime.compress, runtime.out)
