"""Command-line interface for gworkspace-admin."""

import click

from gworkspace_admin.__version__ import __version__
from gworkspace_admin.cli import (
    activities,
    asps,
    calendaracl,
    calendars,
    delegates,
    drives,
    events,
    files,
    groupmembershipsci,
    groups,
    groupsci,
    groupsettings,
    labels,
    licenseassignments,
    members,
    orgunits,
    permissions,
    sendas,
    users,
)
from gworkspace_admin.cli.auth import auth
from gworkspace_admin.cli.configs import configs
from gworkspace_admin.cli.logs import configure_logging
from gworkspace_admin.cli.runtime import Runtime

NOUNS = (
    files,
    permissions,
    drives,
    users,
    groups,
    members,
    groupsettings,
    groupsci,
    groupmembershipsci,
    orgunits,
    asps,
    licenseassignments,
    calendars,
    calendaracl,
    events,
    labels,
    delegates,
    sendas,
    activities,
)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_name",
    envvar="GWSADMIN_CONFIG",
    default=None,
    help="Configuration name or path to a YAML file. Defaults to the configuration marked default.",
)
@click.option("--dwdSubject", "dwd_subject", default=None, help="User to impersonate, overriding the configuration.")
@click.option("--compressOutput", "compress", is_flag=True, help="Print compact JSON.")
@click.option(
    "--streamOutput",
    "stream",
    is_flag=True,
    help="Print one JSON document per line as results arrive instead of one array at the end.",
)
@click.option(
    "--delay",
    "delay_ms",
    type=click.IntRange(min=0),
    default=None,
    help="Milliseconds to wait after each call in batch and recursive mode.",
)
@click.option("--retryOn", "retry_on", type=int, multiple=True, help="Extra HTTP status code to retry. Repeatable.")
@click.option("--log", "log_file", default=None, help="Also write the log to this file.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages.")
@click.pass_context
def main(
    ctx: click.Context,
    config_name: str | None,
    dwd_subject: str | None,
    compress: bool,
    stream: bool,
    delay_ms: int | None,
    retry_on: tuple[int, ...],
    log_file: str | None,
    verbose: bool,
) -> None:
    """Administer Google Workspace from the command line.

    Every verb works on a single record from flags. Verbs with a ``batch``
    subcommand read one record per CSV row (``--<flag> <column>`` binds a
    column, ``--<flag>_ALL <value>`` sets a value for every row). Verbs with a
    ``recursive`` subcommand run on every file below a Drive folder
    (``--folderId``) or, for user-centric verbs, on every user of some
    organizational units and groups (``--orgUnit``, ``--groupEmail``).

    Results are printed as JSON on stdout; logs go to stderr.
    """
    configure_logging(verbose, log_file)
    runtime = ctx.obj if isinstance(ctx.obj, Runtime) else Runtime()
    runtime.config_name = config_name or runtime.config_name
    runtime.dwd_subject = dwd_subject or runtime.dwd_subject
    runtime.compress = compress or runtime.compress
    runtime.stream = stream or runtime.stream
    if delay_ms is not None:
        runtime.delay_ms = delay_ms
    runtime.retry_on = [*runtime.retry_on, *retry_on]
    ctx.obj = runtime


for noun_module in NOUNS:
    noun_module.register(main)
main.add_command(configs)
main.add_command(auth)


if __name__ == "__main__":
    main()
