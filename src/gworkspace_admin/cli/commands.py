"""Building blocks for noun modules.

``verb`` turns one async body ``(apis, values) -> result`` into up to three
click commands: the single-mode verb, a CSV-driven ``batch`` child and a
``recursive`` child that replays the body for every file below a Drive
folder or for every user of some org units and groups. All three build the
same ValueMap shape, so the body cannot tell how it was invoked.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import click

from gworkspace_admin.cli.runtime import Apis, Runtime, get_runtime
from gworkspace_admin.dispatcher import BatchDispatcher, read_csv_rows
from gworkspace_admin.errors import AdminError, ArgumentError
from gworkspace_admin.flags import (
    BATCH_FLAGS,
    RECURSIVE_FILE_FLAGS,
    RECURSIVE_USER_FLAGS,
    FlagCommand,
    FlagGroup,
    FlagSet,
    ValueMap,
    batch_flags_to_map,
    check_batch_columns,
    flags_to_map,
    get_all_flags,
    init_batch_command,
    init_command,
    init_recursive_command,
)
from gworkspace_admin.traverser import list_recursive
from gworkspace_admin.user_traverser import unique_users_recursive

logger = logging.getLogger(__name__)

Body = Callable[[Apis, ValueMap], Awaitable[Any]]
Failure = Callable[[ValueMap, AdminError], Any]


@dataclass
class RecursiveRun:
    """What a custom recursive driver gets to work with."""

    runtime: Runtime
    apis: Apis
    options: ValueMap
    threads: int

    def dispatcher(self) -> BatchDispatcher:
        return BatchDispatcher(
            self.runtime.retrier, self.runtime.make_sink(), self.threads, self.runtime.delay, self.runtime.sleep
        )

    def files(self, fields: str = "") -> AsyncIterator[dict[str, Any]]:
        return list_recursive(
            self.apis.drive,
            self.options.get_string("folderId"),
            fields,
            self.options.get_list("excludeFolders"),
            self.options.get_bool("includeRoot"),
            self.threads,
        )


Driver = Callable[[RecursiveRun], Awaitable[None]]


async def collect(result: Any) -> Any:
    """Drain an async iterator into a list; other values pass through."""
    if isinstance(result, AsyncIterator):
        return [item async for item in result]
    return result


async def run_body(body: Body, apis: Apis, values: ValueMap) -> Any:
    return await collect(await body(apis, values))


def noun(main: click.Group, name: str, help: str) -> click.Group:
    """Create and register a noun group."""
    group = click.Group(name, help=help)
    main.add_command(group)
    return group


def verb(
    group: click.Group,
    name: str,
    flags: FlagSet,
    body: Body,
    help: str,
    batch: bool = False,
    recursive: bool | Driver = False,
    failure: Failure | None = None,
    user_recursive: str | None = None,
) -> click.Command:
    """Register a verb under a noun group.

    Args:
        group: Noun group.
        name: Verb name as used in ``available_for``.
        flags: The noun's flag registry.
        body: Async function issuing the request(s) for one ValueMap.
        help: Help text.
        batch: Also create a ``batch`` child driven by a CSV file.
        recursive: Also create a ``recursive`` child. True replays ``body``
            for every traversed file with ``fileId`` bound to it; a coroutine
            function replaces the whole recursive run.
        failure: Formatter turning a failed batch/recursive item into an
            output record.
        user_recursive: Name of the flag that receives each user address.
            When given, the ``recursive`` child expands org units and groups
            into users instead of traversing a Drive folder.

    Returns:
        The single-mode command.
    """
    if recursive and user_recursive:
        raise ValueError(f"{name}: a verb has either a Drive or a user recursive mode")
    has_children = batch or bool(recursive) or bool(user_recursive)

    @click.pass_context
    def single(ctx: click.Context, **_: Any) -> None:
        if has_children and ctx.invoked_subcommand is not None:
            return
        runtime = get_runtime(ctx)
        values = flags_to_map(ctx)
        required = ctx.command.required_flags  # type: ignore[attr-defined]

        async def call(apis: Apis) -> Any:
            values.require(required)
            return await runtime.retrier.call(lambda: run_body(body, apis, values), key=name)

        runtime.write(runtime.run(call))

    cls = FlagGroup if has_children else FlagCommand
    command = cls(name, callback=single, help=help)
    init_command(group, command, flags)

    if batch:
        _add_batch(command, flags, body, failure)
    if recursive:
        _add_recursive(command, flags, body, recursive, failure)
    if user_recursive:
        _add_user_recursive(command, flags, body, user_recursive, failure)
    return command


def _add_batch(parent: click.Command, flags: FlagSet, body: Body, failure: Failure | None) -> None:
    verb_name = parent.name or ""

    @click.pass_context
    def batch(ctx: click.Context, **_: Any) -> None:
        runtime = get_runtime(ctx)
        options = flags_to_map(ctx)
        required = parent.required_flags  # type: ignore[attr-defined]

        async def call(apis: Apis) -> None:
            options.require(ctx.command.required_flags)  # type: ignore[attr-defined]
            check_batch_columns(options, flags, verb_name)
            rows = read_csv_rows(
                options.get_string("path"),
                options.get_string("delimiter") or ";",
                options.get_bool("skipHeader"),
            )
            threads = runtime.threads(options.get_int("batchThreads"), len(rows))

            def row_values(row: list[str]) -> ValueMap:
                values = batch_flags_to_map(options, flags, row, verb_name)
                values.require(required)
                return values

            async def worker(row: list[str]) -> Any:
                return await run_body(body, apis, row_values(row))

            on_failure = None
            if failure is not None:
                on_failure = lambda row, error: failure(row_values(row), error)  # noqa: E731

            sink = runtime.make_sink()
            try:
                dispatcher = BatchDispatcher(runtime.retrier, sink, threads, runtime.delay, runtime.sleep)
                await dispatcher.run(rows, worker, on_failure)
            finally:
                sink.close()

        runtime.run(call)

    command = FlagCommand("batch", callback=batch, help=f"Batch {verb_name} using a CSV file.")
    init_batch_command(parent, command, flags, get_all_flags(flags), BATCH_FLAGS)


def _add_recursive(
    parent: click.Command,
    flags: FlagSet,
    body: Body,
    recursive: bool | Driver,
    failure: Failure | None,
) -> None:
    verb_name = parent.name or ""

    @click.pass_context
    def recursive_command(ctx: click.Context, **_: Any) -> None:
        runtime = get_runtime(ctx)
        options = flags_to_map(ctx)

        async def call(apis: Apis) -> None:
            options.require(ctx.command.required_flags)  # type: ignore[attr-defined]
            run = RecursiveRun(runtime, apis, options, runtime.threads(options.get_int("batchThreads")))
            if callable(recursive):
                await recursive(run)
                return
            dispatcher = run.dispatcher()

            async def worker(file: dict[str, Any]) -> Any:
                return await run_body(body, apis, options.bind("fileId", file["id"]))

            on_failure = None
            if failure is not None:
                on_failure = lambda file, error: failure(options.bind("fileId", file["id"]), error)  # noqa: E731

            try:
                await dispatcher.run(run.files(), worker, on_failure, key=lambda f: f["id"])
            finally:
                dispatcher.sink.close()

        runtime.run(call)

    command = FlagCommand(
        "recursive",
        callback=recursive_command,
        help=f"Recursive {verb_name} on every file and folder below a folder.",
    )
    init_recursive_command(parent, command, flags, RECURSIVE_FILE_FLAGS)


def _add_user_recursive(
    parent: click.Command,
    flags: FlagSet,
    body: Body,
    user_flag: str,
    failure: Failure | None,
) -> None:
    verb_name = parent.name or ""

    @click.pass_context
    def recursive_command(ctx: click.Context, **_: Any) -> None:
        runtime = get_runtime(ctx)
        options = flags_to_map(ctx)

        async def call(apis: Apis) -> None:
            options.require(ctx.command.required_flags)  # type: ignore[attr-defined]
            org_units, group_emails = options.get_list("orgUnit"), options.get_list("groupEmail")
            if not org_units and not group_emails:
                raise ArgumentError("at least one of --orgUnit, --groupEmail must be set")
            threads = runtime.threads(options.get_int("batchThreads"))

            async def worker(user: str) -> Any:
                return await run_body(body, apis, options.bind(user_flag, user))

            on_failure = None
            if failure is not None:
                on_failure = lambda user, error: failure(options.bind(user_flag, user), error)  # noqa: E731

            sink = runtime.make_sink()
            try:
                dispatcher = BatchDispatcher(runtime.retrier, sink, threads, runtime.delay, runtime.sleep)
                users = unique_users_recursive(apis.directory, org_units, group_emails)
                await dispatcher.run(users, worker, on_failure)
            finally:
                sink.close()

        runtime.run(call)

    command = FlagCommand(
        "recursive",
        callback=recursive_command,
        help=f"Recursive {verb_name} for every user in organizational units and/or groups.",
    )
    init_recursive_command(parent, command, flags, RECURSIVE_USER_FLAGS)


def require_one(values: ValueMap, *names: str) -> str:
    """Return the single flag among ``names`` that is set.

    Raises:
        ArgumentError: Unless exactly one of them is set.
    """
    chosen = [n for n in names if values.is_set(n) and values.get_string(n)]
    if len(chosen) != 1:
        raise ArgumentError(f"exactly one of {', '.join('--' + n for n in names)} must be set")
    return chosen[0]


def deleted(*keys: str) -> Failure:
    """Failure formatter for delete verbs: ``{<key>: <value>, ..., "result": false}``."""

    def format_failure(values: ValueMap, error: AdminError) -> dict[str, Any]:
        record: dict[str, Any] = {key: values.get_string(key) for key in keys}
        record["result"] = False
        return record

    return format_failure
