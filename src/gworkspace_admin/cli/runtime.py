"""Per-invocation state shared by all commands.

The root group stores a Runtime in ``ctx.obj``. It resolves the configuration
lazily (so ``configs`` commands work without one), builds the token provider,
the HTTP client, the Retrier and the output sink, and runs command bodies on
an event loop while translating AdminError into click's exit codes.
"""

import asyncio
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, TypeVar

import click
import httpx

from gworkspace_admin.api import (
    CalendarApi,
    CloudIdentityApi,
    DirectoryApi,
    DriveApi,
    GmailApi,
    GroupsSettingsApi,
    LicensingApi,
    ReportsApi,
)
from gworkspace_admin.auth import (
    DelegatedTokenProvider,
    OAuthManager,
    TokenProvider,
    TokenStorage,
    UserTokenProvider,
    load_client_secrets,
)
from gworkspace_admin.cli.logs import add_log_file
from gworkspace_admin.config import (
    DEFAULT_DELAY_MS,
    DEFAULT_THREADS,
    AdminConfig,
    load_config,
    token_path,
)
from gworkspace_admin.dispatcher import max_threads
from gworkspace_admin.errors import AdminError, ArgumentError, ConfigError
from gworkspace_admin.output import OutputSink, make_sink, write_document
from gworkspace_admin.retrier import Retrier, RetryPolicy
from gworkspace_admin.transport import ApiClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Apis:
    """All API adapters bound to one ApiClient.

    Attributes:
        default_threads: Worker count from the configuration, used when a
            command's thread flag is unset.
    """

    client: ApiClient
    drive: DriveApi
    directory: DirectoryApi
    calendar: CalendarApi
    gmail: GmailApi
    reports: ReportsApi
    cloud_identity: CloudIdentityApi
    licensing: LicensingApi
    groups_settings: GroupsSettingsApi
    default_threads: int = DEFAULT_THREADS

    @classmethod
    def from_client(cls, client: ApiClient, default_threads: int = DEFAULT_THREADS) -> "Apis":
        return cls(
            client=client,
            drive=DriveApi(client),
            directory=DirectoryApi(client),
            calendar=CalendarApi(client),
            gmail=GmailApi(client),
            reports=ReportsApi(client),
            cloud_identity=CloudIdentityApi(client),
            licensing=LicensingApi(client),
            groups_settings=GroupsSettingsApi(client),
            default_threads=default_threads,
        )


class Runtime:
    """Global options and lazily created services for one invocation.

    Attributes:
        config_name: Name (or path) passed with ``--config``.
        dwd_subject: Subject override for delegated mode.
        compress: Compact JSON output.
        stream: One JSON document per line as results arrive.
        delay_ms: Post-call delay override in milliseconds.
        retry_on: Extra HTTP status codes to retry.
    """

    def __init__(
        self,
        config_name: str | None = None,
        dwd_subject: str | None = None,
        compress: bool = False,
        stream: bool = False,
        delay_ms: int | None = None,
        retry_on: Iterable[int] = (),
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        out: IO[str] | None = None,
    ) -> None:
        self.config_name = config_name
        self.dwd_subject = dwd_subject
        self.compress = compress
        self.stream = stream
        self.delay_ms = delay_ms
        self.retry_on = list(retry_on)
        self.sleep = sleep
        self._out = out
        self._token_provider = token_provider
        self._transport = transport
        self._loaded: tuple[Path, AdminConfig] | None = None

    @property
    def out(self) -> IO[str]:
        return self._out or sys.stdout

    def load(self) -> tuple[Path, AdminConfig]:
        """Resolve the configuration file once."""
        if self._loaded is None:
            self._loaded = load_config(self.config_name)
            if self._loaded[1].log_file:
                add_log_file(self._loaded[1].log_file)
            logger.debug(f"Using configuration {self._loaded[0]}")
        return self._loaded

    @property
    def config(self) -> AdminConfig | None:
        """The configuration, or None when services were injected and none exists."""
        if self._token_provider is not None and self._loaded is None:
            try:
                return self.load()[1]
            except ConfigError:
                return None
        return self.load()[1]

    def token_provider(self) -> TokenProvider:
        if self._token_provider is not None:
            return self._token_provider
        path, config = self.load()
        credentials_file = Path(config.credentials_file).expanduser()
        if not credentials_file.is_absolute():
            credentials_file = path.parent / credentials_file
        if config.mode == "dwd":
            subject = self.dwd_subject or config.subject or ""
            self._token_provider = DelegatedTokenProvider(credentials_file, subject, config.scopes)
        else:
            client_id, client_secret = load_client_secrets(credentials_file)
            manager = OAuthManager(TokenStorage(token_path(path, config)), config.name)
            self._token_provider = UserTokenProvider(manager, client_id, client_secret)
        return self._token_provider

    @property
    def retrier(self) -> Retrier:
        codes = set(self.retry_on)
        config = self.config
        if config is not None:
            codes.update(config.retry_on)
        return Retrier(RetryPolicy.with_codes(codes), sleep=self.sleep)

    @property
    def delay(self) -> float:
        """Post-call delay in seconds for batch and recursive workers."""
        if self.delay_ms is not None:
            return max(self.delay_ms, 0) / 1000
        config = self.config
        return (config.standard_delay if config else DEFAULT_DELAY_MS) / 1000

    def threads(self, requested: int, rows: int | None = None) -> int:
        config = self.config
        default = config.threads if config else DEFAULT_THREADS
        return max_threads(requested, rows, default=default)

    def make_sink(self) -> OutputSink:
        return make_sink(self.stream, self.compress or self.stream, self.out)

    def write(self, result: Any) -> None:
        """Write a single-mode result; lists honour ``--streamOutput``."""
        if result is None:
            return
        if isinstance(result, list) and self.stream:
            sink = self.make_sink()
            for record in result:
                sink.write(record)
            sink.close()
            return
        write_document(result, self.compress or self.stream, self.out)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Apis]:
        """Open an ApiClient for the duration of a command."""
        client = ApiClient(self.token_provider(), transport=self._transport)
        config = self.config
        try:
            yield Apis.from_client(client, config.threads if config else DEFAULT_THREADS)
        finally:
            await client.close()

    def run(self, func: Callable[[Apis], Awaitable[T]]) -> T:
        """Run ``func`` with a session on a fresh event loop."""

        async def runner() -> T:
            async with self.session() as apis:
                return await func(apis)

        return run_async(runner())


def run_async(coro: Awaitable[T]) -> T:
    """Run a coroutine, mapping AdminError to click exceptions.

    ArgumentError becomes a usage error (exit 2); every other AdminError
    exits with 1.
    """
    try:
        return asyncio.run(_await(coro))
    except ArgumentError as e:
        raise click.UsageError(str(e)) from e
    except AdminError as e:
        raise click.ClickException(str(e)) from e


async def _await(coro: Awaitable[T]) -> T:
    return await coro


def get_runtime(ctx: click.Context) -> Runtime:
    runtime = ctx.find_object(Runtime)
    if runtime is None:
        runtime = Runtime()
        ctx.obj = runtime
    return runtime
