"""Bounded worker pool for batch and recursive commands.

Items (CSV rows or traversed Drive files) flow through three stages::

    producer --inputs(maxsize=threads)--> workers --results(maxsize=threads)--> sink

Each worker runs the verb body for one item under the shared Retrier and then
sleeps for the configured delay. Failures of single items are logged and
skipped; they never abort the run. SIGINT stops the producer, lets in-flight
requests finish and still writes whatever was collected.
"""

import asyncio
import csv
import logging
import signal
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from gworkspace_admin.config import DEFAULT_THREADS, THREAD_CAP
from gworkspace_admin.errors import AdminError, ArgumentError
from gworkspace_admin.output import OutputSink
from gworkspace_admin.retrier import Retrier

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DONE = object()


@dataclass
class DispatchStats:
    """Counters for one run.

    Attributes:
        items: Items taken from the input.
        succeeded: Items whose worker returned normally.
        failed: Items whose request failed after retries.
        skipped: Items rejected before any request (bad input) or after cancellation.
    """

    items: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0


def read_csv_rows(path: str | Path, delimiter: str = ";", skip_header: bool = False) -> list[list[str]]:
    """Read every row of a CSV file up front.

    Blank lines are ignored. A UTF-8 byte order mark is tolerated.

    Raises:
        ArgumentError: If the delimiter is not a single character or the file
            is not valid CSV.
        AdminError: If the file cannot be opened.
    """
    if len(delimiter) != 1:
        raise ArgumentError(f"--delimiter must be exactly one character (got {delimiter!r})")
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            rows = [row for row in csv.reader(f, delimiter=delimiter) if row]
    except OSError as e:
        raise AdminError(f"cannot read {path}: {e}") from e
    except (csv.Error, UnicodeDecodeError) as e:
        raise ArgumentError(f"{path} is not a valid CSV file: {e}") from e
    if skip_header and rows:
        rows = rows[1:]
    logger.debug(f"Read {len(rows)} row(s) from {path}")
    return rows


def max_threads(
    requested: int,
    rows: int | None = None,
    default: int = DEFAULT_THREADS,
    cap: int = THREAD_CAP,
) -> int:
    """Effective worker count.

    A request of 0 or less means ``default``. The result never exceeds ``cap``
    or the number of rows and is always at least 1.
    """
    threads = requested if requested > 0 else default
    threads = min(threads, cap)
    if rows is not None:
        threads = min(threads, rows)
    return max(threads, 1)


def describe(item: Any) -> str:
    """Short identifier of an item for log messages."""
    if isinstance(item, dict):
        return str(item.get("id") or item.get("name") or item)
    if isinstance(item, (list, tuple)):
        return ";".join(str(cell) for cell in item)[:120]
    return str(item)


async def _iterate(items: Iterable[T] | AsyncIterable[T]) -> AsyncIterator[T]:
    if isinstance(items, AsyncIterable):
        async for item in items:
            yield item
    else:
        for item in items:
            yield item


class BatchDispatcher(Generic[T]):
    """Runs a worker over many items with bounded parallelism.

    Example:
        ```python
        dispatcher = BatchDispatcher(retrier, sink, threads=4, delay=0.2)
        stats = await dispatcher.run(rows, delete_row, failure=delete_failed)
        ```
    """

    def __init__(
        self,
        retrier: Retrier,
        sink: OutputSink,
        threads: int,
        delay: float = 0.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.retrier = retrier
        self.sink = sink
        self.threads = max(threads, 1)
        self.delay = delay
        self._sleep = sleep
        self._cancel = asyncio.Event()

    def cancel(self) -> None:
        """Stop taking new items; in-flight items complete."""
        if not self._cancel.is_set():
            logger.warning("Interrupted, finishing in-flight requests")
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def _install_interrupt_handler(self) -> bool:
        try:
            asyncio.get_running_loop().add_signal_handler(signal.SIGINT, self.cancel)
        except (NotImplementedError, RuntimeError) as e:
            logger.debug(f"SIGINT handler not installed: {e}")
            return False
        return True

    async def run(
        self,
        items: Iterable[T] | AsyncIterable[T],
        worker: Callable[[T], Awaitable[Any]],
        failure: Callable[[T, AdminError], Any] | None = None,
        key: Callable[[T], str] = describe,
    ) -> DispatchStats:
        """Process all items.

        Args:
            items: Rows or records to process; sync or async iterable.
            worker: Coroutine function issuing the request(s) for one item and
                returning the record to output (None for no output).
            failure: Optional formatter turning a failed item into an output record.
            key: Function naming an item in log messages.

        Returns:
            DispatchStats for the run.
        """
        stats = DispatchStats()
        inputs: asyncio.Queue = asyncio.Queue(maxsize=self.threads)
        results: asyncio.Queue = asyncio.Queue(maxsize=self.threads)

        async def produce() -> None:
            try:
                async for item in _iterate(items):
                    if self._cancel.is_set():
                        break
                    await inputs.put(item)
            finally:
                closer = getattr(items, "aclose", None)
                if closer is not None:
                    await closer()
            for _ in range(self.threads):
                await inputs.put(_DONE)

        async def work() -> None:
            while True:
                item = await inputs.get()
                if item is _DONE:
                    await results.put(_DONE)
                    return
                stats.items += 1
                if self._cancel.is_set():
                    stats.skipped += 1
                    continue
                name = key(item)
                try:
                    record = await self.retrier.call(lambda: worker(item), key=name)
                except ArgumentError as e:
                    logger.error(f"{name}: {e}")
                    stats.skipped += 1
                    continue
                except Exception as e:
                    error = e if isinstance(e, AdminError) else AdminError(f"{type(e).__name__}: {e}")
                    logger.error(f"{name}: {error}")
                    stats.failed += 1
                    record = failure(item, error) if failure is not None else None
                else:
                    stats.succeeded += 1
                if record is not None:
                    await results.put(record)
                if self.delay > 0:
                    await self._sleep(self.delay)

        async def collect() -> None:
            finished = 0
            while finished < self.threads:
                record = await results.get()
                if record is _DONE:
                    finished += 1
                    continue
                try:
                    self.sink.write(record)
                except OSError as e:
                    raise AdminError(f"cannot write output: {e}") from e

        handler = self._install_interrupt_handler()
        tasks = [
            asyncio.create_task(produce()),
            *(asyncio.create_task(work()) for _ in range(self.threads)),
            asyncio.create_task(collect()),
        ]
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            if handler:
                asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)

        logger.info(
            f"Processed {stats.items} item(s): {stats.succeeded} succeeded, "
            f"{stats.failed} failed, {stats.skipped} skipped"
        )
        return stats
