"""JSON output to stdout.

Streamed output writes one compact JSON document per line as soon as a record
is produced (NDJSON). Aggregated output collects records and writes a single
JSON array when the sink is closed.
"""

import json
import sys
from typing import IO, Any


def dumps(obj: Any, compress: bool = False) -> str:
    """Serialize a record the way all output is serialized."""
    if compress:
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=str)
    return json.dumps(obj, ensure_ascii=False, indent=2, default=str)


def write_document(obj: Any, compress: bool = False, stream: IO[str] | None = None) -> None:
    """Write a single-mode result."""
    out = stream or sys.stdout
    out.write(dumps(obj, compress) + "\n")
    out.flush()


class OutputSink:
    """Destination for records produced by batch and recursive commands."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self.stream = stream or sys.stdout
        self.count = 0

    def write(self, record: Any) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Flush whatever is pending."""
        self.stream.flush()

    def __enter__(self) -> "OutputSink":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class StreamSink(OutputSink):
    """Writes each record as one compact line."""

    def write(self, record: Any) -> None:
        self.stream.write(dumps(record, compress=True) + "\n")
        self.stream.flush()
        self.count += 1


class AggregateSink(OutputSink):
    """Collects records and writes them as one JSON array on close."""

    def __init__(self, stream: IO[str] | None = None, compress: bool = False) -> None:
        super().__init__(stream)
        self.compress = compress
        self.records: list[Any] = []
        self._closed = False

    def write(self, record: Any) -> None:
        self.records.append(record)
        self.count += 1

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.stream.write(dumps(self.records, self.compress) + "\n")
        super().close()


def make_sink(stream: bool, compress: bool, out: IO[str] | None = None) -> OutputSink:
    """Pick the sink for this invocation."""
    if stream:
        return StreamSink(out)
    return AggregateSink(out, compress=compress)
