"""Streaming access to scope capture files.

``ScopeStream`` composes ``RecordFramer`` and ``decode_scope`` into a lazy,
single-pass sequence of ``ScopeRecord`` objects. A stream owns its file
handle until ``close()``; use it as a context manager so the handle is
released on every exit path::

    with open_stream("capture.bin") as stream:
        for record in stream:
            ...

A stream is not thread-safe; one owner reads it from one thread.

Functions
---------
open_stream
    Open a capture file as a ``ScopeStream``.
read_capture
    Read a whole capture file into a list.
write_capture
    Write records as a capture file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator

from scope_perf.capture.codec import decode_scope, encode_scope
from scope_perf.capture.errors import MalformedRecord, OpenError, ReadFailed, ScopePerfError, StreamClosed
from scope_perf.capture.framing import RecordFramer, write_record
from scope_perf.data.models import ScopeRecord

logger = logging.getLogger(__name__)


class ScopeStream:
    """Cursor over the records of one capture source.

    Once ``next_record`` has returned ``None`` (end of stream) or raised an
    error, later calls return the same terminal result until ``close``.
    """

    def __init__(self, source: BinaryIO, *, name: str = "<stream>") -> None:
        self._source = source
        self._framer = RecordFramer(source)
        self._name = name
        self._closed = False
        self._exhausted = False
        self._error: ScopePerfError | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def records_read(self) -> int:
        return self._framer.record_index

    def next_record(self) -> ScopeRecord | None:
        """Return the next record, or ``None`` at end of stream.

        Raises
        ------
        StreamClosed
            If the stream has been closed.
        TruncatedStream
            If the file ends inside a record.
        MalformedRecord
            If a payload does not decode; the error carries the record index
            and byte offset.
        ReadFailed
            If the underlying source raises ``OSError``.
        """

        if self._closed:
            raise StreamClosed(f"Scope stream {self._name} is closed")
        if self._error is not None:
            raise self._error
        if self._exhausted:
            return None

        index, offset = self._framer.record_index, self._framer.offset
        try:
            payload = self._framer.read_payload()
            if payload is None:
                self._exhausted = True
                logger.debug("End of %s after %d records", self._name, index)
                return None
            return decode_scope(payload)
        except MalformedRecord as exc:
            self._error = exc.at(index, offset)
            raise self._error from exc
        except ScopePerfError as exc:
            self._error = exc
            raise
        except OSError as exc:
            self._error = ReadFailed(self._name, index, offset, exc.strerror or str(exc))
            raise self._error from exc

    def __iter__(self) -> Iterator[ScopeRecord]:
        return self

    def __next__(self) -> ScopeRecord:
        record = self.next_record()
        if record is None:
            raise StopIteration
        return record

    def close(self) -> None:
        """Release the underlying source. Safe to call more than once."""

        if not self._closed:
            self._closed = True
            self._source.close()

    def __enter__(self) -> "ScopeStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_stream(path: str | Path) -> ScopeStream:
    """Open ``path`` for sequential reading.

    Raises
    ------
    OpenError
        If the file is missing, unreadable or not a regular file.
    """

    p = Path(path)
    try:
        f = open(p, "rb")
    except OSError as exc:
        raise OpenError(str(p), exc.strerror or str(exc)) from exc
    logger.debug("Opened capture %s", p)
    return ScopeStream(f, name=str(p))


def read_capture(path: str | Path) -> list[ScopeRecord]:
    """Read every record in ``path`` and return them in file order."""

    with open_stream(path) as stream:
        return list(stream)


def write_capture(path: str | Path, records: Iterable[ScopeRecord]) -> int:
    """Write ``records`` to ``path`` as a capture file; return the record count."""

    count = 0
    with open(path, "wb") as f:
        for record in records:
            write_record(f, encode_scope(record))
            count += 1
    return count
