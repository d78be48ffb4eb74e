"""Error types raised while reading scope capture files.

Classes
-------
ScopePerfError
    Base class for every error raised by ``scope_perf``.
OpenError
    The capture file could not be opened.
TruncatedStream
    A length prefix or payload was cut short by end of input.
MalformedRecord
    A framed payload does not decode to a scope record.
ReadFailed
    The underlying source failed while a record was being read.
StreamClosed
    A stream was used after ``close()``.
EmptySelection
    A requested scope tag has no records in the capture.
"""

from __future__ import annotations


class ScopePerfError(RuntimeError):
    """Base class for errors raised by ``scope_perf``."""


class OpenError(ScopePerfError):
    """Raised when a capture source cannot be accessed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot open capture file {path!r}: {reason}")
        self.path = path
        self.reason = reason


class TruncatedStream(ScopePerfError):
    """Raised when input ends in the middle of a length prefix or a payload.

    Parameters
    ----------
    record_index : int
        Zero-based index of the record being framed.
    offset : int
        Byte offset of the record's length prefix.
    expected : int
        Number of bytes that were required.
    got : int
        Number of bytes that were actually available.
    """

    def __init__(self, record_index: int, offset: int, expected: int, got: int, *, what: str = "payload") -> None:
        super().__init__(
            f"Truncated {what} in record #{record_index} at byte offset {offset}: "
            f"expected {expected} bytes, got {got}"
        )
        self.record_index = record_index
        self.offset = offset
        self.expected = expected
        self.got = got


class MalformedRecord(ScopePerfError):
    """Raised when a payload cannot be decoded into a ``ScopeRecord``."""

    def __init__(self, reason: str, *, record_index: int | None = None, offset: int | None = None) -> None:
        where = []
        if record_index is not None:
            where.append(f"record #{record_index}")
        if offset is not None:
            where.append(f"byte offset {offset}")
        prefix = f"Malformed {' at '.join(where)}: " if where else "Malformed record: "
        super().__init__(prefix + reason)
        self.reason = reason
        self.record_index = record_index
        self.offset = offset

    def at(self, record_index: int, offset: int) -> "MalformedRecord":
        """Return a copy of this error annotated with the record position."""

        return MalformedRecord(self.reason, record_index=record_index, offset=offset)


class ReadFailed(ScopePerfError):
    """Raised when the capture source reports an I/O error mid-stream."""

    def __init__(self, name: str, record_index: int, offset: int, reason: str) -> None:
        super().__init__(f"Read error in {name} at record #{record_index}, byte offset {offset}: {reason}")
        self.name = name
        self.record_index = record_index
        self.offset = offset
        self.reason = reason


class StreamClosed(ScopePerfError):
    """Raised when reading from a stream that has already been closed."""


class EmptySelection(ScopePerfError):
    """Raised by report callers when a requested scope has no entries."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"No entries found for scope {tag}")
        self.tag = tag
