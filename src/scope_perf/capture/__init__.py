"""Capture file reading: framing, payload codec and record streams."""

from __future__ import annotations

from .codec import decode_scope, encode_scope
from .errors import (
    EmptySelection,
    MalformedRecord,
    OpenError,
    ReadFailed,
    ScopePerfError,
    StreamClosed,
    TruncatedStream,
)
from .framing import RecordFramer, write_record
from .stream import ScopeStream, open_stream, read_capture, write_capture

__all__ = [
    "decode_scope",
    "encode_scope",
    "RecordFramer",
    "write_record",
    "ScopeStream",
    "open_stream",
    "read_capture",
    "write_capture",
    "ScopePerfError",
    "OpenError",
    "TruncatedStream",
    "MalformedRecord",
    "ReadFailed",
    "StreamClosed",
    "EmptySelection",
]
