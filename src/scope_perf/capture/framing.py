"""Length-prefixed record framing for capture files.

A capture file is a flat sequence of records, each a 4-byte unsigned
little-endian length followed by exactly that many payload bytes::

    file   := record*
    record := length:uint32_le payload[length]

End of input exactly at a record boundary is the only clean termination.
"""

from __future__ import annotations

import struct
from typing import BinaryIO

from scope_perf.capture.errors import TruncatedStream

LENGTH_PREFIX = struct.Struct("<I")

# upper bound on a single read; a corrupt length prefix must not size an allocation
READ_CHUNK_SIZE = 1 << 16


def _read_exact(source: BinaryIO, size: int) -> bytes:
    """Read up to ``size`` bytes, looping over short reads.

    Reads are capped at ``READ_CHUNK_SIZE`` so memory grows only with the
    bytes actually present in ``source``.
    """

    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = source.read(min(remaining, READ_CHUNK_SIZE))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class RecordFramer:
    """Pull-based reader of length-delimited payloads.

    Only one record is read at a time; the framer never buffers ahead of the
    payload it returns.

    Attributes
    ----------
    record_index : int
        Index of the next record to be framed.
    offset : int
        Byte offset (relative to where framing started) of the next length prefix.
    """

    def __init__(self, source: BinaryIO) -> None:
        self._source = source
        self.record_index = 0
        self.offset = 0

    def read_payload(self) -> bytes | None:
        """Return the next payload, or ``None`` on clean end of input.

        Raises
        ------
        TruncatedStream
            If input ends inside a length prefix or inside a payload.
        """

        start = self.offset
        header = _read_exact(self._source, LENGTH_PREFIX.size)
        if not header:
            return None
        if len(header) < LENGTH_PREFIX.size:
            raise TruncatedStream(self.record_index, start, LENGTH_PREFIX.size, len(header), what="length prefix")

        (length,) = LENGTH_PREFIX.unpack(header)
        payload = _read_exact(self._source, length)
        if len(payload) < length:
            raise TruncatedStream(self.record_index, start, length, len(payload))

        self.offset = start + LENGTH_PREFIX.size + length
        self.record_index += 1
        return payload


def write_record(sink: BinaryIO, payload: bytes) -> int:
    """Write one length-prefixed record and return the number of bytes written."""

    if len(payload) > 0xFFFF_FFFF:
        raise ValueError(f"payload too large for a uint32 length prefix: {len(payload)} bytes")
    sink.write(LENGTH_PREFIX.pack(len(payload)))
    sink.write(payload)
    return LENGTH_PREFIX.size + len(payload)
