from __future__ import annotations

import errno
import io
from pathlib import Path

import pytest

from scope_perf.capture.codec import encode_scope
from scope_perf.capture.errors import (
    MalformedRecord,
    OpenError,
    ReadFailed,
    ScopePerfError,
    StreamClosed,
    TruncatedStream,
)
from scope_perf.capture.framing import write_record
from scope_perf.capture.stream import ScopeStream, open_stream, read_capture, write_capture
from scope_perf.data.models import MetadataEntry, ScopeRecord


def _scope(tag: str, start: int = 0, end: int = 500, freq: int = 1000) -> ScopeRecord:
    return ScopeRecord(
        tag=tag,
        ticks_start=start,
        ticks_end=end,
        machine_nominal_freq_hz=freq,
    )


def test_write_then_read_capture(tmp_path: Path) -> None:
    path = tmp_path / "capture.bin"
    records = [
        _scope("a"),
        _scope("b", 100, 400),
        ScopeRecord(
            tag="c",
            ticks_start=1,
            ticks_end=2,
            machine_nominal_freq_hz=0,
            max_offset=1,
            metadata=[MetadataEntry(tag="n", type=8, value=12)],
        ),
    ]
    assert write_capture(path, records) == 3

    assert read_capture(path) == records


def test_end_of_stream_is_sticky(tmp_path: Path) -> None:
    path = tmp_path / "one.bin"
    write_capture(path, [_scope("a")])

    with open_stream(path) as stream:
        assert stream.next_record() is not None
        assert stream.next_record() is None
        assert stream.next_record() is None
        assert stream.records_read == 1


def test_empty_file_yields_nothing(tmp_path: Path) -> None:
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    with open_stream(path) as stream:
        assert list(stream) == []


def test_truncated_record_is_reported_and_repeated(tmp_path: Path) -> None:
    path = tmp_path / "trunc.bin"
    write_capture(path, [_scope("a"), _scope("b")])
    data = path.read_bytes()
    path.write_bytes(data[:-3])

    with open_stream(path) as stream:
        assert stream.next_record().tag == "a"
        with pytest.raises(TruncatedStream) as first:
            stream.next_record()
        with pytest.raises(TruncatedStream) as second:
            stream.next_record()
    assert first.value is second.value
    assert first.value.record_index == 1


def test_truncated_length_prefix_is_not_clean_eof(tmp_path: Path) -> None:
    path = tmp_path / "prefix.bin"
    write_capture(path, [_scope("a")])
    with open(path, "ab") as f:
        f.write(b"\x10")

    with pytest.raises(TruncatedStream):
        read_capture(path)


def test_malformed_record_carries_index_and_offset(tmp_path: Path) -> None:
    path = tmp_path / "bad.bin"
    good = encode_scope(_scope("a"))
    with open(path, "wb") as f:
        write_record(f, good)
        write_record(f, good)
        write_record(f, b"\xff\xff\xff\xff")

    with open_stream(path) as stream:
        assert stream.next_record().tag == "a"
        assert stream.next_record().tag == "a"
        with pytest.raises(MalformedRecord) as excinfo:
            stream.next_record()
        with pytest.raises(MalformedRecord):
            stream.next_record()

    assert excinfo.value.record_index == 2
    assert excinfo.value.offset == 2 * (4 + len(good))
    assert "record #2" in str(excinfo.value)


def test_closed_stream_refuses_reads(tmp_path: Path) -> None:
    path = tmp_path / "c.bin"
    write_capture(path, [_scope("a")])
    stream = open_stream(path)
    stream.close()
    stream.close()

    assert stream.closed
    with pytest.raises(StreamClosed):
        stream.next_record()


def test_context_manager_closes_on_error(tmp_path: Path) -> None:
    path = tmp_path / "err.bin"
    path.write_bytes(b"\x01\x00")
    with pytest.raises(TruncatedStream):
        with open_stream(path) as stream:
            stream.next_record()
    assert stream.closed


def test_open_missing_file_raises_open_error(tmp_path: Path) -> None:
    with pytest.raises(OpenError) as excinfo:
        open_stream(tmp_path / "nope.bin")
    assert "nope.bin" in str(excinfo.value)


def test_open_directory_raises_open_error(tmp_path: Path) -> None:
    with pytest.raises(OpenError):
        open_stream(tmp_path)


def test_record_without_explicit_elapsed_survives_write_and_read(tmp_path: Path) -> None:
    path = tmp_path / "derived.bin"
    record = ScopeRecord(tag="a", ticks_start=0, ticks_end=1000, machine_nominal_freq_hz=1000)
    write_capture(path, [record])

    (decoded,) = read_capture(path)
    assert decoded == record
    assert decoded.elapsed_seconds == 1.0


class _FailingSource(io.RawIOBase):
    """Serves ``data`` once, then fails every read with EIO."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0
        self.failures = 0

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        if self._pos >= len(self._data) and self.failures == 0:
            self.failures += 1
            raise OSError(errno.EIO, "Input/output error")
        chunk = self._data[self._pos : self._pos + size]
        self._pos += len(chunk)
        return chunk


def test_io_error_is_terminal_and_repeated() -> None:
    good = encode_scope(_scope("a"))
    buf = io.BytesIO()
    write_record(buf, good)
    source = _FailingSource(buf.getvalue())

    stream = ScopeStream(source, name="flaky")
    assert stream.next_record().tag == "a"
    with pytest.raises(ReadFailed) as first:
        stream.next_record()
    with pytest.raises(ReadFailed) as second:
        stream.next_record()

    assert first.value is second.value
    assert isinstance(first.value, ScopePerfError)
    assert first.value.record_index == 1
    assert first.value.offset == 4 + len(good)
    assert "flaky" in str(first.value)
    stream.close()
