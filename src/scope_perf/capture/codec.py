"""FlatBuffers codec for ``RSP.ScopeInfo`` payloads.

Each framed payload is a FlatBuffers buffer whose root table is
``RSP.ScopeInfo``. Field slots mirror the profiler's schema::

    table MetadataEntry { tag: string; type: MetadataType (ubyte); value: ulong; }
    table ScopeInfo {
      tag: string; ticks_start: ulong; ticks_end: ulong;
      machine_nominal_freq_hz: ulong; max_buffer_size: ulong;
      max_offset: ubyte; metadata: [MetadataEntry];
    }

Reads go through ``flatbuffers.table.Table`` after every offset has been
bounds-checked against the payload, so a corrupt payload raises
``MalformedRecord`` instead of returning garbage or an out-of-range slice.

Functions
---------
decode_scope
    Decode one payload into a ``ScopeRecord``.
encode_scope
    Serialize a ``ScopeRecord`` into a payload (producer side and tests).
"""

from __future__ import annotations

import flatbuffers
from flatbuffers import encode
from flatbuffers import number_types as N
from flatbuffers.table import Table

from scope_perf.capture.errors import MalformedRecord
from scope_perf.data.models import MetadataEntry, ScopeRecord, elapsed_seconds_from_ticks

# vtable slot offsets (4 + 2 * field index)
_SCOPE_TAG = 4
_SCOPE_TICKS_START = 6
_SCOPE_TICKS_END = 8
_SCOPE_FREQ = 10
_SCOPE_MAX_BUFFER_SIZE = 12
_SCOPE_MAX_OFFSET = 14
_SCOPE_METADATA = 16

_META_TAG = 4
_META_TYPE = 6
_META_VALUE = 8

_UOFFSET = N.UOffsetTFlags.bytewidth


def _need(buf: bytes, pos: int, size: int, what: str) -> None:
    if pos < 0 or size < 0 or pos + size > len(buf):
        raise MalformedRecord(f"{what} out of bounds (offset {pos}, size {size}, payload is {len(buf)} bytes)")


def _table_at(buf: bytes, pos: int, what: str) -> Table:
    """Return a ``Table`` at ``pos`` after validating its vtable."""

    _need(buf, pos, N.SOffsetTFlags.bytewidth, what)
    vtable = pos - encode.Get(N.SOffsetTFlags.packer_type, buf, pos)
    _need(buf, vtable, 2 * N.VOffsetTFlags.bytewidth, f"{what} vtable")
    vtable_len = encode.Get(N.VOffsetTFlags.packer_type, buf, vtable)
    if vtable_len < 4 or vtable_len % 2:
        raise MalformedRecord(f"{what} vtable has invalid length {vtable_len} at offset {vtable}")
    _need(buf, vtable, vtable_len, f"{what} vtable")
    object_len = encode.Get(N.VOffsetTFlags.packer_type, buf, vtable + 2)
    _need(buf, pos, object_len, what)
    return Table(buf, pos)


def _scalar(tab: Table, slot: int, flags, what: str) -> int:
    o = tab.Offset(slot)
    if not o:
        return 0
    _need(tab.Bytes, tab.Pos + o, flags.bytewidth, what)
    return int(tab.Get(flags, tab.Pos + o))


def _string(tab: Table, slot: int, what: str) -> str:
    o = tab.Offset(slot)
    if not o:
        return ""
    buf = tab.Bytes
    field_pos = tab.Pos + o
    _need(buf, field_pos, _UOFFSET, what)
    str_pos = field_pos + encode.Get(N.UOffsetTFlags.packer_type, buf, field_pos)
    _need(buf, str_pos, _UOFFSET, what)
    length = encode.Get(N.UOffsetTFlags.packer_type, buf, str_pos)
    _need(buf, str_pos + _UOFFSET, length, what)
    try:
        return tab.String(field_pos).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedRecord(f"{what} is not valid UTF-8 (offset {str_pos}): {exc.reason}") from exc


def _tables(tab: Table, slot: int, what: str) -> list[Table]:
    o = tab.Offset(slot)
    if not o:
        return []
    buf = tab.Bytes
    field_pos = tab.Pos + o
    _need(buf, field_pos, _UOFFSET, what)
    vec_pos = field_pos + encode.Get(N.UOffsetTFlags.packer_type, buf, field_pos)
    _need(buf, vec_pos, _UOFFSET, what)
    count = tab.VectorLen(o)
    _need(buf, vec_pos + _UOFFSET, count * _UOFFSET, what)
    start = tab.Vector(o)
    out: list[Table] = []
    for i in range(count):
        elem = start + i * _UOFFSET
        out.append(_table_at(buf, tab.Indirect(elem), f"{what}[{i}]"))
    return out


def _decode_metadata(entry: Table, index: int) -> MetadataEntry:
    what = f"metadata[{index}]"
    return MetadataEntry(
        tag=_string(entry, _META_TAG, f"{what}.tag"),
        type=_scalar(entry, _META_TYPE, N.Uint8Flags, f"{what}.type"),
        value=_scalar(entry, _META_VALUE, N.Uint64Flags, f"{what}.value"),
    )


def decode_scope(payload: bytes) -> ScopeRecord:
    """Decode one framed payload into a ``ScopeRecord``.

    Decoding is pure: the same bytes always yield an equal record. A metadata
    entry that fails to decode fails the whole record.

    Parameters
    ----------
    payload : bytes
        One record payload as returned by ``RecordFramer.read_payload``.

    Returns
    -------
    ScopeRecord
        Decoded record with ``elapsed_seconds`` derived from the tick bounds.

    Raises
    ------
    MalformedRecord
        If any offset, string or vector in the payload is invalid.
    """

    buf = bytes(payload)
    if len(buf) < _UOFFSET:
        raise MalformedRecord(f"payload of {len(buf)} bytes is too short for a root offset")
    root = _table_at(buf, encode.Get(N.UOffsetTFlags.packer_type, buf, 0), "ScopeInfo")

    tag = _string(root, _SCOPE_TAG, "tag")
    ticks_start = _scalar(root, _SCOPE_TICKS_START, N.Uint64Flags, "ticks_start")
    ticks_end = _scalar(root, _SCOPE_TICKS_END, N.Uint64Flags, "ticks_end")
    freq = _scalar(root, _SCOPE_FREQ, N.Uint64Flags, "machine_nominal_freq_hz")
    metadata = [_decode_metadata(t, i) for i, t in enumerate(_tables(root, _SCOPE_METADATA, "metadata"))]

    return ScopeRecord(
        tag=tag,
        ticks_start=ticks_start,
        ticks_end=ticks_end,
        machine_nominal_freq_hz=freq,
        max_buffer_size=_scalar(root, _SCOPE_MAX_BUFFER_SIZE, N.Uint64Flags, "max_buffer_size"),
        max_offset=_scalar(root, _SCOPE_MAX_OFFSET, N.Uint8Flags, "max_offset"),
        metadata=metadata,
        elapsed_seconds=elapsed_seconds_from_ticks(ticks_start, ticks_end, freq),
    )


def encode_scope(record: ScopeRecord) -> bytes:
    """Serialize ``record`` as an ``RSP.ScopeInfo`` FlatBuffers payload.

    ``elapsed_seconds`` is derived data and is not written.
    """

    builder = flatbuffers.Builder(256)
    tag = builder.CreateString(record.tag)

    entries = []
    for m in record.metadata:
        m_tag = builder.CreateString(m.tag)
        builder.StartObject(3)
        builder.PrependUOffsetTRelativeSlot(0, m_tag, 0)
        builder.PrependUint8Slot(1, int(m.type), 0)
        builder.PrependUint64Slot(2, m.value, 0)
        entries.append(builder.EndObject())

    builder.StartVector(_UOFFSET, len(entries), _UOFFSET)
    for e in reversed(entries):
        builder.PrependUOffsetTRelative(e)
    metadata = builder.EndVector()

    builder.StartObject(7)
    builder.PrependUOffsetTRelativeSlot(0, tag, 0)
    builder.PrependUint64Slot(1, record.ticks_start, 0)
    builder.PrependUint64Slot(2, record.ticks_end, 0)
    builder.PrependUint64Slot(3, record.machine_nominal_freq_hz, 0)
    builder.PrependUint64Slot(4, record.max_buffer_size, 0)
    builder.PrependUint8Slot(5, record.max_offset, 0)
    builder.PrependUOffsetTRelativeSlot(6, metadata, 0)
    builder.Finish(builder.EndObject())
    return bytes(builder.Output())
