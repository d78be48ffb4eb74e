"""Domain data models for scope captures.

This module defines `attrs`-based data models for decoded capture records.
They are internal representations and may be converted to plain
dictionaries using the shared `cattrs` converter (see
`scope_perf.contracts.convert`).

Classes
-------
MetadataType
    Type codes used by the profiler for metadata payloads.
MetadataEntry
    Tagged scalar attached to a scope.
ScopeRecord
    One timed execution region.
PercentileSummary
    p50/p95/p99 triple for one scope tag.
"""

from __future__ import annotations

import struct
from enum import IntEnum

from attrs import Attribute, Factory, define, field
from attrs.validators import instance_of


class MetadataType(IntEnum):
    """Metadata type codes as written by the capturing profiler."""

    UNSET = 0
    INT8 = 1
    UINT8 = 2
    INT16 = 3
    UINT16 = 4
    INT32 = 5
    UINT32 = 6
    INT64 = 7
    UINT64 = 8
    DOUBLE = 9
    FLOAT = 10


# struct format used to reinterpret the low bytes of a metadata value
_VALUE_FORMATS: dict[MetadataType, str] = {
    MetadataType.INT8: "<b",
    MetadataType.UINT8: "<B",
    MetadataType.INT16: "<h",
    MetadataType.UINT16: "<H",
    MetadataType.INT32: "<i",
    MetadataType.UINT32: "<I",
    MetadataType.INT64: "<q",
    MetadataType.UINT64: "<Q",
    MetadataType.DOUBLE: "<d",
    MetadataType.FLOAT: "<f",
}


def _validate_uint(bits: int):
    limit = (1 << bits) - 1

    def _check(_instance: object, attribute: Attribute[int], value: int) -> None:
        if value < 0 or value > limit:
            raise ValueError(f"{attribute.name} must fit in uint{bits}, got {value!r}")

    return _check


def metadata_type_name(code: int) -> str:
    """Return the display name for a metadata type code (``UNKNOWN`` if unmapped)."""

    try:
        return MetadataType(code).name
    except ValueError:
        return "UNKNOWN"


@define(kw_only=True, frozen=True)
class MetadataEntry:
    """Tagged 64-bit scalar attached to a scope.

    Parameters
    ----------
    tag : str
        Short identifying string. Not unique within a scope.
    type : int
        Type code (see ``MetadataType``). Kept as a raw integer so unknown
        codes survive decoding.
    value : int
        Raw unsigned 64-bit payload.
    """

    tag: str = field(validator=[instance_of(str)])
    type: int = field(validator=[instance_of(int), _validate_uint(8)])
    value: int = field(validator=[instance_of(int), _validate_uint(64)])

    def typed_value(self) -> int | float:
        """Reinterpret ``value`` according to ``type``.

        The profiler stores the native value in the low bytes of a
        little-endian 8-byte slot; ``UNSET`` and unknown codes return the raw
        unsigned integer.

        Examples
        --------
        >>> MetadataEntry(tag="x", type=MetadataType.INT8, value=0xFF).typed_value()
        -1
        """

        try:
            fmt = _VALUE_FORMATS[MetadataType(self.type)]
        except (ValueError, KeyError):
            return self.value
        raw = self.value.to_bytes(8, "little")
        return struct.unpack_from(fmt, raw)[0]


def elapsed_seconds_from_ticks(ticks_start: int, ticks_end: int, freq_hz: int) -> float:
    """Return ``(ticks_end - ticks_start) / freq_hz``, or ``0.0`` when the frequency is unknown.

    The tick difference is signed: a record whose ``ticks_end`` precedes
    ``ticks_start`` yields a negative duration rather than a value wrapped
    around 2**64.
    """

    if freq_hz > 0:
        return float(ticks_end - ticks_start) / float(freq_hz)
    return 0.0


@define(kw_only=True, frozen=True)
class ScopeRecord:
    """One timed execution region decoded from a capture file.

    ``ticks_end >= ticks_start`` is assumed but not enforced. When omitted,
    ``elapsed_seconds`` is derived from the ticks and frequency via
    ``elapsed_seconds_from_ticks``.
    """

    tag: str = field(validator=[instance_of(str)])
    ticks_start: int = field(validator=[instance_of(int), _validate_uint(64)])
    ticks_end: int = field(validator=[instance_of(int), _validate_uint(64)])
    machine_nominal_freq_hz: int = field(validator=[instance_of(int), _validate_uint(64)])
    max_buffer_size: int = field(default=0, validator=[instance_of(int), _validate_uint(64)])
    max_offset: int = field(default=0, validator=[instance_of(int), _validate_uint(8)])
    metadata: tuple[MetadataEntry, ...] = field(default=(), converter=tuple)
    elapsed_seconds: float = field(
        default=Factory(
            lambda self: elapsed_seconds_from_ticks(self.ticks_start, self.ticks_end, self.machine_nominal_freq_hz),
            takes_self=True,
        ),
        validator=[instance_of(float)],
    )


@define(kw_only=True, frozen=True)
class PercentileSummary:
    """p50/p95/p99 for one scope tag, in ``unit``."""

    tag: str = field(validator=[instance_of(str)])
    count: int = field(validator=[instance_of(int)])
    unit: str = field(validator=[instance_of(str)])
    p50: float = field(validator=[instance_of(float)])
    p95: float = field(validator=[instance_of(float)])
    p99: float = field(validator=[instance_of(float)])
