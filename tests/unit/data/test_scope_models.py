"""Unit tests for scope record models and their cattrs conversion."""

from __future__ import annotations

import json
import struct

import pytest

from scope_perf.contracts.convert import scope_from_dict, scope_to_dict
from scope_perf.data.models import (
    MetadataEntry,
    MetadataType,
    ScopeRecord,
    elapsed_seconds_from_ticks,
    metadata_type_name,
)


def test_elapsed_seconds_from_ticks() -> None:
    assert elapsed_seconds_from_ticks(1000, 2000, 1000) == 1.0
    assert elapsed_seconds_from_ticks(1000, 2000, 0) == 0.0


def test_reversed_ticks_give_negative_elapsed() -> None:
    assert elapsed_seconds_from_ticks(2000, 1000, 1000) == -1.0


def test_elapsed_seconds_defaults_to_tick_derivation() -> None:
    rec = ScopeRecord(tag="t", ticks_start=250, ticks_end=1250, machine_nominal_freq_hz=500)
    assert rec.elapsed_seconds == 2.0

    unknown_freq = ScopeRecord(tag="t", ticks_start=0, ticks_end=1000, machine_nominal_freq_hz=0)
    assert unknown_freq.elapsed_seconds == 0.0


@pytest.mark.parametrize(
    ("type_code", "raw", "expected"),
    [
        (MetadataType.INT8, 0x80, -128),
        (MetadataType.UINT16, 0x1_0002, 2),
        (MetadataType.INT64, 2**64 - 2, -2),
        (MetadataType.UINT64, 2**64 - 1, 2**64 - 1),
        (MetadataType.DOUBLE, struct.unpack("<Q", struct.pack("<d", 1.5))[0], 1.5),
        (MetadataType.FLOAT, struct.unpack("<I", struct.pack("<f", 0.25))[0], 0.25),
        (MetadataType.UNSET, 17, 17),
        (200, 17, 17),
    ],
)
def test_typed_value(type_code: int, raw: int, expected: float) -> None:
    entry = MetadataEntry(tag="m", type=int(type_code), value=raw)
    assert entry.typed_value() == expected


def test_metadata_type_name() -> None:
    assert metadata_type_name(9) == "DOUBLE"
    assert metadata_type_name(99) == "UNKNOWN"


def test_field_ranges_are_validated() -> None:
    with pytest.raises(ValueError, match="max_offset must fit in uint8"):
        ScopeRecord(tag="t", ticks_start=0, ticks_end=0, machine_nominal_freq_hz=0, max_offset=256)
    with pytest.raises(ValueError, match="value must fit in uint64"):
        MetadataEntry(tag="t", type=0, value=-1)


def test_records_are_immutable() -> None:
    rec = ScopeRecord(tag="t", ticks_start=0, ticks_end=1, machine_nominal_freq_hz=1)
    with pytest.raises(AttributeError):
        rec.tag = "other"  # type: ignore[misc]


def test_cattrs_roundtrip_through_json() -> None:
    rec = ScopeRecord(
        tag="decode",
        ticks_start=100,
        ticks_end=400,
        machine_nominal_freq_hz=1000,
        max_buffer_size=64,
        max_offset=1,
        metadata=[MetadataEntry(tag="fd", type=int(MetadataType.INT8), value=0xFE)],
        elapsed_seconds=0.3,
    )
    payload = json.loads(json.dumps(scope_to_dict(rec)))

    assert payload["metadata"][0]["type_name"] == "INT8"
    assert payload["metadata"][0]["typed_value"] == -2
    assert scope_from_dict(payload) == rec
