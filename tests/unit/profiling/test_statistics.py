from __future__ import annotations

import pytest

from scope_perf.data.models import ScopeRecord
from scope_perf.profiling.statistics import (
    compute_percentiles,
    extract_milliseconds,
    extract_nanoseconds,
    extract_seconds,
    extract_times,
    summarize_percentiles,
)


def _r(elapsed: float, tag: str = "t") -> ScopeRecord:
    return ScopeRecord(tag=tag, ticks_start=0, ticks_end=0, machine_nominal_freq_hz=0, elapsed_seconds=elapsed)


def test_unit_scaling() -> None:
    recs = [_r(0.5)]
    assert extract_seconds(recs) == [0.5]
    assert extract_milliseconds(recs) == [500.0]
    assert extract_nanoseconds(recs) == [5e8]


def test_extraction_preserves_order_and_handles_empty() -> None:
    assert extract_milliseconds([_r(0.003), _r(0.001), _r(0.002)]) == pytest.approx([3.0, 1.0, 2.0])
    assert extract_seconds([]) == []
    assert extract_nanoseconds([]) == []


def test_extract_times_rejects_unknown_unit() -> None:
    with pytest.raises(ValueError, match="Unsupported time unit"):
        extract_times([_r(1.0)], unit="us")


def test_percentiles_of_one_to_hundred() -> None:
    values = [float(v) for v in range(1, 101)]
    p50, p95, p99 = compute_percentiles(values)
    assert p50 == pytest.approx(50.5)
    assert p95 == pytest.approx(95.05)
    assert p99 == pytest.approx(99.01)
    assert 99.0 <= p99 <= 100.0


def test_percentiles_empty_input_is_zero() -> None:
    assert compute_percentiles([]) == (0.0, 0.0, 0.0)


def test_percentiles_single_value() -> None:
    assert compute_percentiles([7.0]) == (7.0, 7.0, 7.0)


def test_percentiles_do_not_mutate_input() -> None:
    values = [5.0, 1.0, 4.0, 2.0, 3.0]
    p50, _, _ = compute_percentiles(values)
    assert p50 == 3.0
    assert values == [5.0, 1.0, 4.0, 2.0, 3.0]


def test_percentiles_interpolate_between_neighbours() -> None:
    p50, p95, p99 = compute_percentiles([10.0, 0.0])
    assert p50 == pytest.approx(5.0)
    assert p95 == pytest.approx(9.5)
    assert p99 == pytest.approx(9.9)


def test_summarize_percentiles() -> None:
    s = summarize_percentiles("load", [_r(0.001), _r(0.002), _r(0.003)], unit="ms")
    assert s.tag == "load"
    assert s.count == 3
    assert s.unit == "ms"
    assert s.p50 == pytest.approx(2.0)
