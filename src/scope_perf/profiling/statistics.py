"""Elapsed-time series and empirical percentiles.

Functions
---------
extract_seconds, extract_milliseconds, extract_nanoseconds
    One value per record, in record order.
compute_percentiles
    p50/p95/p99 using linear interpolation between order statistics.
summarize_percentiles
    Build a ``PercentileSummary`` for one tag's records.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from scope_perf.data.models import PercentileSummary, ScopeRecord

DEFAULT_PERCENTILES = (50.0, 95.0, 99.0)

_UNIT_SCALE = {
    "s": 1.0,
    "ms": 1e3,
    "ns": 1e9,
}


def _scaled(records: Sequence[ScopeRecord], scale: float) -> list[float]:
    return [r.elapsed_seconds * scale for r in records]


def extract_seconds(records: Sequence[ScopeRecord]) -> list[float]:
    """Return ``elapsed_seconds`` for each record."""

    return _scaled(records, 1.0)


def extract_milliseconds(records: Sequence[ScopeRecord]) -> list[float]:
    """Return elapsed time in milliseconds for each record."""

    return _scaled(records, 1e3)


def extract_nanoseconds(records: Sequence[ScopeRecord]) -> list[float]:
    """Return elapsed time in nanoseconds for each record."""

    return _scaled(records, 1e9)


def extract_times(records: Sequence[ScopeRecord], unit: str = "ms") -> list[float]:
    """Return elapsed times in ``unit`` (``'s'``, ``'ms'`` or ``'ns'``)."""

    try:
        scale = _UNIT_SCALE[unit]
    except KeyError:
        raise ValueError(f"Unsupported time unit {unit!r}; expected one of {sorted(_UNIT_SCALE)}") from None
    return _scaled(records, scale)


def compute_percentiles(values: Sequence[float]) -> tuple[float, float, float]:
    """Return ``(p50, p95, p99)`` of ``values``.

    Each quantile ``q`` is read at position ``q * (n - 1)`` of the sorted
    samples, interpolating linearly between the two neighbours when the
    position is fractional. ``values`` is not modified.

    Returns ``(0.0, 0.0, 0.0)`` for empty input; callers that must tell "no
    data" apart from all-zero latencies should check for emptiness first.

    Examples
    --------
    >>> compute_percentiles([4.0, 1.0, 3.0, 2.0, 5.0])[0]
    3.0
    """

    if len(values) == 0:
        return 0.0, 0.0, 0.0
    arr = np.sort(np.asarray(values, dtype=np.float64))
    p50, p95, p99 = np.percentile(arr, DEFAULT_PERCENTILES, method="linear")
    return float(p50), float(p95), float(p99)


def summarize_percentiles(tag: str, records: Sequence[ScopeRecord], unit: str = "ms") -> PercentileSummary:
    """Return a ``PercentileSummary`` of the elapsed times in ``records``."""

    p50, p95, p99 = compute_percentiles(extract_times(records, unit))
    return PercentileSummary(tag=tag, count=len(records), unit=unit, p50=p50, p95=p95, p99=p99)
