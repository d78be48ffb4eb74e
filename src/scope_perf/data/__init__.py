"""Domain models for ``scope_perf``.

This package hosts the attrs-based records produced by the capture decoder
and the summaries built from them.
"""

from __future__ import annotations

from .models import MetadataEntry, MetadataType, PercentileSummary, ScopeRecord, metadata_type_name

__all__ = [
    "MetadataType",
    "MetadataEntry",
    "ScopeRecord",
    "PercentileSummary",
    "metadata_type_name",
]
