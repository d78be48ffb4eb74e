"""Domain/JSON conversion utilities using `cattrs`.

Provides a shared converter for turning decoded scope records and
percentile summaries into JSON-friendly dictionaries (and back).
"""

from __future__ import annotations

from typing import Any

from cattrs import Converter

from scope_perf.data.models import MetadataEntry, ScopeRecord, metadata_type_name

# Public converter instance; hooks are registered below.
converter = Converter()


def register_scope_hooks(conv: Converter) -> None:
    """Register unstructure hooks that annotate metadata with readable values.

    ``type_name`` and ``typed_value`` are display-only keys; the structure
    direction ignores them and rebuilds entries from ``tag``/``type``/``value``.
    """

    def _unstructure_entry(entry: MetadataEntry) -> dict[str, Any]:
        return {
            "tag": entry.tag,
            "type": entry.type,
            "type_name": metadata_type_name(entry.type),
            "value": entry.value,
            "typed_value": entry.typed_value(),
        }

    def _structure_entry(obj: dict[str, Any], _: type) -> MetadataEntry:
        return MetadataEntry(tag=str(obj["tag"]), type=int(obj["type"]), value=int(obj["value"]))

    conv.register_unstructure_hook(MetadataEntry, _unstructure_entry)
    conv.register_structure_hook(MetadataEntry, _structure_entry)


def scope_to_dict(record: ScopeRecord) -> dict[str, Any]:
    """Unstructure a ``ScopeRecord`` with the shared converter."""

    return converter.unstructure(record)


def scope_from_dict(obj: dict[str, Any]) -> ScopeRecord:
    """Structure a ``ScopeRecord`` from a dictionary produced by ``scope_to_dict``."""

    return converter.structure(obj, ScopeRecord)


# Configure the shared converter on import so downstream callers can rely on it.
register_scope_hooks(converter)
