"""Export helpers for scope counts, percentiles and record dumps.

Tables are produced with mdutils so the console output and the Markdown
reports share one layout.

Functions
---------
scope_counts_table
    Markdown table text of scope tag → count, sorted by tag.
percentiles_table
    Markdown table text of p50/p95/p99 rows.
write_scope_counts_markdown
    Write the scope count table to a Markdown file.
write_percentiles_markdown
    Write percentile summaries to a Markdown file.
describe_scope
    Human-readable lines for one scope record.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Mapping

from mdutils.mdutils import MdUtils  # type: ignore[import-untyped]
from mdutils.tools.Table import Table  # type: ignore[import-untyped]

from scope_perf.data.models import PercentileSummary, ScopeRecord, metadata_type_name


def _flatten(header: list[str], rows: Iterable[list[str]]) -> tuple[list[str], int]:
    # mdutils expects a flattened list row-wise (including header)
    text = header.copy()
    n = 0
    for r in rows:
        text.extend(r)
        n += 1
    return text, n + 1


def _count_rows(counts: Mapping[str, int]) -> list[list[str]]:
    return [[tag, str(int(counts[tag]))] for tag in sorted(counts)]


def _percentile_rows(summaries: Iterable[PercentileSummary], float_format: str) -> list[list[str]]:
    return [
        [s.tag, str(s.count), format(s.p50, float_format), format(s.p95, float_format), format(s.p99, float_format)]
        for s in summaries
    ]


def _md_base(path: str) -> str:
    # mdutils appends ``.md`` itself
    return path[:-3] if path.endswith(".md") else path


def scope_counts_table(counts: Mapping[str, int]) -> str:
    """Return a Markdown table of ``Scope | Count`` rows sorted by tag."""

    text, rows = _flatten(["Scope", "Count"], _count_rows(counts))
    return Table().create_table(columns=2, rows=rows, text=text, text_align="left").strip("\n")


def percentiles_table(summaries: Iterable[PercentileSummary], float_format: str = ".6f") -> str:
    """Return a Markdown table with one p50/p95/p99 row per summary."""

    summaries = list(summaries)
    unit = summaries[0].unit if summaries else "ms"
    header = ["Scope", "Count", f"p50 ({unit})", f"p95 ({unit})", f"p99 ({unit})"]
    text, rows = _flatten(header, _percentile_rows(summaries, float_format))
    return Table().create_table(columns=5, rows=rows, text=text, text_align="right").strip("\n")


def write_scope_counts_markdown(counts: Mapping[str, int], path: str, *, source: str = "") -> None:
    """Write a scope count summary as a Markdown file using mdutils.

    Parameters
    ----------
    counts : Mapping[str, int]
        Tag → number of records.
    path : str
        Destination file path. A ``.md`` suffix is stripped before handing
        the name to mdutils, which appends it again.
    source : str, optional
        Capture file name shown in the report.
    """

    text, rows = _flatten(["Scope", "Count"], _count_rows(counts))
    md = MdUtils(file_name=_md_base(path))
    md.new_header(level=1, title="Scope Entry Counts")
    items = [f"Generated: {datetime.now(timezone.utc).isoformat()}"]
    if source:
        items.append(f"Capture: {source}")
    items.append(f"Scopes: {len(counts)}, entries: {sum(counts.values())}")
    md.new_list(items=items)
    if counts:
        md.new_table(columns=2, rows=rows, text=text, text_align="left")
    else:
        md.new_paragraph("No scope entries found.")
    md.create_md_file()


def write_percentiles_markdown(
    summaries: Iterable[PercentileSummary],
    path: str,
    *,
    source: str = "",
    float_format: str = ".6f",
) -> None:
    """Write percentile summaries as a Markdown table using mdutils."""

    summaries = list(summaries)
    unit = summaries[0].unit if summaries else "ms"
    header = ["Scope", "Count", f"p50 ({unit})", f"p95 ({unit})", f"p99 ({unit})"]
    text, rows = _flatten(header, _percentile_rows(summaries, float_format))
    md = MdUtils(file_name=_md_base(path))
    md.new_header(level=1, title="Scope Percentiles")
    if source:
        md.new_paragraph(f"Capture: {source}")
    md.new_table(columns=5, rows=rows, text=text, text_align="center")
    md.create_md_file()


def describe_scope(record: ScopeRecord) -> list[str]:
    """Return display lines for ``record`` (tag, ticks, frequency, metadata)."""

    lines = [
        f"  Tag: {record.tag}",
        f"  Ticks: {record.ticks_start} - {record.ticks_end}",
        f"  Machine Freq: {record.machine_nominal_freq_hz}",
        f"  MaxOffset: {record.max_offset}",
    ]
    for i, m in enumerate(record.metadata):
        lines.append(
            f"    Metadata #{i}: {m.tag} Type={m.type} ({metadata_type_name(m.type)}) "
            f"Value={m.value} -> {m.typed_value()}"
        )
    return lines
