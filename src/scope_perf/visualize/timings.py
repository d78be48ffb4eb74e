"""Timings charts for one scope tag.

A timings chart plots the elapsed time of every entry of a scope, in
capture order, with horizontal p50/p95/p99 reference lines. Charts are
rendered to SVG with matplotlib's object API (no pyplot global state) and
wrapped in a standalone HTML page that can be saved or served.
"""

from __future__ import annotations

import html
import io
import logging
from pathlib import Path
from typing import Sequence

from attrs import define, field
from attrs.validators import instance_of
from matplotlib.figure import Figure

from scope_perf.config import ChartConfig

logger = logging.getLogger(__name__)

_PERCENTILE_STYLES = (
    ("P50", "tab:green"),
    ("P95", "tab:orange"),
    ("P99", "tab:red"),
)


@define(kw_only=True, frozen=True)
class ChartPage:
    """A rendered chart ready to embed in an HTML page."""

    title: str = field(validator=[instance_of(str)])
    svg: str = field(validator=[instance_of(str)])


def create_times_figure(
    times: Sequence[float],
    series_name: str,
    plot_title: str,
    *,
    percentiles: tuple[float, float, float] | None = None,
    unit: str = "ms",
    chart: ChartConfig | None = None,
) -> Figure:
    """Return a line chart of ``times`` indexed by entry number (1-based)."""

    chart = chart or ChartConfig()
    fig = Figure(figsize=(chart.width_in, chart.height_in), dpi=chart.dpi)
    ax = fig.add_subplot(1, 1, 1)
    xs = list(range(1, len(times) + 1))
    ax.plot(xs, list(times), label=series_name, linewidth=1.0)

    if percentiles is not None:
        for (label, color), value in zip(_PERCENTILE_STYLES, percentiles):
            ax.axhline(value, label=f"{label} = {value:.3f} {unit}", color=color, linestyle="--", linewidth=1.0)

    ax.set_title(plot_title)
    ax.set_xlabel("Entry")
    ax.set_ylabel(f"Time ({unit})")
    top = max(times) if len(times) else 0.0
    ax.set_ylim(bottom=0.0, top=top * 1.1 if top > 0 else 1.0)
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper right")
    fig.tight_layout()
    return fig


def render_svg(fig: Figure) -> str:
    """Render ``fig`` to an SVG document string."""

    buf = io.StringIO()
    fig.savefig(buf, format="svg")
    return buf.getvalue()


def render_page(pages: Sequence[ChartPage], *, title: str = "Scope timings") -> str:
    """Return a standalone HTML document embedding every chart in ``pages``."""

    parts = [
        "<!DOCTYPE html>",
        "<html><head><meta charset=\"utf-8\">",
        f"<title>{html.escape(title)}</title>",
        "<style>body{font-family:sans-serif;margin:1em}"
        "section{display:flex;flex-direction:column;margin-bottom:2em}"
        "svg{width:100%;height:auto}</style>",
        "</head><body>",
    ]
    for page in pages:
        parts.append(f"<section><h2>{html.escape(page.title)}</h2>")
        parts.append(page.svg)
        parts.append("</section>")
    parts.append("</body></html>")
    return "\n".join(parts)


def build_timings_page(
    scope: str,
    times: Sequence[float],
    percentiles: tuple[float, float, float],
    *,
    unit: str = "ms",
    chart: ChartConfig | None = None,
) -> ChartPage:
    """Render the timings chart for one scope as a ``ChartPage``."""

    title = f"Analysis for scope: {scope}"
    fig = create_times_figure(times, scope, title, percentiles=percentiles, unit=unit, chart=chart)
    return ChartPage(title=title, svg=render_svg(fig))


def save_charts_page(path: str | Path, pages: Sequence[ChartPage]) -> Path:
    """Write ``pages`` as one HTML file and return its path."""

    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_page(pages), encoding="utf-8")
    logger.info("Saved charts page to %s", out)
    return out
