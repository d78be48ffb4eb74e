from __future__ import annotations

import threading
import urllib.error
import urllib.request
from pathlib import Path

import pytest

from scope_perf.visualize.serve import ChartServer, parse_bind
from scope_perf.visualize.timings import (
    ChartPage,
    build_timings_page,
    create_times_figure,
    render_page,
    save_charts_page,
)


def test_times_figure_has_series_and_percentile_lines() -> None:
    fig = create_times_figure([1.0, 3.0, 2.0], "load", "Analysis for scope: load", percentiles=(2.0, 2.9, 2.98))
    ax = fig.axes[0]
    labels = [line.get_label() for line in ax.get_lines()]
    assert labels[0] == "load"
    assert any(label.startswith("P50") for label in labels)
    assert any(label.startswith("P99") for label in labels)
    assert ax.get_ylim()[0] == 0.0


def test_build_timings_page_renders_svg() -> None:
    page = build_timings_page("load", [1.0, 2.0], (1.5, 1.95, 1.99))
    assert page.title == "Analysis for scope: load"
    assert "<svg" in page.svg


def test_render_page_escapes_titles() -> None:
    text = render_page([ChartPage(title="a<b>", svg="<svg></svg>")])
    assert "a&lt;b&gt;" in text
    assert "<svg></svg>" in text


def test_save_charts_page(tmp_path: Path) -> None:
    out = save_charts_page(tmp_path / "out" / "timings.html", [ChartPage(title="t", svg="<svg/>")])
    assert out.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")


def test_parse_bind() -> None:
    assert parse_bind("localhost:8080") == ("localhost", 8080)
    assert parse_bind("[::1]:80") == ("::1", 80)
    with pytest.raises(ValueError):
        parse_bind("localhost")


def test_chart_server_serves_page() -> None:
    page = ChartPage(title="served-chart", svg="<svg/>")
    with ChartServer("127.0.0.1:0", [page]) as server:
        t = threading.Thread(target=server.serve_forever, daemon=True)
        t.start()
        try:
            with urllib.request.urlopen(server.url, timeout=5) as resp:
                assert resp.status == 200
                assert "served-chart" in resp.read().decode("utf-8")
            with pytest.raises(urllib.error.HTTPError) as excinfo:
                urllib.request.urlopen(server.url + "missing", timeout=5)
            assert excinfo.value.code == 404
        finally:
            server.shutdown()
            t.join(timeout=5)
