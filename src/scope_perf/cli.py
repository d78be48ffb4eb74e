"""Command-line entry point for inspecting scope capture files.

Subcommands
-----------
echo
    Dump every record (via logging, or as JSON lines with ``--json``).
scopes
    Show which scopes are logged and how many entries each has.
percentiles
    Print p50, p95 and p99 for one scope.
timings
    Plot elapsed times for one scope with p50/p95/p99 lines; save the chart
    page with ``-o`` or serve it with ``-b``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from cattrs.errors import ClassValidationError

from scope_perf.capture.errors import EmptySelection, ScopePerfError
from scope_perf.capture.stream import open_stream
from scope_perf.config import ScopePerfConfig, load_config, setup_logging
from scope_perf.contracts.convert import scope_to_dict
from scope_perf.data.models import ScopeRecord
from scope_perf.profiling.aggregate import count_by_tag, select_by_tag
from scope_perf.profiling.export import (
    describe_scope,
    percentiles_table,
    scope_counts_table,
    write_percentiles_markdown,
    write_scope_counts_markdown,
)
from scope_perf.profiling.statistics import compute_percentiles, extract_times, summarize_percentiles
from scope_perf.visualize.serve import ChartServer
from scope_perf.visualize.timings import build_timings_page, save_charts_page

logger = logging.getLogger("scope_perf.cli")


def _select_one(filename: str, scope: str) -> list[ScopeRecord]:
    """Return the records for ``scope`` or raise ``EmptySelection``."""

    logger.info("Analyzing scope %s, from %s", scope, filename)
    groups = select_by_tag(filename, [scope])
    infos = groups.get(scope)
    if not infos:
        raise EmptySelection(scope)
    logger.info("Found %d entries for scope %s", len(infos), scope)
    return infos


def cmd_echo(args: argparse.Namespace, cfg: ScopePerfConfig) -> int:
    logger.info("Echoing from file %s", args.filename)
    with open_stream(args.filename) as stream:
        for record in stream:
            if args.json:
                print(json.dumps(scope_to_dict(record)))
                continue
            logger.info("-------")
            for line in describe_scope(record):
                logger.info("%s", line)
    return 0


def cmd_scopes(args: argparse.Namespace, cfg: ScopePerfConfig) -> int:
    counts = count_by_tag(args.filename)
    print(scope_counts_table(counts))
    if args.output:
        write_scope_counts_markdown(counts, args.output, source=args.filename)
        logger.info("Saved scope counts to %s", args.output)
    return 0


def cmd_percentiles(args: argparse.Namespace, cfg: ScopePerfConfig) -> int:
    unit = args.unit or cfg.report.unit
    infos = _select_one(args.filename, args.scope)
    summary = summarize_percentiles(args.scope, infos, unit=unit)
    print(percentiles_table([summary], float_format=cfg.report.float_format))
    if args.output:
        write_percentiles_markdown(
            [summary], args.output, source=args.filename, float_format=cfg.report.float_format
        )
        logger.info("Saved percentiles to %s", args.output)
    return 0


def cmd_timings(args: argparse.Namespace, cfg: ScopePerfConfig) -> int:
    unit = cfg.report.unit
    infos = _select_one(args.filename, args.scope)
    times = extract_times(infos, unit)
    page = build_timings_page(args.scope, times, compute_percentiles(times), unit=unit, chart=cfg.chart)
    if args.output:
        save_charts_page(args.output, [page])
        return 0
    bind = args.bind or cfg.serve.bind
    try:
        server = ChartServer(bind, [page])
    except (ValueError, OSError) as exc:
        print(f"ERROR: cannot serve charts on {bind}: {exc}", file=sys.stderr)
        return 1
    with server:
        server.serve_forever()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scope-perf", description="Inspect RSP scope capture files.")
    parser.add_argument("--config", type=str, default=None, help="YAML config file.")
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Config override in dot-list form (e.g., report.unit=ns). May be repeated.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("echo", help="Dump out the profiling data. Handy for debugging or quick inspection.")
    p.add_argument("filename")
    p.add_argument("--json", action="store_true", help="Print one JSON object per record to stdout.")
    p.set_defaults(func=cmd_echo)

    p = sub.add_parser("scopes", help="Show which scopes are logged, and how many data entries for each.")
    p.add_argument("filename")
    p.add_argument("-o", "--output", default=None, help="Also write the table to a Markdown file.")
    p.set_defaults(func=cmd_scopes)

    p = sub.add_parser("percentiles", help="Print p50, p95 and p99 for a given scope.")
    p.add_argument("filename")
    p.add_argument("scope")
    p.add_argument("--unit", choices=["s", "ms", "ns"], default=None)
    p.add_argument("-o", "--output", default=None, help="Also write the table to a Markdown file.")
    p.set_defaults(func=cmd_percentiles)

    p = sub.add_parser("timings", help="Plot elapsed times and visualize p50, p95 and p99.")
    p.add_argument("filename")
    p.add_argument("scope")
    dest = p.add_mutually_exclusive_group()
    dest.add_argument("-o", "--output", default=None, help="Save the chart page to the specified HTML file.")
    dest.add_argument("-b", "--bind", default=None, help="Address and port to serve on (default localhost:8080).")
    p.set_defaults(func=cmd_timings)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(args.config, args.overrides)
    except (FileNotFoundError, ValueError, ClassValidationError) as exc:
        print(f"ERROR: invalid configuration: {exc}", file=sys.stderr)
        return 2
    setup_logging(cfg.logging)

    try:
        return int(args.func(args, cfg))
    except EmptySelection as exc:
        print(f"{exc}", file=sys.stderr)
        return 1
    except ScopePerfError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
