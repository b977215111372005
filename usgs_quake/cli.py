"""
usgs-quake command line interface
=================================

Terminal front-end for the earthquake tracker:

    python -m usgs_quake.cli places
    python -m usgs_quake.cli show --place california --since 2023-12-01
    python -m usgs_quake.cli watch --today --ticks 3
    python -m usgs_quake.cli export out.csv --place alaska

``show`` and ``export`` run a single refresh tick. ``watch`` starts the
refresh loop and prints every publish (table + one bar per day) until
``--ticks`` results have arrived or Ctrl-C is pressed.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional, Sequence, Tuple

from .api import UsgsAPI
from .constants import BASE_URL, DEFAULT_EXPORT_PATH, DEFAULT_TIMEOUT, REFRESH_INTERVAL
from .controller import QuakeController
from .dataset import chart_series
from .export import events_to_dataframe
from .logger import configure_logging, level_for_verbosity
from .models import DisplayEvent
from .refresh import RefreshLoop, TickResult

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--place", help="case-insensitive substring of the event place")
    when = p.add_mutually_exclusive_group()
    when.add_argument("--since", metavar="yyyy-MM-dd", help="only events from this day until today")
    when.add_argument("--today", action="store_true", help="only events of today")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="usgs-quake", description="Track USGS earthquake events.")
    ap.add_argument("--base-url", default=BASE_URL)
    ap.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT, help="HTTP timeout in seconds")
    ap.add_argument("--tz", default=None, help="display time zone (default: system local)")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="log to stderr (-vv for debug)")

    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("places", help="list distinct regions of the current batch")

    p_show = sub.add_parser("show", help="fetch once and print the table")
    _add_filter_args(p_show)

    p_watch = sub.add_parser("watch", help="refresh periodically and print each update")
    _add_filter_args(p_watch)
    p_watch.add_argument("--interval", type=float, default=REFRESH_INTERVAL)
    p_watch.add_argument("--ticks", type=int, default=0, help="stop after N results (0 = forever)")

    p_export = sub.add_parser("export", help="fetch once and write CSV")
    p_export.add_argument("path", nargs="?", default=DEFAULT_EXPORT_PATH)
    _add_filter_args(p_export)
    return ap


def format_table(rows: Sequence[DisplayEvent]) -> str:
    if not rows:
        return "(no events)"
    return events_to_dataframe(rows).to_string(index=False)


def format_bars(series: List[Tuple[str, float]], width: int = 4) -> str:
    """Text stand-in for the "Max Magnitude per Day" bar chart."""
    return "\n".join(
        f"{label}  {'#' * max(int(round(mag * width)), 0)} {mag:.1f}" for label, mag in series
    )


def _print_result(result: TickResult, out) -> None:
    if result.ok:
        print(format_table(result.events), file=out)
        bars = format_bars(chart_series(result.daily_max))
        if bars:
            print("\nMax Magnitude per Day", file=out)
            print(bars, file=out)
    else:
        print(f"Attention: {result.message}.", file=sys.stderr)


def _apply_filters(ctl: QuakeController, args: argparse.Namespace) -> bool:
    if args.place:
        ctl.select_place(args.place)
    if args.today:
        ctl.filter_today()
    elif args.since and not ctl.submit_date(args.since):
        print(f"{ctl.status} {ctl.date_hint}", file=sys.stderr)
        return False
    return True


def _watch(loop: RefreshLoop, ticks: int, out) -> int:
    seen = 0
    loop.start()
    try:
        while ticks <= 0 or seen < ticks:
            result = loop.drain(timeout=loop.interval + loop.api.timeout)
            if result is None:
                continue
            seen += 1
            print(f"--- refresh #{seen} ({result.filters.describe()})", file=out)
            _print_result(result, out)
    except KeyboardInterrupt:
        pass
    finally:
        loop.stop(timeout=loop.api.timeout)
    return EXIT_OK


def main(argv: Optional[List[str]] = None, out=None) -> int:
    out = out or sys.stdout
    args = build_parser().parse_args(argv)
    if args.verbose:
        configure_logging(level_for_verbosity(args.verbose))

    with UsgsAPI(base_url=args.base_url, timeout=args.timeout) as api:
        loop = RefreshLoop(api, interval=getattr(args, "interval", REFRESH_INTERVAL), tz=args.tz)
        ctl = QuakeController(loop)

        if args.command == "places":
            if not ctl.load_places():
                print(ctl.status, file=sys.stderr)
                return EXIT_FAILED
            for place in ctl.place_options:
                if place is not None:
                    print(place, file=out)
            return EXIT_OK

        if not _apply_filters(ctl, args):
            return EXIT_USAGE

        if args.command == "watch":
            return _watch(loop, args.ticks, out)

        result = loop.refresh_now()
        if result is None or not result.ok:
            _print_result(result or TickResult(ok=False, message="refresh did not run"), out)
            return EXIT_FAILED

        if args.command == "show":
            _print_result(result, out)
            return EXIT_OK

        if not ctl.export(args.path):
            print(ctl.status, file=sys.stderr)
            return EXIT_FAILED
        print(f"Wrote {len(ctl.rows)} rows to {args.path}", file=out)
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
