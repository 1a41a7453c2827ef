"""Timetrace CLI — timetrace replay.

Entry point for the ``timetrace`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from timetrace._errors import TimeTraceError


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the timetrace CLI."""
    parser = argparse.ArgumentParser(
        prog="timetrace",
        description="Turn compiler phase events into a Trace Event Format document.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # timetrace replay
    replay_parser = subparsers.add_parser(
        "replay",
        help="Write a trace document from a recorded event log",
    )
    replay_parser.add_argument("log", help="Event log (JSON Lines)")
    replay_parser.add_argument(
        "--output", "-o", default=None,
        help="Trace document path (default: <log stem>.trace.json)",
    )
    replay_parser.add_argument(
        "--verbose-decl", type=int, choices=(0, 1, 2), default=None,
        help="Function name detail: 0 bare, 1 scoped, 2 with signature",
    )
    replay_parser.add_argument(
        "--config-root", default=".", help="Directory containing timetrace.yaml",
    )
    replay_parser.add_argument(
        "--quiet", "-q", action="store_true", help="Do not print a summary",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from timetrace import __version__

    return __version__


def _replay(args: argparse.Namespace) -> None:
    from timetrace.config_loader import load_config
    from timetrace.recorder import EventRecorder
    from timetrace.replay import load_events

    config = load_config(
        Path(args.config_root),
        decl_verbosity=args.verbose_decl,
        verbose=False if args.quiet else None,
    )

    log_path = Path(args.log)
    recorder = EventRecorder()
    for record in load_events(log_path):
        recorder.add(record)

    if args.output is not None:
        # an explicit output path is used verbatim
        recorder.write_trace(args.output, replace(config, output_dir=None, output_suffix=""))
    else:
        recorder.write_trace(log_path.with_suffix(""), config)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "replay":
            _replay(args)
    except TimeTraceError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
