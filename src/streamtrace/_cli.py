"""streamtrace CLI — inspect recorded lifecycle event logs.

Entry point for the ``streamtrace`` command-line interface::

    streamtrace print     [LOG] [--run ID] [--max-stage ID]
    streamtrace summarize [LOG] [--run ID]
    streamtrace tree      [LOG] [--run ID] [--all] [--stats]
    streamtrace marble    [LOG] [--run ID] [--stage ID] [--scale N]
    streamtrace timeline  [LOG] [--run ID] [--tick-ms N] [--max-ticks N] [--mermaid]
    streamtrace mermaid   [LOG] [--run ID]
    streamtrace check     [LOG]
    streamtrace watch VIEW [LOG] ...

LOG defaults to the ``log_path`` configured in streamtrace.yaml/.toml in the
current directory, falling back to ``streamtrace.ndjson``.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from streamtrace._errors import ConfigError, LogReadError

if TYPE_CHECKING:
    from streamtrace.config import TraceConfig
    from streamtrace.events.codec import LoadResult

# Views that ``streamtrace watch`` can re-render.
VIEWS = ("print", "summarize", "tree", "marble", "timeline", "mermaid")


def _add_common(parser: argparse.ArgumentParser) -> None:
    """Options shared by every subcommand."""
    parser.add_argument("log", nargs="?", default=None, help="Event log file")
    parser.add_argument("--root", default=".", help="Directory holding streamtrace.yaml")
    parser.add_argument("--run", type=int, default=None, help="Run id to show")
    parser.add_argument(
        "--max-stage", type=int, default=None, help="Hide stages with a higher id",
    )


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    _add_common(common)
    return common


def _add_view_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--tick-ms", type=int, default=None, help="Timeline tick width")
    parser.add_argument("--max-ticks", type=int, default=None, help="Last timeline tick")
    parser.add_argument("--mermaid", action="store_true", help="Emit a Mermaid timeline")
    parser.add_argument("--stage", type=int, default=None, help="Marble for one stage")
    parser.add_argument("--scale", type=int, default=None, help="Marble chars per second")
    parser.add_argument("--all", action="store_true", help="Tree without noise collapsing")
    parser.add_argument("--stats", action="store_true", help="Tree with per-stage stats")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the streamtrace CLI."""
    parser = argparse.ArgumentParser(
        prog="streamtrace",
        description="Inspect lifecycle event logs of instrumented reactive pipelines.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    common = _common_parser()

    subparsers.add_parser("print", parents=[common], help="List every event per stage")
    subparsers.add_parser("summarize", parents=[common], help="Per-stage statistics and warnings")

    tree_parser = subparsers.add_parser("tree", parents=[common], help="Operator tree")
    tree_parser.add_argument("--all", action="store_true", help="Show generic stages too")
    tree_parser.add_argument("--stats", action="store_true", help="Append per-stage stats")

    marble_parser = subparsers.add_parser("marble", parents=[common], help="Marble diagram")
    marble_parser.add_argument("--stage", type=int, default=None, help="Only this stage")
    marble_parser.add_argument("--scale", type=int, default=None, help="Characters per second")

    timeline_parser = subparsers.add_parser(
        "timeline", parents=[common], help="Tick-quantized timeline",
    )
    timeline_parser.add_argument("--tick-ms", type=int, default=None, help="Tick width in ms")
    timeline_parser.add_argument("--max-ticks", type=int, default=None, help="Last tick index")
    timeline_parser.add_argument("--mermaid", action="store_true", help="Emit Mermaid syntax")

    subparsers.add_parser("mermaid", parents=[common], help="Mermaid flowchart of one run")
    subparsers.add_parser("check", parents=[common], help="Report inconsistent records")

    watch_parser = subparsers.add_parser(
        "watch", help="Re-render a view whenever the log changes",
    )
    watch_parser.add_argument("view", choices=VIEWS, help="View to re-render")
    _add_common(watch_parser)
    _add_view_options(watch_parser)

    return parser


def _get_version() -> str:
    """Get the package version."""
    from streamtrace import __version__

    return __version__


def _load(args: argparse.Namespace) -> tuple[TraceConfig, LoadResult]:
    """Resolve config and read the log named by ``args``.

    Raises:
        ConfigError: Invalid config file values or flags.
        LogReadError: The log file cannot be read.

    """
    from streamtrace.config_loader import load_config
    from streamtrace.events.codec import read_events

    config = load_config(
        Path(args.root),
        log_path=args.log,
        tick_ms=getattr(args, "tick_ms", None),
        max_ticks=getattr(args, "max_ticks", None),
        marble_scale=getattr(args, "scale", None),
    )
    result = read_events(config.log_path)
    if result.skipped:
        print(f"  Skipped {result.skipped} malformed record(s)", file=sys.stderr)
    return config, result


def render_view(view: str, args: argparse.Namespace, config: TraceConfig, result: LoadResult) -> list[str]:
    """Render one CLI view of a loaded log as output lines."""
    from streamtrace.analysis.filters import filter_by_max_stage_id
    from streamtrace.analysis.graph import build_graph
    from streamtrace.analysis.runs import group_runs, select_run
    from streamtrace.analysis.summary import summarize
    from streamtrace.render.flat import render_flat, render_runs_flat
    from streamtrace.render.marble import render_marble, render_marbles
    from streamtrace.render.mermaid import render_flowchart
    from streamtrace.render.report import render_report, render_runs_report
    from streamtrace.render.timeline import render_timeline, render_timeline_mermaid
    from streamtrace.render.tree import render_tree

    loaded = list(result.events)
    if args.max_stage is not None:
        loaded = filter_by_max_stage_id(loaded, args.max_stage)
    groups = group_runs(loaded)

    if view == "print" and args.run is None:
        return render_runs_flat(groups)
    if view == "summarize" and args.run is None:
        return render_runs_report(groups)

    selection = select_run(groups, args.run)
    if args.run is not None and selection.run_id != args.run:
        print(f"  Run {args.run} not found, showing {selection.label}", file=sys.stderr)
    events = selection.events

    if view == "print":
        return [f"=== {selection.label} ===", *render_flat(events)]
    if view == "summarize":
        return render_report(selection.label, events)
    if view == "tree":
        summaries = summarize(events) if args.stats else None
        return render_tree(
            build_graph(events),
            config.generic_labels,
            collapse=not args.all,
            summaries=summaries,
        )
    if view == "marble":
        if args.stage is not None:
            return [render_marble(events, args.stage, config.marble_scale)]
        return render_marbles(events, config.marble_scale)
    if view == "timeline":
        if args.mermaid:
            return [
                render_timeline_mermaid(
                    events, selection.label, config.tick_ms, config.max_ticks,
                )
            ]
        return render_timeline(events, config.tick_ms, config.max_ticks)
    if view == "mermaid":
        lines = render_flowchart(events, selection.label)
        if not lines:
            print(f"  No events for selected run ({selection.label})", file=sys.stderr)
        return lines

    msg = f"unknown view {view!r}"
    raise ValueError(msg)


def _check(result: LoadResult) -> int:
    from streamtrace.events.consistency import check_consistency

    issues = check_consistency(result.events)
    for issue in issues:
        print(f"{issue.code}: record {issue.index}: {issue.message}")
    if not issues:
        print(f"OK: {len(result)} event(s), no issues")
        return 0
    return 1


def _watch(args: argparse.Namespace) -> None:
    """Render once, then re-render on every change until interrupted."""
    from streamtrace.config_loader import load_config
    from streamtrace.watcher import LogWatcher

    config = load_config(Path(args.root), log_path=args.log)
    watcher = LogWatcher(config.log_path)

    def refresh() -> None:
        try:
            config, result = _load(args)
        except LogReadError as exc:
            print(f"  Waiting: {exc}", file=sys.stderr)
            return
        print("\033[2J\033[H", end="")
        print("\n".join(render_view(args.view, args, config, result)), flush=True)

    refresh()
    with watcher:
        try:
            for _change in watcher.iter_changes():
                refresh()
        except KeyboardInterrupt:
            pass


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "watch":
            _watch(args)
            return

        config, result = _load(args)
        if args.command == "check":
            sys.exit(_check(result))

        lines = render_view(args.command, args, config, result)
    except (ConfigError, LogReadError) as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if lines:
        print("\n".join(lines))


if __name__ == "__main__":
    main()
