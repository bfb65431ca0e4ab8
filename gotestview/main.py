"""Entry point for the go test viewer.

Reads `go test -json` events from stdin (or an export file), folds them
into the "Initial" history and shows the live tree. Without a terminal,
or with --no-tui, waits for the stream to end and prints the final tree.
"""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path
from typing import IO

from gotestview import __version__
from gotestview.config import ViewerConfig
from gotestview.events.channel import EventChannel
from gotestview.execution.executor import GoTestExecutor
from gotestview.ingest.coordinator import (
    IngestionCoordinator,
    RenderLoop,
    Ticker,
    import_into_channel,
    read_event_stream,
)
from gotestview.reporting.reporter import Reporter
from gotestview.session.history import STATE_FAILED, History, HistoryManager
from gotestview.view.console import ConsoleView, has_terminal, print_summary
from gotestview.view.controller import Controller

PRIMARY_HISTORY_NAME = "Initial"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Live tree viewer for go test -json output",
        epilog="Usage: go test -json ./... | gotestview",
    )
    parser.add_argument(
        "-v", "--version",
        action="store_true",
        default=False,
        help="Print the version and exit",
    )
    parser.add_argument(
        "-i", "--import",
        dest="import_file",
        type=Path,
        default=None,
        help="Load events from a previously exported file instead of stdin",
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        default=None,
        help="Path to the viewer JSON config file",
    )
    parser.add_argument(
        "--report",
        type=Path,
        default=None,
        help="Path to write a YAML summary of the initial run",
    )
    parser.add_argument(
        "--export",
        action="store_true",
        default=False,
        help="Export all events once the input stream has ended",
    )
    parser.add_argument(
        "--export-dir",
        type=Path,
        default=None,
        help="Directory export files are written to (overrides the config file)",
    )
    parser.add_argument(
        "--no-tui",
        action="store_true",
        default=False,
        help="Print the final result tree instead of the interactive view",
    )
    return parser.parse_args(argv)


def _start_producer(
    args: argparse.Namespace,
    stdin: IO,
    channel: EventChannel,
    done: threading.Event,
    errors: list[Exception],
) -> threading.Thread:
    """Start the thread feeding the primary channel."""

    def produce() -> None:
        try:
            if args.import_file is not None:
                import_into_channel(args.import_file, channel, done)
            else:
                read_event_stream(stdin, channel, done)
        except (OSError, UnicodeDecodeError) as e:
            errors.append(e)
        finally:
            channel.close()

    thread = threading.Thread(target=produce, daemon=True, name="producer")
    thread.start()
    return thread


def _end_early(primary: History) -> None:
    """Finish the initial run when the viewer is closed before its input ends."""
    if primary.is_running():
        print("Warning: input still streaming; results are partial", file=sys.stderr)
        primary.finish()


def _wait_for(history_thread: threading.Thread, render_loop: RenderLoop) -> None:
    """Run render requests until the primary ingestion thread has ended."""
    while history_thread.is_alive():
        render_loop.run_pending(timeout=0.1)
    render_loop.run_pending()


def main(argv: list[str] | None = None, stdin: IO | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    if args.version:
        print(f"gotestview {__version__}")
        return 0

    config = ViewerConfig(args.config_file)
    config.override(export_dir=args.export_dir)
    if stdin is None:
        stdin = sys.stdin.buffer

    # The initial history exists before any event is read
    manager = HistoryManager()
    primary = manager.add_history(PRIMARY_HISTORY_NAME)

    render_loop = RenderLoop()
    coordinator = IngestionCoordinator(
        manager,
        render_loop,
        executor=GoTestExecutor(config.go_command),
        rerun_buffer=config.rerun_buffer,
    )
    controller = Controller(manager, coordinator, config=config)

    def on_finished(history: History) -> None:
        controller.on_history_finished(history)
        if history is primary and args.export:
            controller.export()

    coordinator.on_update = controller.on_history_updated
    coordinator.on_finished = on_finished
    coordinator.on_message = controller.set_message

    channel = EventChannel(config.event_buffer)
    done = threading.Event()
    errors: list[Exception] = []
    _start_producer(args, stdin, channel, done, errors)
    primary_thread = coordinator.start_primary(primary, channel, done)

    if args.no_tui or not has_terminal():
        _wait_for(primary_thread, render_loop)
        print_summary(primary)
        if controller.message:
            print(controller.message, file=sys.stderr)
    else:
        ticker = Ticker(config.tick_interval, render_loop, controller.on_tick)
        ticker.start()
        try:
            ConsoleView(controller, render_loop).run()
        except OSError as e:
            print(f"Error: cannot open terminal: {e}", file=sys.stderr)
            return 1
        finally:
            ticker.stop()
        _end_early(primary)

    if errors:
        print(f"Error: {errors[0]}", file=sys.stderr)
        return 1

    if args.report:
        Reporter(primary).write_yaml(args.report)
        print(f"Report written to: {args.report}", file=sys.stderr)

    return 1 if primary.state == STATE_FAILED else 0


def main_entry() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
