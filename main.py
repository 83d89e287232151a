#!/usr/bin/env python3
"""Claude GIF Pet - GIF desktop companion for Claude Code.

A transparent, always-on-top desktop pet that reflects the current
state of a Claude Code session by playing the GIF assigned to each
state.
"""

import argparse
import json
import logging
import os
import signal
import sys
import time

import gi

gi.require_version("Gtk", "3.0")
from gi.repository import Gtk  # noqa: E402

from animator import GifAnimator  # noqa: E402
from claude_bridge import ClaudeBridge  # noqa: E402
from claude_event import (  # noqa: E402
    DEFAULT_EVENT_FILE,
    DEFAULT_EVENTS_FILE,
    ClaudeEvent,
    write_event,
)
from event_stats import EventLog  # noqa: E402
from gif_assignment import SETTINGS_FILE, GifAssignment  # noqa: E402
from pet_window import PetWindow  # noqa: E402
from state_machine import PetStateMachine  # noqa: E402
from timers import GLibScheduler  # noqa: E402

logger = logging.getLogger("claude-gif-pet")

DEFAULT_PID_FILE = os.path.join(
    os.environ.get("XDG_RUNTIME_DIR", "/tmp"), "claude-gif-pet.pid"
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="claude-gif-pet",
        description="GIF desktop companion for Claude Code",
    )
    parser.add_argument(
        "gif",
        nargs="?",
        default=None,
        help="GIF to play at startup instead of the one assigned to idle",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=None,
        help="Window size in pixels (default: pet_size from settings, 120)",
    )
    parser.add_argument(
        "--event-file",
        type=str,
        default=DEFAULT_EVENT_FILE,
        help=f"Hook event file to watch (default: {DEFAULT_EVENT_FILE})",
    )
    parser.add_argument(
        "--events-log",
        type=str,
        default=DEFAULT_EVENTS_FILE,
        help=f"Hook event log used by --stats (default: {DEFAULT_EVENTS_FILE})",
    )
    parser.add_argument(
        "--settings",
        type=str,
        default=SETTINGS_FILE,
        help=f"Settings file with GIF assignments (default: {SETTINGS_FILE})",
    )
    parser.add_argument(
        "--pid-file",
        type=str,
        default=DEFAULT_PID_FILE,
        help=f"Path to the PID file (default: {DEFAULT_PID_FILE})",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print today's Claude Code usage stats as JSON and exit",
    )
    parser.add_argument(
        "--send",
        metavar="KIND",
        default=None,
        help="Write a hook event of this kind (e.g. Stop) to the event file and exit",
    )
    parser.add_argument(
        "--tool",
        default=None,
        help="Tool name for the event written by --send",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to stderr",
    )
    return parser.parse_args(argv)


def setup_logging(debug: bool) -> None:
    """Configure logging to stderr."""
    level = logging.DEBUG if debug else logging.WARNING
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def setup_signal_handlers() -> None:
    """Register SIGINT and SIGTERM to gracefully quit GTK."""
    def handle_signal(signum: int, frame: object) -> None:
        logger.info("Received signal %d, shutting down", signum)
        Gtk.main_quit()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)


def check_single_instance(pid_file: str) -> None:
    """Exit if another instance is already running."""
    if os.path.exists(pid_file):
        try:
            with open(pid_file) as f:
                pid = int(f.read().strip())
            os.kill(pid, 0)  # raises if process doesn't exist
            logger.info("Already running (PID %d), exiting", pid)
            sys.exit(0)
        except (ValueError, ProcessLookupError, PermissionError, OSError):
            pass  # stale PID file, continue


def write_pid(pid_file: str) -> None:
    with open(pid_file, "w") as f:
        f.write(str(os.getpid()))


def remove_pid(pid_file: str) -> None:
    try:
        os.unlink(pid_file)
    except OSError:
        pass


def print_stats(events_log: str) -> None:
    stats = EventLog(events_log).today_stats()
    print(json.dumps(stats.to_dict(), indent=2))


def send_event(event_file: str, kind: str, tool: str | None = None) -> None:
    """Trigger a running pet by hand, the way a Claude Code hook would."""
    event = ClaudeEvent(kind=kind, tool=tool, timestamp=time.time())
    write_event(event_file, event)
    logger.info("Wrote %s event to %s", kind, event_file)


def main() -> None:
    args = parse_args()
    setup_logging(args.debug)

    if args.stats:
        print_stats(args.events_log)
        return

    if args.send:
        send_event(args.event_file, args.send, args.tool)
        return

    check_single_instance(args.pid_file)
    setup_signal_handlers()
    write_pid(args.pid_file)

    assignment = GifAssignment(args.settings)
    size = args.size or assignment.pet_size

    logger.info(
        "Starting Claude GIF Pet: size=%d, event_file=%s, settings=%s",
        size,
        args.event_file,
        args.settings,
    )

    scheduler = GLibScheduler()
    animator = GifAnimator(scheduler)
    machine = PetStateMachine(scheduler, animator, resolve_gif=assignment.gif_path)
    bridge = ClaudeBridge(scheduler, event_file=args.event_file)

    window = PetWindow(machine=machine, bridge=bridge, assignment=assignment, size=size)
    window.show_all()

    if args.gif:
        machine.load_gif(args.gif)
    else:
        machine.load_gif_for_current_state()

    bridge.start(machine.handle_event)

    Gtk.main()
    bridge.stop()
    machine.stop()
    remove_pid(args.pid_file)
    logger.info("Claude GIF Pet shut down")


if __name__ == "__main__":
    main()
