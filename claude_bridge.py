"""
Claude Bridge - Watches the Claude Code hook event file by polling.

The hook script overwrites ~/.claude-pet/current-event.json on every hook
call. There is no notification channel, so the bridge polls the file's
modification time and decodes the file whenever that time moves forward.

Rapid writes inside one poll interval coalesce: only the last one is seen.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

from claude_event import DEFAULT_EVENT_FILE, ClaudeEvent, parse_event
from pet_state import POLL_INTERVAL_S
from timers import Scheduler

logger = logging.getLogger(__name__)

EventHandler = Callable[[ClaudeEvent], None]


class ClaudeBridge:
    def __init__(self, scheduler: Scheduler, event_file: str = DEFAULT_EVENT_FILE):
        self.event_file = event_file
        self._scheduler = scheduler
        self._handler: EventHandler | None = None
        self._timeout_id: int | None = None
        self._last_mtime: int | None = None

    @property
    def is_watching(self) -> bool:
        return self._timeout_id is not None

    def start(self, handler: EventHandler) -> None:
        """Start polling the event file every 0.5 s.

        Calls handler(event) for each newly written event. Whatever is in
        the file right now is treated as already seen, so a stale event
        from a previous session is never replayed.
        """
        if self.is_watching:
            self.stop()

        self._handler = handler
        self._ensure_directory()

        # Baseline before the first poll so we don't fire on startup
        self._last_mtime = self._modification_time()
        logger.debug(
            "Watching %s (exists=%s, baseline mtime=%s)",
            self.event_file,
            self._last_mtime is not None,
            self._last_mtime,
        )

        self._timeout_id = self._scheduler.timeout_add(POLL_INTERVAL_S, self._check_for_change)

    def stop(self) -> None:
        """Stop polling. Safe to call more than once."""
        if self._timeout_id is not None:
            self._scheduler.source_remove(self._timeout_id)
            self._timeout_id = None
        self._handler = None

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _ensure_directory(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.event_file))
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            logger.warning("Could not create event directory %s: %s", directory, exc)

    def _modification_time(self) -> int | None:
        try:
            return os.stat(self.event_file).st_mtime_ns
        except OSError:
            return None

    def _check_for_change(self) -> bool:
        """Poll callback. Returns True to keep the timeout active."""
        if self._timeout_id is None:
            return False

        mtime = self._modification_time()
        if mtime is None:
            return True  # file missing, nothing to do

        if self._last_mtime is not None and mtime <= self._last_mtime:
            return True

        self._last_mtime = mtime
        logger.debug("Event file changed, reading")
        event = self._read_event()
        if event is None:
            return True

        logger.debug("Decoded event: %s tool=%s", event.kind, event.tool)
        if self._handler is not None:
            try:
                self._handler(event)
            except Exception:
                # A bad handler must not kill the poll loop
                logger.exception("Event handler failed for %s", event.kind)

        return True

    def _read_event(self) -> ClaudeEvent | None:
        try:
            with open(self.event_file, "rb") as f:
                raw = f.read()
        except OSError as exc:
            logger.debug("Could not read event file: %s", exc)
            return None
        return parse_event(raw)
