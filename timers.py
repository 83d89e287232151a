"""Timer scheduling on the GTK main loop.

All polling, state timers and frame advances run as GLib timeouts on a
single thread. Callbacks follow the GLib convention: return True to be
called again after the same interval, False to stop.
"""

from __future__ import annotations

from typing import Callable, Protocol

TimerCallback = Callable[[], bool]


class Scheduler(Protocol):
    def timeout_add(self, seconds: float, callback: TimerCallback) -> int: ...
    def source_remove(self, source_id: int) -> None: ...


class GLibScheduler:
    """Scheduler backed by the default GLib main context."""

    def timeout_add(self, seconds: float, callback: TimerCallback) -> int:
        from gi.repository import GLib

        return GLib.timeout_add(max(0, round(seconds * 1000)), callback)

    def source_remove(self, source_id: int) -> None:
        from gi.repository import GLib

        GLib.source_remove(source_id)
