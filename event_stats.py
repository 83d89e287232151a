"""Daily usage statistics from the hook event log.

The hook script appends every event to ~/.claude-pet/events.jsonl, one
JSON object per line. This module summarizes the current local day.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any, Iterator

from claude_event import DEFAULT_EVENTS_FILE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayStats:
    total_tool_calls: int
    bash_count: int
    edit_count: int
    read_count: int
    active_duration_minutes: int
    error_count: int
    date: str  # YYYY-MM-DD

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class EventLog:
    def __init__(self, events_file: str = DEFAULT_EVENTS_FILE) -> None:
        self.events_file = events_file

    def today_stats(self, now: datetime | None = None) -> DayStats:
        """Compute stats for the local calendar day containing ``now``."""
        now = now or datetime.now()
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start_ts = day_start.timestamp()
        end_ts = (day_start + timedelta(days=1)).timestamp()

        bash_count = edit_count = read_count = error_count = 0
        timestamps: list[float] = []

        for kind, tool, timestamp in self._read_events():
            if not start_ts <= timestamp < end_ts:
                continue
            timestamps.append(timestamp)

            tool = tool.lower()
            if "bash" in tool:
                bash_count += 1
            if "edit" in tool or "write" in tool:
                edit_count += 1
            if "read" in tool:
                read_count += 1
            if "error" in kind.lower():
                error_count += 1

        active_minutes = 0
        if timestamps:
            active_minutes = int((max(timestamps) - min(timestamps)) / 60)

        return DayStats(
            total_tool_calls=len(timestamps),
            bash_count=bash_count,
            edit_count=edit_count,
            read_count=read_count,
            active_duration_minutes=active_minutes,
            error_count=error_count,
            date=day_start.strftime("%Y-%m-%d"),
        )

    def _read_events(self) -> Iterator[tuple[str, str, float]]:
        """Yield (kind, tool, timestamp) for every well-formed log line."""
        try:
            with open(self.events_file, encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Could not read event log %s: %s", self.events_file, exc)
            return

        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(data, dict):
                continue

            kind = data.get("event")
            timestamp = data.get("timestamp")
            if not isinstance(kind, str):
                continue
            if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
                continue
            tool = data.get("tool")
            yield kind, tool if isinstance(tool, str) else "", float(timestamp)
