"""Claude Code hook events as written to ~/.claude-pet/current-event.json.

The hook script overwrites that file with one JSON object per signal:

    {"event": "PreToolUse", "tool": "Bash", "timestamp": 1718000000.5,
     "sessionId": "abc123"}

Only ``event`` is required. Unknown event kinds are valid events; it is
up to the state machine to ignore them.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

EVENT_DIR = os.path.join(os.path.expanduser("~"), ".claude-pet")
DEFAULT_EVENT_FILE = os.path.join(EVENT_DIR, "current-event.json")
DEFAULT_EVENTS_FILE = os.path.join(EVENT_DIR, "events.jsonl")


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ClaudeEvent:
    """One decoded hook signal."""
    kind: str
    tool: str | None = None
    timestamp: float | None = None
    session_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClaudeEvent:
        """Build an event from its wire form.

        Raises ValueError when a field has the wrong type or ``event``
        is missing.
        """
        kind = data.get("event")
        if not isinstance(kind, str):
            raise ValueError("'event' is required and must be a string")

        timestamp = data.get("timestamp")
        if timestamp is not None:
            # bool is an int subclass but never a valid timestamp
            if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
                raise ValueError("'timestamp' must be a number")
            timestamp = float(timestamp)

        return cls(
            kind=kind,
            tool=_optional_str(data, "tool"),
            timestamp=timestamp,
            session_id=_optional_str(data, "sessionId"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"event": self.kind}
        if self.tool is not None:
            data["tool"] = self.tool
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        if self.session_id is not None:
            data["sessionId"] = self.session_id
        return data


def parse_event(raw: bytes | str) -> ClaudeEvent | None:
    """Decode one event from raw file content.

    Returns None for anything that is not a well-formed event. The hook
    may be caught mid-write, so a bad read is expected and not an error.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.debug("Undecodable event file content: %s", exc)
        return None

    if not isinstance(data, dict):
        logger.debug("Event file does not hold a JSON object")
        return None

    try:
        return ClaudeEvent.from_dict(data)
    except ValueError as exc:
        logger.debug("Event schema mismatch: %s", exc)
        return None


def write_event(path: str, event: ClaudeEvent) -> None:
    """Replace the event file with ``event``, atomically.

    Raises OSError if the file cannot be written.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".event-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(event.to_dict(), f)
        os.replace(tmp_path, path)
    except OSError:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
