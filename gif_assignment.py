"""Per-state GIF assignments, persisted as JSON.

Settings live in ``$XDG_CONFIG_HOME/claude-gif-pet/settings.json``:

    {"gif_mapping": {"idle": "/path/to/idle.gif", ...}, "pet_size": 120}

Older installs stored the mapping alone as a flat object; that form is
still read.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from pet_state import PetState

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(
    os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config")), "claude-gif-pet"
)
SETTINGS_FILE = os.path.join(CONFIG_DIR, "settings.json")
DEFAULT_PET_SIZE = 120


class GifAssignment:
    """Maps each PetState to an optional GIF file."""

    def __init__(self, settings_file: str = SETTINGS_FILE) -> None:
        self.settings_file = settings_file
        self._mapping: dict[str, str] = {}
        self._pet_size: int | None = None
        self.load()

    def gif_path(self, state: PetState) -> str | None:
        """Return the GIF assigned to ``state``, if it still exists on disk."""
        path = self._mapping.get(state.value)
        if not path:
            return None
        if not os.path.isfile(path):
            logger.debug("GIF for %s no longer exists: %s", state.value, path)
            return None
        return path

    def set_gif(self, state: PetState, path: str) -> None:
        self._mapping[state.value] = os.path.abspath(path)
        self.save()

    def clear_gif(self, state: PetState) -> None:
        if self._mapping.pop(state.value, None) is not None:
            self.save()

    @property
    def mapping(self) -> dict[str, str]:
        return dict(self._mapping)

    @property
    def pet_size(self) -> int:
        return self._pet_size or DEFAULT_PET_SIZE

    @pet_size.setter
    def pet_size(self, size: int) -> None:
        self._pet_size = int(size)
        self.save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> None:
        """Read settings from disk, keeping defaults for anything unusable."""
        self._mapping = {}
        self._pet_size = None
        try:
            with open(self.settings_file, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read settings %s: %s", self.settings_file, exc)
            return

        if not isinstance(data, dict):
            logger.warning("Ignoring settings %s: not a JSON object", self.settings_file)
            return

        if "gif_mapping" in data or "pet_size" in data:
            self._mapping = _string_mapping(data.get("gif_mapping"))
            size = data.get("pet_size")
            if isinstance(size, int) and not isinstance(size, bool) and size > 0:
                self._pet_size = size
        else:
            # Legacy format: the mapping itself
            self._mapping = _string_mapping(data)

    def save(self) -> None:
        data: dict[str, Any] = {"gif_mapping": self._mapping}
        if self._pet_size is not None:
            data["pet_size"] = self._pet_size
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.settings_file)), exist_ok=True)
            tmp_path = self.settings_file + ".tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.settings_file)
        except OSError as exc:
            logger.warning("Could not save settings %s: %s", self.settings_file, exc)


def _string_mapping(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)}
