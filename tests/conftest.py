"""Shared fixtures: a virtual-clock scheduler and a GIF factory."""

from __future__ import annotations

import heapq
import itertools
from typing import Callable

import pytest
from PIL import Image


class FakeScheduler:
    """Deterministic stand-in for GLibScheduler.

    Time only moves when advance() is called. Callbacks follow the GLib
    convention: returning True re-arms the same source id.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._ids = itertools.count(1)
        self._seq = itertools.count()
        self._queue: list[tuple[float, int, int]] = []
        self._sources: dict[int, tuple[float, Callable[[], bool]]] = {}

    def timeout_add(self, seconds: float, callback: Callable[[], bool]) -> int:
        source_id = next(self._ids)
        self._sources[source_id] = (seconds, callback)
        heapq.heappush(self._queue, (self.now + seconds, next(self._seq), source_id))
        return source_id

    def source_remove(self, source_id: int) -> None:
        if source_id not in self._sources:
            raise KeyError(f"source {source_id} is not active")
        del self._sources[source_id]

    @property
    def pending(self) -> int:
        return len(self._sources)

    def advance(self, seconds: float) -> None:
        deadline = self.now + seconds + 1e-9
        while self._queue and self._queue[0][0] <= deadline:
            due, _, source_id = heapq.heappop(self._queue)
            if source_id not in self._sources:
                continue
            self.now = max(self.now, due)
            interval, callback = self._sources[source_id]
            if callback() and source_id in self._sources:
                heapq.heappush(self._queue, (due + interval, next(self._seq), source_id))
            else:
                self._sources.pop(source_id, None)
        self.now = max(self.now, deadline - 1e-9)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


COLORS = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]


@pytest.fixture
def make_gif(tmp_path):
    """Write a GIF with one solid-color frame per duration (milliseconds)."""
    def _make(durations: list[int], name: str = "pet.gif") -> str:
        path = tmp_path / name
        frames = [
            Image.new("RGB", (8, 8), COLORS[i % len(COLORS)])
            for i in range(len(durations))
        ]
        if len(frames) == 1:
            frames[0].save(path, format="GIF", duration=durations[0])
        else:
            frames[0].save(
                path,
                format="GIF",
                save_all=True,
                append_images=frames[1:],
                duration=durations,
                loop=0,
                disposal=1,
            )
        return str(path)

    return _make
