"""GIF animation playback for Claude Pet.

Decodes a multi-frame image (GIF, APNG, animated WebP, anything Pillow
reads) into (image, duration) frames and plays them back on a
self-rescheduling single-shot timer, so every frame is shown for its own
authored delay.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from PIL import Image

from timers import Scheduler

logger = logging.getLogger(__name__)

DEFAULT_FRAME_DURATION_S = 0.1

# Authored delays below this are treated as "no delay" by most GIF
# decoders and shown at the default speed instead.
MIN_STANDARD_DELAY_S = 0.011


@dataclass(frozen=True)
class AnimationFrame:
    image: Image.Image
    duration: float


def frame_duration(properties: Mapping[str, Any]) -> float:
    """Pick a frame's display time from its delay metadata.

    Prefers the unclamped (authored) delay, then the standard delay,
    then DEFAULT_FRAME_DURATION_S. Non-positive values are skipped.
    """
    for key in ("unclamped_delay", "delay"):
        value = properties.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
    return DEFAULT_FRAME_DURATION_S


def _delay_properties(info: Mapping[str, Any]) -> dict[str, float]:
    """Translate Pillow's per-frame info into delay metadata."""
    duration_ms = info.get("duration")
    if not isinstance(duration_ms, (int, float)):
        return {}
    unclamped = duration_ms / 1000.0
    delay = unclamped if unclamped >= MIN_STANDARD_DELAY_S else DEFAULT_FRAME_DURATION_S
    return {"unclamped_delay": unclamped, "delay": delay}


def decode_frames(path: str) -> list[AnimationFrame] | None:
    """Decode every frame of the image at ``path``.

    Returns None if the file can't be opened or yields no frames. A
    frame that fails to decode ends the sequence; earlier frames are kept.
    """
    try:
        source = Image.open(path)
    except Exception as exc:
        # Pillow plugins raise anything from UnidentifiedImageError to
        # struct.error and DecompressionBombError on bad input
        logger.debug("Cannot open %s: %s", path, exc)
        return None

    frames: list[AnimationFrame] = []
    with source:
        try:
            # Counting frames walks the whole file on GIFs
            count = getattr(source, "n_frames", 1)
        except Exception as exc:
            logger.debug("Cannot count frames of %s: %s", path, exc)
            count = None

        i = 0
        while count is None or i < count:
            try:
                source.seek(i)
                image = source.convert("RGBA")
            except EOFError:
                break
            except Exception as exc:
                logger.debug("Frame %d of %s failed to decode: %s", i, path, exc)
                break
            duration = frame_duration(_delay_properties(source.info))
            frames.append(AnimationFrame(image=image, duration=duration))
            i += 1

    if not frames:
        return None
    return frames


class GifAnimator:
    """Plays decoded frames through the on_frame callback.

    Only one playback session exists at a time; load() replaces it.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_frame: Callable[[Image.Image], None] | None = None,
    ) -> None:
        self.on_frame = on_frame
        self._scheduler = scheduler
        self._frames: list[AnimationFrame] = []
        self._index: int = 0
        self._timer_id: int | None = None

    @property
    def frames(self) -> tuple[AnimationFrame, ...]:
        return tuple(self._frames)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def is_animating(self) -> bool:
        return self._timer_id is not None

    def load(self, path: str) -> bool:
        """Load and start playing ``path``. Returns False if it can't be decoded.

        A single-frame image is emitted once with no timer.
        """
        self.stop()

        frames = decode_frames(path)
        if frames is None:
            logger.debug("No frames decoded from %s", path)
            return False

        self._frames = frames
        self._index = 0
        logger.debug("Loaded %s (%d frames)", path, len(frames))

        self._emit(frames[0])
        if len(self._frames) > 1 and self._timer_id is None:
            self._schedule_next_frame()
        return True

    def stop(self) -> None:
        if self._timer_id is not None:
            self._scheduler.source_remove(self._timer_id)
            self._timer_id = None
        self._frames = []
        self._index = 0

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def _schedule_next_frame(self) -> None:
        delay = self._frames[self._index].duration
        self._timer_id = self._scheduler.timeout_add(delay, self._advance_frame)

    def _advance_frame(self) -> bool:
        self._timer_id = None
        if not self._frames:
            return False
        self._index = (self._index + 1) % len(self._frames)
        self._emit(self._frames[self._index])
        # on_frame may have stopped or replaced the session
        if len(self._frames) > 1 and self._timer_id is None:
            self._schedule_next_frame()
        return False

    def _emit(self, frame: AnimationFrame) -> None:
        if self.on_frame is None:
            return
        try:
            self.on_frame(frame.image)
        except Exception:
            logger.exception("Frame callback failed")
