from pathlib import Path

import pytest
from PIL import Image

from animator import (
    DEFAULT_FRAME_DURATION_S,
    GifAnimator,
    decode_frames,
    frame_duration,
)


# ----------------------------------------------------------------------
# Duration policy
# ----------------------------------------------------------------------

def test_standard_delay_only():
    assert frame_duration({"delay": 0.25}) == 0.25


def test_unclamped_delay_wins():
    assert frame_duration({"unclamped_delay": 0.02, "delay": 0.1}) == 0.02


def test_non_positive_unclamped_falls_back_to_standard():
    assert frame_duration({"unclamped_delay": 0.0, "delay": 0.3}) == 0.3


@pytest.mark.parametrize("props", [
    {},
    {"unclamped_delay": 0, "delay": 0},
    {"unclamped_delay": -1.0, "delay": -0.5},
    {"delay": None},
])
def test_default_duration(props):
    assert frame_duration(props) == DEFAULT_FRAME_DURATION_S


# ----------------------------------------------------------------------
# Decoding
# ----------------------------------------------------------------------

def test_decode_uses_authored_delays(make_gif):
    frames = decode_frames(make_gif([50, 200, 120]))
    assert frames is not None
    assert [f.duration for f in frames] == pytest.approx([0.05, 0.2, 0.12])
    assert all(f.image.mode == "RGBA" for f in frames)


def test_decode_zero_delay_defaults(make_gif):
    frames = decode_frames(make_gif([0, 0]))
    assert [f.duration for f in frames] == pytest.approx([0.1, 0.1])


def test_decode_static_png(tmp_path):
    path = tmp_path / "still.png"
    Image.new("RGBA", (4, 4), (10, 20, 30, 255)).save(path)
    frames = decode_frames(str(path))
    assert len(frames) == 1
    assert frames[0].duration == DEFAULT_FRAME_DURATION_S


def test_decode_missing_file(tmp_path):
    assert decode_frames(str(tmp_path / "nope.gif")) is None


def test_decode_corrupt_file(tmp_path):
    path = tmp_path / "bad.gif"
    path.write_bytes(b"this is not an image at all")
    assert decode_frames(str(path)) is None


@pytest.mark.parametrize("keep", [6, 13, 20, 0.25, 0.5, 0.75, -1])
def test_decode_truncated_file(make_gif, tmp_path, keep):
    data = Path(make_gif([100, 200, 300])).read_bytes()
    cut = keep if isinstance(keep, int) else int(len(data) * keep)
    path = tmp_path / "truncated.gif"
    path.write_bytes(data[:cut])

    frames = decode_frames(str(path))
    assert frames is None or 1 <= len(frames) <= 3


def test_decode_oversized_image(make_gif, monkeypatch):
    path = make_gif([100, 100])
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1)
    assert decode_frames(path) is None


# ----------------------------------------------------------------------
# Playback
# ----------------------------------------------------------------------

@pytest.fixture
def emitted():
    return []


@pytest.fixture
def animator(scheduler, emitted):
    return GifAnimator(scheduler, on_frame=emitted.append)


def _colors(images):
    return [img.getpixel((0, 0))[:3] for img in images]


RED, GREEN, BLUE = (255, 0, 0), (0, 255, 0), (0, 0, 255)


def test_single_frame_emits_once(scheduler, animator, emitted, make_gif):
    assert animator.load(make_gif([100]))
    assert len(emitted) == 1
    assert not animator.is_animating
    assert scheduler.pending == 0

    scheduler.advance(10)
    assert len(emitted) == 1


def test_multi_frame_honors_each_duration_and_loops(scheduler, animator, emitted, make_gif):
    assert animator.load(make_gif([100, 300, 200]))
    assert _colors(emitted) == [RED]

    scheduler.advance(0.09)
    assert _colors(emitted) == [RED]
    scheduler.advance(0.01)  # frame 0 shown for 0.1
    assert _colors(emitted) == [RED, GREEN]

    scheduler.advance(0.29)
    assert len(emitted) == 2
    scheduler.advance(0.01)  # frame 1 shown for 0.3
    assert _colors(emitted) == [RED, GREEN, BLUE]

    scheduler.advance(0.2)  # frame 2 shown for 0.2, then wrap
    assert _colors(emitted) == [RED, GREEN, BLUE, RED]
    assert animator.current_index == 0

    scheduler.advance(0.1 + 0.3 + 0.2)
    assert _colors(emitted) == [RED, GREEN, BLUE, RED, GREEN, BLUE, RED]
    assert scheduler.pending == 1


def test_stop_cancels_playback(scheduler, animator, emitted, make_gif):
    animator.load(make_gif([100, 100]))
    animator.stop()
    animator.stop()

    scheduler.advance(1)
    assert len(emitted) == 1
    assert animator.frames == ()
    assert scheduler.pending == 0


def test_load_replaces_previous_session(scheduler, animator, emitted, make_gif):
    animator.load(make_gif([100, 100], name="a.gif"))
    animator.load(make_gif([500, 500, 500], name="b.gif"))
    assert scheduler.pending == 1
    assert len(animator.frames) == 3

    scheduler.advance(0.45)
    # The first GIF's 0.1s timer must not have fired
    assert len(emitted) == 2


def test_failed_load_leaves_no_session(scheduler, animator, emitted, make_gif, tmp_path):
    animator.load(make_gif([100, 100]))
    bad = tmp_path / "bad.gif"
    bad.write_bytes(b"")

    assert animator.load(str(bad)) is False
    assert animator.frames == ()
    assert not animator.is_animating
    assert scheduler.pending == 0

    assert animator.load(make_gif([100, 100], name="c.gif"))
    assert animator.is_animating


def test_callback_errors_do_not_break_playback(scheduler, make_gif):
    calls = []

    def on_frame(image):
        calls.append(image)
        raise RuntimeError("render failed")

    animator = GifAnimator(scheduler, on_frame=on_frame)
    animator.load(make_gif([100, 100]))
    scheduler.advance(0.25)
    assert len(calls) == 3


def test_stop_from_callback_ends_loop(scheduler, make_gif):
    animator = GifAnimator(scheduler)
    calls = []

    def on_frame(image):
        calls.append(image)
        if len(calls) == 2:
            animator.stop()

    animator.on_frame = on_frame
    animator.load(make_gif([100, 100, 100]))
    scheduler.advance(1)

    assert len(calls) == 2
    assert scheduler.pending == 0
