"""Pet state machine driven by Claude Code hook events.

Events pick the target state through a fixed table; two independent
timers then act on their own:

- the idle timer (reset by every event) forces ``sleeping`` after
  IDLE_TIMEOUT_S of silence;
- the auto-return timer, armed on entering a transient state, forces
  ``idle`` after that state's delay.

Every state change, whichever source triggered it, goes through
transition(), the only place the current state is written.
"""

from __future__ import annotations

import logging
from typing import Callable

from animator import GifAnimator
from claude_event import ClaudeEvent
from pet_state import DEFAULT_STATE, IDLE_TIMEOUT_S, PetState
from timers import Scheduler

logger = logging.getLogger(__name__)

WORKING_TOOLS = frozenset({"Bash", "Edit", "Write"})
THINKING_TOOLS = frozenset({"Read", "Grep", "Glob"})

GifResolver = Callable[[PetState], str | None]


def target_state_for(event: ClaudeEvent) -> PetState | None:
    """Map an event to the state it should trigger, or None for no change."""
    if event.kind == "PreToolUse":
        if event.tool in WORKING_TOOLS:
            return PetState.WORKING
        if event.tool in THINKING_TOOLS:
            return PetState.THINKING
        # Missing or unknown tool
        return PetState.THINKING
    if event.kind == "PostToolUse":
        return PetState.HAPPY
    if event.kind == "Stop":
        return PetState.CELEBRATING
    return None


class PetStateMachine:
    """Owns the current pet state and its timers, and drives the animator."""

    def __init__(
        self,
        scheduler: Scheduler,
        animator: GifAnimator,
        resolve_gif: GifResolver | None = None,
    ) -> None:
        self.animator = animator
        self.on_state_changed: Callable[[PetState], None] | None = None
        self.on_clear_frame: Callable[[], None] | None = None

        self._scheduler = scheduler
        self._resolve_gif = resolve_gif
        self._state: PetState = DEFAULT_STATE
        self._idle_timer_id: int | None = None
        self._auto_return_timer_id: int | None = None

    @property
    def current_state(self) -> PetState:
        return self._state

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def handle_event(self, event: ClaudeEvent) -> None:
        logger.debug("Received event: %s tool=%s", event.kind, event.tool)
        self.reset_idle_timer()

        target = target_state_for(event)
        if target is None:
            logger.debug("Ignoring event kind %r", event.kind)
            return

        self.transition(target)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(self, state: PetState) -> None:
        """Enter ``state``, load its GIF and arm its auto-return timer."""
        self._cancel_auto_return()

        previous = self._state
        self._state = state
        logger.debug("State %s -> %s", previous.value, state.value)
        self._notify_state_changed()

        try:
            self.load_gif_for_current_state()
        finally:
            delay = state.auto_return_delay
            if delay is not None:
                self._auto_return_timer_id = self._scheduler.timeout_add(
                    delay, self._on_auto_return
                )

    def load_gif_for_current_state(self) -> None:
        """Play the GIF bound to the current state, or signal a placeholder."""
        path = self._lookup_gif(self._state)
        if path is not None and self._try_load(path):
            return

        if path is not None:
            logger.warning("Could not load GIF for %s: %s", self._state.value, path)
        self.animator.stop()
        self._clear_frame()

    def load_gif(self, path: str) -> bool:
        """Play an explicit GIF file regardless of the current state."""
        if self._try_load(path):
            return True
        logger.warning("Could not load GIF: %s", path)
        self.animator.stop()
        self._clear_frame()
        return False

    def _try_load(self, path: str) -> bool:
        try:
            return self.animator.load(path)
        except Exception:
            logger.exception("Animator failed on %s", path)
            return False

    def reset_idle_timer(self) -> None:
        if self._idle_timer_id is not None:
            self._scheduler.source_remove(self._idle_timer_id)
        self._idle_timer_id = self._scheduler.timeout_add(IDLE_TIMEOUT_S, self._on_idle_timeout)

    def stop(self) -> None:
        """Cancel all timers and stop playback."""
        if self._idle_timer_id is not None:
            self._scheduler.source_remove(self._idle_timer_id)
            self._idle_timer_id = None
        self._cancel_auto_return()
        self.animator.stop()

    # ------------------------------------------------------------------
    # Timer callbacks
    # ------------------------------------------------------------------

    def _on_idle_timeout(self) -> bool:
        self._idle_timer_id = None
        logger.debug("No events for %.0fs, going to sleep", IDLE_TIMEOUT_S)
        self.transition(PetState.SLEEPING)
        return False

    def _on_auto_return(self) -> bool:
        self._auto_return_timer_id = None
        self.transition(PetState.IDLE)
        return False

    def _cancel_auto_return(self) -> None:
        if self._auto_return_timer_id is not None:
            self._scheduler.source_remove(self._auto_return_timer_id)
            self._auto_return_timer_id = None

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _lookup_gif(self, state: PetState) -> str | None:
        if self._resolve_gif is None:
            return None
        try:
            return self._resolve_gif(state)
        except Exception:
            logger.exception("GIF lookup failed for %s", state.value)
            return None

    def _notify_state_changed(self) -> None:
        if self.on_state_changed is None:
            return
        try:
            self.on_state_changed(self._state)
        except Exception:
            logger.exception("State change callback failed")

    def _clear_frame(self) -> None:
        if self.on_clear_frame is None:
            return
        try:
            self.on_clear_frame()
        except Exception:
            logger.exception("Clear frame callback failed")
