"""Pet states and the timing constants that drive them.

Exactly one state is current at any time. Transient states (happy, sad,
celebrating) fall back to idle on their own after a short delay;
sleeping is only ever reached through the idle timeout.
"""

import enum

POLL_INTERVAL_S = 0.5
IDLE_TIMEOUT_S = 300.0
AUTO_RETURN_DELAY_S = 3.0


class PetState(enum.Enum):
    IDLE = "idle"
    THINKING = "thinking"
    WORKING = "working"
    HAPPY = "happy"
    SAD = "sad"
    CELEBRATING = "celebrating"
    SLEEPING = "sleeping"

    @property
    def auto_return_delay(self) -> float | None:
        """Seconds before this state returns to idle, or None to stay."""
        if self in _TRANSIENT_STATES:
            return AUTO_RETURN_DELAY_S
        return None


_TRANSIENT_STATES = frozenset({PetState.HAPPY, PetState.SAD, PetState.CELEBRATING})

DEFAULT_STATE = PetState.IDLE
