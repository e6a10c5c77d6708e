from dataclasses import dataclass


@dataclass(slots=True)
class ModeTimer:
    """Countdown attached to the state entity while a timed mode runs.

    token: identity of this countdown; seconds carrying another token are stale.
    elapsed: tick time accumulated towards the next whole second.
    """
    token: int
    remaining: int
    elapsed: float = 0.0
