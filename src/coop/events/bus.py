from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float
EVENT_TIMER_SECOND = "timer_second"                # payload: token=int
EVENT_TIME_REMAINING_CHANGED = "time_remaining_changed"  # payload: remaining=int|None
EVENT_HIGHLIGHT_EXPIRED = "highlight_expired"      # payload: positions=frozenset[(r,c)]


# ============================================================================
# INPUT REQUESTS
# ============================================================================
EVENT_TILE_SWAP_REQUEST = "tile_swap_request"      # payload: src=(r,c), dst=(r,c)
EVENT_COOP_POWER_REQUEST = "coop_power_request"    # payload: none
EVENT_BOOST_REQUEST = "boost_request"              # payload: boost_type=BoostType
EVENT_BOOST_PURCHASE_REQUEST = "boost_purchase_request"  # payload: boost_type=BoostType
EVENT_FORFEIT_REQUEST = "forfeit_request"          # payload: none
EVENT_ABANDON_REQUEST = "abandon_request"          # payload: none


# ============================================================================
# TILE & BOARD MECHANICS
# ============================================================================
EVENT_TILE_SWAP_VALID = "tile_swap_valid"          # payload: src=(r,c), dst=(r,c)
EVENT_TILE_SWAP_INVALID = "tile_swap_invalid"      # payload: src=(r,c), dst=(r,c), reason=str
EVENT_CASCADE_COMPLETE = "cascade_complete"        # payload: resolution=CascadeResolution, source=str
EVENT_BOARD_CHANGED = "board_changed"              # payload: reason=str, positions=list[(r,c)]


# ============================================================================
# SESSION & RESULTS
# ============================================================================
EVENT_SESSION_STARTED = "session_started"          # payload: session=GameSession
EVENT_SESSION_CHANGED = "session_changed"          # payload: session=GameSession|None
EVENT_SESSION_FINISHED = "session_finished"        # payload: result=GameResult, mode=GameMode
EVENT_COOP_POWER_ACTIVATED = "coop_power_activated"  # payload: score=int, feathers=int


# ============================================================================
# RESOURCES, BOOSTS & PROGRESS
# ============================================================================
EVENT_FEATHERS_CHANGED = "feathers_changed"        # payload: total=int, delta=int
EVENT_BOOST_INVENTORY_CHANGED = "boost_inventory_changed"  # payload: boosts=list[Boost]
EVENT_BOOST_APPLIED = "boost_applied"              # payload: boost_type=BoostType
EVENT_BOOST_FAILED = "boost_failed"                # payload: boost_type=BoostType (raw value when unknown), reason=str
EVENT_PROGRESS_CHANGED = "progress_changed"        # payload: progress=PlayerProgress
EVENT_ACHIEVEMENT_UNLOCKED = "achievement_unlocked"  # payload: achievement=Achievement


# ============================================================================
# FEEDBACK
# ============================================================================
EVENT_FEEDBACK = "feedback"                        # payload: kind=str
