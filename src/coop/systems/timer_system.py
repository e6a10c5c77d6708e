from esper import World

from coop.components.mode_timer import ModeTimer
from coop.components.pending_highlight_clear import PendingHighlightClear
from coop.constants import COUNTDOWN_INTERVAL
from coop.events.bus import EVENT_HIGHLIGHT_EXPIRED, EVENT_TICK, EVENT_TIMER_SECOND, EventBus


class TimerSystem:
    """Turns frame ticks into countdown seconds and expires deferred highlight clears.

    The system only measures time; the GameSystem decides what a second or an
    expired highlight means and discards anything that has gone stale.
    """

    def __init__(self, world: World, event_bus: EventBus, *, interval: float = COUNTDOWN_INTERVAL):
        self.world = world
        self.event_bus = event_bus
        self.interval = interval
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)

    def on_tick(self, sender, **kwargs):
        dt = kwargs.get("dt", 0.0) or 0.0
        if dt <= 0:
            return
        self._advance_highlights(dt)
        self._advance_countdowns(dt)

    def _advance_countdowns(self, dt: float) -> None:
        for _, timer in list(self.world.get_component(ModeTimer)):
            timer.elapsed += dt
            token = timer.token
            while timer.elapsed >= self.interval:
                timer.elapsed -= self.interval
                self.event_bus.emit(EVENT_TIMER_SECOND, token=token)
                if not self._timer_alive(token):
                    break

    def _timer_alive(self, token: int) -> bool:
        return any(timer.token == token for _, timer in self.world.get_component(ModeTimer))

    def _advance_highlights(self, dt: float) -> None:
        for ent, pending in list(self.world.get_component(PendingHighlightClear)):
            pending.remaining -= dt
            if pending.remaining > 0:
                continue
            self.world.delete_entity(ent, immediate=True)
            self.event_bus.emit(EVENT_HIGHLIGHT_EXPIRED, positions=pending.positions)
