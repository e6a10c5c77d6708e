"""Fire-and-forget feedback sinks (haptics/audio live outside the core)."""
from __future__ import annotations

from typing import Protocol

from coop.constants import KEY_HAPTICS_ENABLED
from coop.events.bus import EVENT_FEEDBACK, EventBus
from coop.systems.storage import StorageSink

FEEDBACK_SUCCESS = "success"
FEEDBACK_WARNING = "warning"
FEEDBACK_HEAVY = "heavy_impact"
FEEDBACK_MEDIUM = "medium_impact"
FEEDBACK_LIGHT = "light_impact"


class FeedbackSink(Protocol):
    def notify_success(self) -> None: ...

    def notify_warning(self) -> None: ...

    def notify_heavy_impact(self) -> None: ...

    def notify_medium_impact(self) -> None: ...

    def notify_light_impact(self) -> None: ...


class BusFeedback:
    """Publishes feedback as EVENT_FEEDBACK so a haptics/audio layer can subscribe.

    Muted while the persisted haptics flag is off.
    """

    def __init__(self, event_bus: EventBus, storage: StorageSink | None = None) -> None:
        self.event_bus = event_bus
        self._storage = storage
        self.enabled = bool(storage.load_value(KEY_HAPTICS_ENABLED, True)) if storage else True

    def update(self, enabled: bool) -> None:
        self.enabled = enabled
        if self._storage is not None:
            self._storage.save_value(KEY_HAPTICS_ENABLED, enabled)

    def _emit(self, kind: str) -> None:
        if not self.enabled:
            return
        self.event_bus.emit(EVENT_FEEDBACK, kind=kind)

    def notify_success(self) -> None:
        self._emit(FEEDBACK_SUCCESS)

    def notify_warning(self) -> None:
        self._emit(FEEDBACK_WARNING)

    def notify_heavy_impact(self) -> None:
        self._emit(FEEDBACK_HEAVY)

    def notify_medium_impact(self) -> None:
        self._emit(FEEDBACK_MEDIUM)

    def notify_light_impact(self) -> None:
        self._emit(FEEDBACK_LIGHT)
