from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence

from esper import World

from coop.components.boost import (
    DEFAULT_BOOST_COUNTS,
    Boost,
    BoostInventory,
    BoostMilestones,
    BoostType,
    BoostUsage,
)
from coop.components.game_session import utc_now
from coop.components.player_progress import PlayerProgress
from coop.constants import (
    BOOST_FEATHER_MILESTONE,
    BOOST_INVENTORY_CAP,
    BOOST_STREAK_MILESTONE_DAYS,
    BOOST_USAGE_HISTORY_LIMIT,
    KEY_AVAILABLE_BOOSTS,
    KEY_BOOST_MILESTONES,
    KEY_BOOST_USAGE_HISTORY,
)
from coop.events.bus import (
    EVENT_BOOST_APPLIED,
    EVENT_BOOST_FAILED,
    EVENT_BOOST_INVENTORY_CHANGED,
    EVENT_BOOST_PURCHASE_REQUEST,
    EVENT_BOOST_REQUEST,
    EVENT_PROGRESS_CHANGED,
    EventBus,
)
from coop.systems.game_system import GameSystem
from coop.systems.state_utils import get_boost_inventory, get_player_progress
from coop.systems.storage import load_model

logger = logging.getLogger(__name__)


def default_boosts() -> List[Boost]:
    return [Boost(type=boost_type, available_count=count) for boost_type, count in DEFAULT_BOOST_COUNTS.items()]


def ensure_all_types(boosts: Sequence[Boost]) -> List[Boost]:
    """One entry per BoostType in declaration order; missing types get a zero count."""
    by_type: Dict[BoostType, Boost] = {boost.type: boost for boost in boosts}
    return [by_type.get(boost_type) or Boost(type=boost_type, available_count=0) for boost_type in BoostType]


def _decode_milestones(payload) -> BoostMilestones:
    return BoostMilestones(
        streak_milestone=int(payload["streak_milestone"]),
        feather_milestone=int(payload["feather_milestone"]),
    )


class BoostSystem:
    """Boost inventory: shop purchases, in-game use and milestone rewards.

    Purchases are paid through the controller's feather ledger and uses are
    applied through the controller; both refund on a failed second step.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        game: GameSystem,
        *,
        clock: Callable = utc_now,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.game = game
        self.storage = getattr(world, "storage")
        self.clock = clock
        self._load()
        self.event_bus.subscribe(EVENT_BOOST_REQUEST, self._on_boost_request)
        self.event_bus.subscribe(EVENT_BOOST_PURCHASE_REQUEST, self._on_purchase_request)
        self.event_bus.subscribe(EVENT_PROGRESS_CHANGED, self._on_progress_changed)

    @property
    def inventory(self) -> BoostInventory:
        return get_boost_inventory(self.world)

    def count(self, boost_type: BoostType) -> int:
        return self.inventory.count(boost_type)

    def price(self, boost_type: BoostType) -> int:
        return boost_type.price

    # Inventory primitives -------------------------------------------------

    def can_purchase(self, boost_type: BoostType, feathers: int) -> bool:
        cost = boost_type.price
        if cost <= 0:
            return False
        entry = self.inventory.entry(boost_type)
        if entry is None:
            return feathers >= cost
        return entry.available_count < BOOST_INVENTORY_CAP and feathers >= cost

    def add_boost(self, boost_type: BoostType) -> bool:
        inventory = self.inventory
        entry = inventory.entry(boost_type)
        if entry is None:
            inventory.boosts.append(Boost(type=boost_type, available_count=1))
        elif entry.available_count >= BOOST_INVENTORY_CAP:
            return False
        else:
            entry.available_count += 1
        self._save_boosts()
        return True

    def consume_boost(self, boost_type: BoostType) -> bool:
        entry = self.inventory.entry(boost_type)
        if entry is None or entry.available_count <= 0:
            return False
        entry.available_count -= 1
        self._save_boosts()
        return True

    def refund_boost(self, boost_type: BoostType) -> None:
        entry = self.inventory.entry(boost_type)
        if entry is None:
            return
        entry.available_count += 1
        self._save_boosts()

    def record_usage(self, boost_type: BoostType, context: str) -> BoostUsage:
        inventory = self.inventory
        usage = BoostUsage(type=boost_type, date=self.clock(), context=context)
        inventory.usage_history = [usage, *inventory.usage_history][:BOOST_USAGE_HISTORY_LIMIT]
        self.storage.save_value(
            KEY_BOOST_USAGE_HISTORY, [item.to_dict() for item in inventory.usage_history]
        )
        return usage

    def refresh_inventory(self, progress: PlayerProgress) -> None:
        """Grant one of every boost per newly reached streak or feather milestone.

        Streak rewards ignore the cap; feather rewards stop at it.
        """
        inventory = self.inventory
        milestones = inventory.milestones

        streak_milestone = progress.daily_streak // BOOST_STREAK_MILESTONE_DAYS
        if streak_milestone > milestones.streak_milestone:
            reward = streak_milestone - milestones.streak_milestone
            for boost in inventory.boosts:
                boost.available_count += reward
            milestones.streak_milestone = streak_milestone

        feather_milestone = progress.total_feathers // BOOST_FEATHER_MILESTONE
        if feather_milestone > milestones.feather_milestone:
            reward = feather_milestone - milestones.feather_milestone
            for boost in inventory.boosts:
                boost.available_count = max(
                    boost.available_count, min(boost.available_count + reward, BOOST_INVENTORY_CAP)
                )
            milestones.feather_milestone = feather_milestone

        self._save_boosts()
        self.storage.save_value(
            KEY_BOOST_MILESTONES,
            {
                "streak_milestone": milestones.streak_milestone,
                "feather_milestone": milestones.feather_milestone,
            },
        )

    def reset(self) -> None:
        inventory = self.inventory
        inventory.boosts = ensure_all_types(default_boosts())
        inventory.usage_history = []
        inventory.milestones = BoostMilestones()
        self._save_boosts()
        self.storage.save_value(KEY_BOOST_USAGE_HISTORY, [])
        self.storage.save_value(KEY_BOOST_MILESTONES, {"streak_milestone": 0, "feather_milestone": 0})

    # Flows ----------------------------------------------------------------

    def purchase(self, boost_type: BoostType) -> bool:
        progress = get_player_progress(self.world)
        if not self.can_purchase(boost_type, progress.total_feathers):
            self.event_bus.emit(EVENT_BOOST_FAILED, boost_type=boost_type, reason="cannot_purchase")
            return False
        price = boost_type.price
        if not self.game.spend_feathers(price):
            self.event_bus.emit(EVENT_BOOST_FAILED, boost_type=boost_type, reason="insufficient_feathers")
            return False
        if not self.add_boost(boost_type):
            self.game.refund_feathers(price)
            self.event_bus.emit(EVENT_BOOST_FAILED, boost_type=boost_type, reason="inventory_full")
            return False
        logger.debug("Purchased %s for %d feathers", boost_type.value, price)
        return True

    def use(self, boost_type: BoostType) -> bool:
        if not self.consume_boost(boost_type):
            self.event_bus.emit(EVENT_BOOST_FAILED, boost_type=boost_type, reason="none_available")
            return False
        if not self.game.apply_boost(boost_type):
            self.refund_boost(boost_type)
            self.event_bus.emit(EVENT_BOOST_FAILED, boost_type=boost_type, reason="not_applicable")
            return False
        session = self.game.session
        context = session.mode.value if session is not None else ""
        self.record_usage(boost_type, context)
        logger.debug("Applied %s boost", boost_type.value)
        self.event_bus.emit(EVENT_BOOST_APPLIED, boost_type=boost_type)
        return True

    # Internals ------------------------------------------------------------

    def _load(self) -> None:
        inventory = self.inventory
        inventory.boosts = ensure_all_types(
            load_model(
                self.storage,
                KEY_AVAILABLE_BOOSTS,
                lambda payload: [Boost.from_dict(item) for item in payload],
                default_boosts,
            )
        )
        inventory.usage_history = load_model(
            self.storage,
            KEY_BOOST_USAGE_HISTORY,
            lambda payload: [BoostUsage.from_dict(item) for item in payload],
            list,
        )
        inventory.milestones = load_model(
            self.storage, KEY_BOOST_MILESTONES, _decode_milestones, BoostMilestones
        )

    def _save_boosts(self) -> None:
        inventory = self.inventory
        inventory.boosts = ensure_all_types(inventory.boosts)
        self.storage.save_value(KEY_AVAILABLE_BOOSTS, [boost.to_dict() for boost in inventory.boosts])
        self.event_bus.emit(
            EVENT_BOOST_INVENTORY_CHANGED,
            boosts={boost.type: boost.available_count for boost in inventory.boosts},
        )

    def _on_boost_request(self, sender, **kwargs) -> None:
        boost_type = kwargs.get("boost_type")
        if boost_type is None:
            return
        try:
            boost_type = BoostType(boost_type)
        except ValueError:
            self._reject_unknown(boost_type)
            return
        self.use(boost_type)

    def _on_purchase_request(self, sender, **kwargs) -> None:
        boost_type = kwargs.get("boost_type")
        if boost_type is None:
            return
        try:
            boost_type = BoostType(boost_type)
        except ValueError:
            self._reject_unknown(boost_type)
            return
        self.purchase(boost_type)

    def _reject_unknown(self, boost_type) -> None:
        logger.debug("unknown boost %r requested", boost_type)
        self.event_bus.emit(EVENT_BOOST_FAILED, boost_type=boost_type, reason="unknown_boost")

    def _on_progress_changed(self, sender, **kwargs) -> None:
        progress = kwargs.get("progress")
        if progress is None:
            return
        self.refresh_inventory(progress)
