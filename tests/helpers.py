from __future__ import annotations

import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Sequence

from coop.components.board import Board
from coop.components.tile import TileKind
from coop.events.bus import EventBus
from coop.systems.board_ops import board_from_kinds
from coop.systems.feedback import (
    FEEDBACK_HEAVY,
    FEEDBACK_LIGHT,
    FEEDBACK_MEDIUM,
    FEEDBACK_SUCCESS,
    FEEDBACK_WARNING,
)
from coop.systems.game_system import GameSystem
from coop.systems.storage import MemoryStorage
from coop.systems.timer_system import TimerSystem
from coop.world import create_world

LETTER_KINDS = {
    "E": TileKind.EGG,
    "N": TileKind.NEST,
    "C": TileKind.CORN,
    "H": TileKind.BROODY_HEN,
    "G": TileKind.GOLDEN_EGG,
    "F": TileKind.FEATHER_FAN,
}

# Every neighbouring pair differs, so there is no run anywhere.
NO_MATCH_ROWS = [
    "ENHGFE",
    "HGFENH",
    "FENHGF",
    "NHGFEN",
    "GFENHG",
    "ENHGFE",
]

# Exactly one run: the three eggs at the start of the top row.
SINGLE_RUN_ROWS = ["EEEGFE"] + NO_MATCH_ROWS[1:]

# No run yet; swapping (0, 2) with (0, 3) lines up three eggs.
SWAP_READY_ROWS = ["EENEFH"] + NO_MATCH_ROWS[1:]


def board_from_letters(lines: Sequence[str], rng: random.Random | None = None) -> Board:
    return board_from_kinds([[LETTER_KINDS[ch] for ch in line] for line in lines], rng or random.Random(0))


class ScriptedRandom(random.Random):
    """Random source whose ``choice`` calls return scripted values first."""

    def __init__(self, script: Sequence = (), seed: int = 0):
        super().__init__(seed)
        self.script = list(script)

    def choice(self, seq):
        if self.script:
            return self.script.pop(0)
        return super().choice(seq)


class RecordingFeedback:
    def __init__(self):
        self.events: list[str] = []

    def notify_success(self):
        self.events.append(FEEDBACK_SUCCESS)

    def notify_warning(self):
        self.events.append(FEEDBACK_WARNING)

    def notify_heavy_impact(self):
        self.events.append(FEEDBACK_HEAVY)

    def notify_medium_impact(self):
        self.events.append(FEEDBACK_MEDIUM)

    def notify_light_impact(self):
        self.events.append(FEEDBACK_LIGHT)


class ManualClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_game(seed: int = 0, storage=None, clock=None):
    """World, bus, timer and controller wired with a recording feedback sink."""
    bus = EventBus()
    world = create_world(bus, rng=random.Random(seed), storage=storage or MemoryStorage())
    feedback = RecordingFeedback()
    TimerSystem(world, bus)
    game = GameSystem(world, bus, feedback=feedback, clock=clock or ManualClock())
    return bus, world, game, feedback


def install_board(game: GameSystem, rows: Sequence[str], **changes):
    """Replace the live session's board (and any other fields) in place."""
    session = replace(game.session, board=board_from_letters(rows), **changes)
    game.state.session = session
    return session


def capture(bus: EventBus, name: str) -> list[dict]:
    seen: list[dict] = []

    def handler(sender, **kwargs):
        seen.append(kwargs)

    bus.subscribe(name, handler)
    return seen
