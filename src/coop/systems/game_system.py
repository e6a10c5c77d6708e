from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, FrozenSet, Iterable, Optional

from esper import World

from coop.components.board import Board
from coop.components.boost import BoostType
from coop.components.game_mode import GameMode
from coop.components.game_result import GameResult, Outcome
from coop.components.game_session import GameSession, utc_now
from coop.components.game_state import GameState, SessionPhase
from coop.components.mode_timer import ModeTimer
from coop.components.pending_highlight_clear import PendingHighlightClear
from coop.components.player_progress import LevelCompletion, PlayerProgress
from coop.components.tile import SPECIAL_KIND, TilePosition
from coop.constants import (
    BASE_SCORE,
    BOARD_GENERATION_ATTEMPTS,
    BOARD_SIZE,
    COOP_HAMMER_FEATHERS,
    COOP_HAMMER_SCORE,
    COOP_POWER_FEATHERS,
    COOP_POWER_SCORE,
    HIGHLIGHT_CLEAR_DELAY,
    KEY_LEVEL_PROGRESS,
    MAX_COMBO,
    MAX_POWER_CHARGE,
    MAX_POWER_COMBO,
    POWER_SURGE_GAIN,
    ROW_SWEEP_FEATHER_DIVISOR,
    SHUFFLE_ATTEMPTS,
)
from coop.events.bus import (
    EVENT_ABANDON_REQUEST,
    EVENT_BOARD_CHANGED,
    EVENT_CASCADE_COMPLETE,
    EVENT_COOP_POWER_ACTIVATED,
    EVENT_COOP_POWER_REQUEST,
    EVENT_FEATHERS_CHANGED,
    EVENT_FORFEIT_REQUEST,
    EVENT_HIGHLIGHT_EXPIRED,
    EVENT_PROGRESS_CHANGED,
    EVENT_SESSION_CHANGED,
    EVENT_SESSION_FINISHED,
    EVENT_SESSION_STARTED,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_REQUEST,
    EVENT_TILE_SWAP_VALID,
    EVENT_TIME_REMAINING_CHANGED,
    EVENT_TIMER_SECOND,
    EventBus,
)
from coop.systems.board_ops import (
    Position,
    clear_tiles,
    new_tile_id,
    random_board,
    shuffled_board,
    swap_tiles,
)
from coop.systems.cascade_solver import CascadeSolver
from coop.systems.feedback import BusFeedback, FeedbackSink
from coop.systems.level_catalogue import LevelCatalogue
from coop.systems.state_utils import get_game_state, get_player_progress, get_state_entity

logger = logging.getLogger(__name__)


class GameSystem:
    """Owns the live session and applies player requests to it.

    Board work is delegated to the CascadeSolver; this system only enforces
    mode rules (move budgets, the Time Attack countdown), bookkeeping of score
    and resources, and result finalization. Every change publishes a fresh
    GameSession snapshot through EVENT_SESSION_CHANGED.

    Rejections never raise: operations return False and emit warning feedback.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        solver: CascadeSolver | None = None,
        feedback: FeedbackSink | None = None,
        catalogue: LevelCatalogue | None = None,
        clock: Callable[[], datetime] | None = None,
        board_size: int = BOARD_SIZE,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        self.rng = getattr(world, "random")
        self.storage = getattr(world, "storage")
        self.solver = solver or CascadeSolver(self.rng)
        self.feedback = feedback or BusFeedback(event_bus, self.storage)
        self.catalogue = catalogue or LevelCatalogue()
        self.clock = clock or utc_now
        self.board_size = board_size
        self._timer_tokens = itertools.count(1)

        self.event_bus.subscribe(EVENT_TILE_SWAP_REQUEST, self._on_swap_request)
        self.event_bus.subscribe(EVENT_COOP_POWER_REQUEST, self._on_coop_power_request)
        self.event_bus.subscribe(EVENT_FORFEIT_REQUEST, self._on_forfeit_request)
        self.event_bus.subscribe(EVENT_ABANDON_REQUEST, self._on_abandon_request)
        self.event_bus.subscribe(EVENT_TIMER_SECOND, self._on_timer_second)
        self.event_bus.subscribe(EVENT_HIGHLIGHT_EXPIRED, self._on_highlight_expired)

    # State accessors ----------------------------------------------------

    @property
    def state(self) -> GameState:
        return get_game_state(self.world)

    @property
    def session(self) -> Optional[GameSession]:
        return self.state.session

    @property
    def last_result(self) -> Optional[GameResult]:
        return self.state.last_result

    @property
    def time_remaining(self) -> Optional[int]:
        return self.state.time_remaining

    @property
    def player_progress(self) -> PlayerProgress:
        return get_player_progress(self.world)

    # Session lifecycle --------------------------------------------------

    def start_game(self, mode: GameMode) -> GameSession:
        self._stop_mode_timer()
        self._cancel_pending_highlights()
        state = self.state
        state.last_result = None
        state.active_mode = mode

        level = self.catalogue.mode_level(mode)
        remaining_moves = level.move_limit if mode.consumes_moves else 0
        session = GameSession(
            level=level,
            mode=mode,
            board=self.generate_initial_board(),
            remaining_moves=remaining_moves,
            start_date=self.clock(),
            id=new_tile_id(self.rng),
        )
        state.phase = SessionPhase.ACTIVE
        state.last_result_mode = mode
        self._publish(session)
        if mode.time_limit is not None:
            self._start_mode_timer(mode.time_limit)
        logger.debug("Started %s session %s", mode.value, session.id)
        self.event_bus.emit(EVENT_SESSION_STARTED, session=session)
        return session

    def generate_initial_board(self) -> Board:
        """Random board without ready-made runs.

        Regenerates a bounded number of times; if every attempt still holds a
        run the last one is resolved once instead.
        """
        board = random_board(self.rng, self.board_size)
        attempts = 0
        while self.solver.has_matches(board) and attempts < BOARD_GENERATION_ATTEMPTS:
            board = random_board(self.rng, self.board_size)
            attempts += 1
        if self.solver.has_matches(board):
            logger.debug("Initial board still matched after %d attempts; resolving", attempts)
            board, _ = self.solver.resolve(board)
        return board

    def forfeit(self) -> Optional[GameResult]:
        session = self.session
        if session is None:
            return None
        result = self.finalize_result(session, Outcome.DEFEAT)
        self._publish(None)
        return result

    def abandon_session(self) -> None:
        """Leave the current session.

        Free Play has no losing condition, so abandoning it is recorded as a
        victory to keep its best scores; other modes are discarded.
        """
        self._stop_mode_timer()
        self._cancel_pending_highlights()
        session = self.session
        if session is not None and session.mode is GameMode.FREE_PLAY:
            self.finalize_result(session, Outcome.VICTORY)
        state = self.state
        state.last_result = None
        state.active_mode = GameMode.FREE_PLAY
        state.phase = SessionPhase.IDLE
        self._publish(None)

    def dismiss_result(self) -> None:
        state = self.state
        state.last_result = None
        if state.session is None:
            state.phase = SessionPhase.IDLE

    # Player actions -----------------------------------------------------

    def perform_swap(self, origin: Position, target: Position) -> bool:
        session = self.session
        if session is None:
            return False
        origin = TilePosition(*origin)
        target = TilePosition(*target)
        if session.mode.consumes_moves and session.remaining_moves <= 0:
            self._reject_swap(origin, target, "no_moves_left")
            return False

        swapped = swap_tiles(session.board, origin, target)
        if swapped is None:
            self._reject_swap(origin, target, "illegal")
            return False

        resolved_board, resolution = self.solver.resolve(swapped)
        if resolution.cascades == 0:
            self._publish(replace(session, combo_multiplier=1, last_cleared_positions=frozenset()))
            self._reject_swap(origin, target, "no_match")
            return False

        remaining_moves = session.remaining_moves
        if session.mode.consumes_moves:
            remaining_moves = max(remaining_moves - 1, 0)
        cleared = resolution.cleared_positions
        updated = replace(
            session,
            board=resolved_board,
            remaining_moves=remaining_moves,
            score=session.score + resolution.score_awarded,
            collected_feathers=session.collected_feathers + resolution.feathers_earned,
            power_charge=min(MAX_POWER_CHARGE, session.power_charge + resolution.power_gain),
            cascades_triggered=session.cascades_triggered + resolution.cascades,
            last_cleared_positions=cleared,
            combo_multiplier=min(session.combo_multiplier + 1, MAX_COMBO),
        )
        self.event_bus.emit(EVENT_TILE_SWAP_VALID, src=origin, dst=target)
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, resolution=resolution, source="swap")
        self.feedback.notify_success()
        self._publish(updated)
        self._schedule_highlight_clear(cleared)
        self._evaluate_session_completion()
        return True

    def activate_coop_power(self) -> bool:
        session = self.session
        if session is None or session.power_charge < MAX_POWER_CHARGE:
            return False
        self._publish(
            replace(
                session,
                power_charge=0.0,
                score=session.score + COOP_POWER_SCORE,
                collected_feathers=session.collected_feathers + COOP_POWER_FEATHERS,
                combo_multiplier=min(session.combo_multiplier + 2, MAX_POWER_COMBO),
            )
        )
        self.feedback.notify_heavy_impact()
        self.event_bus.emit(
            EVENT_COOP_POWER_ACTIVATED, score=COOP_POWER_SCORE, feathers=COOP_POWER_FEATHERS
        )
        return True

    # Boosts ---------------------------------------------------------------
    # Inventory is debited by the caller (see BoostSystem.use) before these run.

    def apply_boost(self, boost_type: BoostType) -> bool:
        handlers = {
            BoostType.POWER_SURGE: self.apply_power_surge_boost,
            BoostType.ROW_SWEEP: self.apply_row_sweep_boost,
            BoostType.BOARD_SHUFFLE: self.apply_board_shuffle_boost,
            BoostType.COOP_HAMMER: self.apply_coop_hammer_boost,
        }
        return handlers[boost_type]()

    def apply_power_surge_boost(self) -> bool:
        session = self.session
        if session is None or session.power_charge >= MAX_POWER_CHARGE:
            return False
        self._publish(
            replace(
                session,
                power_charge=min(MAX_POWER_CHARGE, session.power_charge + POWER_SURGE_GAIN),
                last_cleared_positions=frozenset(),
            )
        )
        self.feedback.notify_medium_impact()
        return True

    def apply_row_sweep_boost(self) -> bool:
        """Empty one random row, then let the solver cascade from there."""
        session = self.session
        if session is None or session.board.is_empty():
            return False
        board = session.board
        target_row = self.rng.randrange(board.size)
        forced = frozenset(TilePosition(target_row, col) for col in range(board.size))
        resolved_board, resolution = self.solver.resolve(clear_tiles(board, forced))

        swept = len(forced)
        highlight = forced | resolution.cleared_positions
        self._publish(
            replace(
                session,
                board=resolved_board,
                score=session.score + resolution.score_awarded + swept * BASE_SCORE,
                collected_feathers=(
                    session.collected_feathers
                    + resolution.feathers_earned
                    + max(1, swept // ROW_SWEEP_FEATHER_DIVISOR)
                ),
                power_charge=min(MAX_POWER_CHARGE, session.power_charge + resolution.power_gain),
                cascades_triggered=session.cascades_triggered + resolution.cascades,
                last_cleared_positions=highlight,
            )
        )
        logger.debug("Row sweep on row %d triggered %d cascades", target_row, resolution.cascades)
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, resolution=resolution, source="row_sweep")
        self._schedule_highlight_clear(highlight)
        self._evaluate_session_completion()
        self.feedback.notify_success()
        return True

    def apply_board_shuffle_boost(self) -> bool:
        """Permute the existing tiles, preferring a layout without runs.

        Never resolves: a shuffle that still holds a run after the attempt
        budget is accepted as is.
        """
        session = self.session
        if session is None or session.board.is_empty():
            return False
        shuffled = session.board
        for _ in range(SHUFFLE_ATTEMPTS):
            shuffled = shuffled_board(session.board, self.rng)
            if not self.solver.has_matches(shuffled):
                break
        self._publish(replace(session, board=shuffled, last_cleared_positions=frozenset()))
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason="shuffle", positions=list(shuffled.positions()))
        self.feedback.notify_light_impact()
        return True

    def apply_coop_hammer_boost(self) -> bool:
        """Turn one random tile into a golden egg. Does not trigger a cascade."""
        session = self.session
        if session is None or session.board.is_empty():
            return False
        size = session.board.size
        target = TilePosition(self.rng.randrange(size), self.rng.randrange(size))
        rows = session.board.to_rows()
        rows[target.row][target.column] = rows[target.row][target.column].with_kind(
            SPECIAL_KIND, is_static=False
        )
        highlight = frozenset({target})
        self._publish(
            replace(
                session,
                board=Board.from_rows(rows),
                score=session.score + COOP_HAMMER_SCORE,
                collected_feathers=session.collected_feathers + COOP_HAMMER_FEATHERS,
                last_cleared_positions=highlight,
            )
        )
        self.event_bus.emit(EVENT_BOARD_CHANGED, reason="coop_hammer", positions=[target])
        self._schedule_highlight_clear(highlight)
        self.feedback.notify_heavy_impact()
        return True

    # Resource ledger ------------------------------------------------------

    def spend_feathers(self, amount: int) -> bool:
        if amount <= 0:
            return True
        progress = self.player_progress
        if progress.total_feathers < amount:
            return False
        progress.total_feathers -= amount
        self._commit_progress(delta=-amount)
        return True

    def refund_feathers(self, amount: int) -> None:
        if amount <= 0:
            return
        self.player_progress.total_feathers += amount
        self._commit_progress(delta=amount)

    # Countdown & highlight ------------------------------------------------

    def countdown_tick(self) -> None:
        """Advance the Time Attack countdown by one second."""
        state = self.state
        remaining = state.time_remaining
        if remaining is None:
            self._stop_mode_timer()
            return
        if remaining <= 1:
            state.time_remaining = 0
            self.event_bus.emit(EVENT_TIME_REMAINING_CHANGED, remaining=0)
            session = self.session
            if session is not None:
                self.finalize_result(session, Outcome.VICTORY)
                self._publish(None)
            self._stop_mode_timer()
            return
        state.time_remaining = remaining - 1
        timer = self._mode_timer()
        if timer is not None:
            timer.remaining = state.time_remaining
        self.event_bus.emit(EVENT_TIME_REMAINING_CHANGED, remaining=state.time_remaining)

    def clear_highlight(self, positions: Iterable[TilePosition]) -> bool:
        """Drop the highlight only if it is still the set that was scheduled."""
        session = self.session
        if session is None:
            return False
        expected = frozenset(TilePosition(*pos) for pos in positions)
        if not session.last_cleared_positions or session.last_cleared_positions != expected:
            return False
        self._publish(replace(session, last_cleared_positions=frozenset()))
        return True

    # Finalization ---------------------------------------------------------

    def finalize_result(self, session: GameSession, outcome: Outcome) -> GameResult:
        self._stop_mode_timer()
        now = self.clock()
        progress = self.player_progress
        elapsed = max(0.0, (now - session.start_date).total_seconds())
        progress.total_play_time += elapsed
        progress.total_feathers += session.collected_feathers
        progress.longest_combo = max(progress.longest_combo, session.combo_multiplier)
        progress.deepest_cascade = max(progress.deepest_cascade, session.cascades_triggered)

        existing = progress.completion_for(session.level.id)
        completion = LevelCompletion(
            level_id=session.level.id,
            best_score=max(session.score, existing.best_score if existing else 0),
            best_feather_count=max(
                session.collected_feathers, existing.best_feather_count if existing else 0
            ),
            best_moves_remaining=max(
                session.remaining_moves, existing.best_moves_remaining if existing else 0
            ),
            completion_date=now,
        )
        progress.completed_levels = [
            item for item in progress.completed_levels if item.level_id != session.level.id
        ]
        progress.completed_levels.append(completion)
        self._commit_progress(delta=session.collected_feathers)

        if session.mode.consumes_moves:
            moves_used = max(0, session.level.move_limit - session.remaining_moves)
        else:
            moves_used = session.cascades_triggered

        result = GameResult(
            outcome=outcome,
            score=session.score,
            feathers=session.collected_feathers,
            moves_used=moves_used,
            cascades=session.cascades_triggered,
            completion_date=now,
        )
        state = self.state
        state.last_result = result
        state.last_result_mode = session.mode
        state.phase = SessionPhase.VICTORY if outcome is Outcome.VICTORY else SessionPhase.DEFEAT
        logger.info(
            "Finalized %s session %s as %s with score %d",
            session.mode.value,
            session.id,
            outcome.value,
            session.score,
        )
        self.event_bus.emit(EVENT_SESSION_FINISHED, result=result, mode=session.mode)
        return result

    # Internals ------------------------------------------------------------

    def _evaluate_session_completion(self) -> None:
        session = self.session
        if session is None:
            return
        # Time Attack is finalized by the countdown; Free Play only by abandon.
        if session.mode is GameMode.MOVE_CHALLENGE and session.remaining_moves <= 0:
            self.finalize_result(session, Outcome.VICTORY)
            self._publish(None)

    def _reject_swap(self, origin: TilePosition, target: TilePosition, reason: str) -> None:
        logger.debug("Rejected swap %s -> %s: %s", tuple(origin), tuple(target), reason)
        self.feedback.notify_warning()
        self.event_bus.emit(EVENT_TILE_SWAP_INVALID, src=origin, dst=target, reason=reason)

    def _publish(self, session: Optional[GameSession]) -> None:
        self.state.session = session
        self.event_bus.emit(EVENT_SESSION_CHANGED, session=session)

    def _commit_progress(self, *, delta: int = 0) -> None:
        progress = self.player_progress
        self.storage.save_value(KEY_LEVEL_PROGRESS, progress.to_dict())
        if delta:
            self.event_bus.emit(EVENT_FEATHERS_CHANGED, total=progress.total_feathers, delta=delta)
        self.event_bus.emit(EVENT_PROGRESS_CHANGED, progress=progress.copy())

    def _mode_timer(self) -> Optional[ModeTimer]:
        state_entity = get_state_entity(self.world)
        try:
            return self.world.component_for_entity(state_entity, ModeTimer)
        except KeyError:
            return None

    def _start_mode_timer(self, duration: int) -> None:
        self._stop_mode_timer()
        self.state.time_remaining = duration
        self.world.add_component(
            get_state_entity(self.world),
            ModeTimer(token=next(self._timer_tokens), remaining=duration),
        )
        self.event_bus.emit(EVENT_TIME_REMAINING_CHANGED, remaining=duration)

    def _stop_mode_timer(self) -> None:
        state_entity = get_state_entity(self.world)
        had_timer = self.world.has_component(state_entity, ModeTimer)
        if had_timer:
            self.world.remove_component(state_entity, ModeTimer)
        if self.state.time_remaining is not None or had_timer:
            self.state.time_remaining = None
            self.event_bus.emit(EVENT_TIME_REMAINING_CHANGED, remaining=None)

    def _schedule_highlight_clear(self, positions: FrozenSet[TilePosition]) -> None:
        if not positions:
            return
        self.world.create_entity(
            PendingHighlightClear(positions=positions, remaining=HIGHLIGHT_CLEAR_DELAY)
        )

    def _cancel_pending_highlights(self) -> None:
        for ent, _ in list(self.world.get_component(PendingHighlightClear)):
            self.world.delete_entity(ent, immediate=True)

    # Event handlers -------------------------------------------------------

    def _on_swap_request(self, sender, **kwargs) -> None:
        src = kwargs.get("src")
        dst = kwargs.get("dst")
        if src is None or dst is None:
            return
        self.perform_swap(src, dst)

    def _on_coop_power_request(self, sender, **kwargs) -> None:
        self.activate_coop_power()

    def _on_forfeit_request(self, sender, **kwargs) -> None:
        self.forfeit()

    def _on_abandon_request(self, sender, **kwargs) -> None:
        self.abandon_session()

    def _on_timer_second(self, sender, **kwargs) -> None:
        timer = self._mode_timer()
        if timer is None or timer.token != kwargs.get("token"):
            return
        self.countdown_tick()

    def _on_highlight_expired(self, sender, **kwargs) -> None:
        self.clear_highlight(kwargs.get("positions") or ())
