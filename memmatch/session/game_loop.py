"""
Game Loop - The adapter side of the tap → engine → render cycle.

The loop:
1. Adapter forwards a tap as choose(card_id)
2. Engine flips the card and resolves the selection queue
3. If two non-matching cards are showing, a flip-back is scheduled
4. Listeners receive a fresh snapshot and re-render
5. Repeat until every pair is matched; new_game() starts over

Deferred flip-backs are bound to the GameState instance and version they
were scheduled against. One that fires after a new game, or after the
selection moved on, does nothing.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable
import logging

from ..config import get_config
from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import apply_action, progress
from ..engine_core.state import GameSnapshot, GameState
from .manager import Session, SessionState
from .scheduler import ScheduledCall, Scheduler, ClockScheduler

logger = logging.getLogger(__name__)

Listener = Callable[[GameSnapshot], None]


class LoopState(Enum):
    """State of the game loop."""
    WAITING_FIRST_CARD = "waiting_first_card"
    WAITING_SECOND_CARD = "waiting_second_card"
    SHOWING_MISMATCH = "showing_mismatch"
    GAME_OVER = "game_over"


@dataclass
class FlipBackTicket:
    """A scheduled flip-back for one unresolved pair in one game."""
    state: GameState
    game_id: str
    version: int
    handle: ScheduledCall | None = None

    def is_current(self, state: GameState | None) -> bool:
        return (
            state is self.state
            and state.game_id == self.game_id
            and state.version == self.version
        )


@dataclass
class TurnResult:
    """
    Result of one adapter call.

    Contains the snapshot to render plus what happened.
    """
    success: bool
    loop_state: LoopState
    snapshot: GameSnapshot | None = None

    changed: bool = False
    matched_content_id: str | None = None
    flip_back_scheduled: bool = False

    state_changes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class GameLoop:
    """
    Drives one session's game on behalf of a presentation adapter.

    Usage:
        loop = GameLoop(session, scheduler=AsyncioScheduler())
        loop.subscribe(render)

        # Tap comes in
        result = loop.choose(card_id)

        # "New game" button
        loop.new_game()
    """

    def __init__(
        self,
        session: Session,
        scheduler: Scheduler | None = None,
        flip_back_delay: float | None = None,
    ):
        self.session = session
        self.scheduler = scheduler or ClockScheduler()
        self.flip_back_delay = (
            flip_back_delay if flip_back_delay is not None else get_config().flip_back_delay
        )
        self._ticket: FlipBackTicket | None = None
        self._listeners: list[Listener] = []

    @property
    def game_state(self) -> GameState | None:
        return self.session.game_state

    @property
    def state(self) -> LoopState:
        game = self.game_state
        if game is None or (game.total_pair_count > 0 and game.matched_pair_count == game.total_pair_count):
            return LoopState.GAME_OVER
        if len(game.selection) >= 2:
            return LoopState.SHOWING_MISMATCH
        if len(game.selection) == 1:
            return LoopState.WAITING_SECOND_CARD
        return LoopState.WAITING_FIRST_CARD

    @property
    def flip_back_pending(self) -> bool:
        return self._ticket is not None and self._ticket.is_current(self.game_state)

    @property
    def progress(self) -> float:
        if self.game_state is None:
            return 0.0
        return progress(self.game_state)

    def snapshot(self) -> GameSnapshot | None:
        if self.game_state is None:
            return None
        return self.game_state.snapshot()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for state snapshots.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def choose(self, card_id: str) -> TurnResult:
        """
        Forward a tap on a card to the engine.

        Schedules a flip-back when the tap leaves two non-matching cards up.
        """
        game = self.game_state
        if game is None:
            return TurnResult(
                success=False,
                loop_state=self.state,
                errors=["No game in progress"],
            )

        result = apply_action(game, Action.select(card_id))
        self.session.touch()

        if result.changed:
            # Any pending ticket now refers to an older version
            self._cancel_ticket()
            if result.needs_flip_back:
                self._schedule_flip_back(game)
            self._after_change(game)

        return self._turn_result(result)

    def flip_back(self) -> TurnResult:
        """Resolve an unmatched pair now instead of waiting for the delay."""
        game = self.game_state
        if game is None:
            return TurnResult(
                success=False,
                loop_state=self.state,
                errors=["No game in progress"],
            )

        self._cancel_ticket()
        result = apply_action(game, Action.clear_unmatched())
        if result.changed:
            self._after_change(game)
        return self._turn_result(result)

    def new_game(self) -> GameSnapshot:
        """Discard the current game and deal a fresh one."""
        self._cancel_ticket()
        game = self.session.deal()
        logger.info(
            "Session %s: new game %s (#%d)",
            self.session.session_id, game.game_id, self.session.games_started,
        )
        snapshot = game.snapshot()
        self._notify(snapshot)
        return snapshot

    def close(self):
        """Cancel pending work and drop listeners."""
        self._cancel_ticket()
        self._listeners.clear()

    def _schedule_flip_back(self, game: GameState):
        ticket = FlipBackTicket(state=game, game_id=game.game_id, version=game.version)
        ticket.handle = self.scheduler.call_later(
            self.flip_back_delay, lambda: self._on_flip_back_due(ticket)
        )
        self._ticket = ticket

    def _on_flip_back_due(self, ticket: FlipBackTicket):
        if self._ticket is ticket:
            self._ticket = None

        game = self.game_state
        if not ticket.is_current(game):
            logger.info(
                "Session %s: skipped stale flip-back for game %s v%d",
                self.session.session_id, ticket.game_id, ticket.version,
            )
            return

        result = apply_action(game, Action.clear_unmatched())
        if result.changed:
            self._after_change(game)

    def _cancel_ticket(self):
        if self._ticket is not None:
            if self._ticket.handle is not None:
                self._ticket.handle.cancel()
            self._ticket = None

    def _after_change(self, game: GameState):
        if game.total_pair_count > 0 and game.matched_pair_count == game.total_pair_count:
            if self.session.state != SessionState.COMPLETED:
                logger.info("Session %s: all pairs matched", self.session.session_id)
            self.session.state = SessionState.COMPLETED
        self._notify(game.snapshot())

    def _notify(self, snapshot: GameSnapshot):
        for listener in list(self._listeners):
            listener(snapshot)

    def _turn_result(self, result: ActionResult) -> TurnResult:
        return TurnResult(
            success=result.success,
            loop_state=self.state,
            snapshot=self.snapshot(),
            changed=result.changed,
            matched_content_id=result.matched_content_id,
            flip_back_scheduled=self.flip_back_pending,
            state_changes=result.state_changes,
            errors=[result.error] if result.error else [],
        )
