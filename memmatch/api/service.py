"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to GameLoop calls
2. Manages sessions and their loops
3. Formats engine snapshots for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    SelectCardRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    SelectCardResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    # Enums
    CardFace,
    ErrorCode,
    SessionStatus,
)
from ..engine_core.state import GameSnapshot
from ..session import SessionManager, Session, GameLoop, Scheduler, AsyncioScheduler

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Create session
        session_response = service.create_session(request)

        # Tap a card
        select_response = service.select_card(session_id, SelectCardRequest(card_id=...))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    scheduler: Scheduler = field(default_factory=AsyncioScheduler)
    flip_back_delay: float | None = None

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def create_session(self, request: CreateSessionRequest | None = None) -> SessionResponse:
        """
        Create a new game session with its first game dealt.
        """
        request = request or CreateSessionRequest()
        session = self.session_manager.create_session(random_seed=request.random_seed)

        self._game_loops[session.session_id] = GameLoop(
            session,
            scheduler=self.scheduler,
            flip_back_delay=self.flip_back_delay,
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Get session status.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        """
        End a session, cancelling any pending flip-back.
        """
        loop = self._game_loops.pop(session_id, None)
        if loop:
            loop.close()
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        """
        List active session IDs.
        """
        return self.session_manager.list_active_sessions()

    def cleanup_stale_sessions(self, max_age_seconds: int) -> list[str]:
        """
        End sessions that have been idle too long.
        """
        removed = self.session_manager.cleanup_stale_sessions(max_age_seconds)
        for session_id in removed:
            loop = self._game_loops.pop(session_id, None)
            if loop:
                loop.close()
        return removed

    def get_game_loop(self, session_id: str) -> GameLoop | None:
        return self._game_loops.get(session_id)

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """
        Get the full board for rendering.
        """
        loop = self._game_loops.get(session_id)
        if not loop:
            return self._not_found(session_id)
        return self._state_to_response(loop)

    def select_card(
        self, session_id: str, request: SelectCardRequest
    ) -> SelectCardResponse | ErrorResponse:
        """
        Forward a tap to the engine.

        Ignored taps (unknown, matched or face-up cards) succeed with
        changed=False.
        """
        loop = self._game_loops.get(session_id)
        if not loop:
            return self._not_found(session_id)

        result = loop.choose(request.card_id)
        if not result.success:
            return ErrorResponse(
                error="; ".join(result.errors) or "Select failed",
                error_code=ErrorCode.INTERNAL_ERROR,
            )

        return SelectCardResponse(
            changed=result.changed,
            matched_content_id=result.matched_content_id,
            flip_back_scheduled=result.flip_back_scheduled,
            state_changes=result.state_changes,
            state=self._state_to_response(loop),
        )

    def flip_back(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """
        Hide a non-matching pair immediately.
        """
        loop = self._game_loops.get(session_id)
        if not loop:
            return self._not_found(session_id)
        loop.flip_back()
        return self._state_to_response(loop)

    def new_game(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """
        Discard the current game and deal a new one.
        """
        loop = self._game_loops.get(session_id)
        if not loop:
            return self._not_found(session_id)
        loop.new_game()
        return self._state_to_response(loop)

    def subscribe(
        self, session_id: str, listener: Callable[[GameStateResponse], None]
    ) -> Callable[[], None] | None:
        """
        Receive a GameStateResponse after every change in a session.

        Returns an unsubscribe function, or None if the session is unknown.
        """
        loop = self._game_loops.get(session_id)
        if not loop:
            return None

        def on_snapshot(snapshot: GameSnapshot):
            listener(self._state_to_response(loop, snapshot))

        return loop.subscribe(on_snapshot)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        game = session.game_state
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            game_id=game.game_id if game else None,
            games_started=session.games_started,
            progress=game.snapshot().progress if game else 0.0,
            random_seed=session.random_seed,
            created_at=session.created_at,
        )

    def _state_to_response(
        self, loop: GameLoop, snapshot: GameSnapshot | None = None
    ) -> GameStateResponse:
        snapshot = snapshot or loop.snapshot()
        return GameStateResponse(
            session_id=loop.session.session_id,
            game_id=snapshot.game_id,
            version=snapshot.version,
            status=SessionStatus(loop.session.state.value),
            loop_state=loop.state.value,
            cards=[
                CardInfo(
                    card_id=c.card_id,
                    position=c.position,
                    face=CardFace(c.face.value),
                    is_face_up=c.is_face_up,
                    is_matched=c.is_matched,
                    content_id=c.content_id if c.is_face_up or c.is_matched else None,
                )
                for c in snapshot.cards
            ],
            selection=list(snapshot.selection),
            progress=snapshot.progress,
            matched_pairs=snapshot.matched_pair_count,
            total_pairs=snapshot.total_pair_count,
            is_complete=snapshot.is_complete,
            flip_back_pending=loop.flip_back_pending,
        )
