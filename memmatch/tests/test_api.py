"""
Tests for API layer.

Tests:
- API service methods
- Session lifecycle via API
- Taps, flip-backs and new games
- Error handling
"""

import pytest

from ..api.schemas import (
    CreateSessionRequest,
    SelectCardRequest,
    GameStateResponse,
    SelectCardResponse,
    ErrorResponse,
    ErrorCode,
    SessionStatus,
    CardFace,
)
from ..api.service import APIService
from ..session import ClockScheduler


def _pair(state: GameStateResponse, service: APIService) -> tuple[str, str]:
    """Find a matching pair using the engine-side state (clients never see hidden content)."""
    game = service.get_game_loop(state.session_id).game_state
    content_id = game.cards[0].content_id
    return tuple(c.card_id for c in game.cards if c.content_id == content_id)


def _mismatch(state: GameStateResponse, service: APIService) -> tuple[str, str]:
    game = service.get_game_loop(state.session_id).game_state
    first = game.cards[0]
    second = next(c for c in game.cards if c.content_id != first.content_id)
    return first.card_id, second.card_id


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def scheduler(self):
        return ClockScheduler()

    @pytest.fixture
    def service(self, scheduler):
        """Create a fresh API service on a manual clock."""
        return APIService(scheduler=scheduler, flip_back_delay=0.7)

    @pytest.fixture
    def session_id(self, service):
        return service.create_session(CreateSessionRequest(random_seed=1)).session_id

    def test_create_session(self, service):
        response = service.create_session(CreateSessionRequest(random_seed=3))

        assert response.session_id is not None
        assert response.status == SessionStatus.ACTIVE
        assert response.games_started == 1
        assert response.progress == 0.0
        assert response.random_seed == 3

    def test_create_session_without_request(self, service):
        response = service.create_session()
        assert response.random_seed is None

    def test_get_session(self, service, session_id):
        response = service.get_session(session_id)

        assert response.session_id == session_id
        assert response.game_id is not None

    def test_get_nonexistent_session(self, service):
        response = service.get_session("nonexistent-id")

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_end_session(self, service, session_id):
        assert service.end_session(session_id)

        response = service.get_session(session_id)
        assert isinstance(response, ErrorResponse)
        assert isinstance(service.get_game_state(session_id), ErrorResponse)

    def test_end_session_cancels_flip_back(self, service, session_id, scheduler):
        state = service.get_game_state(session_id)
        first, second = _mismatch(state, service)
        service.select_card(session_id, SelectCardRequest(card_id=first))
        service.select_card(session_id, SelectCardRequest(card_id=second))

        service.end_session(session_id)

        assert scheduler.pending_count == 0

    def test_list_sessions(self, service):
        for _ in range(3):
            service.create_session()

        assert len(service.list_sessions()) == 3

    def test_get_game_state_hides_face_down_content(self, service, session_id):
        response = service.get_game_state(session_id)

        assert response.total_pairs == 6
        assert len(response.cards) == 12
        assert all(c.face == CardFace.FACE_DOWN for c in response.cards)
        assert all(c.content_id is None for c in response.cards)
        assert [c.position for c in response.cards] == list(range(12))

    def test_select_match(self, service, session_id):
        state = service.get_game_state(session_id)
        first, second = _pair(state, service)

        service.select_card(session_id, SelectCardRequest(card_id=first))
        response = service.select_card(session_id, SelectCardRequest(card_id=second))

        assert isinstance(response, SelectCardResponse)
        assert response.changed
        assert response.matched_content_id is not None
        assert response.state.matched_pairs == 1
        assert response.state.progress == pytest.approx(1 / 6)
        matched = [c for c in response.state.cards if c.is_matched]
        assert {c.card_id for c in matched} == {first, second}
        assert all(c.content_id == response.matched_content_id for c in matched)

    def test_select_mismatch_then_flip_back(self, service, session_id, scheduler):
        state = service.get_game_state(session_id)
        first, second = _mismatch(state, service)

        service.select_card(session_id, SelectCardRequest(card_id=first))
        response = service.select_card(session_id, SelectCardRequest(card_id=second))

        assert response.flip_back_scheduled
        assert response.state.flip_back_pending
        assert response.state.selection == [first, second]
        assert response.state.loop_state == "showing_mismatch"

        scheduler.advance(1.0)

        after = service.get_game_state(session_id)
        assert after.selection == []
        assert not after.flip_back_pending
        assert all(c.face == CardFace.FACE_DOWN for c in after.cards)

    def test_explicit_flip_back(self, service, session_id):
        state = service.get_game_state(session_id)
        first, second = _mismatch(state, service)
        service.select_card(session_id, SelectCardRequest(card_id=first))
        service.select_card(session_id, SelectCardRequest(card_id=second))

        response = service.flip_back(session_id)

        assert response.selection == []
        assert all(not c.is_face_up for c in response.cards)

    def test_ignored_select(self, service, session_id):
        response = service.select_card(session_id, SelectCardRequest(card_id="unknown"))

        assert not response.changed
        assert response.state.version == 0

    def test_select_unknown_session(self, service):
        response = service.select_card("missing", SelectCardRequest(card_id="x"))
        assert response.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_new_game(self, service, session_id):
        old = service.get_game_state(session_id)

        response = service.new_game(session_id)

        assert response.game_id != old.game_id
        assert response.progress == 0.0
        assert service.get_session(session_id).games_started == 2

    def test_subscribe(self, service, session_id, scheduler):
        updates = []
        unsubscribe = service.subscribe(session_id, updates.append)
        state = service.get_game_state(session_id)
        first, second = _mismatch(state, service)

        service.select_card(session_id, SelectCardRequest(card_id=first))
        service.select_card(session_id, SelectCardRequest(card_id=second))
        scheduler.advance(1.0)

        assert len(updates) == 3
        assert updates[1].flip_back_pending
        assert not updates[2].flip_back_pending
        assert updates[2].selection == []

        unsubscribe()
        service.new_game(session_id)
        assert len(updates) == 3

    def test_subscribe_unknown_session(self, service):
        assert service.subscribe("missing", lambda state: None) is None

    def test_cleanup_stale_sessions(self, service, session_id):
        service.session_manager.get_session(session_id).last_activity = 0.0

        removed = service.cleanup_stale_sessions(max_age_seconds=60)

        assert removed == [session_id]
        assert service.get_game_loop(session_id) is None

    def test_completed_status(self, service, session_id):
        game = service.get_game_loop(session_id).game_state
        for content_id in {c.content_id for c in game.cards}:
            for card in [c for c in game.cards if c.content_id == content_id]:
                service.select_card(session_id, SelectCardRequest(card_id=card.card_id))

        state = service.get_game_state(session_id)
        assert state.is_complete
        assert state.progress == 1.0
        assert state.status == SessionStatus.COMPLETED
        assert state.loop_state == "game_over"


class TestAPIModels:
    """Tests for API model validation."""

    def test_select_request_requires_card_id(self):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            SelectCardRequest(card_id="")

    def test_progress_bounds(self):
        from pydantic import ValidationError

        with pytest.raises(ValidationError):
            GameStateResponse(
                session_id="s",
                game_id="g",
                status=SessionStatus.ACTIVE,
                loop_state="waiting_first_card",
                progress=1.5,
            )
