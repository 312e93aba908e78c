"""
Tests for the session manager.
"""

from dataclasses import fields
import time

from ..session import SessionManager, SessionState
from ..games import FLOWERS


class TestSessionManager:
    """Tests for session lifecycle."""

    def test_create_deals_first_game(self, manager):
        session = manager.create_session()

        assert session.session_id
        assert session.state == SessionState.ACTIVE
        assert session.games_started == 1
        assert len(session.game_state.cards) == 12
        assert {c.content_id for c in session.game_state.cards} == set(FLOWERS[:6])

    def test_session_fields(self, manager):
        """A session carries only game and lifecycle data."""
        session = manager.create_session()

        assert {f.name for f in fields(session)} == {
            "session_id",
            "created_at",
            "content_ids",
            "state",
            "game_state",
            "random_seed",
            "rng",
            "games_started",
            "last_activity",
        }

    def test_seeded_sessions_deal_same_order(self):
        first = SessionManager().create_session(random_seed=11)
        second = SessionManager().create_session(random_seed=11)

        assert [c.content_id for c in first.game_state.cards] == [
            c.content_id for c in second.game_state.cards
        ]

    def test_custom_content_ids(self, manager):
        session = manager.create_session(content_ids=["x", "y"])

        assert len(session.game_state.cards) == 4
        assert session.content_ids == ["x", "y"]

    def test_deal_replaces_state(self, manager):
        session = manager.create_session()
        old = session.game_state

        new = session.deal()

        assert new is session.game_state
        assert new is not old
        assert session.games_started == 2

    def test_get_and_end(self, manager):
        session = manager.create_session()
        session_id = session.session_id

        assert manager.get_session(session_id) is session
        assert session_id in manager.list_active_sessions()

        assert manager.end_session(session_id)

        assert manager.get_session(session_id) is None
        assert session_id not in manager.list_active_sessions()
        assert session.state == SessionState.ENDED
        assert session.game_state is None

    def test_end_unknown_session(self, manager):
        assert not manager.end_session("nonexistent-id")

    def test_cleanup_stale_sessions(self, manager):
        idle = manager.create_session()
        fresh = manager.create_session()
        idle.last_activity = time.time() - 7200

        removed = manager.cleanup_stale_sessions(max_age_seconds=3600)

        assert removed == [idle.session_id]
        assert manager.get_session(idle.session_id) is None
        assert manager.get_session(fresh.session_id) is fresh
