"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Player opens the game → session created, first game dealt
2. During play:
   - Taps arrive as select(card_id)
   - Non-matching pairs are flipped back after a short delay
   - "New game" replaces the GameState wholesale
3. Player leaves → session ended, ALL state deleted

PERSISTENCE RULES:
- Sessions are in-memory only
- Nothing survives a restart
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
import uuid

from ..engine_core.reducer import new_game
from ..engine_core.state import GameState
from ..games import flower_content_ids

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    COMPLETED = "completed"  # Every pair matched, waiting for new game
    ENDED = "ended"  # Session closed


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - The content set every game in this session is dealt from
    - The current GameState (replaced on every new game)
    - A random source, seeded when reproducible games are requested
    """
    session_id: str
    created_at: float
    content_ids: list[str]

    state: SessionState = SessionState.ACTIVE
    game_state: GameState | None = None

    random_seed: int | None = None
    rng: random.Random = field(default_factory=random.Random)

    games_started: int = 0
    last_activity: float = 0.0

    def is_active(self) -> bool:
        """Check if session is still open."""
        return self.state in {SessionState.ACTIVE, SessionState.COMPLETED}

    def deal(self) -> GameState:
        """Replace the current game with a freshly shuffled one."""
        self.game_state = new_game(self.content_ids, rng=self.rng)
        self.games_started += 1
        self.state = SessionState.ACTIVE
        self.touch()
        return self.game_state

    def touch(self):
        self.last_activity = time.time()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions and deal their first game
    - Track active sessions
    - Clean up idle sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        content_ids: list[str] | None = None,
        random_seed: int | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            content_ids: Card set to deal from (defaults to the flower set)
            random_seed: Seed for reproducible shuffles

        Returns:
            New Session with its first game dealt
        """
        session = Session(
            session_id=str(uuid.uuid4()),
            created_at=time.time(),
            content_ids=list(content_ids) if content_ids is not None else flower_content_ids(),
            random_seed=random_seed,
            rng=random.Random(random_seed),
        )
        session.deal()

        self._sessions[session.session_id] = session
        logger.info(
            "Session %s created (%d pairs, seed=%s)",
            session.session_id, len(session.content_ids), random_seed,
        )
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and clean up.

        The session is removed from memory. Returns False if it did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False

        session.state = SessionState.ENDED
        session.game_state = None
        logger.info("Session %s ended (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """
        End sessions idle for longer than max_age_seconds.

        Returns the IDs that were removed.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.last_activity > max_age_seconds
        ]

        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return to_remove
