"""
Session Module - Manages ephemeral game sessions.

A session represents one player at the table:
- Created when the player opens the game
- Holds the current game state
- Replaces it wholesale on "new game"
- Destroyed when the player leaves

Sessions are EPHEMERAL:
- No persistence to database
- Nothing survives a restart
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TurnResult, FlipBackTicket
from .scheduler import (
    Scheduler,
    ScheduledCall,
    AsyncioScheduler,
    ClockScheduler,
    monotonic_clock_scheduler,
)

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "FlipBackTicket",
    "Scheduler",
    "ScheduledCall",
    "AsyncioScheduler",
    "ClockScheduler",
    "monotonic_clock_scheduler",
]
