"""
Engine Core - Memory game state management.

The engine is the runtime that:
1. Builds a shuffled deck of pairs
2. Manages GameState
3. Applies selections and flip-backs via the reducer
4. Reports progress
"""

from .state import GameState, Card, CardFace, CardView, GameSnapshot, DeckError
from .action import Action, ActionType, ActionResult
from .reducer import (
    Reducer,
    apply_action,
    new_game,
    select,
    clear_unmatched_selections,
    progress,
    is_complete,
)

__all__ = [
    "GameState",
    "Card",
    "CardFace",
    "CardView",
    "GameSnapshot",
    "DeckError",
    "Action",
    "ActionType",
    "ActionResult",
    "Reducer",
    "apply_action",
    "new_game",
    "select",
    "clear_unmatched_selections",
    "progress",
    "is_complete",
]
