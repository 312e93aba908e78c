"""
Flowers - The built-in card set.

Twelve flower images ship with the game; a round uses the first six,
giving 12 cards / 6 pairs.
"""

from __future__ import annotations
import random

from ..engine_core.reducer import new_game
from ..engine_core.state import GameState

FLOWERS = [
    "flower1", "flower2", "flower3", "flower4", "flower5", "flower6",
    "flower7", "flower8", "flower9", "flower10", "flower11", "flower12",
]

PAIRS_PER_GAME = 6


def flower_content_ids() -> list[str]:
    """Content ids used for every game."""
    return FLOWERS[:PAIRS_PER_GAME]


def new_flower_game(rng: random.Random | None = None, seed: int | None = None) -> GameState:
    """Create a fresh game with the fixed flower set."""
    return new_game(flower_content_ids(), rng=rng, seed=seed)
