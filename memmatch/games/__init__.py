"""
Games module - Built-in card sets.

Each set is a static list of content ids plus a factory that deals a
fresh game from it.
"""

from .flowers import FLOWERS, PAIRS_PER_GAME, flower_content_ids, new_flower_game

__all__ = [
    "FLOWERS",
    "PAIRS_PER_GAME",
    "flower_content_ids",
    "new_flower_game",
]
