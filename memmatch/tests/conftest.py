"""
Pytest fixtures for Memmatch tests.
"""

import pytest

from ..engine_core.reducer import new_game
from ..engine_core.state import GameState, Card
from ..session import SessionManager, GameLoop, ClockScheduler

LETTERS = ["a", "b", "c", "d", "e", "f"]


def pair_ids(state: GameState, content_id: str) -> list[str]:
    """card_ids of both cards showing content_id."""
    return [c.card_id for c in state.cards if c.content_id == content_id]


def mismatch_ids(state: GameState) -> tuple[str, str]:
    """Two card_ids with different content, first card first in the deck."""
    first = state.cards[0]
    for card in state.cards[1:]:
        if card.content_id != first.content_id:
            return first.card_id, card.card_id
    raise AssertionError("deck has a single content id")


@pytest.fixture
def letters() -> list[str]:
    return list(LETTERS)


@pytest.fixture
def letter_game(letters) -> GameState:
    """Shuffled a-f game (12 cards)."""
    return new_game(letters, seed=1234)


@pytest.fixture
def ordered_game() -> GameState:
    """Unshuffled game: a, a, b, b, c, c."""
    cards = []
    for content_id in ["a", "b", "c"]:
        cards.append(Card(content_id=content_id, card_id=f"{content_id}1"))
        cards.append(Card(content_id=content_id, card_id=f"{content_id}2"))
    return GameState(cards=cards)


@pytest.fixture
def scheduler() -> ClockScheduler:
    return ClockScheduler()


@pytest.fixture
def manager() -> SessionManager:
    return SessionManager()


@pytest.fixture
def game_loop(manager, scheduler) -> GameLoop:
    """Loop over a seeded flower session with a 0.7s flip-back."""
    session = manager.create_session(random_seed=42)
    return GameLoop(session, scheduler=scheduler, flip_back_delay=0.7)
