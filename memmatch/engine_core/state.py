"""
Game State - Cards, the deck and the selection queue.

Design principles:
- One GameState per game: created fresh on "new game", mutated in place
  by the reducer, discarded wholesale on reset
- Identity-based: cards are addressed by a stable card_id, never by a
  position carried over from another game
- Observable: snapshots are frozen copies that renderers can hold onto
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import uuid


class CardFace(Enum):
    """Visible state of a single card."""
    FACE_DOWN = "face_down"
    FACE_UP = "face_up"
    MATCHED = "matched"  # Terminal


class DeckError(ValueError):
    """Raised when a deck cannot be built from the given content ids."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invalid deck: {'; '.join(errors)}")


@dataclass
class Card:
    """
    A card instance on the table.

    Two cards share each content_id. The card_id is unique per instance
    and stable for the lifetime of the game.
    """
    content_id: str  # Which image/value the card shows when revealed
    card_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    is_face_up: bool = False
    is_matched: bool = False

    @property
    def face(self) -> CardFace:
        if self.is_matched:
            return CardFace.MATCHED
        if self.is_face_up:
            return CardFace.FACE_UP
        return CardFace.FACE_DOWN

    def __hash__(self):
        return hash(self.card_id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.card_id == other.card_id


@dataclass(frozen=True)
class CardView:
    """Read-only view of a card for rendering."""
    card_id: str
    content_id: str
    position: int
    is_face_up: bool
    is_matched: bool

    @property
    def face(self) -> CardFace:
        if self.is_matched:
            return CardFace.MATCHED
        if self.is_face_up:
            return CardFace.FACE_UP
        return CardFace.FACE_DOWN


@dataclass(frozen=True)
class GameSnapshot:
    """
    Immutable copy of a GameState at one point in time.

    Adapters render from snapshots and send intents back through the
    engine; a snapshot carries no way to mutate the game.
    """
    game_id: str
    version: int
    cards: tuple[CardView, ...]
    selection: tuple[str, ...]  # card_ids, oldest first
    matched_pair_count: int
    total_pair_count: int

    @property
    def progress(self) -> float:
        if self.total_pair_count == 0:
            return 0.0
        return self.matched_pair_count / self.total_pair_count

    @property
    def is_complete(self) -> bool:
        return self.total_pair_count > 0 and self.matched_pair_count == self.total_pair_count

    @property
    def has_unresolved_pair(self) -> bool:
        """True while two non-matching cards are showing, awaiting flip-back."""
        return len(self.selection) == 2


@dataclass
class GameState:
    """
    Complete state of one game.

    The selection queue holds positions of face-up, unmatched cards
    awaiting resolution, oldest first. All mutation goes through the
    reducer.
    """
    cards: list[Card] = field(default_factory=list)
    selection: list[int] = field(default_factory=list)
    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    version: int = 0

    # card_id -> position; rebuilt for every new game
    _positions: dict[str, int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.reindex()

    def reindex(self):
        """Rebuild the card_id -> position lookup."""
        self._positions = {card.card_id: i for i, card in enumerate(self.cards)}

    def position_of(self, card_id: str) -> int | None:
        """Get the position of a card by ID, or None if it is not in this game."""
        return self._positions.get(card_id)

    def get_card(self, card_id: str) -> Card | None:
        """Get card by ID."""
        position = self.position_of(card_id)
        if position is None:
            return None
        return self.cards[position]

    @property
    def total_pair_count(self) -> int:
        return len(self.cards) // 2

    @property
    def matched_pair_count(self) -> int:
        return sum(1 for c in self.cards if c.is_matched) // 2

    @property
    def selected_cards(self) -> list[Card]:
        """Cards in the selection queue, oldest first."""
        return [self.cards[i] for i in self.selection]

    def snapshot(self) -> GameSnapshot:
        """Freeze the current state for rendering."""
        return GameSnapshot(
            game_id=self.game_id,
            version=self.version,
            cards=tuple(
                CardView(
                    card_id=c.card_id,
                    content_id=c.content_id,
                    position=i,
                    is_face_up=c.is_face_up,
                    is_matched=c.is_matched,
                )
                for i, c in enumerate(self.cards)
            ),
            selection=tuple(self.cards[i].card_id for i in self.selection),
            matched_pair_count=self.matched_pair_count,
            total_pair_count=self.total_pair_count,
        )
