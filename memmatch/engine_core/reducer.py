"""
Reducer - Builds decks and applies actions to game state.

The reducer is the single point of state mutation.
All in-game changes go through select() / clear_unmatched_selections(),
either directly or via apply_action().

Design principles:
- Guarded: invalid or stale input is a no-op, never an exception
- In place: a GameState is mutated by its own game and replaced on reset
- Evict, then insert: a third tap flips the oldest pending card back
  before the new card joins the selection queue
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
import logging
import random

from .state import GameState, Card, DeckError
from .action import Action, ActionType, ActionResult

logger = logging.getLogger(__name__)

# Two face-up unmatched cards are compared; a third evicts the oldest
PAIR_SIZE = 2


def new_game(
    content_ids: Iterable[str],
    rng: random.Random | None = None,
    seed: int | None = None,
) -> GameState:
    """
    Create a fresh, shuffled game.

    Args:
        content_ids: Ordered content identifiers, each given once
        rng: Random source for the shuffle (takes precedence over seed)
        seed: Seed for a reproducible shuffle

    Returns:
        New GameState with two face-down cards per content id

    Raises:
        DeckError: if a content id is blank or given more than once
    """
    content_ids = list(content_ids)
    _validate_content_ids(content_ids)

    cards = []
    for content_id in content_ids:
        cards.append(Card(content_id=content_id))
        cards.append(Card(content_id=content_id))

    if rng is None:
        rng = random.Random(seed)
    rng.shuffle(cards)

    state = GameState(cards=cards)
    logger.debug(
        "New game %s: %d cards, %d pairs",
        state.game_id, len(state.cards), state.total_pair_count,
    )
    return state


def _validate_content_ids(content_ids: list[str]):
    errors: list[str] = []
    seen: set[str] = set()
    for content_id in content_ids:
        if not isinstance(content_id, str) or not content_id.strip():
            errors.append(f"content id must be a non-empty string, got {content_id!r}")
            continue
        if content_id in seen:
            errors.append(f"content id {content_id!r} given more than once")
        seen.add(content_id)
    if errors:
        raise DeckError(errors)


def select(state: GameState, card_id: str) -> ActionResult:
    """
    Flip a card face-up and resolve the selection queue.

    Re-tapping a revealed or matched card, or an id from another game,
    does nothing.
    """
    position = state.position_of(card_id)
    if position is None:
        return ActionResult.unchanged(f"Card {card_id} is not in this game")

    card = state.cards[position]
    if card.is_matched:
        return ActionResult.unchanged(f"Card {card_id} is already matched")
    if card.is_face_up:
        return ActionResult.unchanged(f"Card {card_id} is already face-up")

    changes: list[str] = []

    # Third tap while a non-matching pair is still showing
    if len(state.selection) >= PAIR_SIZE:
        oldest = state.cards[state.selection.pop(0)]
        oldest.is_face_up = False
        changes.append(f"Flipped back {oldest.content_id} ({oldest.card_id})")
        logger.debug("Game %s: evicted oldest selection %s", state.game_id, oldest.card_id)

    card.is_face_up = True
    state.selection.append(position)
    changes.append(f"Revealed {card.content_id} ({card.card_id})")
    state.version += 1

    result = ActionResult(success=True, changed=True, state_changes=changes)

    if len(state.selection) == PAIR_SIZE:
        first, second = state.selected_cards
        if first.content_id == second.content_id:
            first.is_matched = True
            second.is_matched = True
            state.selection.clear()
            result.matched_content_id = first.content_id
            changes.append(f"Matched pair {first.content_id}")
            logger.debug(
                "Game %s: matched %s (%d/%d)",
                state.game_id, first.content_id,
                state.matched_pair_count, state.total_pair_count,
            )
        else:
            result.needs_flip_back = True
            changes.append(f"No match: {first.content_id} / {second.content_id}")

    return result


def clear_unmatched_selections(state: GameState) -> ActionResult:
    """
    Flip back a non-matching pair and empty the selection queue.

    No-op unless exactly two cards are pending.
    """
    if len(state.selection) != PAIR_SIZE:
        return ActionResult.unchanged("No unresolved pair to flip back")

    changes: list[str] = []
    pending = state.selected_cards
    if not any(c.is_matched for c in pending):
        for c in pending:
            c.is_face_up = False
            changes.append(f"Flipped back {c.content_id} ({c.card_id})")

    state.selection.clear()
    state.version += 1
    return ActionResult(success=True, changed=True, state_changes=changes)


def progress(state: GameState) -> float:
    """Fraction of pairs matched, in [0, 1]; 0 for an empty deck."""
    total = state.total_pair_count
    if total == 0:
        return 0.0
    return state.matched_pair_count / total


def is_complete(state: GameState) -> bool:
    """Check if every pair has been matched."""
    return state.total_pair_count > 0 and state.matched_pair_count == state.total_pair_count


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless - all state is in GameState.
    """

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult describing what changed.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(f"No handler for action type: {action.action_type}")
        return handler(state, action)

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.SELECT: self._handle_select,
            ActionType.CLEAR_UNMATCHED: self._handle_clear_unmatched,
        }
        return handlers.get(action_type)

    def _handle_select(self, state: GameState, action: Action) -> ActionResult:
        if not action.card_id:
            return ActionResult.failure("Select requires a card_id")
        return select(state, action.card_id)

    def _handle_clear_unmatched(self, state: GameState, action: Action) -> ActionResult:
        return clear_unmatched_selections(state)


def apply_action(state: GameState, action: Action) -> ActionResult:
    """Convenience function to apply an action."""
    return Reducer().apply(state, action)
