"""
Action System - Actions and results.

Actions represent player intents coming from a presentation adapter:
1. Select a card (a tap)
2. Clear unmatched selections (the delayed flip-back)

All in-game state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class ActionType(Enum):
    """Types of actions in the system."""
    SELECT = "select"
    CLEAR_UNMATCHED = "clear_unmatched"


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are applied atomically by the reducer.
    """
    action_type: ActionType
    card_id: str | None = None

    @classmethod
    def select(cls, card_id: str) -> Action:
        """Factory for select action."""
        return cls(action_type=ActionType.SELECT, card_id=card_id)

    @classmethod
    def clear_unmatched(cls) -> Action:
        """Factory for the flip-back action."""
        return cls(action_type=ActionType.CLEAR_UNMATCHED)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action was accepted
    - Whether it changed anything (guarded no-ops report changed=False)
    - Human-readable changes for logs and UIs
    - Whether two non-matching cards are now waiting to be flipped back
    """
    success: bool
    changed: bool = False
    error: str | None = None

    state_changes: list[str] = field(default_factory=list)
    matched_content_id: str | None = None
    needs_flip_back: bool = False

    @classmethod
    def failure(cls, error: str) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error)

    @classmethod
    def unchanged(cls, reason: str) -> ActionResult:
        """Create a successful no-op result."""
        return cls(success=True, changed=False, state_changes=[reason])
