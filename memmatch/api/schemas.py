"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between a client (the board
renderer) and the engine.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has expired
- VALIDATION_ERROR: Request body or parameters are invalid
- INTERNAL_ERROR: Unexpected server failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ENDED = "ended"


class CardFace(str, Enum):
    """Visible state of a card."""
    FACE_DOWN = "face_down"
    FACE_UP = "face_up"
    MATCHED = "matched"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    position: int = Field(ge=0, description="Index in the dealt grid")
    face: CardFace
    is_face_up: bool = False
    is_matched: bool = False
    content_id: Optional[str] = Field(
        None, description="Image to show; only sent while the card is revealed"
    )

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    random_seed: Optional[int] = Field(None, description="Seed for reproducible shuffles")


class SelectCardRequest(BaseModel):
    """A tap on a card."""
    card_id: str = Field(..., min_length=1, description="ID of the tapped card")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for rendering the grid and progress bar."""
    session_id: str
    game_id: str
    version: int = 0
    status: SessionStatus
    loop_state: str = Field(description="waiting_first_card, waiting_second_card, showing_mismatch, game_over")
    cards: list[CardInfo] = Field(default_factory=list)
    selection: list[str] = Field(default_factory=list, description="Pending card IDs, oldest first")
    progress: float = Field(0.0, ge=0.0, le=1.0, description="Fraction of pairs matched")
    matched_pairs: int = 0
    total_pairs: int = 0
    is_complete: bool = False
    flip_back_pending: bool = False
    api_version: str = "v1"


class SelectCardResponse(BaseModel):
    """Result of a tap."""
    changed: bool = Field(description="False when the tap was ignored")
    matched_content_id: Optional[str] = None
    flip_back_scheduled: bool = False
    state_changes: list[str] = Field(default_factory=list)
    state: GameStateResponse
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    game_id: Optional[str] = None
    games_started: int = 0
    progress: float = Field(0.0, ge=0.0, le=1.0)
    random_seed: Optional[int] = None
    created_at: float = 0.0
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """List of active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response from ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
