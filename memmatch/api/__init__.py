"""
API Module - HTTP/WebSocket interface.

Exposes the engine via REST API for a board renderer.
The client:
1. Creates a game session
2. Fetches the board and renders it
3. Sends taps as select(card_id)
4. Receives state updates, including delayed flip-backs
5. Deals a new game when asked

All state is session-scoped. No user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    SelectCardRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    SelectCardResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    # Enums
    CardFace,
    ErrorCode,
    SessionStatus,
)
from .service import APIService

__all__ = [
    # Requests
    "CreateSessionRequest",
    "SelectCardRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "SelectCardResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "HealthResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    # Enums
    "CardFace",
    "ErrorCode",
    "SessionStatus",
    # Service
    "APIService",
]
