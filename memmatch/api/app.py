"""
FastAPI Application - REST API for the memory game.

Endpoints:
    POST   /api/v1/sessions                   Create game session
    GET    /api/v1/sessions                   List active sessions
    GET    /api/v1/sessions/{id}              Get session status
    DELETE /api/v1/sessions/{id}              End session
    GET    /api/v1/sessions/{id}/state        Get board state
    POST   /api/v1/sessions/{id}/select       Tap a card
    POST   /api/v1/sessions/{id}/flip-back    Hide a non-matching pair now
    POST   /api/v1/sessions/{id}/new-game     Deal a new game
    WS     /api/v1/sessions/{id}/ws           WebSocket for real-time updates

Flip-back Flow:
    1. POST /select reveals the second card of a non-matching pair
    2. Response has flip_back_scheduled=true and both faces showing
    3. After the flip-back delay the server hides both cards
    4. WebSocket clients receive a state_update; polling clients see it on /state

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union
import asyncio
import json
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import get_config
from .service import APIService
from .schemas import (
    # Request models
    CreateSessionRequest,
    SelectCardRequest,
    # Response models
    SessionResponse,
    GameStateResponse,
    SelectCardResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    config = get_config()

    app = FastAPI(
        title="Memory Match API",
        description="""
Flip two cards, match pairs.

## Flip-back Flow

1. `POST /select` reveals a card. When two revealed cards do not match,
   the response has `flip_back_scheduled=true`.
2. Both faces stay visible for the flip-back delay, then the server hides
   them and pushes a `state_update` over the WebSocket.
3. A tap on a third card during the delay hides the oldest pending card
   immediately.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `VALIDATION_ERROR` | Request is malformed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        debug=config.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService(flip_back_delay=config.flip_back_delay)
    app.state.api_service = api_service

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}
    # One lock per session keeps state_update messages in version order
    send_locks: dict[str, asyncio.Lock] = {}
    # Strong references to in-flight broadcasts until they finish
    broadcast_tasks: set[asyncio.Task] = set()
    app.state.broadcast_tasks = broadcast_tasks

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_to_json(response: ErrorResponse) -> JSONResponse:
        status_code = 404 if response.error_code == ErrorCode.SESSION_NOT_FOUND else 500
        return make_error_response(response.error_code, response.error, status_code=status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request",
            details={"errors": json.loads(json.dumps(exc.errors(), default=str))},
        )

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        if session_id not in ws_connections:
            return
        async with send_locks.setdefault(session_id, asyncio.Lock()):
            dead_connections = []
            for ws in list(ws_connections.get(session_id, [])):
                try:
                    await ws.send_json(message)
                except (WebSocketDisconnect, RuntimeError) as e:
                    logger.warning("WS: dropping connection for %s: %s", session_id, e)
                    dead_connections.append(ws)
            for ws in dead_connections:
                if ws in ws_connections.get(session_id, []):
                    ws_connections[session_id].remove(ws)

    def on_broadcast_done(task: asyncio.Task):
        broadcast_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("WS: broadcast failed: %r", error, exc_info=error)

    def forget_sessions(session_ids: list[str]):
        for session_id in session_ids:
            ws_connections.pop(session_id, None)
            send_locks.pop(session_id, None)

    def sweep_stale_sessions() -> list[str]:
        """End sessions idle longer than the configured max age."""
        removed = api_service.cleanup_stale_sessions(config.session_max_age)
        if removed:
            logger.info("Expired %d idle session(s)", len(removed))
            forget_sessions(removed)
        return removed

    def watch_session(session_id: str):
        """Push every state change of a session to its WebSocket clients."""

        def on_change(state: GameStateResponse):
            if not ws_connections.get(session_id):
                return
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running loop; skipped broadcast for %s", session_id)
                return
            task = loop.create_task(broadcast_to_session(session_id, {
                "type": "state_update",
                "payload": state.model_dump(mode="json"),
            }))
            broadcast_tasks.add(task)
            task.add_done_callback(on_broadcast_done)

        api_service.subscribe(session_id, on_change)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Invalid parameters"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(body: Optional[CreateSessionRequest] = None) -> SessionResponse:
        """
        Create a new game session and deal the first game.

        Pass `random_seed` for a reproducible shuffle. Sessions idle longer
        than `MEMMATCH_SESSION_MAX_AGE` seconds are ended first.
        """
        sweep_stale_sessions()
        response = api_service.create_session(body)
        watch_session(response.session_id)
        return response

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        """List all active session IDs."""
        sweep_stale_sessions()
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        """Get the current status of a game session."""
        response = api_service.get_session(session_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: str = Query("user_ended", description="Reason for ending"),
    ) -> EndSessionResponse:
        """End a game session and release resources."""
        success = api_service.end_session(session_id, reason)
        forget_sessions([session_id])
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the board",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """
        Get every card, the selection queue and progress.

        `content_id` is only included for face-up and matched cards.
        """
        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/select",
        response_model=SelectCardResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Malformed request"},
            404: {"model": ErrorResponse, "description": "Session not found"},
        },
        tags=["Game"],
        summary="Tap a card",
    )
    async def select_card(
        session_id: str,
        body: SelectCardRequest,
    ) -> Union[SelectCardResponse, JSONResponse]:
        """
        Reveal a card.

        Taps on matched, face-up or unknown cards are ignored and return
        `changed=false`.
        """
        response = api_service.select_card(session_id, body)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/flip-back",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Hide a non-matching pair now",
    )
    async def flip_back(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Resolve a pending non-matching pair without waiting for the delay."""
        response = api_service.flip_back(session_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    @app.post(
        "/api/v1/sessions/{session_id}/new-game",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Deal a new game",
    )
    async def new_game(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        """Discard the current game and deal a fresh one from the same card set."""
        response = api_service.new_game(session_id)
        if isinstance(response, ErrorResponse):
            return error_to_json(response)
        return response

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - state_update: Board changed
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        - select: {"type": "select", "card_id": "..."}
        - flip_back: Hide a non-matching pair now
        - new_game: Deal a new game
        """
        await websocket.accept()

        response = api_service.get_game_state(session_id)
        if isinstance(response, ErrorResponse):
            await websocket.send_json({
                "type": "error",
                "payload": response.model_dump(mode="json"),
            })
            await websocket.close()
            return

        ws_connections.setdefault(session_id, []).append(websocket)

        try:
            # Send initial state
            await websocket.send_json({
                "type": "state_update",
                "payload": response.model_dump(mode="json"),
            })

            # Listen for messages
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue

                msg_type = message.get("type") if isinstance(message, dict) else None
                if msg_type == "ping":
                    await websocket.send_json({"type": "pong"})
                elif msg_type == "select" and message.get("card_id"):
                    api_service.select_card(session_id, SelectCardRequest(card_id=str(message["card_id"])))
                elif msg_type == "flip_back":
                    api_service.flip_back(session_id)
                elif msg_type == "new_game":
                    api_service.new_game(session_id)
                else:
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": f"Unknown message type: {msg_type}"},
                    })

        except WebSocketDisconnect as e:
            logger.info("WS: client disconnected code=%s session=%s", e.code, session_id)
        finally:
            if session_id in ws_connections:
                if websocket in ws_connections[session_id]:
                    ws_connections[session_id].remove(websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="memmatch",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Memory Match API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn memmatch.api.app:app
app = create_app()
