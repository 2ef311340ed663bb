"""
router.py — WebSocket Router
=============================
The room socket.

ENDPOINT:
---------
WS /ws/room/{room_code}?playerId={id}

FLOW:
-----
1. Validate room + player (error frame and close 1008 if invalid)
2. Register with the ConnectionManager, the actor pushes the first view
3. Receive loop: parse text frames, queue on the room actor; binary or bad
   frames get an error frame and the connection stays open
4. Disconnect: deregister, room removed after its last socket
"""

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from starlette.websockets import WebSocketState

from pictionary.apps.ws.schema import parse_client_message
from pictionary.apps.ws.service import ConnectionManager
from pictionary.core.config import Settings
from pictionary.core.dependencies import get_app_settings, get_sessions
from pictionary.core.errors import GameError, InvalidMessage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/ws/room/{room_code}")
async def room_socket(
    websocket: WebSocket,
    room_code: str,
    player_id: int = Query(..., alias="playerId"),
    sessions: ConnectionManager = Depends(get_sessions),
    settings: Settings = Depends(get_app_settings),
):
    """
    Client frames:
        {"type": "prompt", "prompt": "..."}
        {"type": "guess", "guess": "..."}
        {"type": "setWord", "word": "..."}
        {"type": "generateWord", "category": "animals"}

    Server frames: gameState, roundComplete, gameComplete, wrongGuess, error
    """
    code = room_code.upper()
    logger.info(f"WebSocket connection attempt: {code}/{player_id}")

    # ═══ 1. ACCEPT ═══
    try:
        await sessions.connect(code, player_id, websocket)
    except GameError as e:
        logger.warning(f"Connection refused for {code}/{player_id}: {e.code}")
        # connect() may have accepted before the room went away
        if websocket.client_state == WebSocketState.CONNECTING:
            await websocket.accept()
        await websocket.send_json(e.to_message())
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # ═══ 2. MESSAGE LOOP ═══
    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
            try:
                raw = frame.get("text")
                if raw is None:
                    raise InvalidMessage(message="Binary frames are not supported")
                message = parse_client_message(raw, settings.WS_MESSAGE_MAX_SIZE)
                logger.info(f"Received from {player_id} in {code}: {message.type}")
                sessions.dispatch(code, player_id, message)
            except GameError as e:
                logger.info(f"Rejected frame from {player_id} in {code}: {e.message}")
                await websocket.send_json(e.to_message())

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {code}/{player_id}")

    except Exception as e:
        logger.error(f"WebSocket error in {code}/{player_id}: {e}")

    finally:
        await sessions.disconnect(code, player_id, websocket)
