"""
router.py — Room REST Endpoints
================================
Room creation, joining and polling.

ENDPOINTS:
----------
POST   /api/rooms              → Create a room, creator gets a player id
POST   /api/rooms/{code}/join  → Join as the second player
GET    /api/rooms/{code}       → Snapshot (no secret word)
GET    /api/rooms              → All live rooms

After create/join the client opens  WS /ws/room/{code}?playerId={id}
"""

import logging

from fastapi import APIRouter, Depends, status

from pictionary.apps.rooms.schema import JoinRequest, RoomCreateRequest, RoomSnapshot, RoomTicket
from pictionary.apps.rooms.service import RoomRegistry
from pictionary.apps.words.service import WordBank
from pictionary.apps.ws.service import ConnectionManager
from pictionary.core.dependencies import get_registry, get_sessions, get_word_bank
from pictionary.core.errors import CategoryNotFound
from pictionary.shared.schemas import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rooms", tags=["rooms"])

ERROR_RESPONSES = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post("", response_model=RoomTicket, status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
async def create_room_endpoint(
    req: RoomCreateRequest,
    registry: RoomRegistry = Depends(get_registry),
    bank: WordBank = Depends(get_word_bank),
):
    """
    Create a room.

    Returns:
        201: room code and the creator's player id
        404: unknown category
        503: too many live rooms
    """
    category = req.category.strip().lower() if req.category else None
    if category and not bank.has_category(category):
        raise CategoryNotFound(message=f"Unknown category: {category}")

    code, player_id = registry.create_room(req.player_name.strip(), req.mode, category)
    return RoomTicket(code=code, player_id=player_id)


@router.get("", response_model=list[RoomSnapshot])
async def list_rooms_endpoint(registry: RoomRegistry = Depends(get_registry)):
    return [RoomSnapshot.from_room(room) for room in registry.list_rooms()]


@router.get("/{code}", response_model=RoomSnapshot, responses=ERROR_RESPONSES)
async def get_room_endpoint(code: str, registry: RoomRegistry = Depends(get_registry)):
    return RoomSnapshot.from_room(registry.get_room(code))


@router.post("/{code}/join", response_model=RoomTicket, responses=ERROR_RESPONSES)
async def join_room_endpoint(
    code: str,
    req: JoinRequest,
    registry: RoomRegistry = Depends(get_registry),
    sessions: ConnectionManager = Depends(get_sessions),
):
    """
    Join a room as guesser.

    Returns:
        200: room code and the new player id
        404: unknown room
        409: room full
    """
    room_code, player_id = registry.join_room(code, req.player_name.strip())
    # players already on the socket see the newcomer and the status change
    sessions.refresh(room_code)
    return RoomTicket(code=room_code, player_id=player_id)
