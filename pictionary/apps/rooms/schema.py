"""
schema.py — Room Request/Response Models
=========================================
Models for the room create/join/read endpoints.

A RoomSnapshot is what polling clients get: it never carries the secret
word or the drawer's prompts.
"""

from pydantic import Field

from pictionary.apps.game.models import GameMode, Room
from pictionary.shared.schemas import CamelModel


# ═══════════════════════════════════════════════════
# REQUEST MODELS
# ═══════════════════════════════════════════════════

class RoomCreateRequest(CamelModel):
    player_name: str = Field(..., min_length=1, max_length=30, description="Creator's display name", examples=["Ada"])
    mode: GameMode = Field(default=GameMode.MULTI, description="single: the server draws. multi: two players")
    category: str | None = Field(default=None, description="Word category for every round", examples=["animals"])


class JoinRequest(CamelModel):
    player_name: str = Field(..., min_length=1, max_length=30, description="Display name", examples=["Grace"])


# ═══════════════════════════════════════════════════
# RESPONSE MODELS
# ═══════════════════════════════════════════════════

class RoomTicket(CamelModel):
    """What a client needs to open the room socket."""

    code: str = Field(..., description="6 character room code")
    player_id: int


class PlayerSnapshot(CamelModel):
    id: int
    name: str
    is_drawer: bool
    score: int


class RoomSnapshot(CamelModel):
    code: str
    status: str
    mode: str
    category: str | None = None
    current_round: int
    players: list[PlayerSnapshot]
    current_image: str | None = None
    generating: bool
    attempts_remaining: int
    error: str | None = None

    @classmethod
    def from_room(cls, room: Room) -> "RoomSnapshot":
        return cls(
            code=room.code,
            status=room.status.value,
            mode=room.mode.value,
            category=room.category,
            current_round=room.current_round,
            players=[
                PlayerSnapshot(id=p.id, name=p.name, is_drawer=p.is_drawer, score=p.score)
                for p in room.players
            ],
            current_image=room.current_image,
            generating=room.generating,
            attempts_remaining=room.attempts_remaining,
            error=room.error,
        )
