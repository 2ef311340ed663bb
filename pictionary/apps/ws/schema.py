"""
schema.py — WebSocket Message Schemas
======================================
Everything that crosses the room socket.

CLIENT → SERVER (discriminated on "type"):
------------------------------------------
    {"type": "prompt",       "prompt": "..."}      drawer, multiplayer
    {"type": "guess",        "guess": "..."}       guesser
    {"type": "setWord",      "word": "..."}        drawer, before the first guess
    {"type": "generateWord", "category": "..."?}   drawer, before the first guess

Anything else (bad JSON, not an object, unknown type, missing field) is an
InvalidMessage. The connection stays open.

SERVER → CLIENT:
----------------
    {"type": "gameState", ...GameView}    per player, word only for the drawer
    roundComplete / gameComplete / wrongGuess (see apps/game/schema.py)
    {"type": "error", "error", "code", "details"?}
"""

import json
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from pictionary.core.errors import InvalidMessage
from pictionary.shared.schemas import CamelModel


# ═══════════════════════════════════════════════════
# CLIENT → SERVER
# ═══════════════════════════════════════════════════

class PromptMessage(CamelModel):
    type: Literal["prompt"]
    prompt: str = Field(..., max_length=500)


class GuessMessage(CamelModel):
    type: Literal["guess"]
    guess: str = Field(..., max_length=100)


class SetWordMessage(CamelModel):
    type: Literal["setWord"]
    word: str = Field(..., min_length=1, max_length=40)


class GenerateWordMessage(CamelModel):
    type: Literal["generateWord"]
    category: str | None = None


ClientMessage = Annotated[
    Union[PromptMessage, GuessMessage, SetWordMessage, GenerateWordMessage],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: str, max_size: int | None = None) -> ClientMessage:
    """
    Decode one inbound text frame.

    Raises:
        InvalidMessage: oversized frame, bad JSON, non-object payload,
            unknown "type" or invalid fields
    """
    if max_size is not None and len(raw.encode("utf-8")) > max_size:
        raise InvalidMessage(message=f"Message too large (max {max_size} bytes)")

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidMessage(message="Message must be valid JSON")

    if not isinstance(payload, dict):
        raise InvalidMessage(message="Message must be a JSON object")
    if "type" not in payload:
        raise InvalidMessage(message="Message must have a 'type' field")

    try:
        return _client_message_adapter.validate_python(payload)
    except PydanticValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        if any(err["type"] == "union_tag_invalid" for err in errors):
            raise InvalidMessage(
                message=f"Unknown message type: {payload.get('type')}",
                details={"type": payload.get("type")},
            )
        raise InvalidMessage(details={"errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in errors]})


# ═══════════════════════════════════════════════════
# SERVER → CLIENT
# ═══════════════════════════════════════════════════

class PlayerView(CamelModel):
    id: int
    name: str
    is_drawer: bool
    score: int
    connected: bool = False


class GuessView(CamelModel):
    text: str
    player_name: str
    is_correct: bool
    timestamp: str


class GameView(CamelModel):
    """
    One player's view of the room.

    `word` and `prompts_submitted` are only filled in for the current drawer.
    """

    type: Literal["gameState"] = "gameState"
    room_code: str
    status: str
    mode: str
    current_round: int
    max_rounds: int
    players: list[PlayerView]
    you: int
    is_drawer: bool
    current_image: str | None = None
    generating: bool = False
    attempts_remaining: int
    guesses: list[GuessView] = Field(default_factory=list)
    error: str | None = None
    word: str | None = None
    prompts_submitted: list[str] | None = None
