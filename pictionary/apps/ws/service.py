"""
service.py — WebSocket Connection Manager
==========================================
Session layer between room sockets and room actors.

RESPONSIBILITIES:
-----------------
- validate and register player sockets per room
- hand parsed messages to the room's actor
- render every transition: notices go to everyone, views are built per
  player (the secret word only reaches the drawer)
- unicast error frames to the offending player
- clean up the room when its last socket closes

USAGE:
------
    sessions = ConnectionManager(registry, machine, ImageClient(settings))

    await sessions.connect("ABC123", 1, websocket)
    sessions.dispatch("ABC123", 1, parse_client_message(raw))
    await sessions.disconnect("ABC123", 1, websocket)
"""

import logging

from fastapi import WebSocket

from pictionary.apps.game.actor import PlayerAction, PlayerConnected, RoomActor, RoomChanged
from pictionary.apps.game.machine import PUSH_VIEWS, GameStateMachine, Transition
from pictionary.apps.game.models import ROUND_CEILING, Room
from pictionary.apps.rooms.service import RoomRegistry
from pictionary.apps.ws.schema import ClientMessage, GameView, GuessView, PlayerView
from pictionary.core.errors import GameError, PlayerNotInRoom
from pictionary.services.image_client import ImageGenerator

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self, registry: RoomRegistry, machine: GameStateMachine, image_generator: ImageGenerator):
        self.registry = registry
        self.machine = machine
        self.image_generator = image_generator

    def _new_actor(self, code: str) -> RoomActor:
        return RoomActor(code, self.registry, self.machine, self.image_generator, publisher=self)

    # ═══════════════════════════════════════════════════
    # CONNECTION LIFECYCLE
    # ═══════════════════════════════════════════════════

    def validate(self, code: str, player_id: int) -> Room:
        """
        Raises:
            RoomNotFound: unknown code
            PlayerNotInRoom: player id not seated in this room
        """
        room = self.registry.get_room(code)
        if room.player(player_id) is None:
            raise PlayerNotInRoom(details={"playerId": player_id, "code": room.code})
        return room

    async def connect(self, code: str, player_id: int, websocket: WebSocket) -> Room:
        """
        Accept and register a player socket. A second socket for the same
        player replaces the first one.

        The first view is pushed by the room actor, so it is ordered with
        every other update of the room.
        """
        room = self.validate(code, player_id)
        await websocket.accept()

        previous = self.registry.attach(room.code, player_id, websocket)
        if previous is not None and previous is not websocket:
            logger.info(f"Player {player_id} re-attached to room {room.code}, closing old socket")
            try:
                await previous.close(code=1000)
            except Exception as e:
                logger.debug(f"Old socket for player {player_id} already closed: {e}")

        actor = self.registry.actor_for(room.code, self._new_actor)
        actor.submit(PlayerConnected(player_id=player_id))
        logger.info(f"Player {player_id} connected to room {room.code} "
                    f"(active: {list(self.registry.connections(room.code))})")
        return room

    async def disconnect(self, code: str, player_id: int, websocket: WebSocket | None = None) -> None:
        remaining = self.registry.detach(code, player_id, websocket)
        logger.info(f"Player {player_id} disconnected from room {code} ({remaining} still connected)")

        if remaining == 0:
            self.registry.remove_if_empty(code)
        else:
            self.refresh(code)

    def dispatch(self, code: str, player_id: int, message: ClientMessage) -> None:
        actor = self.registry.actor_for(code, self._new_actor)
        actor.submit(PlayerAction(player_id=player_id, message=message))

    def refresh(self, code: str) -> None:
        """Re-push views after a change made outside the actor (join, disconnect)."""
        actor = self.registry.get_actor(code)
        if actor is not None:
            actor.submit(RoomChanged())

    async def shutdown(self) -> None:
        for actor in self.registry.actors():
            await actor.shutdown()

    # ═══════════════════════════════════════════════════
    # OUTBOUND
    # ═══════════════════════════════════════════════════

    async def publish(self, room: Room, transition: Transition) -> None:
        """Send a transition's outbox in order."""
        for item in transition.outbox:
            if item is PUSH_VIEWS:
                await self.push_views(room)
            else:
                await self.broadcast(room.code, item.dump())

    async def push_views(self, room: Room) -> None:
        for player_id in self.registry.connections(room.code):
            await self.send_to(room.code, player_id, self.render_view(room, player_id).dump())

    def render_view(self, room: Room, viewer_id: int) -> GameView:
        connected = self.registry.connections(room.code)
        is_drawer = room.is_drawer(viewer_id)
        return GameView(
            room_code=room.code,
            status=room.status.value,
            mode=room.mode.value,
            current_round=room.current_round,
            max_rounds=ROUND_CEILING,
            players=[
                PlayerView(id=p.id, name=p.name, is_drawer=p.is_drawer, score=p.score, connected=p.id in connected)
                for p in room.players
            ],
            you=viewer_id,
            is_drawer=is_drawer,
            current_image=room.current_image,
            generating=room.generating,
            attempts_remaining=room.attempts_remaining,
            guesses=[
                GuessView(
                    text=g.text,
                    player_name=g.player_name,
                    is_correct=g.is_correct,
                    timestamp=g.timestamp.isoformat(),
                )
                for g in room.guesses
            ],
            error=room.error,
            word=room.word if is_drawer else None,
            prompts_submitted=list(room.prompts_submitted) if is_drawer else None,
        )

    async def send_to(self, code: str, player_id: int, message: dict) -> None:
        websocket = self.registry.connections(code).get(player_id)
        if websocket is None:
            logger.warning(f"Player {player_id} not connected to room {code}")
            return
        try:
            await websocket.send_json(message)
            logger.debug(f"Sent to {player_id} in {code}: {message.get('type')}")
        except Exception as e:
            logger.error(f"Failed to send to {player_id} in {code}: {e}")
            self.registry.detach(code, player_id, websocket)

    async def broadcast(self, code: str, message: dict, exclude: list[int] | None = None) -> None:
        exclude = exclude or []
        for player_id in self.registry.connections(code):
            if player_id in exclude:
                continue
            await self.send_to(code, player_id, message)

    async def send_error(self, code: str, player_id: int, error: GameError) -> None:
        await self.send_to(code, player_id, error.to_message())
