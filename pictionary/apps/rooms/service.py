"""
service.py — Room Registry
===========================
In-memory store of live rooms, their sockets and their actors.

One RoomRegistry is built by create_app() and handed to whoever needs it;
tests build their own. The maps are shared between the HTTP handlers and
the socket handlers, so every access goes through one lock.

    rooms        code → Room
    connections  code → {player_id: websocket}
    actors       code → RoomActor
"""

import itertools
import logging
import random
import string
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from pictionary.apps.game.actor import RoomActor
from pictionary.apps.game.machine import GameStateMachine
from pictionary.apps.game.models import GameMode, Player, Room
from pictionary.core.errors import RoomLimitReached, RoomNotFound

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits


class RoomRegistry:
    def __init__(
        self,
        machine: GameStateMachine,
        max_rooms: int = 500,
        idle_ttl_sec: float = 600.0,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.machine = machine
        self.max_rooms = max_rooms
        self.idle_ttl = timedelta(seconds=idle_ttl_sec)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

        self._rooms: dict[str, Room] = {}
        self._connections: dict[str, dict[int, object]] = {}
        self._actors: dict[str, RoomActor] = {}

        self._room_ids = itertools.count(1)
        self._player_ids = itertools.count(1)

    # ═══════════════════════════════════════════════════
    # ROOM LIFECYCLE
    # ═══════════════════════════════════════════════════

    def _generate_code(self) -> str:
        """6 character code (ABC123 style) not used by any live room."""
        while True:
            code = "".join(self._rng.choices(CODE_ALPHABET, k=CODE_LENGTH))
            if code not in self._rooms:
                return code

    def create_room(self, creator_name: str, mode: GameMode = GameMode.MULTI, category: str | None = None) -> tuple[str, int]:
        """
        Create a room with its creator as first player.

        Args:
            creator_name: display name of the creator
            mode: single (server draws) or multi (two humans)
            category: optional word category for every round

        Returns:
            (room code, creator player id)

        Raises:
            RoomLimitReached: MAX_ROOMS live rooms already
            CategoryNotFound: unknown category
        """
        self.collect_idle()
        with self._lock:
            if len(self._rooms) >= self.max_rooms:
                raise RoomLimitReached()

            code = self._generate_code()
            creator = Player(id=next(self._player_ids), name=creator_name)
            room = self.machine.open_room(
                next(self._room_ids), code, creator, GameMode(mode), category, opened_at=self._clock()
            )
            self._rooms[code] = room
            self._connections[code] = {}

        logger.info(f"Room created: {code} ({room.mode.value}) by {creator_name}")
        return code, creator.id

    def join_room(self, code: str, player_name: str) -> tuple[str, int]:
        """
        Raises:
            RoomNotFound: unknown code
            RoomFull: capacity reached or game already started
        """
        with self._lock:
            room = self._lookup(code)
            player = Player(id=next(self._player_ids), name=player_name)
            self.machine.seat_player(room, player)

        logger.info(f"{player_name} joined room {room.code} as player {player.id}")
        return room.code, player.id

    def get_room(self, code: str) -> Room:
        with self._lock:
            return self._lookup(code)

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def remove_if_empty(self, code: str) -> bool:
        """Delete the room, its socket map and its actor once nobody is connected."""
        code = code.upper()
        with self._lock:
            if code not in self._rooms or self._connections.get(code):
                return False
            del self._rooms[code]
            self._connections.pop(code, None)
            actor = self._actors.pop(code, None)

        if actor is not None:
            actor.stop()
        logger.info(f"Room removed: {code}")
        return True

    def collect_idle(self) -> list[str]:
        """
        Drop rooms that have no socket attached and are older than the idle
        TTL. Rooms created over HTTP that nobody ever connects to end here.
        """
        cutoff = self._clock() - self.idle_ttl
        with self._lock:
            stale = [
                code for code, room in self._rooms.items()
                if not self._connections.get(code) and room.created_at <= cutoff
            ]
            actors = []
            for code in stale:
                del self._rooms[code]
                self._connections.pop(code, None)
                actor = self._actors.pop(code, None)
                if actor is not None:
                    actors.append(actor)

        for actor in actors:
            actor.stop()
        if stale:
            logger.info(f"Collected {len(stale)} idle rooms: {stale}")
        return stale

    def _lookup(self, code: str) -> Room:
        room = self._rooms.get(code.upper())
        if room is None:
            raise RoomNotFound(details={"code": code})
        return room

    # ═══════════════════════════════════════════════════
    # CONNECTIONS
    # ═══════════════════════════════════════════════════

    def attach(self, code: str, player_id: int, connection) -> object | None:
        """Register a socket. Returns the socket it replaced, if any."""
        with self._lock:
            room = self._lookup(code)
            conns = self._connections.setdefault(room.code, {})
            previous = conns.get(player_id)
            conns[player_id] = connection
        return previous

    def detach(self, code: str, player_id: int, connection=None) -> int:
        """
        Drop a socket. When `connection` is given, only that exact socket is
        removed, so a stale handler cannot evict a newer re-attachment.

        Returns:
            number of sockets still attached to the room
        """
        with self._lock:
            conns = self._connections.get(code.upper())
            if conns is None:
                return 0
            current = conns.get(player_id)
            if current is not None and (connection is None or current is connection):
                del conns[player_id]
            return len(conns)

    def connections(self, code: str) -> dict[int, object]:
        with self._lock:
            return dict(self._connections.get(code.upper(), {}))

    # ═══════════════════════════════════════════════════
    # ACTORS
    # ═══════════════════════════════════════════════════

    def actor_for(self, code: str, factory: Callable[[str], RoomActor]) -> RoomActor:
        """The room's actor, created and started on first use."""
        with self._lock:
            room = self._lookup(code)
            actor = self._actors.get(room.code)
            if actor is None:
                actor = factory(room.code)
                self._actors[room.code] = actor
        actor.start()
        return actor

    def get_actor(self, code: str) -> RoomActor | None:
        with self._lock:
            return self._actors.get(code.upper())

    def actors(self) -> list[RoomActor]:
        with self._lock:
            return list(self._actors.values())
