"""
actor.py — Per-Room Actor
==========================
One asyncio.Queue and one worker task per room. Every change to a room goes
through its queue, so a room's events are applied one at a time in arrival
order. Different rooms run as independent tasks.

EVENTS:
-------
    PlayerConnected   a socket attached, push views (and the first system image)
    PlayerAction      a parsed inbound message from one player
    ImageResolved     the image backend answered for a given round
    RoomChanged       something outside the actor (HTTP join, disconnect) changed the room

The image call runs in its own task. Its result comes back through the same
queue as ImageResolved, so it is ordered with everything else.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from pictionary.apps.game.machine import GameStateMachine, Transition
from pictionary.apps.game.models import Room
from pictionary.apps.ws.schema import (
    ClientMessage,
    GenerateWordMessage,
    GuessMessage,
    PromptMessage,
    SetWordMessage,
)
from pictionary.core.errors import GameError, InvalidMessage, RoomNotFound
from pictionary.services.image_client import ImageGenerator, ImageResult

logger = logging.getLogger(__name__)


# ── Events ───────────────────────────────────────────

@dataclass
class PlayerConnected:
    player_id: int


@dataclass
class PlayerAction:
    player_id: int
    message: ClientMessage


@dataclass
class ImageResolved:
    round_number: int
    result: ImageResult


@dataclass
class RoomChanged:
    pass


RoomEvent = PlayerConnected | PlayerAction | ImageResolved | RoomChanged


class Publisher(Protocol):
    async def publish(self, room: Room, transition: Transition) -> None: ...

    async def send_error(self, room_code: str, player_id: int, error: GameError) -> None: ...


class RoomLookup(Protocol):
    def get_room(self, code: str) -> Room: ...


class RoomActor:
    def __init__(
        self,
        code: str,
        rooms: RoomLookup,
        machine: GameStateMachine,
        image_generator: ImageGenerator,
        publisher: Publisher,
    ):
        self.code = code
        self.rooms = rooms
        self.machine = machine
        self.image_generator = image_generator
        self.publisher = publisher

        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._image_tasks: set[asyncio.Task] = set()
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run(), name=f"room-{self.code}")
            logger.debug(f"Room actor started: {self.code}")

    def submit(self, event: RoomEvent) -> None:
        if self._stopped:
            logger.debug(f"Room {self.code} is closed, dropping {type(event).__name__}")
            return
        self._queue.put_nowait(event)

    def stop(self) -> None:
        """Stop the worker. In-flight image calls finish and their results are dropped."""
        self._stopped = True
        if self._worker is not None:
            self._worker.cancel()
        logger.debug(f"Room actor stopped: {self.code}")

    async def shutdown(self) -> None:
        self.stop()
        tasks = [t for t in (self._worker, *self._image_tasks) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def idle(self) -> None:
        """Wait until the queue is drained and no image call is outstanding."""
        while True:
            await self._queue.join()
            if not self._image_tasks:
                return
            await asyncio.gather(*list(self._image_tasks), return_exceptions=True)

    # ═══════════════════════════════════════════════════
    # WORKER
    # ═══════════════════════════════════════════════════

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._handle(event)
            except GameError as e:
                player_id = getattr(event, "player_id", None)
                logger.info(f"Room {self.code}: rejected {type(event).__name__} from {player_id}: {e.code}")
                if player_id is not None:
                    await self.publisher.send_error(self.code, player_id, e)
            except Exception:
                logger.exception(f"Room {self.code}: unexpected error while handling {event!r}")
            finally:
                self._queue.task_done()

    async def _handle(self, event: RoomEvent) -> None:
        try:
            room = self.rooms.get_room(self.code)
        except RoomNotFound:
            logger.debug(f"Room {self.code} is gone, dropping {type(event).__name__}")
            return

        if isinstance(event, PlayerAction):
            transition = self._apply(room, event.player_id, event.message)
        elif isinstance(event, ImageResolved):
            transition = self.machine.resolve_image(room, event.round_number, event.result)
        elif isinstance(event, PlayerConnected):
            transition = self.machine.player_connected(room, event.player_id)
        elif isinstance(event, RoomChanged):
            transition = Transition().push_views()
        else:
            raise InvalidMessage(message=f"Unknown room event: {type(event).__name__}")

        await self.publisher.publish(room, transition)
        if transition.image_prompt is not None:
            self._request_image(transition.image_prompt, transition.image_round)

    def _apply(self, room: Room, player_id: int, message: ClientMessage) -> Transition:
        if isinstance(message, PromptMessage):
            return self.machine.submit_prompt(room, player_id, message.prompt)
        if isinstance(message, GuessMessage):
            return self.machine.submit_guess(room, player_id, message.guess)
        if isinstance(message, SetWordMessage):
            return self.machine.set_word(room, player_id, message.word)
        if isinstance(message, GenerateWordMessage):
            return self.machine.generate_word(room, player_id, message.category)
        raise InvalidMessage(message=f"Unsupported message type: {getattr(message, 'type', None)}")

    # ═══════════════════════════════════════════════════
    # IMAGE REQUESTS
    # ═══════════════════════════════════════════════════

    def _request_image(self, prompt: str, round_number: int) -> None:
        task = asyncio.create_task(self._acquire(prompt, round_number))
        self._image_tasks.add(task)
        task.add_done_callback(self._image_tasks.discard)

    async def _acquire(self, prompt: str, round_number: int) -> None:
        try:
            result = await self.image_generator(prompt)
        except Exception as e:
            logger.exception(f"Room {self.code}: image generator raised: {e}")
            result = ImageResult.failure()

        if self._stopped:
            logger.info(f"Room {self.code} closed before its image arrived, dropping it")
            return
        self.submit(ImageResolved(round_number=round_number, result=result))
