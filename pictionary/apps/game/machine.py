"""
machine.py — Game State Machine
================================
All rules of a Prompt Pictionary room: roles, attempts, scoring, rounds.

The machine is synchronous and never touches the network. Each operation
validates first (raising a GameError before anything changes), then mutates
the Room and returns a Transition describing what the room should hear:

    outbox        ordered notices and PUSH_VIEWS markers
    image_prompt  prompt the actor must send to the image backend, if any

ROOM STATES:
------------
    waiting ──(2nd player joins / single-player create)──▶ playing ──(round 6 over)──▶ ended

ROUND SUB-STATES (inside playing):
----------------------------------
    awaiting prompt ─▶ generating ─▶ awaiting guesses ─▶ complete | exhausted ─▶ next round
                           ▲                │
                           └── wrong guess ─┘  (attempts left)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from pictionary.apps.game.models import (
    MAX_ATTEMPTS,
    ROUND_CEILING,
    GameMode,
    Guess,
    Player,
    Room,
    RoomStatus,
)
from pictionary.apps.game.schema import (
    FinalScore,
    GameCompleteMessage,
    GameNotice,
    RoundCompleteMessage,
    WrongGuessMessage,
)
from pictionary.apps.words.service import WordBank
from pictionary.core.errors import (
    ActionInFlight,
    GameNotActive,
    ImageGenerationFailed,
    InvalidMessage,
    NoAttemptsLeft,
    NotYourTurn,
    PlayerNotInRoom,
    RoomFull,
    WordLocked,
)
from pictionary.services.image_client import ImageResult, system_prompt

logger = logging.getLogger(__name__)

GUESSER_POINTS = 10
DRAWER_POINTS = 5
MAX_WORD_LENGTH = 40


class _PushViews:
    def __repr__(self) -> str:
        return "PUSH_VIEWS"


PUSH_VIEWS = _PushViews()


@dataclass
class Transition:
    outbox: list = field(default_factory=list)
    image_prompt: str | None = None
    image_round: int | None = None

    def notify(self, notice: GameNotice) -> "Transition":
        self.outbox.append(notice)
        return self

    def push_views(self) -> "Transition":
        if not self.outbox or self.outbox[-1] is not PUSH_VIEWS:
            self.outbox.append(PUSH_VIEWS)
        return self

    def extend(self, other: "Transition") -> "Transition":
        for item in other.outbox:
            if item is PUSH_VIEWS:
                self.push_views()
            else:
                self.notify(item)
        if other.image_prompt is not None:
            self.image_prompt = other.image_prompt
            self.image_round = other.image_round
        return self

    @property
    def notices(self) -> list[GameNotice]:
        return [item for item in self.outbox if item is not PUSH_VIEWS]

    @property
    def is_empty(self) -> bool:
        return not self.outbox and self.image_prompt is None


class GameStateMachine:
    def __init__(self, word_bank: WordBank):
        self.word_bank = word_bank

    # ═══════════════════════════════════════════════════
    # ROOM SETUP (called by the registry)
    # ═══════════════════════════════════════════════════

    def open_room(
        self,
        room_id: int,
        code: str,
        creator: Player,
        mode: GameMode,
        category: str | None = None,
        opened_at: datetime | None = None,
    ) -> Room:
        """Round 1 with a fresh word. Single-player starts playing immediately."""
        word = self.word_bank.pick(category)
        room = Room(id=room_id, code=code, mode=mode, word=word, category=category)
        if opened_at is not None:
            room.created_at = opened_at

        if mode == GameMode.MULTI:
            creator.is_drawer = True
        else:
            creator.is_drawer = False
            room.status = RoomStatus.PLAYING
        room.players.append(creator)
        return room

    def seat_player(self, room: Room, player: Player) -> None:
        if room.status != RoomStatus.WAITING or room.is_full:
            raise RoomFull()

        player.is_drawer = False
        room.players.append(player)
        if room.is_full:
            room.status = RoomStatus.PLAYING
            logger.info(f"Room {room.code} is playing ({len(room.players)} players)")

    # ═══════════════════════════════════════════════════
    # CONNECTION EVENTS
    # ═══════════════════════════════════════════════════

    def player_connected(self, room: Room, player_id: int) -> Transition:
        self._require_player(room, player_id)
        t = Transition().push_views()
        if room.mode == GameMode.SINGLE and not room.prompts_submitted:
            t.extend(self.request_system_image(room))
        return t

    def request_system_image(self, room: Room, clear_error: bool = True) -> Transition:
        """Single-player: the server plays drawer, one prompt variation per attempt."""
        if room.mode != GameMode.SINGLE or room.status != RoomStatus.PLAYING or not room.can_prompt:
            return Transition()
        prompt = system_prompt(room.word, len(room.prompts_submitted))
        return self._start_image(room, prompt, clear_error=clear_error)

    # ═══════════════════════════════════════════════════
    # PLAYER ACTIONS
    # ═══════════════════════════════════════════════════

    def submit_prompt(self, room: Room, player_id: int, prompt: str) -> Transition:
        self._require_playing(room)
        self._require_player(room, player_id)
        if room.mode == GameMode.SINGLE:
            raise NotYourTurn(message="The system draws in single-player mode")
        if not room.is_drawer(player_id):
            raise NotYourTurn(message="Only the drawer can submit prompts")
        if room.generating:
            raise ActionInFlight()
        if room.attempts_used >= MAX_ATTEMPTS:
            raise NoAttemptsLeft()

        text = prompt.strip()
        if not text:
            raise InvalidMessage(message="Prompt cannot be empty")
        return self._start_image(room, text)

    def submit_guess(self, room: Room, player_id: int, guess: str) -> Transition:
        self._require_playing(room)
        player = self._require_player(room, player_id)
        if room.is_drawer(player_id):
            raise NotYourTurn(message="The drawer cannot guess")
        if room.generating:
            raise ActionInFlight()
        if room.current_image is None:
            raise NotYourTurn(message="Wait for an image before guessing")
        if not room.can_guess:
            raise NoAttemptsLeft()

        text = guess.strip()
        if not text:
            raise InvalidMessage(message="Guess cannot be empty")

        is_correct = text.lower() == room.word.strip().lower()
        room.guesses.append(
            Guess(
                text=text,
                player_id=player.id,
                player_name=player.name,
                is_correct=is_correct,
                prompt_count=len(room.prompts_submitted),
            )
        )

        t = Transition()
        if is_correct:
            points = self._award(room, player)
            logger.info(f"Room {room.code} round {room.current_round}: {player.name} guessed '{room.word}'")
            t.notify(
                RoundCompleteMessage(
                    message=f"{player.name} guessed it! The word was '{room.word}'.",
                    word=room.word,
                    round=room.current_round,
                    points_earned=points,
                )
            )
            return t.extend(self._advance(room))

        if room.round_exhausted:
            return t.extend(self._exhaust_round(room))

        t.notify(
            WrongGuessMessage(
                message=f"'{text}' is not the word. {room.attempts_remaining} attempts left.",
                attempts_remaining=room.attempts_remaining,
            )
        )
        t.push_views()
        if room.mode == GameMode.SINGLE:
            t.extend(self.request_system_image(room))
        return t

    def set_word(self, room: Room, player_id: int, word: str) -> Transition:
        self._require_word_change(room, player_id)
        text = word.strip()
        if not text or len(text) > MAX_WORD_LENGTH:
            raise InvalidMessage(message=f"Word must be 1-{MAX_WORD_LENGTH} characters")
        room.word = text
        return Transition().push_views()

    def generate_word(self, room: Room, player_id: int, category: str | None = None) -> Transition:
        self._require_word_change(room, player_id)
        room.word = self.word_bank.pick(category or room.category, exclude=room.word)
        return Transition().push_views()

    # ═══════════════════════════════════════════════════
    # IMAGE RESULTS
    # ═══════════════════════════════════════════════════

    def resolve_image(self, room: Room, round_number: int, result: ImageResult) -> Transition:
        """
        Apply an adapter result. The attempt stays consumed either way.

        Results for another round, or for a room that stopped playing, are
        dropped without touching the room.
        """
        if room.status != RoomStatus.PLAYING or round_number != room.current_round or not room.generating:
            logger.debug(f"Room {room.code}: dropping stale image result for round {round_number}")
            return Transition()

        room.generating = False
        if result.ok:
            room.current_image = result.image_url
            room.error = None
        else:
            room.current_image = None
            room.error = ImageGenerationFailed().message
            logger.warning(f"Room {room.code} round {room.current_round}: image failed ({result.error})")

        t = Transition().push_views()
        if room.round_exhausted:
            return t.extend(self._exhaust_round(room))
        if room.mode == GameMode.SINGLE and not result.ok:
            t.extend(self.request_system_image(room, clear_error=False))
        return t

    # ═══════════════════════════════════════════════════
    # ROUND FLOW
    # ═══════════════════════════════════════════════════

    def _start_image(self, room: Room, prompt: str, clear_error: bool = True) -> Transition:
        room.prompts_submitted.append(prompt)
        room.current_image = None
        room.generating = True
        if clear_error:
            room.error = None

        t = Transition().push_views()
        t.image_prompt = prompt
        t.image_round = room.current_round
        return t

    def _award(self, room: Room, guesser: Player) -> dict[str, int]:
        if room.mode == GameMode.SINGLE:
            points = max(GUESSER_POINTS - 3 * (len(room.guesses) - 1), 1)
            guesser.award(points)
            return {"guesser": points}

        guesser.award(GUESSER_POINTS)
        drawer = room.drawer
        if drawer is not None:
            drawer.award(DRAWER_POINTS)
        return {"guesser": GUESSER_POINTS, "drawer": DRAWER_POINTS}

    def _exhaust_round(self, room: Room) -> Transition:
        logger.info(f"Room {room.code} round {room.current_round}: out of attempts")
        points = {"guesser": 0} if room.mode == GameMode.SINGLE else {"guesser": 0, "drawer": 0}
        t = Transition().notify(
            RoundCompleteMessage(
                message=f"Out of attempts! The word was '{room.word}'.",
                word=room.word,
                round=room.current_round,
                points_earned=points,
            )
        )
        return t.extend(self._advance(room))

    def _advance(self, room: Room) -> Transition:
        t = Transition()
        if room.current_round >= ROUND_CEILING:
            room.status = RoomStatus.ENDED
            room.generating = False
            final = sorted(room.players, key=lambda p: p.score, reverse=True)
            logger.info(f"Room {room.code} ended: {[(p.name, p.score) for p in final]}")
            t.notify(
                GameCompleteMessage(
                    message=f"Game over! {final[0].name} wins with {final[0].score} points.",
                    final_scores=[FinalScore(player_id=p.id, name=p.name, score=p.score) for p in final],
                )
            )
            return t.push_views()

        next_word = self.word_bank.pick(room.category, exclude=room.word)
        room.current_round += 1
        if room.mode == GameMode.MULTI:
            self._rotate_drawer(room)
        room.reset_round(next_word)
        t.push_views()

        if room.mode == GameMode.SINGLE:
            t.extend(self.request_system_image(room))
        return t

    def _rotate_drawer(self, room: Room) -> None:
        drawer = room.drawer
        index = room.players.index(drawer) if drawer is not None else -1
        next_drawer = room.players[(index + 1) % len(room.players)]
        for p in room.players:
            p.is_drawer = p is next_drawer

    # ═══════════════════════════════════════════════════
    # GUARDS
    # ═══════════════════════════════════════════════════

    def _require_playing(self, room: Room) -> None:
        if room.status != RoomStatus.PLAYING:
            raise GameNotActive(details={"status": room.status.value})

    def _require_player(self, room: Room, player_id: int) -> Player:
        player = room.player(player_id)
        if player is None:
            raise PlayerNotInRoom()
        return player

    def _require_word_change(self, room: Room, player_id: int) -> None:
        self._require_playing(room)
        self._require_player(room, player_id)
        if room.mode == GameMode.SINGLE or not room.is_drawer(player_id):
            raise NotYourTurn(message="Only the drawer can choose the word")
        if room.generating:
            raise ActionInFlight()
        if room.guesses:
            raise WordLocked()
