"""
Game models — in-memory Room aggregate.
Rooms live only as long as the process; nothing here is persisted.

Round sub-state (word, prompts, guesses, image, error, generating flag) is
reset by `Room.reset_round()` at every round transition. Only the game
state machine mutates a Room.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

MAX_ATTEMPTS = 3
ROUND_CEILING = 6


class RoomStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    ENDED = "ended"


class GameMode(str, Enum):
    SINGLE = "single"
    MULTI = "multi"


class RoleInvariantError(RuntimeError):
    """More than one drawer in a room."""


@dataclass
class Player:
    id: int
    name: str
    is_drawer: bool = False
    score: int = 0

    def award(self, points: int) -> None:
        if points < 0:
            raise ValueError(f"score only goes up, got {points}")
        self.score += points


@dataclass
class Guess:
    text: str
    player_id: int
    player_name: str
    is_correct: bool
    prompt_count: int  # prompts sent when the guess was made
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class Room:
    id: int
    code: str
    mode: GameMode
    word: str
    category: str | None = None
    status: RoomStatus = RoomStatus.WAITING
    current_round: int = 1
    players: list[Player] = field(default_factory=list)

    # ── round sub-state ──
    prompts_submitted: list[str] = field(default_factory=list)
    guesses: list[Guess] = field(default_factory=list)
    current_image: str | None = None
    generating: bool = False
    error: str | None = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def capacity(self) -> int:
        return 1 if self.mode == GameMode.SINGLE else 2

    @property
    def is_full(self) -> bool:
        return len(self.players) >= self.capacity

    @property
    def drawer(self) -> Player | None:
        """The one role lookup. Single-player rooms have no human drawer."""
        drawers = [p for p in self.players if p.is_drawer]
        if len(drawers) > 1:
            raise RoleInvariantError(f"room {self.code} has {len(drawers)} drawers")
        return drawers[0] if drawers else None

    def player(self, player_id: int) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def is_drawer(self, player_id: int) -> bool:
        drawer = self.drawer
        return drawer is not None and drawer.id == player_id

    # ── attempts ──

    @property
    def attempts_used(self) -> int:
        return max(len(self.prompts_submitted), len(self.guesses))

    @property
    def attempts_remaining(self) -> int:
        return min(MAX_ATTEMPTS, max(0, MAX_ATTEMPTS - self.attempts_used))

    @property
    def awaiting_final_guess(self) -> bool:
        """An image exists that no guess has been made against yet."""
        if self.current_image is None or self.generating:
            return False
        if not self.guesses:
            return True
        return self.guesses[-1].prompt_count < len(self.prompts_submitted)

    @property
    def can_prompt(self) -> bool:
        return not self.generating and self.attempts_used < MAX_ATTEMPTS

    @property
    def can_guess(self) -> bool:
        if self.current_image is None or self.generating:
            return False
        return self.attempts_used < MAX_ATTEMPTS or self.awaiting_final_guess

    @property
    def round_exhausted(self) -> bool:
        return self.attempts_used >= MAX_ATTEMPTS and not self.awaiting_final_guess

    def reset_round(self, word: str) -> None:
        self.word = word
        self.prompts_submitted = []
        self.guesses = []
        self.current_image = None
        self.generating = False
        self.error = None
