"""
schema.py — Outbound Game Notices
==================================
Messages the state machine emits besides the per-player game view.
Every notice is broadcast to the whole room.

    {"type": "roundComplete", "message", "word", "round", "pointsEarned"}
    {"type": "gameComplete",  "message", "finalScores"}
    {"type": "wrongGuess",    "message", "attemptsRemaining"}
"""

from typing import Literal

from pydantic import Field

from pictionary.shared.schemas import CamelModel


class RoundCompleteMessage(CamelModel):
    type: Literal["roundComplete"] = "roundComplete"
    message: str
    word: str = Field(..., description="Revealed secret of the finished round")
    round: int
    points_earned: dict[str, int] = Field(
        default_factory=dict,
        description="Points per role, e.g. {'guesser': 10, 'drawer': 5}",
    )


class FinalScore(CamelModel):
    player_id: int
    name: str
    score: int


class GameCompleteMessage(CamelModel):
    type: Literal["gameComplete"] = "gameComplete"
    message: str
    final_scores: list[FinalScore]


class WrongGuessMessage(CamelModel):
    type: Literal["wrongGuess"] = "wrongGuess"
    message: str
    attempts_remaining: int


GameNotice = RoundCompleteMessage | GameCompleteMessage | WrongGuessMessage
