import random

import pytest
from fastapi.testclient import TestClient

from pictionary.apps.game.machine import GameStateMachine
from pictionary.apps.game.models import GameMode
from pictionary.apps.rooms.service import RoomRegistry
from pictionary.apps.words.service import WordBank
from pictionary.core.config import Settings
from pictionary.main import create_app
from pictionary.services.image_client import ImageResult


class FakeImageGenerator:
    """Stands in for the fal.ai adapter. Set `failures` to fail the next N calls."""

    def __init__(self):
        self.prompts = []
        self.failures = 0

    async def __call__(self, prompt: str) -> ImageResult:
        self.prompts.append(prompt)
        if self.failures:
            self.failures -= 1
            return ImageResult.failure()
        return ImageResult(image_url=f"https://images.test/{len(self.prompts)}.png")


@pytest.fixture()
def settings():
    return Settings(FAL_KEY="", LOG_LEVEL="WARNING", DEBUG=False, MAX_ROOMS=20)


@pytest.fixture()
def word_bank():
    return WordBank(rng=random.Random(1234))


@pytest.fixture()
def machine(word_bank):
    return GameStateMachine(word_bank)


@pytest.fixture()
def registry(machine):
    return RoomRegistry(machine, max_rooms=20, rng=random.Random(99))


@pytest.fixture()
def images():
    return FakeImageGenerator()


@pytest.fixture()
def multi_room(registry):
    """Two-player room A (drawer) vs B (guesser) with the word 'pizza'."""
    code, a = registry.create_room("A", GameMode.MULTI)
    _, b = registry.join_room(code, "B")
    room = registry.get_room(code)
    room.word = "pizza"
    return room, a, b


@pytest.fixture()
def single_room(registry):
    code, player = registry.create_room("Solo", GameMode.SINGLE)
    room = registry.get_room(code)
    room.word = "pizza"
    return room, player


@pytest.fixture()
def app(settings, images, word_bank):
    return create_app(settings=settings, image_generator=images, word_bank=word_bank)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
