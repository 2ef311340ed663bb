import asyncio

import httpx
import pytest

from pictionary.core.config import Settings
from pictionary.main import create_app
from pictionary.services import image_client
from pictionary.services.image_client import IMAGE_GENERATION_ERROR, ImageClient, system_prompt


class FakeHandler:
    def __init__(self, result):
        self.result = result

    async def get(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


@pytest.fixture()
def fal_settings():
    return Settings(FAL_KEY="test-key", IMAGE_TIMEOUT_SEC=0.5, IMAGE_ENDPOINT="fal-ai/flux/dev", IMAGE_SIZE="square")


@pytest.fixture()
def fal_calls(monkeypatch):
    calls = []
    responses = []

    async def submit_async(endpoint, arguments):
        calls.append((endpoint, arguments))
        return FakeHandler(responses.pop(0))

    monkeypatch.setattr(image_client.fal_client, "submit_async", submit_async)
    return calls, responses


def test_returns_image_url(fal_settings, fal_calls):
    calls, responses = fal_calls
    responses.append({"images": [{"url": "https://fal.media/1.png"}]})

    result = asyncio.run(ImageClient(fal_settings)("a cat on a skateboard"))

    assert result.ok
    assert result.image_url == "https://fal.media/1.png"
    endpoint, arguments = calls[0]
    assert endpoint == "fal-ai/flux/dev"
    assert arguments == {"prompt": "a cat on a skateboard", "image_size": "square", "num_images": 1}


def test_missing_key_fails_without_calling(monkeypatch, fal_calls):
    calls, _ = fal_calls
    monkeypatch.delenv("FAL_KEY", raising=False)

    result = asyncio.run(ImageClient(Settings(FAL_KEY=""))("a cat"))

    assert not result.ok
    assert result.error == IMAGE_GENERATION_ERROR
    assert calls == []


@pytest.mark.parametrize("payload", [{}, {"images": []}, {"images": [{"url": ""}]}, None])
def test_malformed_response(fal_settings, fal_calls, payload):
    _, responses = fal_calls
    responses.append(payload)

    result = asyncio.run(ImageClient(fal_settings)("a cat"))

    assert result.error == IMAGE_GENERATION_ERROR


def test_http_error(fal_settings, fal_calls):
    _, responses = fal_calls
    request = httpx.Request("POST", "https://queue.fal.run/fal-ai/flux/schnell")
    responses.append(httpx.HTTPStatusError("unauthorized", request=request, response=httpx.Response(401, request=request)))

    result = asyncio.run(ImageClient(fal_settings)("a cat"))

    assert not result.ok


def test_timeout(fal_settings, monkeypatch):
    async def slow_submit(endpoint, arguments):
        await asyncio.sleep(5)

    monkeypatch.setattr(image_client.fal_client, "submit_async", slow_submit)
    fal_settings.IMAGE_TIMEOUT_SEC = 0.01

    result = asyncio.run(ImageClient(fal_settings)("a cat"))

    assert result.error == IMAGE_GENERATION_ERROR


def test_uses_timeout_from_its_own_settings(fal_settings, fal_calls, monkeypatch):
    _, responses = fal_calls
    responses.append({"images": [{"url": "https://fal.media/1.png"}]})
    timeouts = []
    real_wait_for = asyncio.wait_for

    async def recording_wait_for(awaitable, timeout):
        timeouts.append(timeout)
        return await real_wait_for(awaitable, timeout)

    monkeypatch.setattr(image_client.asyncio, "wait_for", recording_wait_for)
    fal_settings.IMAGE_TIMEOUT_SEC = 5.0

    asyncio.run(ImageClient(fal_settings)("a cat"))

    assert timeouts == [5.0]


def test_app_factory_binds_client_to_its_settings():
    settings = Settings(FAL_KEY="", IMAGE_TIMEOUT_SEC=7.5, LOG_LEVEL="WARNING")
    app = create_app(settings=settings)

    generator = app.state.sessions.image_generator
    assert isinstance(generator, ImageClient)
    assert generator.settings is settings


def test_system_prompt_variations():
    prompts = [system_prompt("owl", attempt) for attempt in range(3)]
    assert len(set(prompts)) == 3
    assert all("owl" in p for p in prompts)
    assert system_prompt("owl", 3) == prompts[0]
