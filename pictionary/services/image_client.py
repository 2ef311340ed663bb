"""
image_client.py — Image Acquisition Adapter
============================================
Text-to-image through fal.ai FLUX.

`ImageClient` never raises: every failure (missing key, HTTP error,
timeout, malformed response) is logged here and handed back as an
ImageResult carrying an error. Callers decide what a failed attempt means
for the game.

Usage:
    acquire_image = ImageClient(settings)
    result = await acquire_image("a cartoon elephant on a skateboard")
    if result.ok:
        print(result.image_url)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import fal_client
import httpx

from pictionary.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

IMAGE_GENERATION_ERROR = "Failed to generate or retrieve image"

# Single-player: the server plays drawer with one variation per attempt
SYSTEM_PROMPTS = (
    "A simple, clear illustration of {word} in a minimalist style.",
    "A cartoon-style drawing of {word} with bold outlines.",
    "A basic, easy-to-recognize {word} in digital art style.",
)


# ── Result Type ──────────────────────────────────────
@dataclass
class ImageResult:
    image_url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.image_url is not None and self.error is None

    @classmethod
    def failure(cls, error: str = IMAGE_GENERATION_ERROR) -> ImageResult:
        return cls(image_url=None, error=error)


ImageGenerator = Callable[[str], Awaitable[ImageResult]]


def system_prompt(word: str, attempt: int) -> str:
    """Prompt variation for a 0-based attempt index."""
    template = SYSTEM_PROMPTS[attempt % len(SYSTEM_PROMPTS)]
    return template.format(word=word)


# ── configure() ──────────────────────────────────────
def configure(fal_key: str) -> None:
    """fal_client reads the key from the environment."""
    if fal_key:
        os.environ["FAL_KEY"] = fal_key


class ImageClient:
    """
    fal.ai adapter bound to one Settings object.

    An instance is an ImageGenerator: `await client(prompt)` makes one
    generation attempt bounded by IMAGE_TIMEOUT_SEC and never raises.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def _has_credentials(self) -> bool:
        return bool(self.settings.FAL_KEY or os.environ.get("FAL_KEY"))

    async def _generate(self, prompt: str) -> str:
        handler = await fal_client.submit_async(
            self.settings.IMAGE_ENDPOINT,
            arguments={
                "prompt": prompt,
                "image_size": self.settings.IMAGE_SIZE,
                "num_images": 1,
            },
        )
        result = await handler.get()
        url = result["images"][0]["url"]
        if not isinstance(url, str) or not url:
            raise ValueError(f"image url missing in response: {result!r}")
        return url

    async def __call__(self, prompt: str) -> ImageResult:
        """
        Args:
            prompt: text prompt sent as-is to the model

        Returns:
            ImageResult with image_url on success, error otherwise
        """
        timeout = self.settings.IMAGE_TIMEOUT_SEC

        if not self._has_credentials():
            logger.error("Image generation skipped: FAL_KEY is not set")
            return ImageResult.failure()

        logger.info(f"Generating image ({self.settings.IMAGE_ENDPOINT}): {prompt[:80]}")
        try:
            url = await asyncio.wait_for(self._generate(prompt), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Image generation timed out after {timeout}s")
            return ImageResult.failure()
        except httpx.HTTPStatusError as e:
            logger.error(f"Image backend returned {e.response.status_code}: {e.response.text[:200]}")
            return ImageResult.failure()
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Malformed image response: {e}")
            return ImageResult.failure()
        except Exception as e:
            logger.exception(f"Image generation failed: {e}")
            return ImageResult.failure()

        logger.info(f"Image ready: {url}")
        return ImageResult(image_url=url)
