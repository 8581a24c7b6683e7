"""Generation orchestrator: submit one prompt, poll to completion, return a media URL."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from videogen.auth import DEFAULT_KEY_ENV, get_api_key
from videogen.client import ProviderError, VeoClient
from videogen.models import GenerationConfig

logger = logging.getLogger(__name__)

POLL_INTERVAL = 10.0

PROGRESS_MESSAGES = (
    "Preparing the canvas... this may take a few moments.",
    "Sketching the initial concept of the video...",
    "Animating the elements and characters...",
    "Adding details and refining the scene...",
    "Syncing audio and visual effects...",
    "Rendering the final video in high definition...",
    "Almost there! Your video is being finalized...",
    "Done! The video is ready to play.",
)

AUTH_ERROR_MESSAGE = "API error: API key not found or invalid. Please select your key again."
NO_DOWNLOAD_LINK_MESSAGE = "Could not obtain the video download link."

# Upstream wording for a missing or revoked key. Only used when the error
# carries no structured status.
_ENTITY_NOT_FOUND = "Requested entity was not found."

ProgressCallback = Callable[[str], None]
ProviderFactory = Callable[[str], Any]


class GenerationError(Exception):
    """Raised when a generation request fails."""


class AuthenticationError(GenerationError):
    """Raised when the provider rejects the API key."""


class ProgressCursor:
    """Bounded cursor over a fixed list of progress labels.

    The first label is emitted on start and the last one on completion.
    Intermediate labels advance one per poll tick and clamp at the last
    intermediate instead of wrapping.
    """

    def __init__(self, messages: Sequence[str] = PROGRESS_MESSAGES) -> None:
        if len(messages) < 3:
            raise ValueError(f"Need at least 3 progress messages, got {len(messages)}")
        self._messages = tuple(messages)
        self._index = 1

    @property
    def first(self) -> str:
        return self._messages[0]

    @property
    def final(self) -> str:
        return self._messages[-1]

    def advance(self) -> str:
        message = self._messages[self._index]
        self._index = min(self._index + 1, len(self._messages) - 2)
        return message


def classify_error(exc: Exception) -> GenerationError:
    """Map any failure to an authentication or generic generation error."""
    if isinstance(exc, ProviderError) and exc.is_not_found:
        return AuthenticationError(AUTH_ERROR_MESSAGE)
    message = str(exc)
    if _ENTITY_NOT_FOUND in message:
        return AuthenticationError(AUTH_ERROR_MESSAGE)
    return GenerationError(f"Failed to generate video: {message or 'Unknown error'}")


async def generate_video(
    prompt: str,
    on_progress: ProgressCallback,
    *,
    provider_factory: ProviderFactory | None = None,
    key_env: str = DEFAULT_KEY_ENV,
    poll_interval: float = POLL_INTERVAL,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    messages: Sequence[str] = PROGRESS_MESSAGES,
) -> str:
    """Generate one video and return a ready-to-fetch URL.

    The API key is read from the environment on every call and a fresh
    provider client is built for it, so a key selected mid-session is
    always the one used. No step is retried.

    Args:
        prompt: Non-empty, trimmed prompt.
        on_progress: Receives human-readable progress labels, in order.
        provider_factory: Builds an async-context-manager provider from an API key.
        key_env: Environment variable holding the API key.
        poll_interval: Seconds to wait between operation refreshes.
        sleep: Awaitable used to wait between refreshes.
        messages: Progress labels; first on start, last on completion.

    Returns:
        The media URI with ``&key=<api key>`` appended.

    Raises:
        AuthenticationError: If the provider reports the key as not found.
        GenerationError: On any other failure.
    """
    factory = provider_factory or VeoClient
    cursor = ProgressCursor(messages)

    try:
        api_key = get_api_key(key_env)
        on_progress(cursor.first)

        async with factory(api_key) as provider:
            operation = await provider.generate_videos(prompt, GenerationConfig())

            ticks = 0
            while not operation.done:
                on_progress(cursor.advance())
                await sleep(poll_interval)
                ticks += 1
                operation = await provider.get_operation(operation)

        logger.info("Operation %s finished after %d polls", operation.name, ticks)
        on_progress(cursor.final)

        if operation.error:
            raise ProviderError.from_payload(operation.error)

        download_link = operation.video_uri
        if not download_link:
            raise GenerationError(NO_DOWNLOAD_LINK_MESSAGE)

        return f"{download_link}&key={api_key}"

    except Exception as exc:
        logger.error("Error generating video: %s", exc)
        raise classify_error(exc) from exc
