"""Async HTTP client for Veo video generation through the Gemini API.

Covers submitting a generation job, refreshing its long-running
operation, and downloading the finished video.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx

from videogen.models import GeneratedVideo, GenerationConfig, VideoOperation

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_MODEL = "veo-3.1-fast-generate-preview"

_DEFAULT_TIMEOUT = 60.0
_DOWNLOAD_TIMEOUT = 300.0
_API_VERSION = "v1beta"


class ProviderError(Exception):
    """Raised when the video provider returns an error.

    Attributes:
        status_code: HTTP status code, if the error came from a response.
        status: Canonical error status from the error envelope (e.g. "NOT_FOUND").
        body: Raw response body or error payload.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status: str | None = None,
        body: Any = None,
    ):
        self.status_code = status_code
        self.status = status
        self.body = body
        super().__init__(message)

    @classmethod
    def from_payload(cls, payload: dict, status_code: int | None = None) -> ProviderError:
        """Build an error from a Google error object ({code, message, status})."""
        code = payload.get("code")
        message = payload.get("message") or f"Provider error (code={code})"
        return cls(
            message,
            status_code=status_code if status_code is not None else code,
            status=payload.get("status"),
            body=payload,
        )

    @property
    def is_not_found(self) -> bool:
        return self.status == "NOT_FOUND"


class VeoClient:
    """Async client for Veo generation.

    Usage::

        async with VeoClient(api_key="...") as client:
            operation = await client.generate_videos("A cat on Mars", GenerationConfig())
            while not operation.done:
                await asyncio.sleep(10)
                operation = await client.get_operation(operation)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._transport = transport
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "x-goog-api-key": api_key,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    async def __aenter__(self) -> VeoClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ProviderError(f"Request timeout: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(f"Request failed: {exc}") from exc

        if response.is_error:
            raise self._error_from_response(response)

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                f"Invalid JSON in response: {response.text[:200]}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def _error_from_response(self, response: httpx.Response) -> ProviderError:
        try:
            data = response.json()
        except ValueError:
            data = None

        err = data.get("error") if isinstance(data, dict) else None
        if isinstance(err, dict):
            return ProviderError.from_payload(err, status_code=response.status_code)
        return ProviderError(
            f"HTTP {response.status_code}: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    def _parse_operation(self, data: dict) -> VideoOperation:
        """Parse an operation resource.

        Accepts both the REST shape (response.generateVideoResponse.generatedSamples)
        and the SDK shape (response.generatedVideos).
        """
        name = data.get("name", "")
        if not name:
            raise ProviderError(f"Could not extract operation name from response: {data}", body=data)

        response = data.get("response") or {}
        payload = response.get("generateVideoResponse", response)
        samples = payload.get("generatedSamples") or payload.get("generatedVideos") or []

        videos = []
        for sample in samples:
            if not isinstance(sample, dict):
                continue
            video = sample.get("video") or {}
            videos.append(GeneratedVideo(uri=video.get("uri"), mime_type=video.get("mimeType")))

        error = data.get("error")
        return VideoOperation(
            name=name,
            done=bool(data.get("done", False)),
            generated_videos=videos,
            error=error if isinstance(error, dict) else None,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_videos(self, prompt: str, config: GenerationConfig) -> VideoOperation:
        """Submit a text-to-video job.

        Args:
            prompt: The video generation prompt.
            config: Output parameters (count, resolution, aspect ratio).

        Returns:
            The operation handle to poll.

        Raises:
            ProviderError: On API or transport errors.
        """
        body: dict[str, Any] = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": config.number_of_videos,
                "resolution": config.resolution,
                "aspectRatio": config.aspect_ratio,
            },
        }

        logger.info("Submitting video job: model=%s, prompt=%r", self.model, prompt[:80])
        data = await self._request(
            "POST", f"/{_API_VERSION}/models/{self.model}:predictLongRunning", json=body,
        )
        operation = self._parse_operation(data)
        logger.info("Video job submitted: %s", operation.name)
        return operation

    async def get_operation(self, operation: VideoOperation) -> VideoOperation:
        """Refresh an operation handle from the provider."""
        data = await self._request("GET", f"/{_API_VERSION}/{operation.name}")
        refreshed = self._parse_operation(data)
        logger.debug("Operation %s: done=%s", refreshed.name, refreshed.done)
        return refreshed

    async def download_file(self, url: str, output_path: str | Path) -> Path:
        """Download a finished video to a local path.

        Args:
            url: Ready-to-fetch media URL (credential already appended).
            output_path: Local file path to save to.

        Returns:
            The output path.

        Raises:
            ProviderError: On download errors.
        """
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        logger.info("Downloading video -> %s", output)
        try:
            async with httpx.AsyncClient(
                timeout=_DOWNLOAD_TIMEOUT,
                follow_redirects=True,
                transport=self._transport,
            ) as dl_client:
                async with dl_client.stream("GET", url) as response:
                    response.raise_for_status()
                    with open(output, "wb") as f:
                        async for chunk in response.aiter_bytes(chunk_size=8192):
                            f.write(chunk)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Download failed for {output.name}: {exc}") from exc

        logger.info("Downloaded: %s (%.1f KB)", output, output.stat().st_size / 1024)
        return output


def veo_client_factory(
    config: dict,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Callable[[str], VeoClient]:
    """Return a factory building a fresh VeoClient per API key from config."""
    api = config.get("api", {})
    base_url = api.get("base_url", DEFAULT_BASE_URL)
    model = api.get("model", DEFAULT_MODEL)
    timeout = float(api.get("timeout", _DEFAULT_TIMEOUT))

    def factory(api_key: str) -> VeoClient:
        return VeoClient(
            api_key=api_key,
            base_url=base_url,
            model=model,
            timeout=timeout,
            transport=transport,
        )

    return factory
