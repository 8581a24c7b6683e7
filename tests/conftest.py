"""Shared fixtures and fakes for the videogen tests."""

from __future__ import annotations

from typing import Any

import pytest

from videogen.models import GeneratedVideo, VideoOperation


def pending(name: str = "operations/op-1") -> VideoOperation:
    return VideoOperation(name=name, done=False)


def finished(uri: str | None = "https://x/video.mp4", name: str = "operations/op-1") -> VideoOperation:
    videos = [GeneratedVideo(uri=uri)] if uri else []
    return VideoOperation(name=name, done=True, generated_videos=videos)


class FakeProvider:
    """Scripted stand-in for ``VeoClient``."""

    def __init__(
        self,
        operations: list[VideoOperation],
        submit_error: Exception | None = None,
        poll_error: Exception | None = None,
    ) -> None:
        self.operations = list(operations)
        self.submit_error = submit_error
        self.poll_error = poll_error
        self.prompts: list[str] = []
        self.configs: list[Any] = []
        self.refreshes = 0
        self.closed = False

    async def __aenter__(self) -> FakeProvider:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.closed = True

    async def generate_videos(self, prompt, config):
        self.prompts.append(prompt)
        self.configs.append(config)
        if self.submit_error:
            raise self.submit_error
        return self.operations.pop(0)

    async def get_operation(self, operation):
        self.refreshes += 1
        if self.poll_error:
            raise self.poll_error
        return self.operations.pop(0)


class FakeProviderFactory:
    """Builds one FakeProvider per call and records the keys it was given."""

    def __init__(self, *providers: FakeProvider) -> None:
        self._pending = list(providers)
        self.created: list[FakeProvider] = []
        self.keys: list[str] = []

    def __call__(self, api_key: str) -> FakeProvider:
        self.keys.append(api_key)
        provider = self._pending.pop(0)
        self.created.append(provider)
        return provider


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeHost:
    """Scripted key selection host."""

    def __init__(self, has_key: bool = False, check_error=None, open_error=None) -> None:
        self.has_key = has_key
        self.check_error = check_error
        self.open_error = open_error
        self.opened = 0

    async def has_selected_key(self) -> bool:
        if self.check_error:
            raise self.check_error
        return self.has_key

    async def open_key_selection(self) -> None:
        self.opened += 1
        if self.open_error:
            raise self.open_error


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv("API_KEY", "test-key")
    return "test-key"


@pytest.fixture
def no_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("API_KEY", raising=False)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
