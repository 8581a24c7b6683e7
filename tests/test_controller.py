"""Tests for the studio controller state machine."""

from __future__ import annotations

import asyncio

import pytest

from conftest import FakeHost
from videogen.controller import (
    BUSY_ERROR,
    EMPTY_PROMPT_ERROR,
    KEY_REQUIRED_ERROR,
    STARTING_MESSAGE,
    StudioController,
)
from videogen.generator import AUTH_ERROR_MESSAGE, AuthenticationError, GenerationError
from videogen.key_gate import SELECTION_UNAVAILABLE_ERROR, KeyGate
from videogen.models import GenerationResult, SessionState


class ScriptedGenerate:
    """Stand-in for generate_video that records calls."""

    def __init__(self, url: str = "https://x/video.mp4&key=K", error: Exception | None = None,
                 progress: tuple[str, ...] = ("first", "last")) -> None:
        self.url = url
        self.error = error
        self.progress = progress
        self.calls: list[str] = []

    async def __call__(self, prompt, on_progress):
        self.calls.append(prompt)
        for message in self.progress:
            on_progress(message)
        if self.error:
            raise self.error
        return self.url


def _controller(generate, key_configured=True, host=None, on_change=None):
    state = SessionState(key_configured=key_configured)
    return StudioController(KeyGate(host), generate, on_change=on_change, state=state)


@pytest.mark.parametrize("prompt", ["", "   ", "\n\t "])
def test_blank_prompt_is_rejected_without_provider_call(prompt):
    generate = ScriptedGenerate()
    controller = _controller(generate)

    assert asyncio.run(controller.submit(prompt)) is None

    assert generate.calls == []
    assert controller.state.error == EMPTY_PROMPT_ERROR
    assert controller.state.error_kind == "validation"
    assert controller.state.key_configured is True


def test_submit_without_key_is_rejected():
    generate = ScriptedGenerate()
    controller = _controller(generate, key_configured=False)

    assert asyncio.run(controller.submit("a cat skateboarding")) is None

    assert generate.calls == []
    assert controller.state.error == KEY_REQUIRED_ERROR


def test_successful_submit_stores_result_and_resets_flags():
    generate = ScriptedGenerate()
    controller = _controller(generate)

    result = asyncio.run(controller.submit("  a cat skateboarding  "))

    assert result == GenerationResult(video_url="https://x/video.mp4&key=K")
    assert generate.calls == ["a cat skateboarding"]
    assert controller.state.result is result
    assert controller.state.error is None
    assert controller.state.in_progress is False
    assert controller.state.progress_message == ""


def test_progress_is_forwarded_in_order():
    seen: list[str] = []
    controller = _controller(
        ScriptedGenerate(progress=("a", "b", "c")),
        on_change=lambda state: seen.append(state.progress_message),
    )

    asyncio.run(controller.submit("a cat"))

    messages = [m for m in seen if m]
    assert messages == [STARTING_MESSAGE, "a", "b", "c"]
    assert seen[-1] == ""


def test_authentication_error_resets_key_status():
    controller = _controller(ScriptedGenerate(error=AuthenticationError(AUTH_ERROR_MESSAGE)))

    result = asyncio.run(controller.submit("a cat"))

    assert result.error == AUTH_ERROR_MESSAGE
    assert controller.state.key_configured is False
    assert controller.needs_key_reselection is True
    assert controller.state.in_progress is False


def test_generation_error_keeps_key_status():
    message = "Failed to generate video: Could not obtain the video download link."
    controller = _controller(ScriptedGenerate(error=GenerationError(message)))

    result = asyncio.run(controller.submit("a cat"))

    assert result.error == message
    assert controller.state.key_configured is True
    assert controller.needs_key_reselection is False
    assert controller.state.error_kind == "generation"


def test_new_submission_replaces_previous_result():
    controller = _controller(ScriptedGenerate(error=GenerationError("Failed to generate video: boom")))
    asyncio.run(controller.submit("first"))

    controller.generate = ScriptedGenerate(url="https://x/second.mp4&key=K")
    result = asyncio.run(controller.submit("second"))

    assert controller.state.result is result
    assert result.is_success
    assert controller.state.error is None


def test_second_submission_while_in_progress_is_rejected():
    release = None

    async def scenario():
        nonlocal release
        release = asyncio.Event()
        calls = []

        async def slow_generate(prompt, on_progress):
            calls.append(prompt)
            await release.wait()
            return "https://x/video.mp4&key=K"

        controller = _controller(slow_generate)
        first = asyncio.create_task(controller.submit("first"))
        await asyncio.sleep(0)
        assert controller.state.in_progress is True

        second = await controller.submit("second")
        busy_error = controller.state.error

        release.set()
        first_result = await first
        return calls, second, busy_error, first_result

    calls, second, busy_error, first_result = asyncio.run(scenario())

    assert calls == ["first"]
    assert second is None
    assert busy_error == BUSY_ERROR
    assert first_result.is_success


def test_startup_applies_gate_status():
    controller = _controller(ScriptedGenerate(), key_configured=False, host=FakeHost(has_key=True))

    asyncio.run(controller.startup())

    assert controller.state.key_configured is True


def test_select_key_after_auth_failure_clears_error():
    host = FakeHost(has_key=False)
    controller = _controller(ScriptedGenerate(error=AuthenticationError(AUTH_ERROR_MESSAGE)), host=host)
    asyncio.run(controller.submit("a cat"))
    assert controller.state.key_configured is False

    asyncio.run(controller.select_key())

    assert host.opened == 1
    assert controller.state.key_configured is True
    assert controller.state.error is None
    assert controller.needs_key_reselection is False


def test_select_key_without_host_reports_unavailable():
    controller = _controller(ScriptedGenerate(), key_configured=False)

    asyncio.run(controller.select_key())

    assert controller.state.error == SELECTION_UNAVAILABLE_ERROR
    assert controller.state.key_configured is False
