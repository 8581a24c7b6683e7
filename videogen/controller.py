"""Studio controller: session state and the submit state machine.

The controller owns the only mutable session state. The key gate hands
back GateUpdate values and the generator raises typed errors; both are
applied here, and nowhere else.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from videogen.generator import AuthenticationError, GenerationError, generate_video
from videogen.key_gate import GateUpdate, KeyGate
from videogen.models import GenerationRequest, GenerationResult, SessionState

logger = logging.getLogger(__name__)

EMPTY_PROMPT_ERROR = "Please enter a prompt to generate the video."
KEY_REQUIRED_ERROR = "Please select your API key before generating a video."
BUSY_ERROR = "A video is already being generated."
STARTING_MESSAGE = "Starting video generation..."

GenerateFn = Callable[[str, Callable[[str], None]], Awaitable[str]]


class StudioController:
    """Runs key gating and single-flight video generation for one session."""

    def __init__(
        self,
        gate: KeyGate,
        generate: GenerateFn = generate_video,
        on_change: Callable[[SessionState], None] | None = None,
        state: SessionState | None = None,
    ) -> None:
        self.gate = gate
        self.generate = generate
        self.on_change = on_change
        self.state = state or SessionState()

    @property
    def needs_key_reselection(self) -> bool:
        """Whether the last failure asks the user to pick a key again."""
        return self.state.error_kind == "authentication"

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.state)

    def _set_error(self, message: str | None, kind: str | None) -> None:
        self.state.error = message
        self.state.error_kind = kind if message else None
        self._notify()

    def apply(self, update: GateUpdate) -> None:
        if update.key_configured is not None:
            self.state.key_configured = update.key_configured
        if update.clear_error:
            self.state.error = None
            self.state.error_kind = None
        if update.error:
            self.state.error = update.error
            self.state.error_kind = update.error_kind
        self._notify()

    async def startup(self) -> None:
        """Initialise the key status from the gate."""
        self.apply(await self.gate.check_status())

    async def select_key(self) -> None:
        self.apply(await self.gate.request_selection())

    async def submit(self, prompt: str) -> GenerationResult | None:
        """Validate and run one generation request.

        Returns:
            The result of the request, or None if it was rejected before
            reaching the provider.
        """
        request = GenerationRequest.from_text(prompt)
        if request is None:
            self._set_error(EMPTY_PROMPT_ERROR, "validation")
            return None
        if not self.state.key_configured:
            self._set_error(KEY_REQUIRED_ERROR, "validation")
            return None
        if self.state.in_progress:
            self._set_error(BUSY_ERROR, "validation")
            return None

        self.state.in_progress = True
        self.state.result = None
        self.state.error = None
        self.state.error_kind = None
        self.state.progress_message = STARTING_MESSAGE
        self._notify()

        try:
            url = await self.generate(request.prompt, self._on_progress)
            result = GenerationResult(video_url=url)
        except AuthenticationError as exc:
            logger.error("Failed to generate video: %s", exc)
            result = GenerationResult(error=str(exc))
            self.state.error_kind = "authentication"
            self.state.key_configured = False
        except GenerationError as exc:
            logger.error("Failed to generate video: %s", exc)
            result = GenerationResult(error=str(exc) or "An unexpected error occurred while generating the video.")
            self.state.error_kind = "generation"
        finally:
            self.state.in_progress = False
            self.state.progress_message = ""

        self.state.result = result
        self.state.error = result.error
        self._notify()
        return result

    def _on_progress(self, message: str) -> None:
        self.state.progress_message = message
        self._notify()
