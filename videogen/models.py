"""Data models for the prompt-to-video studio."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GenerationConfig:
    """Fixed generation parameters sent with every request."""
    number_of_videos: int = 1
    resolution: str = "720p"
    aspect_ratio: str = "16:9"


@dataclass(frozen=True)
class GenerationRequest:
    """A validated prompt, immutable once submitted."""
    prompt: str

    @classmethod
    def from_text(cls, text: str) -> GenerationRequest | None:
        """Return a request for the trimmed text, or None if nothing is left."""
        prompt = (text or "").strip()
        if not prompt:
            return None
        return cls(prompt=prompt)


@dataclass
class GeneratedVideo:
    """One media descriptor from a finished operation."""
    uri: str | None = None
    mime_type: str | None = None


@dataclass
class VideoOperation:
    """Handle for a long-running video generation job.

    Attributes:
        name: Provider-side operation name, used to refresh the handle.
        done: Whether the provider reports the job as finished.
        generated_videos: Media descriptors, present once done.
        error: Raw provider error payload ({code, message, status}), if any.
    """
    name: str
    done: bool = False
    generated_videos: list[GeneratedVideo] = field(default_factory=list)
    error: dict | None = None

    @property
    def video_uri(self) -> str | None:
        """URI of the first generated video, if the response has one."""
        if not self.generated_videos:
            return None
        return self.generated_videos[0].uri


@dataclass
class GenerationResult:
    """Terminal outcome of one submission."""
    video_url: str | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.video_url is not None and self.error is None


@dataclass
class SessionState:
    """Mutable UI session state owned by the studio controller.

    Attributes:
        key_configured: Whether a usable API key is believed to be configured.
        in_progress: Whether a generation request is outstanding.
        error: Message of the last failure shown to the user.
        error_kind: validation | capability | status_check | authentication | generation
        progress_message: Label for the current step of an outstanding request.
        result: Outcome of the last completed submission.
    """
    key_configured: bool = False
    in_progress: bool = False
    error: str | None = None
    error_kind: str | None = None
    progress_message: str = ""
    result: GenerationResult | None = None
