"""Prompt-to-video studio: key gating and Veo video generation."""

from videogen.client import ProviderError, VeoClient
from videogen.controller import StudioController
from videogen.generator import AuthenticationError, GenerationError, generate_video
from videogen.key_gate import ConsoleKeyHost, GateUpdate, KeyGate
from videogen.models import GenerationResult, SessionState, VideoOperation

__all__ = [
    "AuthenticationError",
    "ConsoleKeyHost",
    "GateUpdate",
    "GenerationError",
    "GenerationResult",
    "KeyGate",
    "ProviderError",
    "SessionState",
    "StudioController",
    "VeoClient",
    "VideoOperation",
    "generate_video",
]
