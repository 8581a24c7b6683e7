"""API key gate.

Tracks whether a usable key is configured and runs the key selection flow
through a host capability. The status is advisory: the generation call is
where a bad key actually gets rejected.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import click

from videogen.auth import DEFAULT_KEY_ENV, has_api_key

logger = logging.getLogger(__name__)

STATUS_CHECK_ERROR = "Could not verify the API key status."
SELECTION_UNAVAILABLE_ERROR = "API key selection is not available."
SELECTION_FAILED_ERROR = "Could not open API key selection. Please try again."


class KeyHost(Protocol):
    """Host-provided key selection capability."""

    async def has_selected_key(self) -> bool: ...

    async def open_key_selection(self) -> None: ...


@dataclass(frozen=True)
class GateUpdate:
    """State change requested by the gate.

    Attributes:
        key_configured: New credential status, or None to leave it unchanged.
        error: Error message to show, if any.
        error_kind: Category of ``error`` (capability | status_check).
        clear_error: Whether any existing error should be cleared.
    """
    key_configured: bool | None = None
    error: str | None = None
    error_kind: str | None = None
    clear_error: bool = False


class KeyGate:
    """Checks and selects the API key through an optional host."""

    def __init__(self, host: KeyHost | None = None, key_env: str = DEFAULT_KEY_ENV) -> None:
        self.host = host
        self.key_env = key_env

    async def check_status(self) -> GateUpdate:
        """Query the host for a selected key. Never raises."""
        try:
            if self.host is None:
                logger.warning(
                    "Key selection host not available. Assuming the API key is configured if %s is set.",
                    self.key_env,
                )
                return GateUpdate(key_configured=has_api_key(self.key_env))
            return GateUpdate(key_configured=bool(await self.host.has_selected_key()))
        except Exception as exc:
            logger.error("Error checking API key status: %s", exc)
            return GateUpdate(key_configured=False, error=STATUS_CHECK_ERROR, error_kind="status_check")

    async def request_selection(self) -> GateUpdate:
        """Open the host's key selection and assume it succeeded.

        The host may report completion before its own state reflects the
        new key, so a returned selection is taken as configured.
        """
        if self.host is None:
            return GateUpdate(error=SELECTION_UNAVAILABLE_ERROR, error_kind="capability")
        try:
            await self.host.open_key_selection()
        except Exception as exc:
            logger.error("Error opening API key selection: %s", exc)
            return GateUpdate(error=SELECTION_FAILED_ERROR, error_kind="capability")
        return GateUpdate(key_configured=True, clear_error=True)


class ConsoleKeyHost:
    """Key host for terminal sessions.

    Selection prompts for a key with hidden input and exports it to the
    process environment, where the generator reads it on each request.
    """

    def __init__(
        self,
        key_env: str = DEFAULT_KEY_ENV,
        prompt: Callable[..., str] = click.prompt,
    ) -> None:
        self.key_env = key_env
        self._prompt = prompt

    async def has_selected_key(self) -> bool:
        return has_api_key(self.key_env)

    async def open_key_selection(self) -> None:
        key = await asyncio.to_thread(self._prompt, "API key", hide_input=True)
        key = (key or "").strip()
        if not key:
            raise ValueError("No API key entered")
        os.environ[self.key_env] = key
