"""PIN administration and access enforcement for Snippet Manager.

Updates:
  v0.3.0 - 2026-10-18 - Require an authorised session before replacing a PIN.
  v0.2.0 - 2026-10-16 - Surface emergency codes through the interaction collaborator.
  v0.1.0 - 2026-10-14 - Extract PIN session APIs into mixin.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..collaborators import InteractionLevel

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..access_gate import AccessGate, AccessSession, SessionState
    from ..collaborators import UserInteraction

logger = logging.getLogger("snippet_store.manager")

__all__ = ["PinSessionMixin"]


class PinSessionMixin:
    """Mixin exposing the access gate to manager callers."""

    _gate: AccessGate
    _interaction: UserInteraction

    async def check_access(self) -> bool:
        """Return True when the caller may use the store, prompting if needed."""
        return await self._gate.check_access()

    async def authorize(self) -> None:
        """Raise :class:`AccessDeniedError` unless the caller may use the store."""
        await self._gate.authorize()

    async def _require_access(self) -> None:
        await self.authorize()

    @property
    def pin_state(self) -> SessionState:
        """Current PIN gate state."""
        return self._gate.state

    def pin_status(self) -> AccessSession:
        """Return a copy of the PIN session bookkeeping."""
        return self._gate.session

    async def enable_pin_protection(self, pin: str) -> str:
        """Configure *pin* and return the emergency code, which is shown once.

        Replacing an existing PIN requires an authorised session; a forgotten
        PIN goes through :meth:`reset_pin_with_emergency_code` instead.
        """
        if self._gate.enabled:
            await self.authorize()
        code = await self._gate.configure_pin(pin)
        await self._interaction.notify(
            f"PIN protection enabled. Emergency code: {code}. "
            "Save it in a secure location; it is the only way to reset a forgotten PIN.",
            InteractionLevel.WARNING,
        )
        return code

    async def disable_pin_protection(self, pin: str) -> None:
        """Turn PIN protection off after verifying the current *pin*."""
        await self._gate.disable_pin(pin)
        await self._interaction.notify("PIN protection disabled.")

    async def reset_pin_with_emergency_code(self, code: str, new_pin: str) -> str:
        """Replace a forgotten PIN and return the next emergency code."""
        new_code = await self._gate.recover_with_emergency_code(code, new_pin)
        await self._interaction.notify(
            f"PIN reset successfully. New emergency code: {new_code}.",
            InteractionLevel.WARNING,
        )
        return new_code

    def reset_pin_session(self) -> None:
        """Require PIN entry on the next gated call."""
        self._gate.reset_session()

    async def refresh_pin_protection_state(self) -> None:
        """Re-read PIN settings after they changed outside this manager."""
        await self._gate.refresh_state()
        logger.debug("PIN protection state refreshed")
