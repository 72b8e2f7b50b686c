"""PIN session state machine guarding snippet access.

The gate is either disabled (no PIN configured), unlocked for a fixed session
length after a successful PIN entry, locked out after repeated failures, or in
need of verification. A background sweep notices expired sessions and prompts
for re-authentication without waiting for the next operation.

PIN and emergency-code hashes, the enabled flag and the lockout counters live
in the injected :class:`~core.collaborators.SecretVault`; nothing here is
written next to snippet data and no secret is ever logged.

Updates:
  v0.4.0 - 2026-10-18 - Keep the expiry sweep alive after collaborator failures.
  v0.3.0 - 2026-10-16 - Persist failed attempts and lockout deadline in the vault.
  v0.2.0 - 2026-10-15 - Add emergency-code recovery and the expiry sweep task.
  v0.1.0 - 2026-10-13 - Introduce AccessGate with PBKDF2 PIN hashing.
"""

from __future__ import annotations

import asyncio
import base64
import contextlib
import logging
import math
import re
import secrets
import string
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Final, NoReturn

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .collaborators import InteractionLevel
from .exceptions import (
    AccessDeniedError,
    LockedOutError,
    SnippetValidationError,
)
from .repository.base import utc_now

if TYPE_CHECKING:
    from collections.abc import Callable

    from .collaborators import SecretVault, UserInteraction

logger = logging.getLogger("snippet_store.access")

PIN_HASH_KEY: Final[str] = "pin_hash"
EMERGENCY_CODE_HASH_KEY: Final[str] = "emergency_code_hash"
PIN_ENABLED_KEY: Final[str] = "pin_enabled"
FAILED_ATTEMPTS_KEY: Final[str] = "failed_attempts"
LOCKED_UNTIL_KEY: Final[str] = "locked_until"

DEFAULT_SESSION_MINUTES: Final[int] = 30
DEFAULT_MAX_ATTEMPTS: Final[int] = 5
DEFAULT_LOCKOUT_MINUTES: Final[int] = 15
DEFAULT_CHECK_INTERVAL_SECONDS: Final[float] = 60.0

PBKDF2_ITERATIONS: Final[int] = 200_000
EMERGENCY_CODE_LENGTH: Final[int] = 8
EMERGENCY_CODE_ALPHABET: Final[str] = string.ascii_uppercase + string.digits

_PIN_PATTERN = re.compile(r"^\d{4,8}$")
_HASH_SCHEME = "pbkdf2_sha256"

OPTION_TRY_AGAIN: Final[str] = "Try Again"
OPTION_EMERGENCY: Final[str] = "Forgot PIN?"
OPTION_CANCEL: Final[str] = "Cancel"
OPTION_ENTER_PIN: Final[str] = "Enter PIN"


def pin_problem(pin: str | None) -> str | None:
    """Return why *pin* is not an acceptable PIN, or None."""
    if not pin or not _PIN_PATTERN.fullmatch(pin):
        return "PIN must be 4-8 digits"
    return None


def generate_emergency_code() -> str:
    """Return a fresh uppercase alphanumeric recovery code."""
    return "".join(secrets.choice(EMERGENCY_CODE_ALPHABET) for _ in range(EMERGENCY_CODE_LENGTH))


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii")


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)


def hash_secret(secret: str, *, iterations: int = PBKDF2_ITERATIONS) -> str:
    """Derive a salted PBKDF2-HMAC-SHA256 digest encoded as a single string."""
    salt = secrets.token_bytes(16)
    digest = _kdf(salt, iterations).derive(secret.encode("utf-8"))
    return f"{_HASH_SCHEME}${iterations}${_b64(salt)}${_b64(digest)}"


def verify_secret(secret: str, encoded: str) -> bool:
    """Return True when *secret* matches a digest produced by :func:`hash_secret`."""
    try:
        scheme, iterations_text, salt_text, digest_text = encoded.split("$")
        if scheme != _HASH_SCHEME:
            return False
        salt = base64.urlsafe_b64decode(salt_text)
        digest = base64.urlsafe_b64decode(digest_text)
        kdf = _kdf(salt, int(iterations_text))
    except ValueError:
        logger.warning("Stored secret hash is malformed; treating as mismatch")
        return False
    try:
        kdf.verify(secret.encode("utf-8"), digest)
    except InvalidKey:
        return False
    return True


class SessionState(str, Enum):
    """Observable states of the PIN gate."""

    DISABLED = "disabled"
    UNLOCKED = "unlocked"
    LOCKED_OUT = "locked_out"
    NEEDS_VERIFICATION = "needs_verification"


@dataclass(slots=True)
class AccessSession:
    """Mutable PIN session bookkeeping."""

    enabled: bool = False
    verified: bool = False
    verified_at: datetime | None = None
    failed_attempts: int = 0
    locked_until: datetime | None = None

    def expires_at(self, session_length: timedelta) -> datetime | None:
        """Return when the current verification lapses, if verified."""
        if not self.verified or self.verified_at is None:
            return None
        return self.verified_at + session_length

    def state_at(self, now: datetime, session_length: timedelta) -> SessionState:
        """Classify the session at *now*."""
        if not self.enabled:
            return SessionState.DISABLED
        if self.locked_until is not None and now < self.locked_until:
            return SessionState.LOCKED_OUT
        expires_at = self.expires_at(session_length)
        if expires_at is not None and now < expires_at:
            return SessionState.UNLOCKED
        return SessionState.NEEDS_VERIFICATION

    def remaining_lockout_minutes(self, now: datetime) -> int:
        """Whole minutes, rounded up, until the lockout ends."""
        if self.locked_until is None or now >= self.locked_until:
            return 0
        return math.ceil((self.locked_until - now).total_seconds() / 60)


class AccessGate:
    """Own one PIN session, its lockout counters and its expiry sweep."""

    def __init__(
        self,
        vault: SecretVault,
        interaction: UserInteraction,
        *,
        clock: Callable[[], datetime] | None = None,
        session_minutes: float = DEFAULT_SESSION_MINUTES,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        lockout_minutes: float = DEFAULT_LOCKOUT_MINUTES,
        check_interval_seconds: float = DEFAULT_CHECK_INTERVAL_SECONDS,
        hash_iterations: int = PBKDF2_ITERATIONS,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be greater than zero")
        if check_interval_seconds <= 0:
            raise ValueError("check_interval_seconds must be greater than zero")
        self._vault = vault
        self._interaction = interaction
        self._clock = clock or utc_now
        self._session_length = timedelta(minutes=session_minutes)
        self._max_attempts = max_attempts
        self._lockout_length = timedelta(minutes=lockout_minutes)
        self._check_interval = float(check_interval_seconds)
        self._hash_iterations = hash_iterations
        self._session = AccessSession()
        self._prompt_lock = asyncio.Lock()
        self._monitor: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------
    @property
    def session(self) -> AccessSession:
        """Return a copy of the current session bookkeeping."""
        return replace(self._session)

    @property
    def state(self) -> SessionState:
        """Current state evaluated against the gate clock."""
        return self._session.state_at(self._clock(), self._session_length)

    @property
    def enabled(self) -> bool:
        """Whether PIN protection is configured."""
        return self._session.enabled

    @property
    def monitoring(self) -> bool:
        """Whether the expiry sweep task is running."""
        return self._monitor is not None and not self._monitor.done()

    def expires_at(self) -> datetime | None:
        """When the current unlocked session lapses."""
        return self._session.expires_at(self._session_length)

    # ------------------------------------------------------------------
    # Vault persistence
    # ------------------------------------------------------------------
    async def initialize(self) -> None:
        """Load protection state and lockout counters from the vault."""
        await self._load_from_vault()
        logger.info(
            "PIN protection %s", "enabled" if self._session.enabled else "disabled"
        )

    async def _load_from_vault(self) -> None:
        enabled = (await self._vault.get(PIN_ENABLED_KEY)) == "true"
        pin_hash = await self._vault.get(PIN_HASH_KEY)
        self._session.enabled = enabled and bool(pin_hash)
        attempts_text = await self._vault.get(FAILED_ATTEMPTS_KEY)
        try:
            self._session.failed_attempts = max(0, int(attempts_text or 0))
        except ValueError:
            self._session.failed_attempts = 0
        locked_text = await self._vault.get(LOCKED_UNTIL_KEY)
        try:
            self._session.locked_until = (
                datetime.fromisoformat(locked_text) if locked_text else None
            )
        except ValueError:
            logger.warning("Ignoring malformed lockout deadline in secret vault")
            self._session.locked_until = None

    async def _store_counters(self) -> None:
        await self._vault.set(FAILED_ATTEMPTS_KEY, str(self._session.failed_attempts))
        if self._session.locked_until is None:
            await self._vault.delete(LOCKED_UNTIL_KEY)
        else:
            await self._vault.set(LOCKED_UNTIL_KEY, self._session.locked_until.isoformat())

    async def _hash(self, secret: str) -> str:
        return await asyncio.to_thread(hash_secret, secret, iterations=self._hash_iterations)

    async def _matches(self, secret: str, key: str) -> bool:
        encoded = await self._vault.get(key)
        if not encoded:
            return False
        return await asyncio.to_thread(verify_secret, secret, encoded)

    # ------------------------------------------------------------------
    # PIN administration
    # ------------------------------------------------------------------
    async def configure_pin(self, pin: str) -> str:
        """Install *pin*, unlock the session and return a new emergency code.

        Raises:
          SnippetValidationError: *pin* is not 4-8 digits.
        """
        problem = pin_problem(pin)
        if problem is not None:
            raise SnippetValidationError("pin", problem)
        emergency_code = generate_emergency_code()
        pin_hash = await self._hash(pin)
        code_hash = await self._hash(emergency_code)
        await self._vault.set(PIN_HASH_KEY, pin_hash)
        await self._vault.set(EMERGENCY_CODE_HASH_KEY, code_hash)
        await self._vault.set(PIN_ENABLED_KEY, "true")
        self._session.enabled = True
        self._session.failed_attempts = 0
        self._session.locked_until = None
        await self._store_counters()
        self._mark_verified(self._clock())
        logger.info("PIN protection configured")
        return emergency_code

    async def disable_pin(self, pin: str) -> None:
        """Remove PIN protection after verifying the current *pin*.

        Raises:
          LockedOutError: Entry is locked, or this failure triggered the lockout.
          AccessDeniedError: *pin* is incorrect.
        """
        if not self._session.enabled:
            logger.info("PIN protection already disabled")
            return
        if not await self._attempt_pin(pin):
            self._raise_denied("Incorrect PIN")
        for key in (
            PIN_HASH_KEY,
            EMERGENCY_CODE_HASH_KEY,
            PIN_ENABLED_KEY,
            FAILED_ATTEMPTS_KEY,
            LOCKED_UNTIL_KEY,
        ):
            await self._vault.delete(key)
        self._session = AccessSession()
        self.reset_session()
        logger.info("PIN protection disabled")

    async def recover_with_emergency_code(self, code: str, new_pin: str) -> str:
        """Replace the PIN using the emergency code and return the next code.

        An incorrect code leaves every piece of state untouched.

        Raises:
          SnippetValidationError: *new_pin* is not 4-8 digits.
          AccessDeniedError: PIN protection is off or *code* is incorrect.
        """
        problem = pin_problem(new_pin)
        if problem is not None:
            raise SnippetValidationError("pin", problem)
        if not self._session.enabled:
            raise AccessDeniedError("PIN protection is not enabled")
        if not await self._matches(code.strip().upper(), EMERGENCY_CODE_HASH_KEY):
            logger.warning("Emergency code verification failed")
            raise AccessDeniedError("Invalid emergency code")
        logger.info("Emergency code verified; replacing PIN")
        return await self.configure_pin(new_pin)

    # ------------------------------------------------------------------
    # Access checks
    # ------------------------------------------------------------------
    def _mark_verified(self, now: datetime) -> None:
        self._session.verified = True
        self._session.verified_at = now

    def _clear_elapsed_lockout(self, now: datetime) -> bool:
        locked_until = self._session.locked_until
        if locked_until is None or now < locked_until:
            return False
        self._session.locked_until = None
        self._session.failed_attempts = 0
        return True

    def _raise_denied(self, message: str) -> NoReturn:
        now = self._clock()
        if self._session.state_at(now, self._session_length) is SessionState.LOCKED_OUT:
            raise LockedOutError(self._session.remaining_lockout_minutes(now))
        raise AccessDeniedError(message)

    async def _attempt_pin(self, pin: str) -> bool:
        """Verify *pin*, updating counters; always False while locked out."""
        now = self._clock()
        if self._clear_elapsed_lockout(now):
            await self._store_counters()
        if self._session.state_at(now, self._session_length) is SessionState.LOCKED_OUT:
            return False
        if await self._matches(pin, PIN_HASH_KEY):
            self._session.failed_attempts = 0
            self._session.locked_until = None
            self._mark_verified(now)
            await self._store_counters()
            logger.info("PIN verified; session unlocked")
            return True
        self._session.failed_attempts += 1
        if self._session.failed_attempts >= self._max_attempts:
            self._session.locked_until = now + self._lockout_length
            logger.warning(
                "PIN entry locked after %d failed attempts",
                self._session.failed_attempts,
            )
        else:
            logger.warning(
                "Incorrect PIN (%d of %d attempts)",
                self._session.failed_attempts,
                self._max_attempts,
            )
        await self._store_counters()
        return False

    async def verify_pin(self, pin: str) -> bool:
        """Non-interactive PIN check that unlocks the session on success."""
        if not self._session.enabled:
            return True
        return await self._attempt_pin(pin)

    async def authorize(self) -> None:
        """Ensure the caller may proceed, prompting for the PIN when needed.

        Raises:
          LockedOutError: PIN entry is locked.
          AccessDeniedError: The user cancelled or failed verification.
        """
        async with self._prompt_lock:
            now = self._clock()
            state = self._session.state_at(now, self._session_length)
            if state in (SessionState.DISABLED, SessionState.UNLOCKED):
                return
            if state is SessionState.LOCKED_OUT:
                minutes = self._session.remaining_lockout_minutes(now)
                await self._interaction.notify(
                    f"Access is locked. Try again in {minutes} minutes.",
                    InteractionLevel.ERROR,
                )
                raise LockedOutError(minutes)
            if self._session.verified:
                self._session.verified = False
                self._session.verified_at = None
                logger.info("PIN session expired; verification required")
            if not await self._prompt_for_pin():
                self._raise_denied("PIN verification failed")

    async def check_access(self) -> bool:
        """Return True when access is granted, prompting for the PIN when needed."""
        try:
            await self.authorize()
        except AccessDeniedError:
            return False
        return True

    async def _prompt_for_pin(self) -> bool:
        while True:
            pin = await self._interaction.prompt_text(
                "Enter PIN to access snippets", password=True
            )
            if not pin:
                return False
            if await self._attempt_pin(pin):
                await self._interaction.notify("PIN verified successfully!")
                return True
            if self.state is SessionState.LOCKED_OUT:
                minutes = self._session.remaining_lockout_minutes(self._clock())
                await self._interaction.notify(
                    f"Too many failed attempts. Access locked for {minutes} minutes.",
                    InteractionLevel.ERROR,
                )
                return False
            remaining = self._max_attempts - self._session.failed_attempts
            choice = await self._interaction.choose(
                f"Invalid PIN. {remaining} attempt(s) remaining.",
                [OPTION_TRY_AGAIN, OPTION_EMERGENCY, OPTION_CANCEL],
            )
            if choice == OPTION_TRY_AGAIN:
                continue
            if choice == OPTION_EMERGENCY:
                return await self._recover_interactively()
            return False

    async def _recover_interactively(self) -> bool:
        code = await self._interaction.prompt_text(
            "Enter your emergency code to reset PIN", password=True
        )
        if not code:
            return False
        if not await self._matches(code.strip().upper(), EMERGENCY_CODE_HASH_KEY):
            logger.warning("Emergency code verification failed")
            await self._interaction.notify("Invalid emergency code", InteractionLevel.ERROR)
            return False
        new_pin = await self._interaction.prompt_text(
            "Enter new PIN (4-8 digits)", password=True, validate=pin_problem
        )
        if not new_pin or pin_problem(new_pin) is not None:
            return False
        new_code = await self.configure_pin(new_pin)
        await self._interaction.notify(
            f"PIN reset successfully. New emergency code: {new_code}. "
            "Save it in a secure location.",
            InteractionLevel.WARNING,
        )
        return True

    # ------------------------------------------------------------------
    # Session lifecycle and expiry sweep
    # ------------------------------------------------------------------
    def reset_session(self) -> None:
        """Forget the current verification and restart the sweep if it runs."""
        self._session.verified = False
        self._session.verified_at = None
        logger.debug("PIN session reset")
        if self._monitor is not None:
            self._monitor.cancel()
            self._monitor = None
            self.start_expiry_monitor()

    async def refresh_state(self) -> None:
        """Re-read protection state from the vault and reset the session."""
        await self._load_from_vault()
        self.reset_session()

    async def expire_if_due(self) -> bool:
        """Run one sweep step; return True when an unlocked session was expired.

        After expiring, the user is offered an immediate re-authentication.
        """
        if not self._session.enabled or not self._session.verified:
            return False
        expires_at = self.expires_at()
        if expires_at is None or self._clock() < expires_at:
            return False
        self._session.verified = False
        self._session.verified_at = None
        logger.warning("PIN session expired; forcing re-verification")
        choice = await self._interaction.choose(
            "PIN session expired. Please re-enter your PIN to continue using snippets.",
            [OPTION_ENTER_PIN, OPTION_CANCEL],
        )
        if choice == OPTION_ENTER_PIN:
            await self.check_access()
        return True

    async def _run_monitor(self) -> None:
        while True:
            await asyncio.sleep(self._check_interval)
            try:
                await self.expire_if_due()
            except Exception:
                logger.warning("PIN expiry sweep failed", exc_info=True)

    def start_expiry_monitor(self) -> None:
        """Start the periodic expiry sweep on the running event loop."""
        if self.monitoring:
            return
        self._monitor = asyncio.get_running_loop().create_task(
            self._run_monitor(), name="snippet-store-pin-expiry"
        )

    async def close(self) -> None:
        """Cancel the expiry sweep and wait for it to finish."""
        monitor, self._monitor = self._monitor, None
        if monitor is None:
            return
        monitor.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await monitor


__all__ = [
    "AccessGate",
    "AccessSession",
    "EMERGENCY_CODE_HASH_KEY",
    "FAILED_ATTEMPTS_KEY",
    "LOCKED_UNTIL_KEY",
    "PIN_ENABLED_KEY",
    "PIN_HASH_KEY",
    "SessionState",
    "generate_emergency_code",
    "hash_secret",
    "pin_problem",
    "verify_secret",
]
