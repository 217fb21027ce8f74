"""In-memory email-verification store with expiry, resend cooldown and attempt limits."""

from __future__ import annotations

import asyncio
import logging
import math
import secrets
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from volunteer_portal.errors import (
    AlreadyVerified,
    AttemptsExceeded,
    DeliveryFailure,
    EmailDeliveryError,
    InvalidCode,
    OTPExpired,
    OTPNotFound,
    RateLimited,
)

logger = logging.getLogger(__name__)

# Issue outcomes
STATUS_SENT = "sent"
STATUS_VERIFIED = "verified"

SendCode = Callable[[str, str], Awaitable[None]]


@dataclass
class OTPChallenge:
    """A pending (or completed) verification challenge for one email."""

    code: str
    issued_at: float
    expires_at: float
    attempts: int = 0
    verified: bool = False


@dataclass(frozen=True)
class OTPStatus:
    """Read-only snapshot returned by :meth:`OTPStore.status`."""

    otp_exists: bool
    can_resend: bool
    is_expired: bool = False
    verified: bool = False
    attempts: int = 0
    remaining_time: int = 0


class OTPStore:
    """Per-email table of OTP challenges.

    Each entry maps ``email → OTPChallenge``.  Every check-then-write
    sequence runs under a single ``asyncio.Lock`` so rate-limit checks and
    attempt increments cannot interleave.  Mail delivery is awaited outside
    the lock.

    Expiry is enforced lazily by :meth:`verify` and :meth:`status`;
    :meth:`cleanup_expired` is meant to be scheduled periodically.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        resend_cooldown_seconds: int = 300,
        max_attempts: int = 5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.resend_cooldown_seconds = resend_cooldown_seconds
        self.max_attempts = max_attempts
        self._clock = clock
        self._challenges: dict[str, OTPChallenge] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._challenges)

    def get(self, email: str) -> OTPChallenge | None:
        """Return the stored challenge for *email* (no expiry check)."""
        return self._challenges.get(email)

    # ── Operations ───────────────────────────────────────

    async def issue(self, email: str, send_code: SendCode) -> str:
        """Create a challenge for *email* and deliver its code.

        Returns ``STATUS_VERIFIED`` without side effects when the email is
        already verified, otherwise ``STATUS_SENT``.  A failed delivery
        removes the new challenge so the caller can retry straight away.
        """
        async with self._lock:
            existing = self._challenges.get(email)
            if existing is not None and existing.verified:
                return STATUS_VERIFIED
            if existing is not None:
                self._check_cooldown(existing)
            challenge = self._new_challenge()
            self._challenges[email] = challenge

        try:
            await send_code(email, challenge.code)
        except EmailDeliveryError as exc:
            async with self._lock:
                if self._challenges.get(email) is challenge:
                    del self._challenges[email]
            logger.error("OTP delivery to %s failed: %s", email, exc)
            raise DeliveryFailure() from exc

        logger.info("OTP issued for %s", email)
        return STATUS_SENT

    async def resend(self, email: str, send_code: SendCode) -> None:
        """Replace the challenge for *email* with a fresh one and deliver it.

        Unlike :meth:`issue`, a failed delivery leaves the new challenge in
        place.
        """
        async with self._lock:
            existing = self._challenges.get(email)
            if existing is None:
                raise OTPNotFound("No OTP request found. Please request a new OTP.")
            if existing.verified:
                raise AlreadyVerified()
            self._check_cooldown(existing)
            challenge = self._new_challenge()
            self._challenges[email] = challenge

        try:
            await send_code(email, challenge.code)
        except EmailDeliveryError as exc:
            logger.error("OTP re-delivery to %s failed: %s", email, exc)
            raise DeliveryFailure() from exc

        logger.info("OTP re-issued for %s", email)

    async def status(self, email: str) -> OTPStatus:
        async with self._lock:
            challenge = self._challenges.get(email)
            if challenge is None:
                return OTPStatus(otp_exists=False, can_resend=True)

            now = self._clock()
            elapsed = now - challenge.issued_at
            can_resend = elapsed >= self.resend_cooldown_seconds
            return OTPStatus(
                otp_exists=True,
                can_resend=can_resend,
                is_expired=now > challenge.expires_at,
                verified=challenge.verified,
                attempts=challenge.attempts,
                remaining_time=(
                    0
                    if can_resend
                    else math.ceil(self.resend_cooldown_seconds - elapsed)
                ),
            )

    async def verify(self, email: str, code: str) -> None:
        """Check *code* against the stored challenge, marking it verified on match."""
        async with self._lock:
            challenge = self._challenges.get(email)
            if challenge is None:
                raise OTPNotFound()
            if challenge.verified:
                raise AlreadyVerified()

            if self._clock() > challenge.expires_at:
                del self._challenges[email]
                logger.info("OTP expired for %s", email)
                raise OTPExpired()

            if challenge.attempts >= self.max_attempts:
                del self._challenges[email]
                raise AttemptsExceeded()

            if not secrets.compare_digest(
                code.encode("utf-8"), challenge.code.encode("utf-8")
            ):
                challenge.attempts += 1
                remaining = self.max_attempts - challenge.attempts
                if remaining <= 0:
                    del self._challenges[email]
                    logger.warning("OTP attempts exhausted for %s", email)
                raise InvalidCode(max(remaining, 0))

            challenge.verified = True
            logger.info("Email %s verified", email)

    async def is_verified(self, email: str) -> bool:
        """Return ``True`` only if a challenge exists for *email* and is verified."""
        async with self._lock:
            challenge = self._challenges.get(email)
            return challenge is not None and challenge.verified

    async def discard(self, email: str) -> None:
        """Drop the challenge for *email* (e.g. once registration consumed it)."""
        async with self._lock:
            self._challenges.pop(email, None)

    async def cleanup_expired(self) -> int:
        """Delete unverified challenges past their expiry; return how many were removed."""
        async with self._lock:
            now = self._clock()
            stale = [
                email
                for email, challenge in self._challenges.items()
                if not challenge.verified and now > challenge.expires_at
            ]
            for email in stale:
                del self._challenges[email]

        if stale:
            logger.info("Removed %d expired OTP challenge(s)", len(stale))
        return len(stale)

    # ── Private helpers ──────────────────────────────────

    def _new_challenge(self) -> OTPChallenge:
        now = self._clock()
        return OTPChallenge(
            code=str(100000 + secrets.randbelow(900000)),
            issued_at=now,
            expires_at=now + self.ttl_seconds,
        )

    def _check_cooldown(self, challenge: OTPChallenge) -> None:
        elapsed = self._clock() - challenge.issued_at
        if elapsed < self.resend_cooldown_seconds:
            raise RateLimited(math.ceil(self.resend_cooldown_seconds - elapsed))
