"""Email-verification OTP endpoints.

Endpoints
---------
POST /otp/send     → issue a code for an unregistered email
POST /otp/resend   → reissue after the cooldown window
POST /otp/status   → inspect the pending challenge
POST /otp/verify   → check a submitted code
"""

from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from volunteer_portal.database.repository import VolunteerRepository
from volunteer_portal.errors import AlreadyRegistered, ValidationError
from volunteer_portal.routers.dependencies import (
    get_email_service,
    get_otp_store,
    get_repository,
)
from volunteer_portal.services.email_service import EmailService
from volunteer_portal.services.otp_store import STATUS_VERIFIED, OTPStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/volunteer/otp", tags=["otp"])

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
OTP_RE = re.compile(r"[0-9]{6}")


# ── Request / response models ────────────────────────────

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmailRequest(BaseModel):
    email: str | None = None


class VerifyRequest(BaseModel):
    email: str | None = None
    otp: str | int | None = None


class SendResponse(CamelModel):
    success: bool = True
    otp_status: str
    message: str


class ResendResponse(CamelModel):
    success: bool = True
    message: str
    can_resend_after: int


class StatusResponse(CamelModel):
    success: bool = True
    otp_exists: bool
    can_resend: bool
    is_expired: bool | None = None
    verified: bool | None = None
    remaining_time: int | None = None
    attempts: int | None = None
    message: str | None = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


# ── Validation helpers ───────────────────────────────────

def _require_email(email: str | None) -> str:
    if not email:
        raise ValidationError("Email is required.")
    if not EMAIL_RE.fullmatch(email):
        raise ValidationError("Please provide a valid email address.")
    return email


async def _require_unregistered(email: str, repo: VolunteerRepository) -> None:
    if await repo.exists_by_email(email):
        raise AlreadyRegistered()


# ── Endpoints ────────────────────────────────────────────

@router.post("/send", response_model=SendResponse)
async def send_otp(
    body: EmailRequest,
    store: OTPStore = Depends(get_otp_store),
    email_service: EmailService = Depends(get_email_service),
    repo: VolunteerRepository = Depends(get_repository),
):
    """Issue a verification code, unless the email is already verified."""
    email = _require_email(body.email)
    await _require_unregistered(email, repo)

    status = await store.issue(email, email_service.send_otp)
    if status == STATUS_VERIFIED:
        return SendResponse(otp_status=status, message="Email is already verified.")
    return SendResponse(otp_status=status, message="OTP sent successfully.")


@router.post("/resend", response_model=ResendResponse)
async def resend_otp(
    body: EmailRequest,
    store: OTPStore = Depends(get_otp_store),
    email_service: EmailService = Depends(get_email_service),
    repo: VolunteerRepository = Depends(get_repository),
):
    email = _require_email(body.email)
    await _require_unregistered(email, repo)

    await store.resend(email, email_service.send_otp)
    return ResendResponse(
        message="OTP resent successfully.",
        can_resend_after=store.resend_cooldown_seconds * 1000,
    )


@router.post(
    "/status", response_model=StatusResponse, response_model_exclude_none=True
)
async def otp_status(body: EmailRequest, store: OTPStore = Depends(get_otp_store)):
    """Report whether a code is pending, expired, verified or resendable."""
    if not body.email:
        raise ValidationError("Email is required.")

    status = await store.status(body.email)
    if not status.otp_exists:
        return StatusResponse(
            otp_exists=False,
            can_resend=True,
            message="No OTP found for this email.",
        )
    return StatusResponse(
        otp_exists=True,
        can_resend=status.can_resend,
        is_expired=status.is_expired,
        verified=status.verified,
        remaining_time=status.remaining_time,
        attempts=status.attempts,
    )


@router.post("/verify", response_model=MessageResponse)
async def verify_otp(body: VerifyRequest, store: OTPStore = Depends(get_otp_store)):
    if not body.email or not body.otp:
        raise ValidationError("Email and OTP are required.")
    email = _require_email(body.email)
    otp = str(body.otp)
    if not OTP_RE.fullmatch(otp):
        raise ValidationError("OTP must be a 6-digit number.")

    await store.verify(email, otp)
    return MessageResponse(message="Email verified successfully.")
