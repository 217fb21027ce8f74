"""Volunteer account endpoints: registration, login, password reset, profile."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.datastructures import UploadFile

from volunteer_portal.config import settings
from volunteer_portal.database.repository import VolunteerRepository
from volunteer_portal.errors import (
    AccountBlocked,
    DeliveryFailure,
    EmailDeliveryError,
    NotFoundError,
    ValidationError,
)
from volunteer_portal.models.volunteer import Volunteer
from volunteer_portal.routers.dependencies import (
    TOKEN_COOKIE,
    get_current_volunteer,
    get_document_store,
    get_email_service,
    get_otp_store,
    get_repository,
)
from volunteer_portal.services.document_store import DocumentStore
from volunteer_portal.services.email_service import EmailService
from volunteer_portal.services.otp_store import OTPStore
from volunteer_portal.services.registration import RegistrationService
from volunteer_portal.services.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/volunteer", tags=["volunteer"])


# ── Request / response models ────────────────────────────

class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class VolunteerOut(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    guardian: str
    age: int
    address: str
    current_address: str
    state: str
    district: str
    city: str
    pincode: str
    dob: str
    gender: str
    bank_name: str
    ifsc: str
    bank_document: str
    education_degree: str
    education_year_of_completion: str
    education_certificate: str
    employment_status: str
    monthly_income_range: str | None = None
    image: str
    police_verification: str | None = None
    undertaking: bool
    account_verified: bool
    temp_reg_number: str
    created_at: datetime | None = None


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    volunteer: VolunteerOut
    token: str


class VolunteerResponse(CamelModel):
    success: bool = True
    volunteer: VolunteerOut


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    password: str | None = None
    confirm_password: str | None = Field(default=None, alias="confirmPassword")


# ── Token helper ─────────────────────────────────────────

def _issue_token(
    volunteer: Volunteer, message: str, response: Response
) -> AuthResponse:
    """Attach a session token to *response* as a cookie and in the body."""
    token = create_access_token(volunteer.id)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
    )
    return AuthResponse(
        message=message,
        volunteer=VolunteerOut.model_validate(volunteer),
        token=token,
    )


# ── Endpoints ────────────────────────────────────────────

@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    request: Request,
    response: Response,
    repo: VolunteerRepository = Depends(get_repository),
    otp_store: OTPStore = Depends(get_otp_store),
    document_store: DocumentStore = Depends(get_document_store),
    email_service: EmailService = Depends(get_email_service),
):
    """Register a volunteer from a multipart form with document uploads."""
    form = await request.form()
    fields: dict[str, str] = {}
    files: dict[str, bytes] = {}
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if key not in files:
                files[key] = await value.read()
        else:
            fields.setdefault(key, value)

    service = RegistrationService(repo, otp_store, document_store, email_service)
    volunteer = await service.register(fields, files)
    return _issue_token(volunteer, "Volunteer registered successfully.", response)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    repo: VolunteerRepository = Depends(get_repository),
):
    if not body.email or not body.password:
        raise ValidationError("Email and password are required.")

    volunteer = await repo.find_by_email(body.email)
    if volunteer is None or not volunteer.account_verified:
        raise ValidationError("Account not verified. Please verify your email first.")
    if volunteer.is_blocked:
        raise AccountBlocked()
    if not verify_password(body.password, volunteer.password_hash):
        raise ValidationError("Invalid email or password.")

    logger.info("Volunteer %s logged in", volunteer.email)
    return _issue_token(volunteer, "Volunteer logged in successfully.", response)


@router.get("/logout", response_model=MessageResponse)
async def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE, httponly=True)
    return MessageResponse(message="Logged out successfully.")


@router.post("/password/forgot", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    repo: VolunteerRepository = Depends(get_repository),
    email_service: EmailService = Depends(get_email_service),
):
    """Email a single-use password-reset link to a verified volunteer."""
    volunteer = await repo.find_verified_by_email(body.email or "")
    if volunteer is None:
        raise NotFoundError("Volunteer not found.")

    token, token_hash, expires_at = generate_reset_token()
    volunteer.reset_password_token = token_hash
    volunteer.reset_password_expire = expires_at
    await repo.save()

    reset_url = f"{settings.frontend_url}/volunteer/reset-password/{token}"
    try:
        await email_service.send_password_reset(volunteer.email, reset_url)
    except EmailDeliveryError as exc:
        volunteer.reset_password_token = None
        volunteer.reset_password_expire = None
        await repo.save()
        logger.error("Password reset email to %s failed: %s", volunteer.email, exc)
        raise DeliveryFailure("Cannot send reset password token.") from exc

    return MessageResponse(message=f"Email sent to {volunteer.email} successfully.")


@router.put("/password/reset/{token}", response_model=AuthResponse)
async def reset_password(
    token: str,
    body: ResetPasswordRequest,
    response: Response,
    repo: VolunteerRepository = Depends(get_repository),
):
    volunteer = await repo.find_by_reset_token(hash_reset_token(token), datetime.now(UTC))
    if volunteer is None:
        raise ValidationError("Reset password token is invalid or has expired.")
    if not body.password or body.password != body.confirm_password:
        raise ValidationError("Password and confirm password do not match.")

    volunteer.password_hash = hash_password(body.password)
    volunteer.reset_password_token = None
    volunteer.reset_password_expire = None
    await repo.save()

    logger.info("Password reset for %s", volunteer.email)
    return _issue_token(volunteer, "Reset Password Successfully.", response)


@router.get("/me", response_model=VolunteerResponse)
async def get_volunteer(volunteer: Volunteer = Depends(get_current_volunteer)):
    return VolunteerResponse(volunteer=VolunteerOut.model_validate(volunteer))
