"""Shared FastAPI dependencies: process-wide services and the current volunteer."""

from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_portal.database.engine import get_session
from volunteer_portal.database.repository import VolunteerRepository
from volunteer_portal.errors import AuthenticationError
from volunteer_portal.models.volunteer import Volunteer
from volunteer_portal.services.document_store import DocumentStore
from volunteer_portal.services.email_service import EmailService
from volunteer_portal.services.otp_store import OTPStore
from volunteer_portal.services.security import decode_access_token

TOKEN_COOKIE = "token"

bearer = HTTPBearer(auto_error=False)


# ── Process-wide instances (created in the app lifespan) ──

def get_otp_store(request: Request) -> OTPStore:
    return request.app.state.otp_store


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


# ── Per-request ──────────────────────────────────────────

async def get_repository(
    session: AsyncSession = Depends(get_session),
) -> VolunteerRepository:
    return VolunteerRepository(session)


async def get_current_volunteer(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    repo: VolunteerRepository = Depends(get_repository),
) -> Volunteer:
    """Resolve the volunteer from a bearer token or the ``token`` cookie."""
    token = creds.credentials if creds else request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise AuthenticationError("Unauthorized. Please login again.")

    volunteer_id = decode_access_token(token)
    if volunteer_id is None:
        raise AuthenticationError("Invalid token.")

    volunteer = await repo.find_by_id(volunteer_id)
    if volunteer is None:
        raise AuthenticationError("Unauthorized. Please login again.")
    return volunteer
