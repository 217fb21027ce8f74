"""Volunteer repository — data access layer for volunteer records."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from volunteer_portal.models.volunteer import Volunteer


class VolunteerRepository:
    """Encapsulates all database queries related to volunteers."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(Volunteer.id).where(Volunteer.email == email).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def exists_by_phone(self, phone: str) -> bool:
        stmt = select(Volunteer.id).where(Volunteer.phone == phone).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def count(self) -> int:
        """Number of volunteer records; used to mint registration numbers."""
        result = await self._session.execute(select(func.count(Volunteer.id)))
        return result.scalar_one()

    async def find_by_id(self, volunteer_id: int) -> Volunteer | None:
        return await self._session.get(Volunteer, volunteer_id)

    async def find_by_email(self, email: str) -> Volunteer | None:
        stmt = select(Volunteer).where(Volunteer.email == email)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_verified_by_email(self, email: str) -> Volunteer | None:
        stmt = select(Volunteer).where(
            Volunteer.email == email, Volunteer.account_verified.is_(True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_reset_token(
        self, token_hash: str, now: datetime
    ) -> Volunteer | None:
        """Look up a volunteer by hashed reset token whose expiry is after *now*."""
        stmt = select(Volunteer).where(
            Volunteer.reset_password_token == token_hash,
            Volunteer.reset_password_expire > now,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, volunteer: Volunteer) -> Volunteer:
        self._session.add(volunteer)
        await self._session.flush()
        return volunteer

    async def save(self) -> None:
        await self._session.flush()

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
