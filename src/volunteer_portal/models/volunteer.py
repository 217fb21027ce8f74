"""SQLAlchemy Volunteer model."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


class Volunteer(Base):
    """A registered volunteer.

    Records are only created after the email address has passed OTP
    verification, so ``account_verified`` is ``True`` for every row the
    registration flow writes.  Uploaded documents are stored as the
    permanent URLs returned by the document store.
    """

    __tablename__ = "volunteers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    guardian: Mapped[str] = mapped_column(String(256), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False)
    current_address: Mapped[str] = mapped_column(String(512), nullable=False)
    state: Mapped[str] = mapped_column(String(128), nullable=False)
    district: Mapped[str] = mapped_column(String(128), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    pincode: Mapped[str] = mapped_column(String(16), nullable=False)
    dob: Mapped[str] = mapped_column(String(32), nullable=False)
    gender: Mapped[str] = mapped_column(String(32), nullable=False)

    bank_acc_number: Mapped[str] = mapped_column(String(64), nullable=False)
    bank_name: Mapped[str] = mapped_column(String(256), nullable=False)
    ifsc: Mapped[str] = mapped_column(String(32), nullable=False)
    bank_document: Mapped[str] = mapped_column(String(1024), nullable=False)

    education_degree: Mapped[str] = mapped_column(String(256), nullable=False)
    education_year_of_completion: Mapped[str] = mapped_column(String(16), nullable=False)
    education_certificate: Mapped[str] = mapped_column(String(1024), nullable=False)

    employment_status: Mapped[str] = mapped_column(String(64), nullable=False)
    monthly_income_range: Mapped[str | None] = mapped_column(String(64), nullable=True)

    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    police_verification: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    undertaking: Mapped[bool] = mapped_column(Boolean, default=False)
    account_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False)
    temp_reg_number: Mapped[str] = mapped_column(
        String(32), nullable=False, doc="Sequential display id, e.g. ASF/FE/00042"
    )

    reset_password_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reset_password_expire: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    __table_args__ = (
        Index("ix_volunteers_reg_number", "temp_reg_number"),
        Index("ix_volunteers_reset_token", "reset_password_token"),
    )

    def __repr__(self) -> str:
        return (
            f"<Volunteer id={self.id} name={self.name!r} "
            f"reg={self.temp_reg_number!r}>"
        )
