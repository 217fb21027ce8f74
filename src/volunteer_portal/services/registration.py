"""Volunteer registration — gated on a verified email OTP."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from sqlalchemy.exc import IntegrityError

from volunteer_portal.config import settings
from volunteer_portal.database.repository import VolunteerRepository
from volunteer_portal.errors import AlreadyRegistered, EmailDeliveryError, ValidationError
from volunteer_portal.models.volunteer import Volunteer
from volunteer_portal.services.document_store import DocumentStore
from volunteer_portal.services.email_service import EmailService
from volunteer_portal.services.otp_store import OTPStore
from volunteer_portal.services.security import hash_password

logger = logging.getLogger(__name__)

# Form field name → model attribute
REQUIRED_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "password": "password",
    "guardian": "guardian",
    "age": "age",
    "address": "address",
    "currentAddress": "current_address",
    "state": "state",
    "district": "district",
    "city": "city",
    "pincode": "pincode",
    "dob": "dob",
    "gender": "gender",
    "bankAccNumber": "bank_acc_number",
    "bankName": "bank_name",
    "ifsc": "ifsc",
    "educationDegree": "education_degree",
    "educationYearOfCompletion": "education_year_of_completion",
    "employmentStatus": "employment_status",
    "undertaking": "undertaking",
}

REQUIRED_DOCUMENTS = ("image", "educationCertificate", "bankDocument")

EMPLOYED = "Employed"


def format_reg_number(count: int, prefix: str | None = None) -> str:
    """Build the display id for the volunteer following *count* existing ones."""
    return f"{prefix or settings.registration_prefix}/{count + 1:05d}"


class RegistrationService:
    """Creates volunteer records once their email has been OTP-verified.

    Collaborators are passed in so the request handler can supply the
    per-request repository and the process-wide OTP store.
    """

    def __init__(
        self,
        repository: VolunteerRepository,
        otp_store: OTPStore,
        document_store: DocumentStore,
        email_service: EmailService,
    ) -> None:
        self._repo = repository
        self._otp_store = otp_store
        self._documents = document_store
        self._email = email_service

    async def register(
        self, fields: Mapping[str, str], files: Mapping[str, bytes]
    ) -> Volunteer:
        """Validate the submission, upload documents and persist the volunteer.

        Parameters
        ----------
        fields:
            Text form fields keyed by their form names (``currentAddress`` …).
        files:
            Raw uploaded document bytes keyed by form name.
        """
        missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

        email = fields["email"]
        phone = fields["phone"]

        if await self._repo.exists_by_email(email) or await self._repo.exists_by_phone(phone):
            raise AlreadyRegistered("Email or phone is already registered.")

        if not await self._otp_store.is_verified(email):
            raise ValidationError(
                "Email is not verified. Please verify your email first."
            )

        if str(fields["undertaking"]).lower() != "true":
            raise ValidationError("Confirmation is required.")

        employment_status = fields["employmentStatus"]
        monthly_income_range = fields.get("monthlyIncomeRange") or None
        if employment_status == EMPLOYED and not monthly_income_range:
            raise ValidationError(
                "Monthly income range is required for employed volunteers."
            )

        if any(not files.get(name) for name in REQUIRED_DOCUMENTS):
            raise ValidationError("All required documents must be uploaded.")

        try:
            age = int(fields["age"])
        except ValueError:
            raise ValidationError("Age must be a whole number.") from None

        reg_number = format_reg_number(await self._repo.count())

        image = await self._documents.upload(files["image"], "users")
        certificate = await self._documents.upload(files["educationCertificate"], "documents")
        bank_document = await self._documents.upload(files["bankDocument"], "documents")
        police_verification = None
        if files.get("policeVerification"):
            police_verification = await self._documents.upload(
                files["policeVerification"], "documents"
            )

        attrs = {
            attr: fields[name]
            for name, attr in REQUIRED_FIELDS.items()
            if name not in ("password", "age", "undertaking")
        }
        volunteer = Volunteer(
            **attrs,
            age=age,
            password_hash=hash_password(fields["password"]),
            undertaking=True,
            education_certificate=certificate,
            bank_document=bank_document,
            image=image,
            police_verification=police_verification,
            monthly_income_range=(
                monthly_income_range if employment_status == EMPLOYED else None
            ),
            account_verified=True,
            temp_reg_number=reg_number,
        )
        try:
            await self._repo.add(volunteer)
            await self._repo.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email or phone
            await self._repo.rollback()
            logger.warning("Duplicate registration rejected for %s", email)
            raise AlreadyRegistered("Email or phone is already registered.") from None
        await self._otp_store.discard(email)
        logger.info("Registered volunteer %s as %s", email, reg_number)

        try:
            await self._email.send_welcome(email, volunteer.name, reg_number)
        except EmailDeliveryError:
            logger.exception("Error sending welcome email to %s", email)

        return volunteer
