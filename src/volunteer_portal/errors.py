"""Error taxonomy surfaced to API callers as ``{"success": false, "message": ...}``."""

from __future__ import annotations


class PortalError(Exception):
    """Base class for every error the API reports directly to the caller."""

    status_code: int = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(PortalError):
    """Missing or malformed input."""


class AlreadyRegistered(PortalError):
    def __init__(self, message: str = "Email is already registered.") -> None:
        super().__init__(message)


class AlreadyVerified(PortalError):
    def __init__(self) -> None:
        super().__init__("Email is already verified.")


class OTPNotFound(PortalError):
    def __init__(self, message: str = "OTP not found. Please request a new OTP.") -> None:
        super().__init__(message)


class RateLimited(PortalError):
    status_code = 429

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            f"Please wait {retry_after} seconds before requesting a new OTP."
        )
        self.retry_after = retry_after


class OTPExpired(PortalError):
    def __init__(self) -> None:
        super().__init__("OTP has expired. Please request a new one.")


class AttemptsExceeded(PortalError):
    def __init__(self) -> None:
        super().__init__(
            "Maximum verification attempts exceeded. Please request a new OTP."
        )


class InvalidCode(PortalError):
    def __init__(self, remaining_attempts: int) -> None:
        super().__init__(f"Invalid OTP. {remaining_attempts} attempts remaining.")
        self.remaining_attempts = remaining_attempts


class DeliveryFailure(PortalError):
    status_code = 500

    def __init__(self, message: str = "Failed to send OTP. Please try again.") -> None:
        super().__init__(message)


class AuthenticationError(PortalError):
    status_code = 401


class AccountBlocked(PortalError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("Access denied. Volunteer is blocked.")


class NotFoundError(PortalError):
    status_code = 404


class DocumentUploadError(PortalError):
    status_code = 500

    def __init__(self, message: str = "Failed to upload document.") -> None:
        super().__init__(message)


class EmailDeliveryError(Exception):
    """Raised by the mail collaborator when a message could not be sent."""
