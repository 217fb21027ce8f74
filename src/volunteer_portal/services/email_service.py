"""Email service — sends transactional HTML emails via async SMTP."""

from __future__ import annotations

import html
import logging
from email.message import EmailMessage

import aiosmtplib

from volunteer_portal.config import settings
from volunteer_portal.errors import EmailDeliveryError

logger = logging.getLogger(__name__)

_OTP_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; background-color: #f9f9f9;">
    <div style="max-width: 600px; margin: 20px auto; padding: 20px; background: #ffffff; border-radius: 8px;">
      <h1 style="text-align: center; color: #4caf50;">Your OTP for Email Verification</h1>
      <p>Dear User,</p>
      <p>Please use the following One-Time Password (OTP) to verify your email:</p>
      <div style="font-size: 32px; font-weight: bold; color: #ffffff; background: #4caf50;
                  padding: 10px 20px; border-radius: 8px; display: inline-block;">{code}</div>
      <p>This code is valid for the next {minutes} minutes. Please do not share this code with anyone.</p>
      <p>If you did not request this, please ignore this email.</p>
      <p style="font-size: 12px; color: #aaa; text-align: center;">
        This is an automated message. Please do not reply to this email.
      </p>
    </div>
  </body>
</html>
"""

_WELCOME_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px; margin: auto;">
  <h2 style="color: #007bff; text-align: center;">Welcome to {app_name}, {name}!</h2>
  <p>Dear Volunteer {name},</p>
  <p>Your registration with {app_name} has been successfully completed.</p>
  <div style="background: #f8f9fa; padding: 10px; border-radius: 5px;">
    <p><strong>Name:</strong> {name}</p>
    <p><strong>Email:</strong> {email}</p>
    <p><strong>Registration Number:</strong> {reg_number}</p>
  </div>
  <p>If you have any questions, feel free to reach out to our support team.</p>
  <p style="text-align: center; font-size: 12px; color: #888;">This is an automated email, please do not reply.</p>
</div>
"""

_RESET_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px; margin: auto;">
  <h2 style="color: #333;">Password Reset Request</h2>
  <p>We received a request to reset your password. You can reset it using the link below:</p>
  <p style="word-break: break-all; color: #007bff;">{url}</p>
  <p>If you did not request a password reset, please ignore this email.</p>
  <p>Best regards,<br>{app_name}</p>
</div>
"""


class EmailService:
    """Sends transactional emails using the configured SMTP server."""

    async def send(self, to_email: str, subject: str, body: str) -> None:
        """Send an HTML email.

        Raises
        ------
        EmailDeliveryError
            If the SMTP exchange fails for any reason.
        """
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = settings.email_from
        msg["To"] = to_email
        msg.set_content("This message requires an HTML-capable email client.")
        msg.add_alternative(body, subtype="html")

        logger.info("Sending '%s' to %s", subject, to_email)

        try:
            await aiosmtplib.send(
                msg,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username or None,
                password=settings.smtp_password or None,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(str(exc)) from exc

        logger.info("Email '%s' sent to %s", subject, to_email)

    async def send_otp(self, to_email: str, code: str) -> None:
        minutes = settings.otp_ttl_seconds // 60
        await self.send(
            to_email,
            "Email Verification OTP",
            _OTP_TEMPLATE.format(code=code, minutes=minutes),
        )

    async def send_welcome(self, to_email: str, name: str, reg_number: str) -> None:
        await self.send(
            to_email,
            f"Welcome to {settings.app_name} - Registration Successful",
            _WELCOME_TEMPLATE.format(
                app_name=html.escape(settings.app_name),
                name=html.escape(name),
                email=html.escape(to_email),
                reg_number=html.escape(reg_number),
            ),
        )

    async def send_password_reset(self, to_email: str, reset_url: str) -> None:
        await self.send(
            to_email,
            "Reset Password",
            _RESET_TEMPLATE.format(
                url=html.escape(reset_url), app_name=html.escape(settings.app_name)
            ),
        )
