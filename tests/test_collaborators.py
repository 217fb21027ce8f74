"""Tests for the document store and email service adapters."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import httpx
import pytest

from volunteer_portal.errors import DocumentUploadError, EmailDeliveryError
from volunteer_portal.services.document_store import DocumentStore
from volunteer_portal.services.email_service import EmailService


# ──────────────────────────────────────────────────────────
# Document store
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_upload_returns_secure_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.read()
        return httpx.Response(200, json={"secure_url": "https://cdn.example.com/x.pdf"})

    store = DocumentStore(
        cloud_name="demo",
        upload_preset="unsigned",
        base_url="https://upload.example.com/v1_1",
        transport=httpx.MockTransport(handler),
    )

    url = await store.upload(b"file-bytes", "documents")

    assert url == "https://cdn.example.com/x.pdf"
    assert seen["url"] == "https://upload.example.com/v1_1/demo/auto/upload"
    assert b"file-bytes" in seen["body"]
    assert b"documents" in seen["body"]
    assert b"unsigned" in seen["body"]


@pytest.mark.asyncio
async def test_upload_failure_raises():
    store = DocumentStore(
        cloud_name="demo",
        upload_preset="unsigned",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="boom")),
    )

    with pytest.raises(DocumentUploadError):
        await store.upload(b"data", "users")


@pytest.mark.asyncio
async def test_upload_without_url_raises():
    store = DocumentStore(
        cloud_name="demo",
        upload_preset="unsigned",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})),
    )

    with pytest.raises(DocumentUploadError):
        await store.upload(b"data", "users")


# ──────────────────────────────────────────────────────────
# Email service
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_send_otp_builds_html_message():
    with patch("volunteer_portal.services.email_service.aiosmtplib.send", new=AsyncMock()) as send:
        await EmailService().send_otp("a@b.com", "123456")

    msg = send.await_args.args[0]
    assert msg["To"] == "a@b.com"
    assert msg["Subject"] == "Email Verification OTP"
    html = msg.get_body(preferencelist=("html",)).get_content()
    assert "123456" in html
    assert "5 minutes" in html


@pytest.mark.asyncio
async def test_smtp_failure_becomes_delivery_error():
    failing = AsyncMock(side_effect=aiosmtplib.SMTPException("refused"))
    with patch("volunteer_portal.services.email_service.aiosmtplib.send", new=failing):
        with pytest.raises(EmailDeliveryError):
            await EmailService().send_welcome("a@b.com", "Asha", "ASF/FE/00001")


@pytest.mark.asyncio
async def test_welcome_email_escapes_user_supplied_name():
    with patch("volunteer_portal.services.email_service.aiosmtplib.send", new=AsyncMock()) as send:
        await EmailService().send_welcome(
            "a@b.com", '<script>alert("x")</script>', "ASF/FE/00001"
        )

    html = send.await_args.args[0].get_body(preferencelist=("html",)).get_content()
    assert "<script>" not in html
    assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;" in html
    assert "ASF/FE/00001" in html
