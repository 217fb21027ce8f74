"""Tests for the OTP endpoints — validation, status codes and JSON shapes."""

from __future__ import annotations

import pytest

from volunteer_portal.errors import EmailDeliveryError
from volunteer_portal.models.volunteer import Volunteer

BASE = "/api/v1/volunteer/otp"


def _sent_code(email_service) -> str:
    return email_service.send_otp.call_args.args[1]


# ──────────────────────────────────────────────────────────
# Send
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_send_otp(client, email_service, otp_store):
    resp = await client.post(f"{BASE}/send", json={"email": "a@b.com"})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "otpStatus": "sent",
        "message": "OTP sent successfully.",
    }
    email_service.send_otp.assert_awaited_once()
    assert otp_store.get("a@b.com").code == _sent_code(email_service)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({}, "Email is required."),
        ({"email": ""}, "Email is required."),
        ({"email": "not-an-email"}, "Please provide a valid email address."),
        ({"email": "a@b"}, "Please provide a valid email address."),
        ({"email": "a@b.com\n"}, "Please provide a valid email address."),
    ],
)
async def test_send_otp_validation(client, body, message):
    resp = await client.post(f"{BASE}/send", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": message}


@pytest.mark.asyncio
async def test_send_otp_rejects_registered_email(client, session_factory, email_service):
    async with session_factory() as session:
        session.add(
            Volunteer(
                name="Existing",
                email="taken@example.com",
                phone="9000000000",
                password_hash="x",
                guardian="G",
                age=30,
                address="A",
                current_address="A",
                state="S",
                district="D",
                city="C",
                pincode="100001",
                dob="1995-01-01",
                gender="female",
                bank_acc_number="1",
                bank_name="B",
                ifsc="IFSC0001",
                bank_document="u",
                education_degree="BA",
                education_year_of_completion="2016",
                education_certificate="u",
                employment_status="Student",
                image="u",
                account_verified=True,
                temp_reg_number="ASF/FE/00001",
            )
        )
        await session.commit()

    resp = await client.post(f"{BASE}/send", json={"email": "taken@example.com"})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Email is already registered."
    email_service.send_otp.assert_not_called()


@pytest.mark.asyncio
async def test_send_otp_twice_is_rate_limited(client):
    await client.post(f"{BASE}/send", json={"email": "a@b.com"})
    resp = await client.post(f"{BASE}/send", json={"email": "a@b.com"})

    assert resp.status_code == 429
    assert resp.json() == {
        "success": False,
        "message": "Please wait 300 seconds before requesting a new OTP.",
    }
    assert resp.headers["Retry-After"] == "300"


@pytest.mark.asyncio
async def test_send_otp_delivery_failure(client, email_service, otp_store):
    email_service.send_otp.side_effect = EmailDeliveryError("smtp down")

    resp = await client.post(f"{BASE}/send", json={"email": "a@b.com"})

    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to send OTP. Please try again."
    assert otp_store.get("a@b.com") is None


@pytest.mark.asyncio
async def test_send_otp_for_verified_email(client, email_service):
    await client.post(f"{BASE}/send", json={"email": "a@b.com"})
    await client.post(
        f"{BASE}/verify", json={"email": "a@b.com", "otp": _sent_code(email_service)}
    )

    resp = await client.post(f"{BASE}/send", json={"email": "a@b.com"})

    assert resp.status_code == 200
    assert resp.json()["otpStatus"] == "verified"
    assert resp.json()["message"] == "Email is already verified."


# ──────────────────────────────────────────────────────────
# Resend
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_resend_without_request(client):
    resp = await client.post(f"{BASE}/resend", json={"email": "a@b.com"})

    assert resp.status_code == 400
    assert resp.json()["message"] == "No OTP request found. Please request a new OTP."


@pytest.mark.asyncio
async def test_resend_after_cooldown(client, clock, email_service):
    await client.post(f"{BASE}/send", json={"email": "a@b.com"})

    resp = await client.post(f"{BASE}/resend", json={"email": "a@b.com"})
    assert resp.status_code == 429

    clock.advance(300)
    resp = await client.post(f"{BASE}/resend", json={"email": "a@b.com"})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "OTP resent successfully.",
        "canResendAfter": 300000,
    }
    assert email_service.send_otp.await_count == 2


# ──────────────────────────────────────────────────────────
# Status
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_status_unknown_email(client):
    resp = await client.post(f"{BASE}/status", json={"email": "x@y.org"})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "otpExists": False,
        "canResend": True,
        "message": "No OTP found for this email.",
    }


@pytest.mark.asyncio
async def test_status_requires_email(client):
    resp = await client.post(f"{BASE}/status", json={})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Email is required."


@pytest.mark.asyncio
async def test_status_pending(client, clock):
    await client.post(f"{BASE}/send", json={"email": "a@b.com"})
    clock.advance(30)

    resp = await client.post(f"{BASE}/status", json={"email": "a@b.com"})

    assert resp.json() == {
        "success": True,
        "otpExists": True,
        "canResend": False,
        "isExpired": False,
        "verified": False,
        "remainingTime": 270,
        "attempts": 0,
    }


# ──────────────────────────────────────────────────────────
# Verify
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({"email": "a@b.com"}, "Email and OTP are required."),
        ({"otp": "123456"}, "Email and OTP are required."),
        ({"email": "bad", "otp": "123456"}, "Please provide a valid email address."),
        ({"email": "a@b.com", "otp": "12345"}, "OTP must be a 6-digit number."),
        ({"email": "a@b.com", "otp": "12a456"}, "OTP must be a 6-digit number."),
        (
            {"email": "a@b.com", "otp": "\u0661\u0662\u0663\u0664\u0665\u0666"},
            "OTP must be a 6-digit number.",
        ),
        ({"email": "a@b.com", "otp": "123456\n"}, "OTP must be a 6-digit number."),
        ({"email": "a@b.com\n", "otp": "123456"}, "Please provide a valid email address."),
    ],
)
async def test_verify_validation(client, body, message):
    resp = await client.post(f"{BASE}/verify", json=body)

    assert resp.status_code == 400
    assert resp.json()["message"] == message


@pytest.mark.asyncio
async def test_verify_flow(client, email_service, otp_store):
    await client.post(f"{BASE}/send", json={"email": "a@b.com"})
    code = _sent_code(email_service)
    wrong = "000000" if code != "000000" else "111111"

    resp = await client.post(f"{BASE}/verify", json={"email": "a@b.com", "otp": wrong})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid OTP. 4 attempts remaining."
    assert otp_store.get("a@b.com").attempts == 1

    resp = await client.post(f"{BASE}/verify", json={"email": "a@b.com", "otp": code})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Email verified successfully."}

    resp = await client.post(f"{BASE}/verify", json={"email": "a@b.com", "otp": code})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Email is already verified."


@pytest.mark.asyncio
async def test_verify_accepts_numeric_otp(client, email_service):
    await client.post(f"{BASE}/send", json={"email": "a@b.com"})
    code = int(_sent_code(email_service))

    resp = await client.post(f"{BASE}/verify", json={"email": "a@b.com", "otp": code})

    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_verify_expired(client, clock, email_service):
    await client.post(f"{BASE}/send", json={"email": "a@b.com"})
    clock.advance(301)

    resp = await client.post(
        f"{BASE}/verify", json={"email": "a@b.com", "otp": _sent_code(email_service)}
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "OTP has expired. Please request a new one."

    resp = await client.post(f"{BASE}/status", json={"email": "a@b.com"})
    assert resp.json()["otpExists"] is False


# ──────────────────────────────────────────────────────────
# Malformed bodies
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "body", "message"),
    [
        ("/send", {"email": 123}, "Invalid value for 'email'."),
        ("/status", {"email": ["a@b.com"]}, "Invalid value for 'email'."),
        ("/verify", {"email": "a@b.com", "otp": ["123456"]}, "Invalid value for 'otp'."),
        ("/verify", {"email": "a@b.com", "otp": 1.5}, "Invalid value for 'otp'."),
    ],
)
async def test_wrongly_typed_body_uses_error_envelope(client, path, body, message):
    resp = await client.post(f"{BASE}{path}", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": message}


@pytest.mark.asyncio
async def test_invalid_json_uses_error_envelope(client, email_service):
    resp = await client.post(
        f"{BASE}/send",
        content=b'{"email": ',
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Request body must be valid JSON.",
    }
    email_service.send_otp.assert_not_called()
