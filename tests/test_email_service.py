"""Tests for the SMTP email service."""

from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from otp_service.config import Settings
from otp_service.services.email_service import EmailService
from otp_service.services.otp_store import Action


def _config(**overrides) -> Settings:
    values = {
        "smtp_host": "smtp.example.com",
        "smtp_port": 587,
        "smtp_user": "no-reply@example.com",
        "smtp_password": "secret",
        "mail_sender_name": "JayJobs",
    }
    values.update(overrides)
    return Settings(**values)


def test_verify_message_wording():
    msg = EmailService(_config()).build_otp_message("a@b.com", "4821", Action.VERIFY, 5)

    assert msg["Subject"] == "Your OTP for Email Verification"
    assert msg["To"] == "a@b.com"
    assert msg["From"] == "JayJobs <no-reply@example.com>"
    assert msg.get_content_subtype() == "html"
    body = msg.get_content()
    assert "4821" in body
    assert "verify your email" in body
    assert "This OTP expires in 5 minutes." in body


def test_reset_message_wording():
    msg = EmailService(_config()).build_otp_message("a@b.com", "4821", Action.RESET, 10)

    assert msg["Subject"] == "Your OTP for Password Reset"
    body = msg.get_content()
    assert "reset your password" in body
    assert "expires in 10 minutes" in body


@pytest.mark.asyncio
async def test_send_otp_uses_starttls_on_submission_port():
    with patch("otp_service.services.email_service.aiosmtplib.send", new_callable=AsyncMock) as send:
        await EmailService(_config()).send_otp("a@b.com", "4821", Action.VERIFY, 5)

    send.assert_awaited_once()
    kwargs = send.call_args.kwargs
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["port"] == 587
    assert kwargs["username"] == "no-reply@example.com"
    assert kwargs["password"] == "secret"
    assert kwargs["use_tls"] is False
    assert kwargs["start_tls"] is None


@pytest.mark.asyncio
async def test_send_otp_uses_implicit_tls_on_port_465():
    with patch("otp_service.services.email_service.aiosmtplib.send", new_callable=AsyncMock) as send:
        await EmailService(_config(smtp_port=465)).send_otp("a@b.com", "4821", Action.VERIFY, 5)

    kwargs = send.call_args.kwargs
    assert kwargs["use_tls"] is True
    assert kwargs["start_tls"] is False


@pytest.mark.asyncio
async def test_send_otp_without_credentials_skips_login():
    with patch("otp_service.services.email_service.aiosmtplib.send", new_callable=AsyncMock) as send:
        await EmailService(_config(smtp_user="", smtp_password="")).send_otp(
            "a@b.com", "4821", Action.VERIFY, 5
        )

    assert send.call_args.kwargs["username"] is None
    assert send.call_args.kwargs["password"] is None


@pytest.mark.asyncio
async def test_send_otp_propagates_transport_errors():
    with patch(
        "otp_service.services.email_service.aiosmtplib.send",
        new_callable=AsyncMock,
        side_effect=aiosmtplib.SMTPRecipientsRefused([]),
    ):
        with pytest.raises(aiosmtplib.SMTPException):
            await EmailService(_config()).send_otp("a@b.com", "4821", Action.VERIFY, 5)


@pytest.mark.asyncio
async def test_verify_connection_success():
    with patch("otp_service.services.email_service.aiosmtplib.SMTP") as smtp_cls:
        smtp = smtp_cls.return_value
        smtp.connect = AsyncMock()
        smtp.login = AsyncMock()
        smtp.quit = AsyncMock()

        assert await EmailService(_config()).verify_connection() is True

    smtp.login.assert_awaited_once_with("no-reply@example.com", "secret")
    smtp.quit.assert_awaited_once()


@pytest.mark.asyncio
async def test_verify_connection_failure_is_logged_not_raised():
    with patch("otp_service.services.email_service.aiosmtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.connect = AsyncMock(side_effect=ConnectionRefusedError())

        assert await EmailService(_config()).verify_connection() is False
