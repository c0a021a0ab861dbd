"""Email service — sends OTP emails via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib

from otp_service.config import Settings, settings
from otp_service.services.otp_store import Action

logger = logging.getLogger(__name__)

_SUBJECTS = {
    Action.VERIFY: "Email Verification",
    Action.RESET: "Password Reset",
}

_PURPOSES = {
    Action.VERIFY: "verify your email",
    Action.RESET: "reset your password",
}

_OTP_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Your One-Time Password (OTP)</h2>
  <p>Use this code to {purpose}:</p>
  <div style="font-size: 24px; font-weight: bold; margin: 20px 0;">{code}</div>
  <p><small>This OTP expires in {minutes} minutes.</small></p>
</div>
"""


class EmailService:
    """Sends transactional emails using the configured SMTP server."""

    def __init__(self, config: Settings | None = None) -> None:
        self._config = config or settings

    @property
    def sender(self) -> str:
        return formataddr((self._config.mail_sender_name, self._config.smtp_user))

    def _tls_options(self) -> dict:
        # Port 465 speaks TLS from the first byte; anything else upgrades
        # with STARTTLS when the server offers it.
        if self._config.smtp_implicit_tls:
            return {"use_tls": True, "start_tls": False}
        return {"use_tls": False, "start_tls": None}

    def build_otp_message(
        self, to_email: str, code: str, action: Action, expiry_minutes: int
    ) -> EmailMessage:
        """Compose the OTP email for *action*."""
        msg = EmailMessage()
        msg["Subject"] = f"Your OTP for {_SUBJECTS[action]}"
        msg["From"] = self.sender
        msg["To"] = to_email
        msg.set_content(
            _OTP_TEMPLATE.format(
                purpose=_PURPOSES[action], code=code, minutes=expiry_minutes
            ),
            subtype="html",
        )
        return msg

    async def send_otp(
        self, to_email: str, code: str, action: Action, expiry_minutes: int
    ) -> None:
        """Send an OTP email.

        Parameters
        ----------
        to_email:
            Recipient email address.
        code:
            The plaintext one-time passcode.
        action:
            Decides the subject line and wording of the message.
        expiry_minutes:
            Validity window quoted in the message body.

        Raises whatever ``aiosmtplib`` raises; callers decide how to report it.
        """
        msg = self.build_otp_message(to_email, code, action, expiry_minutes)

        logger.info("Sending %s OTP email to %s", action.value, to_email)

        await aiosmtplib.send(
            msg,
            hostname=self._config.smtp_host,
            port=self._config.smtp_port,
            username=self._config.smtp_user or None,
            password=self._config.smtp_password or None,
            timeout=self._config.smtp_timeout_seconds,
            **self._tls_options(),
        )

        logger.info("OTP email accepted for %s", to_email)

    async def verify_connection(self) -> bool:
        """Check that the SMTP server is reachable and accepts our credentials.

        Logs the outcome and never raises.
        """
        smtp = aiosmtplib.SMTP(
            hostname=self._config.smtp_host,
            port=self._config.smtp_port,
            timeout=self._config.smtp_timeout_seconds,
            **self._tls_options(),
        )
        try:
            await smtp.connect()
            if self._config.smtp_user:
                await smtp.login(self._config.smtp_user, self._config.smtp_password)
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("SMTP connection error: %s", exc)
            return False
        logger.info("SMTP connection established")
        return True
