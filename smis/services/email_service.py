# smis/services/email_service.py
"""Outgoing mail over SMTP."""
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional
import logging

import aiosmtplib

from ..core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self):
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.from_email = settings.mail_from

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host)

    async def send_email(self, to_email: str, subject: str, text_content: str, html_content: Optional[str] = None) -> bool:
        """Send one message; returns False when SMTP is not configured or delivery fails."""
        if not self.is_configured:
            logger.warning(f"SMTP not configured, skipping email to {to_email}: {subject}")
            return False

        message = MIMEMultipart("alternative")
        message["From"] = self.from_email
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(text_content, "plain"))
        if html_content:
            message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_username,
                password=self.smtp_password,
                start_tls=settings.smtp_use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"Sent email to {to_email}: {subject}")
        return True

    async def send_password_reset(self, to_email: str, token: str) -> bool:
        reset_link = f"{settings.frontend_url}/reset-password?token={token}"
        text = (
            "A password reset was requested for your SMIS account.\n\n"
            f"Use this link within {settings.password_reset_expire_minutes} minutes:\n{reset_link}\n\n"
            "If you did not request this, ignore this email."
        )
        return await self.send_email(to_email, "SMIS password reset", text)
