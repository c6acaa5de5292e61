# app/services/email_service.py
"""
Outbound email over SMTP, used by the birthday reminder job.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Iterable, List, Optional

import aiosmtplib

from app.config.settings import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Async email service using SMTP"""

    def __init__(self, config=settings):
        self.smtp_host = config.SMTP_HOST
        self.smtp_port = config.SMTP_PORT
        self.smtp_user = config.SMTP_USER
        self.smtp_password = config.SMTP_PASSWORD
        self.use_tls = config.SMTP_USE_TLS
        self.from_email = config.EMAIL_FROM or config.SMTP_USER

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_emails: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send one message to every address in ``to_emails``; True on success"""
        if not self.is_configured:
            logger.warning("Email service not configured, skipping email send")
            return False

        message = MIMEMultipart("alternative")
        message["From"] = self.from_email
        message["To"] = ", ".join(to_emails)
        message["Subject"] = subject
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {message['To']}: {e}")
            return False

        logger.info(f"Sent email to {message['To']}: {subject}")
        return True

    async def send_birthday_reminder(self, recipients: List[str], users: Iterable, department: str) -> bool:
        """Tell the department's VP and Head whose birthday it is today"""
        names = ", ".join(user.name for user in users)
        subject = f"Birthday Reminder - {department} Department"
        html_content = f"""
        <h2>Birthday Reminder</h2>
        <p>Good morning! The following team member(s) have their birthday today:</p>
        <p><strong>{escape(names)}</strong></p>
        <p>Please take a moment to wish them!</p>
        """
        text_content = f"The following team member(s) have their birthday today: {names}"
        return await self.send_email(recipients, subject, html_content, text_content)


email_service = EmailService()
