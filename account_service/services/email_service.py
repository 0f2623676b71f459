"""Service for sending emails."""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from account_service.domain.errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        base_url: str,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "Accounts",
    ):
        self.base_url = base_url.rstrip("/")
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def verification_url(self, verification_token: str) -> str:
        return f"{self.base_url}/users/verify/{verification_token}"

    async def send_verification_email(self, to_email: str, verification_token: str) -> None:
        """
        Send the email verification link.

        Args:
            to_email: Recipient email
            verification_token: Verification token

        Raises:
            EmailDeliveryError: If the SMTP transport fails
        """
        verification_url = self.verification_url(verification_token)

        if not self.enabled:
            # Development mode: no transport configured
            logger.info("Verification URL for %s: %s", to_email, verification_url)
            return

        subject = "Verify your email"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e293b;">Confirm your email address</h2>
                <p style="color: #475569; line-height: 1.6;">
                    Thanks for signing up. Follow the link below to verify your account:
                </p>
                <p style="text-align: center; margin: 30px 0;">
                    <a href="{verification_url}"
                       style="background-color: #3b82f6; color: white; padding: 15px 30px;
                              text-decoration: none; border-radius: 5px; font-weight: bold;">
                        Verify email
                    </a>
                </p>
                <p style="color: #64748b; font-size: 14px;">
                    If you did not create an account, you can ignore this email.
                </p>
            </body>
        </html>
        """

        text_body = f"""
        Confirm your email address

        Open the link below to verify your account:
        {verification_url}

        If you did not create an account, you can ignore this email.
        """

        await asyncio.to_thread(self._send_email, to_email, subject, html_body, text_body)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        """
        Send an email via SMTP.

        Args:
            to_email: Recipient email
            subject: Email subject
            html_body: HTML body
            text_body: Plain text body

        Raises:
            EmailDeliveryError: If the message could not be handed to the server
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email

        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailDeliveryError(f"Failed to send email to {to_email}: {exc}") from exc
