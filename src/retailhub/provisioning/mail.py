"""Welcome mail for a newly provisioned tenant owner.

Supports plain SMTP plus the SendGrid and Resend HTTP APIs. The transport
settings come from an explicit `MailConfig`; nothing global is touched.
"""

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.mime.text import MIMEText

import httpx

from retailhub.settings.resolver import MailConfig

logger = logging.getLogger(__name__)


@dataclass
class WelcomeMessage:
    email: str
    name: str
    password: str
    subdomain: str
    company_name: str = ""
    superadmin_company_name: str = ""
    superadmin_email: str = ""
    login_url: str = ""


class WelcomeMailer:
    """Sends the tenant-created mail through the configured driver."""

    def __init__(
        self,
        config: MailConfig,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.timeout = timeout
        self._transport = transport

    async def send_welcome(self, message: WelcomeMessage) -> bool:
        subject = f"Welcome to {message.superadmin_company_name or 'RetailHub'}"
        body = self._build_body(message)
        driver = self.config.driver
        if driver == "sendgrid":
            return await self._send_sendgrid(message.email, subject, body)
        if driver == "resend":
            return await self._send_resend(message.email, subject, body)
        if driver == "smtp":
            return await asyncio.to_thread(self._send_smtp, message.email, subject, body)
        logger.warning("Unsupported mail driver %r", driver)
        return False

    def _build_body(self, message: WelcomeMessage) -> str:
        lines = [
            f"Hi {message.name},",
            "",
            f"Your store '{message.company_name or message.subdomain}' is ready.",
            "",
            f"Subdomain: {message.subdomain}",
        ]
        if message.login_url:
            lines.append(f"Login: {message.login_url}")
        lines += [
            f"Email: {message.email}",
            f"Password: {message.password}",
            "",
        ]
        if message.superadmin_email:
            lines.append(f"Questions? Contact {message.superadmin_email}.")
        lines.append(message.superadmin_company_name or "RetailHub")
        return "\n".join(lines)

    def _send_smtp(self, to: str, subject: str, body: str) -> bool:
        msg = MIMEText(body)
        msg["Subject"] = subject
        msg["From"] = f"{self.config.from_name} <{self.config.from_address}>"
        msg["To"] = to

        encryption = (self.config.encryption or "").lower()
        smtp_cls = smtplib.SMTP_SSL if encryption == "ssl" else smtplib.SMTP
        try:
            with smtp_cls(self.config.host, self.config.port, timeout=self.timeout) as server:
                if encryption == "tls":
                    server.starttls()
                if self.config.username:
                    server.login(self.config.username, self.config.password)
                server.send_message(msg)
            logger.info("SMTP welcome mail sent to %s", to)
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("SMTP send failed")
            return False

    async def _post(self, url: str, payload: dict) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport) as client:
            return await client.post(
                url,
                headers={
                    "Authorization": f"Bearer {self.config.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.timeout,
            )

    async def _send_sendgrid(self, to: str, subject: str, body: str) -> bool:
        """Send via SendGrid v3 API."""
        try:
            resp = await self._post(
                "https://api.sendgrid.com/v3/mail/send",
                {
                    "personalizations": [{"to": [{"email": to}]}],
                    "from": {"email": self.config.from_address, "name": self.config.from_name},
                    "subject": subject,
                    "content": [{"type": "text/plain", "value": body}],
                },
            )
            if resp.status_code in (200, 202):
                logger.info("SendGrid email sent to %s", to)
                return True
            logger.warning("SendGrid error: %s %s", resp.status_code, resp.text)
            return False
        except Exception:
            logger.exception("SendGrid send failed")
            return False

    async def _send_resend(self, to: str, subject: str, body: str) -> bool:
        """Send via Resend API."""
        try:
            resp = await self._post(
                "https://api.resend.com/emails",
                {
                    "from": f"{self.config.from_name} <{self.config.from_address}>",
                    "to": [to],
                    "subject": subject,
                    "text": body,
                },
            )
            if resp.status_code in (200, 201):
                logger.info("Resend email sent to %s", to)
                return True
            logger.warning("Resend error: %s %s", resp.status_code, resp.text)
            return False
        except Exception:
            logger.exception("Resend send failed")
            return False
