from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Callable, Protocol

from fireguardian.core.config import Settings

from .templates import (
    MaintenanceCompletedEmail,
    RenderedEmail,
    TicketCreatedEmail,
    TicketUpdatedEmail,
    render_maintenance_completed,
    render_ticket_created,
    render_ticket_updated,
)

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ERROR = "Email service not configured"


@dataclass(slots=True)
class EmailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


class EmailGateway(Protocol):
    """Delivery contract; implementations report failures through ``EmailResult``."""

    async def send_ticket_created(self, params: TicketCreatedEmail) -> EmailResult: ...

    async def send_ticket_updated(self, params: TicketUpdatedEmail) -> EmailResult: ...

    async def send_maintenance_completed(self, params: MaintenanceCompletedEmail) -> EmailResult: ...


class SmtpEmailGateway:
    """Send multipart ticket emails through an SMTP relay."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        from_address: str | None = None,
        from_name: str = "Fire Guardian",
        use_tls: bool = True,
        timeout: float = 30.0,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address or username
        self.from_name = from_name
        self.use_tls = use_tls
        self.timeout = timeout
        self._smtp_factory = smtp_factory

    @classmethod
    def from_settings(cls, settings: Settings) -> SmtpEmailGateway:
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.username and self.password)

    async def send_ticket_created(self, params: TicketCreatedEmail) -> EmailResult:
        return await self._send(params.to, render_ticket_created(params))

    async def send_ticket_updated(self, params: TicketUpdatedEmail) -> EmailResult:
        return await self._send(params.to, render_ticket_updated(params))

    async def send_maintenance_completed(self, params: MaintenanceCompletedEmail) -> EmailResult:
        return await self._send(params.to, render_maintenance_completed(params))

    async def _send(self, recipient: str, rendered: RenderedEmail) -> EmailResult:
        if not self.configured:
            logger.warning("Email not configured; skipping '%s' to %s", rendered.subject, recipient)
            return EmailResult(success=False, error=NOT_CONFIGURED_ERROR)

        message = self._build_message(recipient, rendered)
        try:
            await asyncio.to_thread(self._deliver, message)
        except Exception as exc:
            logger.error("Email '%s' to %s failed: %s", rendered.subject, recipient, exc)
            return EmailResult(success=False, error=str(exc) or exc.__class__.__name__)

        message_id = message["Message-ID"]
        logger.info("Email '%s' sent to %s (%s)", rendered.subject, recipient, message_id)
        return EmailResult(success=True, message_id=message_id)

    def _build_message(self, recipient: str, rendered: RenderedEmail) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = rendered.subject
        message["From"] = formataddr((self.from_name, self.from_address or ""))
        message["To"] = recipient
        domain = (self.from_address or "").partition("@")[2] or None
        message["Message-ID"] = make_msgid(domain=domain)
        message.attach(MIMEText(rendered.text, "plain", "utf-8"))
        message.attach(MIMEText(rendered.html, "html", "utf-8"))
        return message

    def _deliver(self, message: MIMEMultipart) -> None:
        with self._smtp_factory(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            server.login(self.username, self.password)
            server.send_message(message)
