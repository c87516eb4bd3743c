"""Notification dispatch to matched suppliers.

The Notifier renders one e-mail per supplier and either hands it to a
transport (live mode) or keeps and logs it (simulated mode). Each dispatch
returns a ``NotificationOutcome``; rendering and delivery failures never
escape it.
"""
from __future__ import annotations

import asyncio
import logging
import smtplib
from datetime import date
from email.message import EmailMessage
from typing import Protocol

from marketplace.config import EmailSettings
from marketplace.models import NotificationOutcome, Requirement, SentNotification, Supplier

logger = logging.getLogger(__name__)

NO_NOTES_PLACEHOLDER = "No additional notes"
SEPARATOR = "=" * 60


class NotificationTransportError(Exception):
    """Raised when a transport cannot deliver a message."""
    pass


class Transport(Protocol):
    """Delivery channel used by the Notifier in live mode."""

    async def send(self, message: EmailMessage) -> None:
        ...


def format_delivery_date(value: date) -> str:
    """Long-form date, e.g. ``January 5, 2025``."""
    return f"{value:%B} {value.day}, {value.year}"


def format_quantity(value: float) -> str:
    return f"{value:g}"


def build_subject(requirement: Requirement) -> str:
    # Header values cannot carry line breaks.
    product = " ".join(requirement.product.split())
    return f"New Product Requirement: {product}"


def build_body(supplier: Supplier, requirement: Requirement) -> str:
    """Plain-text notification body for one supplier."""
    notes = requirement.notes or NO_NOTES_PLACEHOLDER
    return (
        f"Hi {supplier.name},\n"
        "\n"
        f"A buyer needs {requirement.product} ({format_quantity(requirement.quantity)}kg) "
        f"by {format_delivery_date(requirement.delivery_date)}.\n"
        "\n"
        f"Notes: {notes}\n"
        "\n"
        "Please contact the buyer if you can fulfill this requirement.\n"
        "\n"
        "Best regards,\n"
        "PBF Marketplace"
    )


def build_message(supplier: Supplier, requirement: Requirement, sender: str) -> EmailMessage:
    message = EmailMessage()
    if sender:
        message["From"] = sender
    message["To"] = supplier.contact_address
    message["Subject"] = build_subject(requirement)
    message.set_content(build_body(supplier, requirement))
    return message


class SmtpTransport:
    """Transport that submits messages to an SMTP server.

    ``smtplib`` is blocking, so each send runs in a worker thread and the
    event loop stays free for sibling dispatches.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        *,
        use_starttls: bool = True,
        timeout: float = 30.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._use_starttls = use_starttls
        self._timeout = timeout

    @classmethod
    def from_settings(cls, config: EmailSettings) -> SmtpTransport:
        return cls(
            host=config.host,
            port=config.port,
            username=config.user or "",
            password=config.password.get_secret_value() if config.password else "",
            use_starttls=config.use_starttls,
            timeout=config.timeout_seconds,
        )

    def _connect(self) -> smtplib.SMTP:
        client = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        try:
            if self._use_starttls:
                client.starttls()
            client.login(self._username, self._password)
        except BaseException:
            client.close()
            raise
        return client

    def _send_blocking(self, message: EmailMessage) -> None:
        with self._connect() as client:
            client.send_message(message)

    def _verify_blocking(self) -> None:
        with self._connect() as client:
            client.noop()

    async def send(self, message: EmailMessage) -> None:
        try:
            await asyncio.to_thread(self._send_blocking, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationTransportError(str(e) or e.__class__.__name__) from e

    async def verify(self) -> None:
        """Open and authenticate a connection without sending anything."""
        try:
            await asyncio.to_thread(self._verify_blocking)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationTransportError(str(e) or e.__class__.__name__) from e


class Notifier:
    """Dispatches one notification per supplier.

    With a transport the notifier is live; without one it is simulated and
    records every rendered message in ``outbox``.
    """

    def __init__(
        self,
        sender: str,
        transport: Transport | None = None,
        *,
        dispatch_timeout: float | None = None,
    ) -> None:
        self._sender = sender
        self._transport = transport
        self._dispatch_timeout = dispatch_timeout
        self.outbox: list[SentNotification] = []

    @property
    def transport(self) -> Transport | None:
        return self._transport

    @property
    def live(self) -> bool:
        return self._transport is not None

    async def dispatch(self, supplier: Supplier, requirement: Requirement) -> NotificationOutcome:
        """Render and deliver (or record) one notification.

        Args:
            supplier: Matched supplier to notify
            requirement: Stored requirement the notification describes

        Returns:
            NotificationOutcome; ``delivered`` is False with an ``error`` when
            rendering or delivery failed, or the dispatch timed out
        """
        try:
            message = build_message(supplier, requirement, self._sender)
            if self._transport is None:
                self._record(supplier, message)
                return NotificationOutcome(supplier=supplier, delivered=True)
            if self._dispatch_timeout is None:
                await self._transport.send(message)
            else:
                await asyncio.wait_for(self._transport.send(message), self._dispatch_timeout)
        except NotificationTransportError as e:
            logger.warning(f"Failed to send email to {supplier.name}: {e}")
            return NotificationOutcome(supplier=supplier, delivered=False, error=str(e))
        except asyncio.TimeoutError:
            logger.warning(
                f"Email to {supplier.name} timed out after {self._dispatch_timeout}s"
            )
            return NotificationOutcome(supplier=supplier, delivered=False, error="timed out")
        except Exception as e:
            logger.error(f"Unexpected error notifying {supplier.name}: {e}", exc_info=True)
            return NotificationOutcome(
                supplier=supplier, delivered=False, error=str(e) or e.__class__.__name__
            )

        logger.info(f"Email sent to {supplier.name} ({supplier.contact_address})")
        return NotificationOutcome(supplier=supplier, delivered=True)

    def _record(self, supplier: Supplier, message: EmailMessage) -> None:
        sent = SentNotification(
            recipient_name=supplier.name,
            recipient=message["To"],
            subject=message["Subject"],
            body=message.get_content().rstrip("\n"),
        )
        self.outbox.append(sent)
        logger.info(
            "\n".join([
                "",
                SEPARATOR,
                f"EMAIL TO: {sent.recipient_name} ({sent.recipient})",
                f"SUBJECT: {sent.subject}",
                SEPARATOR,
                sent.body,
                SEPARATOR,
            ])
        )


def build_notifier(config: EmailSettings) -> Notifier:
    """Live notifier when e-mail is enabled, simulated otherwise."""
    if not config.enabled:
        logger.info("Email notifications disabled; messages will be logged")
        return Notifier(sender=config.from_address)

    return Notifier(
        sender=config.from_address,
        transport=SmtpTransport.from_settings(config),
        dispatch_timeout=config.dispatch_timeout_seconds,
    )
