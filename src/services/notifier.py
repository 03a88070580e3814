# src/services/notifier.py

"""Notifier gateway: renders price-drop alerts and delivers them."""

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Protocol

from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError,
    select_autoescape,
)

from src.config.settings import Settings
from src.models.errors import NotificationFailure
from src.models.money import format_price
from src.models.notification_event import NotificationEvent

logger = logging.getLogger("price_tracker.notifier")


class Notifier(Protocol):
    """Delivery channel.  Raises :class:`NotificationFailure` on error."""

    def send(self, recipient: str, subject: str, body: str) -> None: ...


@dataclass
class Recipient:
    """Where and whether an owner wants alerts."""

    email: str
    notifications: bool = True


class RecipientDirectory:
    """Resolves an opaque owner id to a :class:`Recipient`.

    Explicit entries win.  An owner id that is itself an e-mail address
    resolves to that address.
    """

    def __init__(
        self, recipients: dict[str, Recipient] | None = None,
    ) -> None:
        self._recipients = dict(recipients or {})

    def add(self, owner_id: str, recipient: Recipient) -> None:
        self._recipients[owner_id] = recipient

    def resolve(self, owner_id: str) -> Recipient | None:
        if owner_id in self._recipients:
            return self._recipients[owner_id]
        if "@" in owner_id:
            return Recipient(email=owner_id)
        return None


def _template_env(templates_dir: Path | None = None) -> Environment:
    return Environment(
        loader=FileSystemLoader(
            str(templates_dir or Settings.TEMPLATES_DIR)
        ),
        autoescape=select_autoescape(["html"]),
    )


def render_price_drop(
    event: NotificationEvent,
    templates_dir: Path | None = None,
) -> tuple[str, str]:
    """Return ``(subject, html_body)`` for a price-drop event."""
    item = event.item
    template = _template_env(templates_dir).get_template("price_drop.html")
    body = template.render(
        title=item.title,
        image=item.image,
        store=item.store,
        url=item.url,
        previous_price=format_price(event.previous_price),
        new_price=format_price(event.new_price),
        savings=format_price(event.savings),
        savings_percent=event.savings_percent,
    )
    return f"Price Drop Alert: {item.title}", body


class EmailNotifier:
    """SMTP delivery (STARTTLS on 587, or SSL when configured)."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()

    @property
    def configured(self) -> bool:
        return bool(self.settings.EMAIL_FROM and self.settings.SMTP_HOST)

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.SMTP_USE_SSL:
            return smtplib.SMTP_SSL(
                s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT,
            )
        return smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT)

    def send(self, recipient: str, subject: str, body: str) -> None:
        if not self.configured:
            raise NotificationFailure(
                "Email not configured (EMAIL_FROM/SMTP_HOST); "
                f"cannot send: {subject}"
            )

        msg = MIMEMultipart("alternative")
        msg["From"] = self.settings.EMAIL_FROM
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(body, "html", "utf-8"))

        try:
            server = self._connect()
            try:
                if not self.settings.SMTP_USE_SSL:
                    server.starttls()
                if self.settings.SMTP_USER:
                    server.login(
                        self.settings.SMTP_USER, self.settings.SMTP_PASS,
                    )
                server.sendmail(
                    self.settings.EMAIL_FROM, [recipient], msg.as_string(),
                )
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailure(
                f"Could not send '{subject}' to {recipient}: {exc}"
            ) from exc
        logger.info("Notification sent to %s: %s", recipient, subject)


class AlertDispatcher:
    """Turns events into delivered messages; never raises."""

    def __init__(
        self,
        notifier: Notifier,
        recipients: RecipientDirectory | None = None,
    ) -> None:
        self._notifier = notifier
        self._recipients = recipients or RecipientDirectory()

    def dispatch(self, event: NotificationEvent) -> bool:
        """Deliver *event*; returns True only when the send succeeded."""
        item = event.item
        recipient = self._recipients.resolve(item.owner_id)
        if recipient is None:
            logger.warning(
                "No recipient for owner %s; alert for item %s dropped",
                item.owner_id,
                item.id,
            )
            return False
        if not recipient.notifications:
            logger.info(
                "Owner %s has notifications off; skipping item %s",
                item.owner_id,
                item.id,
            )
            return False

        try:
            subject, body = render_price_drop(event)
            self._notifier.send(recipient.email, subject, body)
        except (NotificationFailure, TemplateError) as exc:
            logger.error("Notification failed for item %s: %s", item.id, exc)
            return False
        return True
