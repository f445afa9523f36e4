"""
Email notifications for preventive maintenance alerts.

The dispatcher only depends on a Mailer (send(to, subject, html) -> bool);
SMTPMailer is the production transport. When SMTP is not configured
get_mailer() raises ConfigurationError and dispatching is skipped silently.
"""
from __future__ import annotations

import html
import logging
import smtplib
from datetime import date, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from itmaint.core.config import Settings, get_settings
from itmaint.core.exceptions import ConfigurationError, DeliveryError
from itmaint.services.preventive import PendingAlert, get_pending_alerts, mark_alert_as_sent

logger = logging.getLogger(__name__)

INTERVENTION_TYPE_LABELS = {
    "update": "Software update",
    "cleaning": "Cleaning",
    "replacement": "Part replacement",
    "verification": "Verification",
    "other": "Other",
}


class Mailer(Protocol):
    def send(self, to: str, subject: str, html_body: str) -> bool:
        ...


class SMTPMailer:
    """SMTP transport: STARTTLS on 587, implicit TLS on 465."""

    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.from_addr = settings.EMAIL_FROM
        self.timeout = settings.SMTP_TIMEOUT

    def _deliver(self, to: str, subject: str, html_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_addr
        msg["To"] = to
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        envelope_from = parseaddr(self.from_addr)[1] or self.user
        smtp_cls = smtplib.SMTP_SSL if self.port == 465 else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=self.timeout) as server:
            if self.port != 465:
                server.starttls()
            if self.password:
                server.login(self.user, self.password)
            server.sendmail(envelope_from, [to], msg.as_string())

    def send(self, to: str, subject: str, html_body: str) -> bool:
        """Returns True on success, False on failure."""
        try:
            self._deliver(to, subject, html_body)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"[mail] Send to {to} failed: {exc}")
            return False
        logger.info(f"[mail] Sent to {to}: {subject}")
        return True


def get_mailer(settings: Optional[Settings] = None) -> SMTPMailer:
    """Build the SMTP mailer, raising ConfigurationError when SMTP is not set up."""
    settings = settings or get_settings()
    if not settings.email_configured:
        raise ConfigurationError("SMTP_HOST and SMTP_USER must be set to send email")
    return SMTPMailer(settings)


# ── Rendering ─────────────────────────────────────────────────────────────────

def format_date(value: date) -> str:
    """e.g. Monday 1 March 2024"""
    return f"{value.strftime('%A')} {value.day} {value.strftime('%B %Y')}"


def format_intervention_type(intervention_type: str) -> str:
    return INTERVENTION_TYPE_LABELS.get(intervention_type, intervention_type)


def build_alert_subject(alert: PendingAlert) -> str:
    return f"Upcoming preventive intervention - {alert.equipment_name}"


def build_alert_html(alert: PendingAlert) -> str:
    """HTML body for an upcoming-intervention alert."""
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #3788d8;">Planned preventive intervention</h2>'
        '<div style="background: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        f"<p><strong>Equipment:</strong> {html.escape(alert.equipment_name)}</p>"
        f"<p><strong>Type:</strong> {html.escape(alert.equipment_type)}</p>"
        f"<p><strong>Scheduled date:</strong> {format_date(alert.scheduled_date)}</p>"
        f"<p><strong>Intervention:</strong> {html.escape(format_intervention_type(alert.type))}</p>"
        "</div>"
        "<p>This intervention is planned within the next few days. "
        "Please make sure it is carried out.</p>"
        '<p style="color: #6b7280; font-size: 12px; margin-top: 30px;">'
        "This is an automated message from the preventive maintenance system."
        "</p>"
        "</div>"
    )


def build_custom_html(message: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #3788d8;">Notification</h2>'
        '<div style="background: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">'
        f"{html.escape(message)}"
        "</div>"
        "</div>"
    )


# ── Dispatch ──────────────────────────────────────────────────────────────────

def send_intervention_alert(mailer: Mailer, alert: PendingAlert, fallback_recipient: str) -> None:
    """Deliver one alert; raises DeliveryError when the mailer reports a failure."""
    recipient = alert.technician_email or fallback_recipient
    if not mailer.send(recipient, build_alert_subject(alert), build_alert_html(alert)):
        raise DeliveryError(f"Alert {alert.id} could not be delivered to {recipient}")


def send_pending_alerts(
    db: Session,
    mailer: Optional[Mailer] = None,
    settings: Optional[Settings] = None,
) -> int:
    """
    Send every unsent alert and mark the delivered ones as sent.
    Failed deliveries stay unsent and are retried on the next run.
    Returns the number of alerts sent.
    """
    settings = settings or get_settings()
    if mailer is None:
        try:
            mailer = get_mailer(settings)
        except ConfigurationError:
            return 0

    sent = 0
    for alert in get_pending_alerts(db):
        try:
            send_intervention_alert(mailer, alert, settings.SMTP_USER)
        except DeliveryError as exc:
            logger.warning(f"[alerts] {exc} - will retry on next dispatch")
            continue
        if mark_alert_as_sent(db, alert.id, datetime.utcnow()):
            sent += 1

    if sent:
        logger.info(f"[alerts] {sent} alert(s) sent")
    return sent


def send_custom_notification(
    to: str,
    subject: str,
    message: str,
    mailer: Optional[Mailer] = None,
) -> None:
    """Send a free-form notification. Raises ConfigurationError or DeliveryError."""
    mailer = mailer or get_mailer()
    if not mailer.send(to, subject, build_custom_html(message)):
        raise DeliveryError(f"Notification to {to} could not be delivered")
