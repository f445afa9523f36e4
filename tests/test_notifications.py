import smtplib
from datetime import date, timedelta
from unittest.mock import patch

import pytest

from itmaint.core.config import Settings
from itmaint.core.exceptions import ConfigurationError, DeliveryError
from itmaint.models.alert import Alert
from itmaint.models.intervention import Intervention, InterventionStatus, InterventionType
from itmaint.services.notification_service import (
    SMTPMailer,
    build_alert_html,
    build_alert_subject,
    format_date,
    format_intervention_type,
    get_mailer,
    send_custom_notification,
    send_pending_alerts,
)
from itmaint.services.preventive import PendingAlert, create_alerts

SMTP_SETTINGS = Settings(
    SMTP_HOST="smtp.example.com",
    SMTP_PORT=587,
    SMTP_USER="maintenance@example.com",
    SMTP_PASSWORD="pw",
    EMAIL_FROM="Maintenance <maintenance@example.com>",
)


class FakeMailer:
    """Records every message; fails for the recipients listed in `failing`."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.sent = []

    def send(self, to, subject, html_body):
        if to in self.failing:
            return False
        self.sent.append((to, subject, html_body))
        return True


def _alerted_intervention(db, equipment, days_ahead=3, technician=None):
    today = date.today()
    db.add(Intervention(
        equipment_id=equipment.id,
        scheduled_date=today + timedelta(days=days_ahead),
        type=InterventionType.VERIFICATION.value,
        status=InterventionStatus.PLANNED.value,
        technician_id=technician.id if technician else None,
    ))
    db.commit()
    create_alerts(db, lead_days=7, today=today)


def _unsent(db):
    db.expire_all()
    return db.query(Alert).filter(Alert.sent.is_(False)).count()


# ==================== Dispatch ====================

def test_dispatch_marks_delivered_alert_as_sent(db, make_equipment):
    _alerted_intervention(db, make_equipment(name="Laptop 42"))
    mailer = FakeMailer()

    assert send_pending_alerts(db, mailer=mailer, settings=SMTP_SETTINGS) == 1

    assert len(mailer.sent) == 1
    to, subject, body = mailer.sent[0]
    assert to == "maintenance@example.com"
    assert subject == "Upcoming preventive intervention - Laptop 42"
    assert "Laptop 42" in body
    alert = db.query(Alert).one()
    db.refresh(alert)
    assert alert.sent is True
    assert alert.sent_at is not None


def test_dispatch_prefers_technician_email(db, make_equipment, technician_user):
    _alerted_intervention(db, make_equipment(), technician=technician_user)
    mailer = FakeMailer()

    send_pending_alerts(db, mailer=mailer, settings=SMTP_SETTINGS)

    assert mailer.sent[0][0] == "tech@example.com"


def test_failed_delivery_is_retried_on_next_dispatch(db, make_equipment):
    _alerted_intervention(db, make_equipment())

    assert send_pending_alerts(db, mailer=FakeMailer(failing={"maintenance@example.com"}),
                               settings=SMTP_SETTINGS) == 0
    assert _unsent(db) == 1

    assert send_pending_alerts(db, mailer=FakeMailer(), settings=SMTP_SETTINGS) == 1
    assert _unsent(db) == 0


def test_one_failure_does_not_block_other_alerts(db, make_equipment, technician_user):
    _alerted_intervention(db, make_equipment(name="A"), days_ahead=1, technician=technician_user)
    _alerted_intervention(db, make_equipment(name="B"), days_ahead=2)
    mailer = FakeMailer(failing={"tech@example.com"})

    assert send_pending_alerts(db, mailer=mailer, settings=SMTP_SETTINGS) == 1
    assert [subject for _, subject, _ in mailer.sent] == ["Upcoming preventive intervention - B"]
    assert _unsent(db) == 1


def test_dispatch_is_a_noop_without_smtp(db, make_equipment):
    _alerted_intervention(db, make_equipment())

    assert send_pending_alerts(db, settings=Settings(SMTP_HOST="", SMTP_USER="")) == 0
    assert _unsent(db) == 1


def test_sent_alerts_are_not_sent_again(db, make_equipment):
    _alerted_intervention(db, make_equipment())
    mailer = FakeMailer()

    send_pending_alerts(db, mailer=mailer, settings=SMTP_SETTINGS)
    send_pending_alerts(db, mailer=mailer, settings=SMTP_SETTINGS)

    assert len(mailer.sent) == 1


# ==================== Mailer ====================

def test_get_mailer_requires_host_and_user():
    with pytest.raises(ConfigurationError):
        get_mailer(Settings(SMTP_HOST="smtp.example.com", SMTP_USER=""))
    assert isinstance(get_mailer(SMTP_SETTINGS), SMTPMailer)


def test_smtp_mailer_uses_starttls_and_login():
    with patch("itmaint.services.notification_service.smtplib.SMTP") as smtp_cls:
        assert SMTPMailer(SMTP_SETTINGS).send("tech@example.com", "Hello", "<p>hi</p>") is True

    smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30)
    server = smtp_cls.return_value.__enter__.return_value
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("maintenance@example.com", "pw")
    envelope_from, recipients, _ = server.sendmail.call_args[0]
    assert envelope_from == "maintenance@example.com"
    assert recipients == ["tech@example.com"]


def test_smtp_mailer_reports_failure_instead_of_raising():
    with patch("itmaint.services.notification_service.smtplib.SMTP",
               side_effect=ConnectionRefusedError("refused")):
        assert SMTPMailer(SMTP_SETTINGS).send("tech@example.com", "Hello", "<p>hi</p>") is False

    with patch("itmaint.services.notification_service.smtplib.SMTP") as smtp_cls:
        server = smtp_cls.return_value.__enter__.return_value
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        assert SMTPMailer(SMTP_SETTINGS).send("tech@example.com", "Hello", "<p>hi</p>") is False


def test_custom_notification_raises_on_failure():
    with pytest.raises(DeliveryError):
        send_custom_notification("x@example.com", "Subject", "Body", mailer=FakeMailer(failing={"x@example.com"}))

    mailer = FakeMailer()
    send_custom_notification("x@example.com", "Subject", "Body <b>", mailer=mailer)
    assert "Body &lt;b&gt;" in mailer.sent[0][2]


# ==================== Rendering ====================

def test_format_date():
    assert format_date(date(2024, 3, 1)) == "Friday 1 March 2024"


def test_format_intervention_type_falls_back_to_raw_value():
    assert format_intervention_type("verification") == "Verification"
    assert format_intervention_type("calibration") == "calibration"


def test_alert_html_escapes_equipment_fields():
    alert = PendingAlert(
        id=None,
        intervention_id=None,
        alert_date=date(2024, 2, 25),
        scheduled_date=date(2024, 3, 1),
        type="cleaning",
        equipment_name="<Printer & Co>",
        equipment_type="printer",
    )

    body = build_alert_html(alert)

    assert "&lt;Printer &amp; Co&gt;" in body
    assert "Friday 1 March 2024" in body
    assert "Cleaning" in body
    assert build_alert_subject(alert) == "Upcoming preventive intervention - <Printer & Co>"
