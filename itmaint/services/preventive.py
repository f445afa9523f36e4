"""
Preventive Maintenance Engine

Responsibilities:
  • maintenance_dates               - pure: purchase date + "now" → future maintenance dates
  • ensure_preventive_interventions - existence-checked inserts for one equipment
  • generate_missing_interventions  - daily reconciler over every active equipment
  • create_alerts                   - daily: one alert per planned intervention entering the lead window
  • get_pending_alerts / mark_alert_as_sent - used by the alert dispatcher

Each equipment gets two maintenance dates a year: the 1st of its purchase month
and the 1st of the month six months later. The later month is computed as
(month + 6) mod 12 and kept in the loop year, so for equipment bought between
July and December the second date of a year falls before the first one.

Storage failures surface as StorageError; the scheduled jobs log them and the
next tick converges thanks to the existence checks.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from itmaint.core.config import settings
from itmaint.core.exceptions import StorageError
from itmaint.models.alert import Alert
from itmaint.models.equipment import Equipment, EquipmentStatus
from itmaint.models.intervention import Intervention, InterventionStatus, InterventionType
from itmaint.models.user import User

logger = logging.getLogger(__name__)

# Number of calendar years planned ahead, current year included
PLANNING_YEARS = 2


# ── Interval generator ────────────────────────────────────────────────────────

def maintenance_months(purchase_month: int) -> Tuple[int, int]:
    """Return the two maintenance months (1-12) for a purchase month."""
    return purchase_month, (purchase_month - 1 + 6) % 12 + 1


def candidate_dates(purchase_month: int, year: int) -> List[date]:
    """Both maintenance dates labelled with the given year, unfiltered."""
    first, second = maintenance_months(purchase_month)
    return [date(year, first, 1), date(year, second, 1)]


def _as_datetime(now: Union[date, datetime, None]) -> datetime:
    if now is None:
        return datetime.now()
    if isinstance(now, datetime):
        return now
    return datetime.combine(now, time.min)


def maintenance_dates(purchase_date: date, now: Union[date, datetime, None] = None) -> List[date]:
    """
    Maintenance dates for the current and next calendar year that are still
    strictly in the future. A date counts as its own midnight, so a maintenance
    day that has already started is skipped.
    """
    now = _as_datetime(now)
    dates = []
    for year in range(now.year, now.year + PLANNING_YEARS):
        for candidate in candidate_dates(purchase_date.month, year):
            if datetime.combine(candidate, time.min) > now:
                dates.append(candidate)
    return dates


# ── Reconciler ────────────────────────────────────────────────────────────────

def _intervention_exists(db: Session, equipment_id: uuid.UUID, scheduled_date: date) -> bool:
    return db.query(Intervention.id).filter(
        Intervention.equipment_id == equipment_id,
        Intervention.scheduled_date == scheduled_date,
    ).first() is not None


def ensure_preventive_interventions(
    db: Session,
    equipment: Equipment,
    now: Union[date, datetime, None] = None,
) -> int:
    """
    Insert a planned verification for every future maintenance date of the
    equipment that has no intervention yet. Commits and returns the number of
    rows created.
    """
    created = 0
    try:
        for scheduled_date in maintenance_dates(equipment.purchase_date, now):
            if _intervention_exists(db, equipment.id, scheduled_date):
                continue
            db.add(Intervention(
                equipment_id=equipment.id,
                scheduled_date=scheduled_date,
                type=InterventionType.VERIFICATION.value,
                status=InterventionStatus.PLANNED.value,
            ))
            created += 1
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not plan interventions for equipment {equipment.id}: {exc}") from exc
    return created


def generate_missing_interventions(db: Session, now: Union[date, datetime, None] = None) -> int:
    """
    Daily reconciliation pass: make sure every active equipment has its
    upcoming preventive interventions. Safe to re-run; returns the number of
    interventions created.
    """
    try:
        equipments = db.query(Equipment).filter(
            Equipment.status == EquipmentStatus.ACTIVE.value
        ).all()
    except SQLAlchemyError as exc:
        raise StorageError(f"Could not load active equipments: {exc}") from exc

    created = 0
    for equipment in equipments:
        created += ensure_preventive_interventions(db, equipment, now)

    if created:
        logger.info(f"[preventive] {created} preventive intervention(s) created")
    else:
        logger.debug(f"[preventive] {len(equipments)} active equipment(s) already planned")
    return created


# ── Alert creator ─────────────────────────────────────────────────────────────

def create_alerts(
    db: Session,
    lead_days: Optional[int] = None,
    today: Optional[date] = None,
) -> int:
    """
    Create one alert for every planned intervention scheduled within
    [today, today + lead_days] that has no alert yet. Returns the number of
    alerts created.
    """
    lead_days = settings.ALERT_DAYS_BEFORE if lead_days is None else lead_days
    today = today or date.today()
    window_end = today + timedelta(days=lead_days)

    try:
        interventions = (
            db.query(Intervention.id)
            .outerjoin(Alert, Alert.intervention_id == Intervention.id)
            .filter(
                Intervention.status == InterventionStatus.PLANNED.value,
                Intervention.scheduled_date >= today,
                Intervention.scheduled_date <= window_end,
                Alert.id.is_(None),
            )
            .all()
        )

        for row in interventions:
            db.add(Alert(intervention_id=row.id, alert_date=today, sent=False))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not create alerts: {exc}") from exc

    if interventions:
        logger.info(f"[alerts] {len(interventions)} alert(s) created")
    return len(interventions)


# ── Pending alerts ────────────────────────────────────────────────────────────

@dataclass
class PendingAlert:
    """Unsent alert with everything needed to write the notification."""
    id: uuid.UUID
    intervention_id: uuid.UUID
    alert_date: date
    scheduled_date: date
    type: str
    equipment_name: str
    equipment_type: str
    technician_email: Optional[str] = None


def get_pending_alerts(db: Session) -> List[PendingAlert]:
    """Return every alert not sent yet, joined with its intervention, equipment and technician."""
    try:
        rows = (
            db.query(
                Alert.id,
                Alert.intervention_id,
                Alert.alert_date,
                Intervention.scheduled_date,
                Intervention.type,
                Equipment.name.label("equipment_name"),
                Equipment.type.label("equipment_type"),
                User.email.label("technician_email"),
            )
            .join(Intervention, Alert.intervention_id == Intervention.id)
            .join(Equipment, Intervention.equipment_id == Equipment.id)
            .outerjoin(User, Intervention.technician_id == User.id)
            .filter(Alert.sent.is_(False))
            .order_by(Intervention.scheduled_date)
            .all()
        )
    except SQLAlchemyError as exc:
        raise StorageError(f"Could not load pending alerts: {exc}") from exc

    return [PendingAlert(**row._asdict()) for row in rows]


def mark_alert_as_sent(db: Session, alert_id: uuid.UUID, sent_at: Optional[datetime] = None) -> bool:
    """Flip an alert to sent. Returns False when it was already sent or does not exist."""
    try:
        updated = (
            db.query(Alert)
            .filter(Alert.id == alert_id, Alert.sent.is_(False))
            .update(
                {Alert.sent: True, Alert.sent_at: sent_at or datetime.utcnow()},
                synchronize_session=False,
            )
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not mark alert {alert_id} as sent: {exc}") from exc
    return updated == 1
