"""
Alert Routes - inspect alerts and trigger the preventive maintenance jobs by hand
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from itmaint.database import get_db
from itmaint.dependencies import require_role
from itmaint.models.alert import Alert
from itmaint.models.equipment import Equipment
from itmaint.models.intervention import Intervention
from itmaint.models.user import User, UserRole
from itmaint.schemas.alert import AlertResponse, CustomNotification, JobRunResponse
from itmaint.services.notification_service import send_custom_notification, send_pending_alerts
from itmaint.services.preventive import create_alerts, generate_missing_interventions

logger = logging.getLogger(__name__)
router = APIRouter(tags=["alerts"])


@router.get("/", response_model=List[AlertResponse])
def list_alerts(
    pending_only: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """List alerts with their intervention date and equipment"""
    query = (
        db.query(
            Alert.id,
            Alert.intervention_id,
            Alert.alert_date,
            Alert.sent,
            Alert.sent_at,
            Intervention.scheduled_date,
            Equipment.name.label("equipment_name"),
        )
        .join(Intervention, Alert.intervention_id == Intervention.id)
        .join(Equipment, Intervention.equipment_id == Equipment.id)
    )
    if pending_only:
        query = query.filter(Alert.sent.is_(False))

    return [row._asdict() for row in query.order_by(desc(Alert.alert_date)).all()]


@router.post("/run/reconcile", response_model=JobRunResponse)
def run_reconcile(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Plan missing preventive interventions now"""
    created = generate_missing_interventions(db)
    logger.info(f"[alerts] Manual reconcile by '{current_user.username}': {created} created")
    return {"job": "reconcile", "count": created}


@router.post("/run/create-alerts", response_model=JobRunResponse)
def run_create_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Create alerts for interventions entering the lead window now"""
    return {"job": "create_alerts", "count": create_alerts(db)}


@router.post("/run/dispatch", response_model=JobRunResponse)
def run_dispatch(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Send pending alerts now (no-op when email is not configured)"""
    return {"job": "dispatch", "count": send_pending_alerts(db)}


@router.post("/notify", status_code=status.HTTP_202_ACCEPTED)
def notify(
    notification: CustomNotification,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Send a free-form email notification"""
    send_custom_notification(notification.to, notification.subject, notification.message)
    return {"success": True, "message": f"Notification sent to {notification.to}"}
