"""
Intervention Routes - planning, calendar and execution tracking
Status changes follow the lifecycle planned -> in_progress -> done / not_done,
with planned -> cancelled as the only other exit.
"""
import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import desc, func
from sqlalchemy.orm import Session, joinedload

from itmaint.core.exceptions import InvalidTransitionError
from itmaint.database import get_db
from itmaint.dependencies import get_current_user, require_role
from itmaint.models.equipment import Equipment
from itmaint.models.intervention import (
    Intervention,
    InterventionStatus,
    InterventionType,
    can_transition,
)
from itmaint.models.user import User, UserRole
from itmaint.schemas.intervention import (
    InterventionCreate,
    InterventionResponse,
    InterventionStatusUpdate,
    InterventionUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["interventions"])

EDITORS = (UserRole.ADMIN, UserRole.TECHNICIAN)

STATUS_COLORS = {
    InterventionStatus.PLANNED.value: "#3788d8",
    InterventionStatus.IN_PROGRESS.value: "#f59e0b",
    InterventionStatus.DONE.value: "#10b981",
    InterventionStatus.NOT_DONE.value: "#ef4444",
    InterventionStatus.CANCELLED.value: "#6b7280",
}


def get_status_color(intervention_status: str) -> str:
    return STATUS_COLORS.get(intervention_status, "#6b7280")


def build_intervention_response(intervention: Intervention) -> dict:
    """Response dict with equipment and technician display fields."""
    data = InterventionResponse.model_validate(intervention).model_dump()
    data["equipment_name"] = intervention.equipment.name if intervention.equipment else None
    data["equipment_type"] = intervention.equipment.type if intervention.equipment else None
    data["technician_name"] = intervention.technician.full_name if intervention.technician else None
    return data


def get_intervention_or_404(db: Session, intervention_id: uuid.UUID) -> Intervention:
    intervention = db.query(Intervention).filter(Intervention.id == intervention_id).first()
    if not intervention:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Intervention not found")
    return intervention


def apply_status_change(intervention: Intervention, new_status: InterventionStatus,
                        now: Optional[datetime] = None) -> None:
    """
    Move an intervention to a new status, stamping start_time when work
    starts and end_time when it ends. Raises InvalidTransitionError.
    """
    if not can_transition(intervention.status, new_status.value):
        raise InvalidTransitionError(intervention.status, new_status.value)

    now = now or datetime.utcnow()
    if new_status == InterventionStatus.IN_PROGRESS and not intervention.start_time:
        intervention.start_time = now
    if new_status in (InterventionStatus.DONE, InterventionStatus.NOT_DONE):
        intervention.end_time = now
        if not intervention.start_time:
            intervention.start_time = now
    intervention.status = new_status.value


@router.get("/", response_model=List[InterventionResponse])
def list_interventions(
    status: Optional[InterventionStatus] = None,
    type: Optional[InterventionType] = None,
    equipment_id: Optional[uuid.UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List interventions with optional filters, latest scheduled first"""
    query = db.query(Intervention).options(
        joinedload(Intervention.equipment),
        joinedload(Intervention.technician),
    )

    if status:
        query = query.filter(Intervention.status == status.value)
    if type:
        query = query.filter(Intervention.type == type.value)
    if equipment_id:
        query = query.filter(Intervention.equipment_id == equipment_id)
    if start_date:
        query = query.filter(Intervention.scheduled_date >= start_date)
    if end_date:
        query = query.filter(Intervention.scheduled_date <= end_date)

    interventions = query.order_by(desc(Intervention.scheduled_date)).all()
    return [build_intervention_response(i) for i in interventions]


@router.get("/calendar")
def intervention_calendar(
    start: date,
    end: date,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Calendar events between start and end (inclusive)"""
    rows = (
        db.query(
            Intervention.id,
            Intervention.scheduled_date,
            Intervention.status,
            Intervention.type,
            Equipment.name.label("title"),
            Equipment.type.label("equipment_type"),
        )
        .join(Equipment, Intervention.equipment_id == Equipment.id)
        .filter(Intervention.scheduled_date.between(start, end))
        .order_by(Intervention.scheduled_date)
        .all()
    )

    return [
        {
            "id": str(row.id),
            "title": row.title,
            "start": row.scheduled_date.isoformat(),
            "backgroundColor": get_status_color(row.status),
            "extendedProps": {
                "type": row.type,
                "status": row.status,
                "equipment_type": row.equipment_type,
            },
        }
        for row in rows
    ]


@router.get("/stats/summary")
def intervention_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Intervention counts and completion rate"""
    today = date.today()
    month_start = today.replace(day=1)
    next_month = date(today.year + 1, 1, 1) if today.month == 12 else date(today.year, today.month + 1, 1)

    total = db.query(func.count(Intervention.id)).scalar() or 0
    by_status = db.query(Intervention.status, func.count(Intervention.id)).group_by(Intervention.status).all()
    by_type = db.query(Intervention.type, func.count(Intervention.id)).group_by(Intervention.type).all()
    this_month = db.query(func.count(Intervention.id)).filter(
        Intervention.scheduled_date >= month_start,
        Intervention.scheduled_date < next_month,
    ).scalar() or 0
    completed = db.query(func.count(Intervention.id)).filter(
        Intervention.status == InterventionStatus.DONE.value
    ).scalar() or 0
    overdue = db.query(func.count(Intervention.id)).filter(
        Intervention.status == InterventionStatus.PLANNED.value,
        Intervention.scheduled_date < today,
    ).scalar() or 0

    return {
        "total": total,
        "byStatus": [{"status": s, "count": c} for s, c in by_status],
        "byType": [{"type": t, "count": c} for t, c in by_type],
        "thisMonth": this_month,
        "completed": completed,
        "pending": overdue,
        "completionRate": round(completed / total * 100, 1) if total else 0,
    }


@router.get("/{intervention_id}", response_model=InterventionResponse)
def get_intervention(
    intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    intervention = get_intervention_or_404(db, intervention_id)
    return build_intervention_response(intervention)


@router.post("/", response_model=InterventionResponse, status_code=status.HTTP_201_CREATED)
def create_intervention(
    intervention_in: InterventionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*EDITORS)),
):
    """Plan a manual intervention"""
    if not db.query(Equipment.id).filter(Equipment.id == intervention_in.equipment_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")

    intervention = Intervention(
        equipment_id=intervention_in.equipment_id,
        scheduled_date=intervention_in.scheduled_date,
        type=intervention_in.type.value,
        status=intervention_in.status.value,
        technician_id=intervention_in.technician_id,
        notes=intervention_in.notes,
    )
    db.add(intervention)
    db.commit()
    db.refresh(intervention)
    return build_intervention_response(intervention)


@router.put("/{intervention_id}", response_model=InterventionResponse)
def update_intervention(
    intervention_id: uuid.UUID,
    intervention_in: InterventionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*EDITORS)),
):
    """Partial update; a status change must respect the lifecycle"""
    intervention = get_intervention_or_404(db, intervention_id)
    changes = intervention_in.model_dump(exclude_unset=True, exclude_none=True)

    new_status = changes.pop("status", None)
    if "type" in changes:
        changes["type"] = changes["type"].value
    for field, value in changes.items():
        setattr(intervention, field, value)

    if new_status is not None:
        apply_status_change(intervention, new_status)

    db.commit()
    db.refresh(intervention)
    return build_intervention_response(intervention)


@router.patch("/{intervention_id}/status", response_model=InterventionResponse)
def change_intervention_status(
    intervention_id: uuid.UUID,
    status_in: InterventionStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*EDITORS)),
):
    """Change the status of an intervention, stamping start and end times"""
    intervention = get_intervention_or_404(db, intervention_id)
    apply_status_change(intervention, status_in.status)
    if status_in.observations:
        intervention.observations = status_in.observations
    if intervention.technician_id is None and current_user.role == UserRole.TECHNICIAN.value:
        intervention.technician_id = current_user.id

    db.commit()
    db.refresh(intervention)
    logger.info(f"Intervention {intervention.id} -> {intervention.status} by '{current_user.username}'")
    return build_intervention_response(intervention)


@router.delete("/{intervention_id}")
def delete_intervention(
    intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Delete an intervention and its alerts (admin only)"""
    intervention = get_intervention_or_404(db, intervention_id)
    db.delete(intervention)
    db.commit()
    return {"success": True, "message": "Intervention deleted"}
