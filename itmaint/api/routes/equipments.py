"""
Equipment Routes - inventory of IT equipment
Creating an equipment immediately plans its preventive interventions
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session

from itmaint.database import get_db
from itmaint.dependencies import get_current_user, require_role
from itmaint.models.equipment import Equipment, EquipmentStatus
from itmaint.models.intervention import Intervention
from itmaint.models.user import User, UserRole
from itmaint.schemas.equipment import (
    EquipmentCreate,
    EquipmentCreatedResponse,
    EquipmentDetailResponse,
    EquipmentResponse,
    EquipmentUpdate,
)
from itmaint.api.routes.interventions import build_intervention_response
from itmaint.services.preventive import ensure_preventive_interventions

logger = logging.getLogger(__name__)
router = APIRouter(tags=["equipments"])

EDITORS = (UserRole.ADMIN, UserRole.TECHNICIAN)


def get_equipment_or_404(db: Session, equipment_id: uuid.UUID) -> Equipment:
    equipment = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not equipment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Equipment not found")
    return equipment


@router.get("/", response_model=List[EquipmentResponse])
def list_equipments(
    type: Optional[str] = None,
    status: Optional[EquipmentStatus] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List equipments, optionally filtered by type, status or a free-text search"""
    query = db.query(Equipment)

    if type:
        query = query.filter(Equipment.type == type)
    if status:
        query = query.filter(Equipment.status == status.value)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Equipment.name.ilike(pattern),
            Equipment.model.ilike(pattern),
            Equipment.serial_number.ilike(pattern),
            Equipment.assigned_user.ilike(pattern),
        ))

    return query.order_by(desc(Equipment.created_at)).all()


@router.get("/stats/summary")
def equipment_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Equipment counts, in total and grouped by type and status"""
    total = db.query(func.count(Equipment.id)).scalar() or 0
    by_type = db.query(Equipment.type, func.count(Equipment.id)).group_by(Equipment.type).all()
    by_status = db.query(Equipment.status, func.count(Equipment.id)).group_by(Equipment.status).all()

    return {
        "total": total,
        "byType": [{"type": t, "count": c} for t, c in by_type],
        "byStatus": [{"status": s, "count": c} for s, c in by_status],
    }


@router.get("/{equipment_id}", response_model=EquipmentDetailResponse)
def get_equipment(
    equipment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Equipment details with its interventions, latest first"""
    equipment = get_equipment_or_404(db, equipment_id)

    interventions = (
        db.query(Intervention)
        .filter(Intervention.equipment_id == equipment.id)
        .order_by(desc(Intervention.scheduled_date))
        .all()
    )

    response = EquipmentResponse.model_validate(equipment).model_dump()
    response["interventions"] = [build_intervention_response(i) for i in interventions]
    return response


@router.post("/", response_model=EquipmentCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_equipment(
    equipment_in: EquipmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*EDITORS)),
):
    """Create an equipment and plan its preventive interventions (twice a year)"""
    data = equipment_in.model_dump()
    data["status"] = equipment_in.status.value

    equipment = Equipment(**data)
    db.add(equipment)
    db.commit()
    db.refresh(equipment)

    created = ensure_preventive_interventions(db, equipment)
    logger.info(
        f"Equipment '{equipment.name}' created by '{current_user.username}' "
        f"with {created} preventive intervention(s)"
    )

    return {"id": equipment.id, "interventions_created": created, "message": "Equipment created"}


@router.put("/{equipment_id}", response_model=EquipmentResponse)
def update_equipment(
    equipment_id: uuid.UUID,
    equipment_in: EquipmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(*EDITORS)),
):
    """Update an equipment; the purchase date cannot change"""
    equipment = get_equipment_or_404(db, equipment_id)

    for field, value in equipment_in.model_dump(exclude_unset=True).items():
        if field == "status" and value is not None:
            value = value.value
        setattr(equipment, field, value)

    db.commit()
    db.refresh(equipment)
    return equipment


@router.delete("/{equipment_id}")
def delete_equipment(
    equipment_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN)),
):
    """Delete an equipment with its interventions and alerts (admin only)"""
    equipment = get_equipment_or_404(db, equipment_id)
    db.delete(equipment)
    db.commit()
    logger.info(f"Equipment {equipment_id} deleted by '{current_user.username}'")
    return {"success": True, "message": "Equipment deleted"}
