"""
Intervention Schemas - request validation and responses
"""
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from itmaint.models.intervention import InterventionStatus, InterventionType


class InterventionCreate(BaseModel):
    equipment_id: UUID
    scheduled_date: date
    type: InterventionType
    status: InterventionStatus = InterventionStatus.PLANNED
    technician_id: Optional[UUID] = None
    notes: Optional[str] = None


class InterventionUpdate(BaseModel):
    scheduled_date: Optional[date] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    type: Optional[InterventionType] = None
    status: Optional[InterventionStatus] = None
    notes: Optional[str] = None
    observations: Optional[str] = None
    technician_id: Optional[UUID] = None


class InterventionStatusUpdate(BaseModel):
    status: InterventionStatus
    observations: Optional[str] = None


class InterventionResponse(BaseModel):
    id: UUID
    equipment_id: UUID
    technician_id: Optional[UUID] = None
    scheduled_date: date
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    type: str
    status: str
    notes: Optional[str] = None
    observations: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    equipment_name: Optional[str] = None
    equipment_type: Optional[str] = None
    technician_name: Optional[str] = None

    class Config:
        from_attributes = True
