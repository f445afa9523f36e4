"""
Equipment Schemas - request validation and responses
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from itmaint.models.equipment import EquipmentStatus
from itmaint.schemas.intervention import InterventionResponse


class EquipmentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=100)
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    assignment_date: Optional[date] = None
    assigned_user: Optional[str] = None
    location: Optional[str] = None
    status: EquipmentStatus = EquipmentStatus.ACTIVE
    notes: Optional[str] = None


class EquipmentCreate(EquipmentBase):
    purchase_date: date


class EquipmentUpdate(BaseModel):
    # purchase_date is fixed at creation
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[str] = Field(None, min_length=1, max_length=100)
    brand: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    assignment_date: Optional[date] = None
    assigned_user: Optional[str] = None
    location: Optional[str] = None
    status: Optional[EquipmentStatus] = None
    notes: Optional[str] = None


class EquipmentResponse(EquipmentBase):
    id: UUID
    purchase_date: date
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EquipmentDetailResponse(EquipmentResponse):
    interventions: List[InterventionResponse] = []


class EquipmentCreatedResponse(BaseModel):
    id: UUID
    interventions_created: int
    message: str = "Equipment created"
