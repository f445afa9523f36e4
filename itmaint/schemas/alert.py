from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class AlertResponse(BaseModel):
    id: UUID
    intervention_id: UUID
    alert_date: date
    sent: bool
    sent_at: Optional[datetime] = None
    scheduled_date: Optional[date] = None
    equipment_name: Optional[str] = None

    class Config:
        from_attributes = True


class JobRunResponse(BaseModel):
    job: str
    count: int


class CustomNotification(BaseModel):
    to: EmailStr
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
