"""
Intervention Model - scheduled or completed maintenance actions on one equipment
"""
from enum import Enum
import uuid

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from itmaint.db.base import Base, TimestampMixin


class InterventionType(str, Enum):
    UPDATE = "update"
    CLEANING = "cleaning"
    REPLACEMENT = "replacement"
    VERIFICATION = "verification"
    OTHER = "other"


class InterventionStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    NOT_DONE = "not_done"
    CANCELLED = "cancelled"


# Allowed forward moves; done, not_done and cancelled are terminal
STATUS_TRANSITIONS = {
    InterventionStatus.PLANNED: {InterventionStatus.IN_PROGRESS, InterventionStatus.CANCELLED},
    InterventionStatus.IN_PROGRESS: {InterventionStatus.DONE, InterventionStatus.NOT_DONE},
    InterventionStatus.DONE: set(),
    InterventionStatus.NOT_DONE: set(),
    InterventionStatus.CANCELLED: set(),
}


def can_transition(current: str, requested: str) -> bool:
    """Return True when moving from current to requested status is allowed."""
    if current == requested:
        return True
    return InterventionStatus(requested) in STATUS_TRANSITIONS[InterventionStatus(current)]


class Intervention(Base, TimestampMixin):
    __tablename__ = "interventions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    equipment_id = Column(Uuid, ForeignKey("equipments.id", ondelete="CASCADE"), nullable=False)
    technician_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    scheduled_date = Column(Date, nullable=False)
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    type = Column(String(30), default=InterventionType.VERIFICATION.value, nullable=False)
    status = Column(String(30), default=InterventionStatus.PLANNED.value, nullable=False)
    notes = Column(Text, nullable=True)
    observations = Column(Text, nullable=True)

    equipment = relationship("Equipment", back_populates="interventions")
    technician = relationship("User", back_populates="interventions")
    alerts = relationship(
        "Alert",
        back_populates="intervention",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_interventions_equipment_date", "equipment_id", "scheduled_date"),
        Index("idx_interventions_status", "status"),
    )
