from enum import Enum
import uuid

from sqlalchemy import Column, Date, String, Text, Uuid
from sqlalchemy.orm import relationship

from itmaint.db.base import Base, TimestampMixin


class EquipmentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    OUT_OF_SERVICE = "out_of_service"


class Equipment(Base, TimestampMixin):
    __tablename__ = "equipments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True)
    purchase_date = Column(Date, nullable=False)
    assignment_date = Column(Date, nullable=True)
    assigned_user = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(30), default=EquipmentStatus.ACTIVE.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    interventions = relationship(
        "Intervention",
        back_populates="equipment",
        cascade="all, delete-orphan",
    )
