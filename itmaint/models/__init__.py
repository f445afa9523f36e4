# Import all models so relationships resolve and Base.metadata is complete
from itmaint.models.user import User, UserRole
from itmaint.models.equipment import Equipment, EquipmentStatus
from itmaint.models.intervention import (
    Intervention,
    InterventionStatus,
    InterventionType,
    STATUS_TRANSITIONS,
    can_transition,
)
from itmaint.models.alert import Alert

__all__ = [
    "User",
    "UserRole",
    "Equipment",
    "EquipmentStatus",
    "Intervention",
    "InterventionStatus",
    "InterventionType",
    "STATUS_TRANSITIONS",
    "can_transition",
    "Alert",
]
