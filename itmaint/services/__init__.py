from itmaint.services import notification_service, preventive, scheduler

__all__ = [
    "notification_service",
    "preventive",
    "scheduler",
]
