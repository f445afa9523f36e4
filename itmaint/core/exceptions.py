"""
Domain errors raised by the maintenance services.
Scheduled jobs catch these at their boundary; routes translate them to HTTP errors.
"""


class MaintenanceError(Exception):
    """Base class for all itmaint errors"""


class StorageError(MaintenanceError):
    """A query, insert or update against the database failed"""


class DeliveryError(MaintenanceError):
    """The mail transport refused or failed to deliver a message"""


class ConfigurationError(MaintenanceError):
    """A required collaborator (e.g. the SMTP transport) is not configured"""


class InvalidTransitionError(MaintenanceError):
    """An intervention status change that the lifecycle does not allow"""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move intervention from '{current}' to '{requested}'")
