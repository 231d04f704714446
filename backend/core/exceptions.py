class ApplicationError(Exception):
    """Base class for application-specific errors."""
    pass


class ConsumptionOutOfRangeError(ApplicationError):
    """Raised when a consumed quantity is negative, unknown, or above what the cellar can cover."""

    def __init__(self, message, planned_id=None, quantity=None, maximum=None):
        super().__init__(message)
        self.planned_id = planned_id
        self.quantity = quantity
        self.maximum = maximum


class NotificationError(ApplicationError):
    """Raised when a pending notification could not be cancelled."""

    def __init__(self, message="Failed to cancel notification.", original_exception=None):
        super().__init__(message)
        self.original_exception = original_exception
