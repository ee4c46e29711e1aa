class SchedulingError(Exception):
    """Base class for errors raised by the scheduling core."""


class Unauthorized(SchedulingError):
    """No authenticated caller."""


class NotFound(SchedulingError):
    """Referenced card, list or user is absent or not owned by the caller."""

    def __init__(self, resource="Resource", resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class ValidationError(SchedulingError):
    """Malformed input, e.g. an empty interval table."""


class PersistenceError(SchedulingError):
    """Storage layer failure."""

    def __init__(self, operation):
        self.operation = operation
        super().__init__(f"Failed to {operation}")
