"""
Typed errors raised by the repositories and services.

Callers distinguish them by class, never by message. Each carries the HTTP
status the API layer answers with and optional field-level details.
"""


class SchedulingError(Exception):
    http_status = 500

    def __init__(self, message: str, details=None):
        self.message = message
        self.code = self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self):
        body = {"error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(SchedulingError):
    """Malformed input: bad time ordering, mismatched slot/interview times, bad fields."""

    http_status = 400

    def __init__(self, message: str, field: str = None, details=None):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(message, details)
        self.field = field


class NotFoundError(SchedulingError):
    http_status = 404


class ConflictError(SchedulingError):
    """Overlap, double booking or duplicate slot. Retry with different input."""

    http_status = 409


class StateError(SchedulingError):
    """Operation not valid for the current lifecycle state."""

    http_status = 409


class ForbiddenError(SchedulingError):
    http_status = 403


class StorageError(SchedulingError):
    """Persistence failure. The message never leaves the process."""

    http_status = 500

    def to_dict(self):
        return {"error": "Internal storage error", "code": self.code}
