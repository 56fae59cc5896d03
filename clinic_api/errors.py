# clinic_api/errors.py

from typing import Optional


class SchedulingError(Exception):
    """Base class for errors surfaced to the HTTP boundary."""

    kind = "scheduling_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind}


class ValidationError(SchedulingError):
    kind = "validation_error"
    status_code = 400


class InvalidDateFormat(ValidationError):
    kind = "invalid_date_format"


class PastDateError(SchedulingError):
    kind = "past_date"
    status_code = 400


class NotFoundError(SchedulingError):
    kind = "not_found"
    status_code = 404


class ForbiddenError(SchedulingError):
    kind = "permission_denied"
    status_code = 403


class ConflictError(SchedulingError):
    kind = "conflict"
    status_code = 409

    def __init__(self, message: str, conflicts: Optional[list] = None):
        super().__init__(message)
        self.conflicts = conflicts or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["conflicts"] = self.conflicts
        return body


class StoreError(SchedulingError):
    kind = "store_error"
    status_code = 500
