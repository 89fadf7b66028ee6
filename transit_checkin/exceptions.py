# transit_checkin/exceptions.py
"""
Domain errors raised by the store client, roster and check-in services.
Each carries a short `kind` and the HTTP status the API answers with.
"""


class CheckinError(Exception):
    """Base exception for business rule violations."""

    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CheckinError):
    """A required field is missing or malformed."""

    kind = "validation_error"
    status_code = 422


class CodeConflict(CheckinError):
    """The code is already owned by a different passenger."""

    kind = "code_conflict"
    status_code = 409


class NotFound(CheckinError):
    """No index entry for the code, or the index points to a missing passenger."""

    kind = "not_found"
    status_code = 404


class InactivePassenger(CheckinError):
    """Passenger exists but is not allowed to check in."""

    kind = "inactive_passenger"
    status_code = 409


class StoreUnavailable(CheckinError):
    """Network or backend failure talking to the store."""

    kind = "store_unavailable"
    status_code = 503


def status_for_kind(kind: str) -> int:
    for cls in (ValidationError, CodeConflict, NotFound, InactivePassenger, StoreUnavailable):
        if cls.kind == kind:
            return cls.status_code
    return CheckinError.status_code
