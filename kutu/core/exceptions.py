# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain exceptions — every engine and service failure is one of these.
The HTTP layer maps them to responses through ``status_code`` and ``code``.
"""


class RotationError(Exception):
    """Base class for all savings-group errors."""

    status_code: int = 500
    code: str = "rotation_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(RotationError):
    """Malformed input: bad roster, non-positive amount, foreign ids..."""

    status_code = 400
    code = "validation_error"


class InvalidStateError(RotationError):
    """The group or round is in a state that forbids the command."""

    status_code = 409
    code = "invalid_state"


class PrerequisiteNotMetError(RotationError):
    """A required earlier step has not happened yet."""

    status_code = 409
    code = "prerequisite_not_met"


class InvariantViolation(RotationError):
    """A group value breaks the data model invariants."""

    status_code = 500
    code = "invariant_violation"


class GroupNotFound(RotationError):
    status_code = 404
    code = "group_not_found"

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"No group found with id '{group_id}'")


class StorageError(RotationError):
    """The persistence adapter could not read or write the group list."""

    code = "storage_error"
