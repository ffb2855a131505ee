"""
Error taxonomy for the attendance service.

Every error carries a message key that ``utils.messages`` turns into
user-facing Arabic or English text, and the HTTP status the API layer
answers with.
"""


class AttendanceError(Exception):
    """Base class for all domain errors."""

    code = "error"
    status_code = 400

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.code)
        self.detail = detail


class PermissionDenied(AttendanceError):
    """The user declined camera or location access."""

    code = "permission_denied"
    status_code = 403


class DeviceUnavailable(AttendanceError):
    """No camera exists or it could not be opened."""

    code = "device_unavailable"
    status_code = 503


class DeviceBusy(AttendanceError):
    """The camera is already held by another flow."""

    code = "device_busy"
    status_code = 409


class LocationTimeout(AttendanceError):
    code = "location_timeout"
    status_code = 504


class PositionUnavailable(AttendanceError):
    code = "position_unavailable"
    status_code = 503


class ValidationError(AttendanceError):
    """Bad input, e.g. an out-of-range coordinate."""

    code = "validation_error"
    status_code = 422


class PersistenceError(AttendanceError):
    """The remote store rejected or failed a write."""

    code = "persistence_error"
    status_code = 502


class AuthError(AttendanceError):
    """Bad credentials. Never says which part was wrong."""

    code = "auth_error"
    status_code = 401


class FlowInProgress(AttendanceError):
    """A capture flow is already running for this worker."""

    code = "flow_in_progress"
    status_code = 409


class InvalidTransition(AttendanceError):
    code = "invalid_transition"
    status_code = 409


class NotFound(AttendanceError):
    code = "not_found"
    status_code = 404


class Forbidden(AttendanceError):
    code = "forbidden"
    status_code = 403
