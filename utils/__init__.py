from .exceptions import AttendanceError
from .messages import localize

__all__ = ["AttendanceError", "localize"]
