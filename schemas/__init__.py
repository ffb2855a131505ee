from .attendance import (
    AttendanceStatus,
    CapturedPhoto,
    Coordinate,
    Direction,
    LogEntry,
)
from .employee import Department, Employee, UserRole
from .records import (
    Announcement,
    ChatMessage,
    CompanyConfig,
    FileEntry,
    ReportEntry,
)

__all__ = [
    "AttendanceStatus", "CapturedPhoto", "Coordinate", "Direction", "LogEntry",
    "Department", "Employee", "UserRole",
    "Announcement", "ChatMessage", "CompanyConfig", "FileEntry", "ReportEntry",
]
