from .department import DepartmentRecord
from .employee import EmployeeRecord
from .attendance import AttendanceLogRecord
from .report import ReportRecord
from .chat import ChatMessageRecord
from .content import FileRecord, AnnouncementRecord, CompanyConfigRecord

__all__ = [
    "DepartmentRecord", "EmployeeRecord", "AttendanceLogRecord", "ReportRecord",
    "ChatMessageRecord", "FileRecord", "AnnouncementRecord", "CompanyConfigRecord"
]
