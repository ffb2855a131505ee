"""
Attendance schemas: coordinates, captured photos and log entries.

Log entries are frozen: once the capture flow builds one it is never mutated.
``to_row`` / ``from_row`` convert to and from the flat ``attendance_logs``
table layout (separate latitude/longitude columns, photo as a data URL).
"""

import base64
import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

DATA_URL_PREFIX = "data:image/jpeg;base64,"


class Direction(str, Enum):
    IN = "IN"
    OUT = "OUT"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
    # Declared, never computed
    LATE = "LATE"
    ABSENT = "ABSENT"


STATUS_LABELS = {
    "ar": {
        AttendanceStatus.PRESENT: "حاضر",
        AttendanceStatus.OUT_OF_BOUNDS: "خارج الموقع",
        AttendanceStatus.LATE: "متأخر",
        AttendanceStatus.ABSENT: "غائب",
    },
    "en": {
        AttendanceStatus.PRESENT: "Present",
        AttendanceStatus.OUT_OF_BOUNDS: "Out of Bounds",
        AttendanceStatus.LATE: "Late",
        AttendanceStatus.ABSENT: "Absent",
    },
}


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float
    address: Optional[str] = None

    def is_valid(self) -> bool:
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lng)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lng <= 180.0
        )


class CapturedPhoto(BaseModel):
    """A still JPEG frame at the camera's native resolution."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    width: int = 0
    height: int = 0
    mime_type: str = "image/jpeg"

    def to_data_url(self) -> str:
        return DATA_URL_PREFIX + base64.b64encode(self.data).decode("ascii")

    @classmethod
    def from_data_url(cls, value: str) -> "CapturedPhoto":
        payload = value.split(",", 1)[1] if value.startswith("data:") else value
        return cls(data=base64.b64decode(payload))


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    employee_id: str
    name: str
    timestamp: datetime
    direction: Direction
    photo: CapturedPhoto
    location: Coordinate
    status: AttendanceStatus
    note: Optional[str] = None
    department_id: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "name": self.name,
            "timestamp": self.timestamp.isoformat(),
            "type": self.direction.value,
            "photo": self.photo.to_data_url(),
            "location_lat": self.location.lat,
            "location_lng": self.location.lng,
            "location_address": self.location.address,
            "status": self.status.value,
            "note": self.note,
            "department_id": self.department_id,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "LogEntry":
        timestamp = row["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        return cls(
            id=row["id"],
            employee_id=row["employee_id"],
            name=row.get("name") or "",
            timestamp=timestamp,
            direction=Direction(row["type"]),
            photo=CapturedPhoto.from_data_url(row.get("photo") or ""),
            location=Coordinate(
                lat=float(row["location_lat"]),
                lng=float(row["location_lng"]),
                address=row.get("location_address"),
            ),
            status=AttendanceStatus(row.get("status") or AttendanceStatus.PRESENT.value),
            note=row.get("note"),
            department_id=row.get("department_id"),
        )


class LogView(BaseModel):
    """Log entry as returned by the API, with its confirmation marker."""

    id: str
    employee_id: str
    name: str
    timestamp: datetime
    direction: Direction
    photo: str = Field(..., description="JPEG data URL")
    lat: float
    lng: float
    status: AttendanceStatus
    department_id: Optional[str] = None
    confirmed: bool = True

    @classmethod
    def from_entry(cls, entry: LogEntry, confirmed: bool = True) -> "LogView":
        return cls(
            id=entry.id,
            employee_id=entry.employee_id,
            name=entry.name,
            timestamp=entry.timestamp,
            direction=entry.direction,
            photo=entry.photo.to_data_url(),
            lat=entry.location.lat,
            lng=entry.location.lng,
            status=entry.status,
            department_id=entry.department_id,
            confirmed=confirmed,
        )
