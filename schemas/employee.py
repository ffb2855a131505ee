from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .attendance import Coordinate


class UserRole(str, Enum):
    WORKER = "WORKER"
    SUPERVISOR = "SUPERVISOR"
    DEPT_HEAD = "DEPT_HEAD"
    ADMIN = "ADMIN"


class Employee(BaseModel):
    """
    Employees table schema
    Table name: "employees"
    """
    id: str = Field(..., description="Employee ID (unique)")
    name: str
    phone: str = Field(..., description="Unique login key")
    role: str = Field("", description="Job title shown on the badge")
    user_role: UserRole = UserRole.WORKER
    avatar: Optional[str] = None
    password: Optional[str] = Field(None, description="Set once through activation")
    department_id: str
    is_registered: bool = False
    is_shift_required: bool = False
    shift_start: Optional[str] = Field(None, description="HH:MM")
    shift_end: Optional[str] = Field(None, description="HH:MM")
    workplace: Optional[str] = None
    workplace_lat: Optional[float] = None
    workplace_lng: Optional[float] = None
    joined_at: Optional[str] = None

    @property
    def site(self) -> Optional[Coordinate]:
        """Assigned worksite coordinate, or None when no site is assigned."""
        if self.workplace_lat is None or self.workplace_lng is None:
            return None
        return Coordinate(lat=self.workplace_lat, lng=self.workplace_lng, address=self.workplace)

    def public(self) -> dict:
        return self.model_dump(exclude={"password"})


class Department(BaseModel):
    """
    Departments table schema
    Table name: "departments"
    """
    id: str
    name: str
    name_en: str = ""
    color: str = "#3b82f6"
    head_id: Optional[str] = None
