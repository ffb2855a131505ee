from sqlalchemy import Column, String, Text, Boolean, Float, ForeignKey
from database import Base

class EmployeeRecord(Base):
    __tablename__ = "employees"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=False)
    phone = Column(String, unique=True, nullable=False, index=True)
    role = Column(Text, default="")
    user_role = Column(String, nullable=False, default="WORKER")
    avatar = Column(Text)
    password = Column(Text)
    department_id = Column(String, ForeignKey("departments.id"), index=True)
    is_registered = Column(Boolean, default=False)

    # Shift window, "HH:MM"
    is_shift_required = Column(Boolean, default=False)
    shift_start = Column(String)
    shift_end = Column(String)

    # Assigned worksite
    workplace = Column(Text)
    workplace_lat = Column(Float)
    workplace_lng = Column(Float)

    joined_at = Column(String)
