from sqlalchemy import Column, String, Text, DateTime, Float, ForeignKey, func
from database import Base

class AttendanceLogRecord(Base):
    __tablename__ = "attendance_logs"

    id = Column(String, primary_key=True)
    employee_id = Column(String, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    type = Column(String, nullable=False)
    photo = Column(Text)

    # Coordinate flattened into scalar columns
    location_lat = Column(Float, nullable=False)
    location_lng = Column(Float, nullable=False)
    location_address = Column(Text)

    status = Column(String, default="PRESENT", index=True)
    note = Column(Text)
    department_id = Column(String, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
