from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from database import Base

class ReportRecord(Base):
    __tablename__ = "reports"

    id = Column(String, primary_key=True)
    employee_id = Column(String, ForeignKey("employees.id"), index=True)
    employee_name = Column(Text)
    department_id = Column(String, index=True)
    content = Column(Text, nullable=False)
    type = Column(String, default="text")
    attachment_url = Column(Text)
    attachment_name = Column(Text)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
