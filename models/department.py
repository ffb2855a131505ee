from sqlalchemy import Column, String, Text
from database import Base

class DepartmentRecord(Base):
    __tablename__ = "departments"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=False)
    name_en = Column(Text, default="")
    color = Column(String, default="#3b82f6")
    head_id = Column(String)
