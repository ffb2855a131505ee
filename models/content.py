from sqlalchemy import Column, Integer, String, Text
from database import Base

class FileRecord(Base):
    __tablename__ = "files"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=False)
    url = Column(Text, nullable=False)
    department_id = Column(String, index=True)
    upload_date = Column(String)
    type = Column(String)

class AnnouncementRecord(Base):
    __tablename__ = "announcements"

    id = Column(String, primary_key=True)
    title = Column(Text, nullable=False)
    content = Column(Text)
    date = Column(String)
    target_dept_id = Column(String, default="all")

class CompanyConfigRecord(Base):
    __tablename__ = "company_config"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    logo = Column(Text, default="")
