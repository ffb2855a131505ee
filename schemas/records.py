from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ALL_DEPARTMENTS = "all"


class ReportEntry(BaseModel):
    id: str
    employee_id: str
    employee_name: str
    department_id: str
    content: str
    type: Literal["text", "file", "link"] = "text"
    attachment_url: Optional[str] = None
    attachment_name: Optional[str] = None
    timestamp: datetime


class ChatMessage(BaseModel):
    id: str
    sender_id: str
    sender_name: str
    text: str
    timestamp: datetime
    type: Literal["group", "private", "multi"] = "group"
    department_id: Optional[str] = Field(None, description="'all' or a department id")
    recipient_ids: List[str] = Field(default_factory=list)


class FileEntry(BaseModel):
    id: str
    name: str
    url: str
    department_id: str
    upload_date: str
    type: Literal["PDF", "IMAGE", "EXCEL"]


class Announcement(BaseModel):
    id: str
    title: str
    content: str
    date: str
    target_dept_id: str = ALL_DEPARTMENTS


class CompanyConfig(BaseModel):
    name: str
    logo: str = ""
