from sqlalchemy import Column, String, Text, DateTime, JSON
from database import Base

class ChatMessageRecord(Base):
    __tablename__ = "chat_messages"

    id = Column(String, primary_key=True)
    sender_id = Column(String, nullable=False, index=True)
    sender_name = Column(Text)
    text = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    type = Column(String, default="group")
    department_id = Column(String, index=True)
    recipient_ids = Column(JSON)
