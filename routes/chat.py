from fastapi import APIRouter, Depends, Query
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from schemas.records import ALL_DEPARTMENTS, ChatMessage
from services.auth_service import AdminSession, AnonymousSession, Session
from services.container import AppContainer, get_container
from services.events import MessageSent
from services.workspace_service import (
    ADMIN_SENDER_ID,
    ADMIN_SENDER_NAME,
    check_message,
    messages_for_department,
    new_id,
    utcnow,
    visible_messages,
)
from utils.exceptions import AuthError, Forbidden
from utils.permissions import get_session, has_permission

router = APIRouter()

class MessageCreate(BaseModel):
    text: str = Field(..., max_length=2000)
    type: Literal["group", "private", "multi"] = "group"
    department_id: Optional[str] = None
    recipient_ids: List[str] = Field(default_factory=list)

@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
async def send_message(
    body: MessageCreate,
    session: Session = Depends(get_session),
    container: AppContainer = Depends(get_container)
):
    """Send a chat message; workers post group messages to their own department"""
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")

    if isinstance(session, AdminSession):
        sender_id, sender_name = ADMIN_SENDER_ID, ADMIN_SENDER_NAME
        department_id = body.department_id or ALL_DEPARTMENTS
    else:
        employee = session.employee
        if not has_permission(employee, "chat"):
            raise Forbidden("Chat is not allowed for this role")
        sender_id, sender_name = employee.id, employee.name
        department_id = employee.department_id

    message = ChatMessage(
        id=new_id("msg"),
        sender_id=sender_id,
        sender_name=sender_name,
        text=body.text.strip(),
        timestamp=utcnow(),
        type=body.type,
        department_id=department_id,
        recipient_ids=body.recipient_ids
    )
    check_message(message)
    container.stores.messages.insert(message)
    await container.events.publish(MessageSent(message))
    return {"success": True, "data": message.model_dump(mode="json")}

@router.get("")
@router.get("/", include_in_schema=False)
async def list_messages(
    department_id: Optional[str] = Query(None, description="Department filter, admin only"),
    session: Session = Depends(get_session),
    container: AppContainer = Depends(get_container)
):
    """Chat messages oldest first"""
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")

    messages = container.stores.messages.list()
    if isinstance(session, AdminSession):
        items = messages_for_department(messages, department_id)
    else:
        items = visible_messages(messages, session.employee)
    return {
        "success": True,
        "count": len(items),
        "data": [m.model_dump(mode="json") for m in items]
    }
