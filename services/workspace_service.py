"""Visibility rules for the department workspace: reports, chat, files and notices."""

import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, TypeVar

from schemas.employee import Employee
from schemas.records import ALL_DEPARTMENTS, Announcement, ChatMessage, FileEntry, ReportEntry
from utils.exceptions import ValidationError

ADMIN_SENDER_ID = "ADMIN"
ADMIN_SENDER_NAME = "الإدارة"

T = TypeVar("T", FileEntry, Announcement)


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def visible_messages(messages: Iterable[ChatMessage], employee: Employee) -> List[ChatMessage]:
    """
    Messages a worker may read, oldest first: group messages for their
    department or for everyone, plus private/multi messages they sent or
    that are addressed to them.
    """
    visible = []
    for m in messages:
        if m.sender_id == employee.id:
            visible.append(m)
        elif m.type == "group":
            if m.department_id in (ALL_DEPARTMENTS, employee.department_id, None):
                visible.append(m)
        elif employee.id in m.recipient_ids:
            visible.append(m)
    return sorted(visible, key=lambda m: m.timestamp)


def messages_for_department(messages: Iterable[ChatMessage], department_id: Optional[str]) -> List[ChatMessage]:
    items = list(messages)
    if department_id and department_id != ALL_DEPARTMENTS:
        items = [m for m in items if m.department_id in (department_id, ALL_DEPARTMENTS)]
    return sorted(items, key=lambda m: m.timestamp)


def check_message(message: ChatMessage) -> None:
    if not message.text.strip():
        raise ValidationError("Message text is required")
    if message.type in ("private", "multi") and not message.recipient_ids:
        raise ValidationError("Private messages need at least one recipient")
    if message.type == "private" and len(message.recipient_ids) != 1:
        raise ValidationError("Private messages have exactly one recipient")


def filter_reports(reports: Iterable[ReportEntry], department_id: Optional[str] = None,
                   employee_id: Optional[str] = None) -> List[ReportEntry]:
    """Reports newest first, optionally narrowed to a department or an author."""
    items = list(reports)
    if department_id and department_id != ALL_DEPARTMENTS:
        items = [r for r in items if r.department_id == department_id]
    if employee_id:
        items = [r for r in items if r.employee_id == employee_id]
    return sorted(items, key=lambda r: r.timestamp, reverse=True)


def for_department(items: Iterable[T], department_id: str) -> List[T]:
    """Files or announcements targeted at ``department_id`` or at everyone."""
    result = []
    for item in items:
        target = item.department_id if isinstance(item, FileEntry) else item.target_dept_id
        if target in (ALL_DEPARTMENTS, department_id):
            result.append(item)
    return result


def merge_employee_update(incoming: Employee, existing: Optional[Employee]) -> Employee:
    """
    Apply an admin edit without touching the credential.

    Activation is one way: an edit can neither set nor reset the password
    or the registered flag.
    """
    return incoming.model_copy(update={
        "password": existing.password if existing else None,
        "is_registered": existing.is_registered if existing else False,
    })


def check_unique_phones(employees: Iterable[Employee]) -> None:
    seen = {}
    for employee in employees:
        owner = seen.get(employee.phone)
        if owner is not None and owner != employee.id:
            raise ValidationError(f"Phone {employee.phone} is already used by {owner}")
        seen[employee.phone] = employee.id
