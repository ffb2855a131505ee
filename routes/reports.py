from fastapi import APIRouter, Depends, Query
from typing import Literal, Optional
from pydantic import BaseModel, Field

from schemas.records import ReportEntry
from services.auth_service import AdminSession, AnonymousSession, Session, WorkerSession
from services.container import AppContainer, get_container
from services.events import ReportCreated
from services.workspace_service import filter_reports, new_id, utcnow
from utils.exceptions import AuthError, ValidationError
from utils.permissions import get_session, has_permission, require_permission

router = APIRouter()

class ReportCreate(BaseModel):
    content: str = Field(..., max_length=5000)
    type: Literal["text", "file", "link"] = "text"
    attachment_url: Optional[str] = None
    attachment_name: Optional[str] = None

@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
async def submit_report(
    report: ReportCreate,
    session: WorkerSession = Depends(require_permission("submit_reports")),
    container: AppContainer = Depends(get_container)
):
    """Submit a field report"""
    if not report.content.strip():
        raise ValidationError("Report content is required")
    if report.type != "text" and not report.attachment_url:
        raise ValidationError("File and link reports need an attachment URL")

    employee = session.employee
    entry = ReportEntry(
        id=new_id("rep"),
        employee_id=employee.id,
        employee_name=employee.name,
        department_id=employee.department_id,
        content=report.content.strip(),
        type=report.type,
        attachment_url=report.attachment_url,
        attachment_name=report.attachment_name,
        timestamp=utcnow()
    )
    container.stores.reports.insert(entry)
    await container.events.publish(ReportCreated(entry))
    return {
        "success": True,
        "data": entry.model_dump(mode="json"),
        "message": "Report submitted successfully"
    }

@router.get("")
@router.get("/", include_in_schema=False)
async def list_reports(
    department_id: Optional[str] = Query(None, description="Department filter, admin only"),
    session: Session = Depends(get_session),
    container: AppContainer = Depends(get_container)
):
    """
    Reports newest first.
    Admin sees everything, supervisors and department heads see their
    department, workers see their own.
    """
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")

    reports = container.stores.reports.list()
    if isinstance(session, AdminSession):
        items = filter_reports(reports, department_id=department_id)
    elif has_permission(session.employee, "view_department_reports"):
        items = filter_reports(reports, department_id=session.employee.department_id)
    else:
        items = filter_reports(reports, employee_id=session.employee.id)

    return {
        "success": True,
        "count": len(items),
        "data": [r.model_dump(mode="json") for r in items]
    }
