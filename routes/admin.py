"""
Admin dashboard routes: staff, departments, workspace content, branding,
attendance overview, CSV export and badge scanning.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from typing import List, Optional
from pydantic import BaseModel
from datetime import datetime, timezone
import logging

from config import settings
from schemas.attendance import LogView
from schemas.employee import Department, Employee, UserRole
from schemas.records import Announcement, CompanyConfig, FileEntry
from services.auth_service import AdminSession
from services.container import AppContainer, get_container
from services.workspace_service import check_unique_phones, merge_employee_update
from utils.exceptions import NotFound, ValidationError
from utils.permissions import require_admin, ROLE_DISPLAY_NAMES

logger = logging.getLogger(__name__)

# Router
router = APIRouter()

# Request Models
class EmployeeUpdate(BaseModel):
    id: str
    name: str
    phone: str
    role: str = ""
    user_role: UserRole = UserRole.WORKER
    avatar: Optional[str] = None
    department_id: str
    is_shift_required: bool = False
    shift_start: Optional[str] = None
    shift_end: Optional[str] = None
    workplace: Optional[str] = None
    workplace_lat: Optional[float] = None
    workplace_lng: Optional[float] = None
    joined_at: Optional[str] = None

class BadgeScanRequest(BaseModel):
    image: Optional[str] = None
    text: Optional[str] = None

def _employee_body(employee: Employee) -> dict:
    body = employee.public()
    body["role_display"] = ROLE_DISPLAY_NAMES.get(employee.user_role, employee.user_role.value)
    return body

# Overview

@router.get("/overview")
async def overview(_: AdminSession = Depends(require_admin), container: AppContainer = Depends(get_container)):
    """Dashboard counters and the latest field movements"""
    stats = container.dashboard.overview()
    return {"success": True, "data": stats.model_dump(mode="json")}

# Employees

@router.get("/employees")
async def list_employees(
    department_id: Optional[str] = Query(None),
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    employees = container.stores.employees.list()
    if department_id:
        employees = [e for e in employees if e.department_id == department_id]
    return {
        "success": True,
        "count": len(employees),
        "data": [_employee_body(e) for e in employees]
    }

@router.put("/employees")
async def upsert_employees(
    updates: List[EmployeeUpdate],
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    """Create or update employees; credentials are never touched here"""
    store = container.stores.employees
    existing = {e.id: e for e in store.list()}
    merged = []
    for update in updates:
        if (update.workplace_lat is None) != (update.workplace_lng is None):
            raise ValidationError(f"Employee {update.id}: worksite needs both latitude and longitude")
        incoming = Employee(**update.model_dump())
        merged.append(merge_employee_update(incoming, existing.get(update.id)))

    untouched = [e for e in existing.values() if e.id not in {m.id for m in merged}]
    check_unique_phones(untouched + merged)
    for employee in merged:
        if employee.site is not None and not employee.site.is_valid():
            raise ValidationError(f"Employee {employee.id}: invalid worksite coordinate")

    store.upsert(merged)
    logger.info(f"👥 Upserted {len(merged)} employees")
    return {
        "success": True,
        "data": [_employee_body(e) for e in merged],
        "message": "Employees saved successfully"
    }

@router.delete("/employees/{employee_id}")
async def delete_employee(
    employee_id: str,
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    if container.stores.employees.get(employee_id) is None:
        raise NotFound(f"Employee {employee_id} not found")
    container.stores.employees.delete(employee_id)
    return {"success": True, "message": "Employee deleted successfully"}

@router.get("/employees/{employee_id}/badge", response_class=Response)
async def employee_badge(
    employee_id: str,
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    """QR badge PNG for an employee"""
    return Response(content=container.badges.badge_for(employee_id), media_type="image/png")

@router.post("/badges/scan")
async def scan_badge(
    scan: BadgeScanRequest,
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    """Identify an employee from a scanned badge image or its decoded text"""
    employee = container.badges.identify(image_base64=scan.image, text=scan.text)
    return {"success": True, "data": _employee_body(employee)}

# Departments

@router.get("/departments")
async def list_departments(_: AdminSession = Depends(require_admin), container: AppContainer = Depends(get_container)):
    employees = container.stores.employees.list()
    data = []
    for dept in container.stores.departments.list():
        body = dept.model_dump()
        body["employee_count"] = sum(1 for e in employees if e.department_id == dept.id)
        data.append(body)
    return {"success": True, "count": len(data), "data": data}

@router.put("/departments")
async def upsert_departments(
    departments: List[Department],
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    container.stores.departments.upsert(departments)
    return {"success": True, "data": [d.model_dump() for d in departments]}

@router.delete("/departments/{department_id}")
async def delete_department(
    department_id: str,
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    if container.stores.departments.get(department_id) is None:
        raise NotFound(f"Department {department_id} not found")
    if any(e.department_id == department_id for e in container.stores.employees.list()):
        raise ValidationError("Department still has employees")
    container.stores.departments.delete(department_id)
    return {"success": True, "message": "Department deleted successfully"}

# Workspace content

@router.put("/files")
async def upsert_files(
    files: List[FileEntry],
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    container.stores.files.upsert(files)
    return {"success": True, "count": len(files)}

@router.put("/announcements")
async def upsert_announcements(
    announcements: List[Announcement],
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    container.stores.announcements.upsert(announcements)
    return {"success": True, "count": len(announcements)}

@router.put("/config")
async def update_company_config(
    config: CompanyConfig,
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    """Update company name and logo"""
    if not config.name.strip():
        raise ValidationError("Company name is required")
    container.stores.company_config.save(config)
    return {"success": True, "data": config.model_dump()}

# Attendance

@router.get("/logs")
async def list_logs(
    limit: int = Query(settings.RECENT_LOGS_LIMIT, ge=1, le=500),
    offset: int = Query(0, ge=0),
    department_id: Optional[str] = Query(None),
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    """Attendance logs newest first, including entries still awaiting confirmation"""
    filters = {"department_id": department_id} if department_id else {}
    remote = container.stores.logs.list_recent(limit=limit, offset=offset, **filters)
    pending = [
        e for e in container.log_book.pending()
        if offset == 0 and (department_id is None or e.department_id == department_id)
    ]
    pending_ids = {e.id for e in pending}
    pairs = [(e, True) for e in remote if e.id not in pending_ids] + [(e, False) for e in pending]
    pairs.sort(key=lambda p: p[0].timestamp, reverse=True)
    pairs = pairs[:limit]
    return {
        "success": True,
        "count": len(pairs),
        "data": [LogView.from_entry(e, confirmed).model_dump(mode="json") for e, confirmed in pairs]
    }

@router.get("/logs/pending")
async def pending_logs(_: AdminSession = Depends(require_admin), container: AppContainer = Depends(get_container)):
    items = container.log_book.pending()
    return {
        "success": True,
        "count": len(items),
        "data": [LogView.from_entry(e, False).model_dump(mode="json") for e in items]
    }

@router.post("/logs/reload")
async def reload_logs(_: AdminSession = Depends(require_admin), container: AppContainer = Depends(get_container)):
    """Reload the log book from the store and reconcile unconfirmed entries"""
    await container.log_book.reload(settings.RECENT_LOGS_LIMIT)
    return {"success": True, "pending": len(container.log_book.pending())}

@router.get("/logs/export", response_class=Response)
async def export_logs(
    department_id: Optional[str] = Query(None),
    _: AdminSession = Depends(require_admin),
    container: AppContainer = Depends(get_container)
):
    """Attendance logs as a CSV download"""
    csv_data = container.dashboard.export_csv(department_id)
    filename = f"attendance_export_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}.csv"
    return Response(
        content=csv_data.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
