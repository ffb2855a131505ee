# routes/attendance.py
"""
Worker check-in/out.

The client posts the frame it froze in the live preview together with the
position fix (or the error its geolocation API reported). The request then
runs the same capture flow a kiosk camera would.
"""

import logging
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from config import settings
from schemas.attendance import Coordinate, Direction, LogEntry, LogView
from services.auth_service import AnonymousSession, Session, WorkerSession
from services.capture_flow import CaptureFlow
from services.container import AppContainer, get_container
from services.dashboard_service import current_direction
from services.devices import ReportedGeolocation, UploadedFrameCamera
from utils.exceptions import AuthError, Forbidden, NotFound
from utils.permissions import get_session, require_permission, require_worker

logger = logging.getLogger(__name__)

router = APIRouter()

class CheckRequest(BaseModel):
    direction: Direction
    photo: Optional[str] = Field(None, description="Frozen frame as base64 or data URL")
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    location_error: Optional[Literal["permission_denied", "position_unavailable", "timeout"]] = None

def _views(pairs) -> List[dict]:
    return [LogView.from_entry(entry, confirmed).model_dump(mode="json") for entry, confirmed in pairs]

def _merge(remote: List[LogEntry], container: AppContainer, employee_id: Optional[str] = None):
    """Remote entries plus locally held unconfirmed ones, newest first."""
    pending = [e for e in container.log_book.pending() if employee_id is None or e.employee_id == employee_id]
    pending_ids = {e.id for e in pending}
    pairs = [(e, True) for e in remote if e.id not in pending_ids] + [(e, False) for e in pending]
    pairs.sort(key=lambda p: p[0].timestamp, reverse=True)
    return pairs

@router.post("/check")
async def check(
    request: CheckRequest,
    session: WorkerSession = Depends(require_permission("record_attendance")),
    container: AppContainer = Depends(get_container)
):
    """Record a check-in or check-out with photo and location"""
    employee = session.employee
    coordinate = None
    if request.latitude is not None and request.longitude is not None:
        coordinate = Coordinate(lat=request.latitude, lng=request.longitude, address=request.address)

    flow = container.flows.begin(CaptureFlow(
        employee=employee,
        direction=request.direction,
        camera=UploadedFrameCamera(request.photo, device_id=f"upload:{employee.id}", registry=container.devices),
        geolocation=ReportedGeolocation(coordinate, request.location_error),
        log_book=container.log_book,
    ))
    result = await flow.run()
    logger.info(f"🕒 {employee.id} {request.direction.value}: {result.entry.status.value}")

    view = LogView.from_entry(result.entry, result.confirmed).model_dump(mode="json")
    if result.confirmed:
        return JSONResponse(status_code=201, content={
            "success": True,
            "data": view,
            "message": "Attendance recorded successfully"
        })
    return JSONResponse(status_code=202, content={
        "success": False,
        "data": view,
        "error": result.error.code,
        "message": "Attendance kept locally, retry to confirm"
    })

@router.get("/status")
async def attendance_status(
    session: WorkerSession = Depends(require_worker),
    container: AppContainer = Depends(get_container)
):
    """Current direction of the logged-in worker (OUT when no log exists)"""
    employee_id = session.employee.id
    entries = [e for e, _ in container.log_book.entries(employee_id=employee_id)]
    entries += container.stores.logs.list_recent(limit=1, employee_id=employee_id)
    return {
        "success": True,
        "data": {
            "employee_id": employee_id,
            "current": current_direction(entries, employee_id).value,
            "workplace": session.employee.workplace,
            "has_geofence": session.employee.site is not None,
            "radius_meters": settings.ALLOWED_RADIUS_METERS
        }
    }

@router.get("/logs")
async def my_logs(
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: WorkerSession = Depends(require_worker),
    container: AppContainer = Depends(get_container)
):
    """Own attendance history, newest first"""
    employee_id = session.employee.id
    remote = container.stores.logs.list_recent(limit=limit, offset=offset, employee_id=employee_id)
    pairs = _merge(remote, container, employee_id)[:limit] if offset == 0 else [(e, True) for e in remote]
    return {"success": True, "count": len(pairs), "data": _views(pairs)}

@router.get("/department-logs")
async def department_logs(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    session: WorkerSession = Depends(require_permission("view_department_logs")),
    container: AppContainer = Depends(get_container)
):
    """Attendance of the head's department, newest first"""
    remote = container.stores.logs.list_recent(
        limit=limit, offset=offset, department_id=session.employee.department_id
    )
    return {"success": True, "count": len(remote), "data": _views((e, True) for e in remote)}

@router.get("/logs/pending")
async def my_pending_logs(
    session: WorkerSession = Depends(require_worker),
    container: AppContainer = Depends(get_container)
):
    """Own entries that are recorded locally but not yet persisted"""
    pending = [e for e in container.log_book.pending() if e.employee_id == session.employee.id]
    return {"success": True, "count": len(pending), "data": _views((e, False) for e in pending)}

@router.post("/logs/{entry_id}/retry")
async def retry_log(
    entry_id: str,
    session: Session = Depends(get_session),
    container: AppContainer = Depends(get_container)
):
    """Retry persisting an unconfirmed log entry"""
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")
    entry = next((e for e, _ in container.log_book.entries() if e.id == entry_id), None)
    if entry is None:
        raise NotFound(f"Log entry {entry_id} not found")
    if isinstance(session, WorkerSession) and entry.employee_id != session.employee.id:
        raise Forbidden("Not your log entry")

    result = await container.log_book.retry(entry_id)
    return {
        "success": result.confirmed,
        "data": LogView.from_entry(result.entry, result.confirmed).model_dump(mode="json"),
        "message": "Attendance confirmed" if result.confirmed else "Still not persisted, retry later"
    }
