from fastapi import APIRouter, Depends
from fastapi.responses import Response

from services.auth_service import AdminSession, AnonymousSession, Session, WorkerSession
from services.container import AppContainer, get_container
from services.workspace_service import for_department
from utils.exceptions import AuthError
from utils.permissions import get_session, require_worker

router = APIRouter()

@router.get("/company")
async def company(container: AppContainer = Depends(get_container)):
    """Company name and logo, shown on the login screen"""
    return {"success": True, "data": container.stores.company_config.get().model_dump()}

@router.get("/files")
async def files(session: Session = Depends(get_session), container: AppContainer = Depends(get_container)):
    """Department files visible to the caller"""
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")
    items = container.stores.files.list()
    if not isinstance(session, AdminSession):
        items = for_department(items, session.employee.department_id)
    return {"success": True, "count": len(items), "data": [f.model_dump() for f in items]}

@router.get("/announcements")
async def announcements(session: Session = Depends(get_session), container: AppContainer = Depends(get_container)):
    """Announcements for the caller's department and for everyone"""
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")
    items = container.stores.announcements.list()
    if not isinstance(session, AdminSession):
        items = for_department(items, session.employee.department_id)
    items = sorted(items, key=lambda a: a.date, reverse=True)
    return {"success": True, "count": len(items), "data": [a.model_dump() for a in items]}

@router.get("/badge", response_class=Response)
async def my_badge(session: WorkerSession = Depends(require_worker), container: AppContainer = Depends(get_container)):
    """QR badge of the logged-in worker as PNG"""
    png = container.badges.badge_for(session.employee.id)
    return Response(content=png, media_type="image/png")
