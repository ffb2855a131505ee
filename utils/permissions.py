from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from schemas.employee import Employee, UserRole
from services.auth_service import AdminSession, AnonymousSession, Session, WorkerSession
from services.container import AppContainer, get_container
from utils.exceptions import AuthError, Forbidden

security = HTTPBearer(auto_error=False)

ROLE_DISPLAY_NAMES = {
    UserRole.WORKER: "Worker",
    UserRole.SUPERVISOR: "Supervisor",
    UserRole.DEPT_HEAD: "Department Head",
    UserRole.ADMIN: "Administrator",
}

ROLE_PERMISSIONS = {
    UserRole.WORKER: [
        "record_attendance", "submit_reports", "chat"
    ],
    UserRole.SUPERVISOR: [
        "record_attendance", "submit_reports", "chat",
        "view_department_reports"
    ],
    UserRole.DEPT_HEAD: [
        "record_attendance", "submit_reports", "chat",
        "view_department_reports", "view_department_logs"
    ],
    UserRole.ADMIN: [
        "record_attendance", "submit_reports", "chat",
        "view_department_reports", "view_department_logs"
    ],
}


def has_permission(employee: Employee, permission: str) -> bool:
    """Check if employee has specific permission"""
    return permission in ROLE_PERMISSIONS.get(employee.user_role, [])


async def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    container: AppContainer = Depends(get_container),
) -> Session:
    """Resolve the bearer token into an admin, worker or anonymous session."""
    token = credentials.credentials if credentials else None
    return container.auth.resolve(token)


async def require_admin(session: Session = Depends(get_session)) -> AdminSession:
    if isinstance(session, AdminSession):
        return session
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")
    raise Forbidden("Admin privileges required")


async def require_worker(session: Session = Depends(get_session)) -> WorkerSession:
    if isinstance(session, WorkerSession):
        return session
    if isinstance(session, AnonymousSession):
        raise AuthError("Authentication required")
    raise Forbidden("Worker session required")


def require_permission(permission: str):
    """
    Dependency to check that the worker's role grants ``permission``.
    Usage: Depends(require_permission("view_department_reports"))
    """
    async def permission_checker(
        session: WorkerSession = Depends(require_worker)
    ) -> WorkerSession:
        if not has_permission(session.employee, permission):
            raise Forbidden(f"Access denied. Required permission: {permission}")
        return session

    return permission_checker
