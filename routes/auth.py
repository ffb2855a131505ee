# routes/auth.py
from fastapi import APIRouter, Depends
from typing import Optional, Union
from pydantic import BaseModel
from datetime import datetime, timezone

from services.auth_service import AdminSession, Session, WorkerSession
from services.container import AppContainer, get_container
from utils.permissions import get_session

router = APIRouter()

# Login request models
class LoginRequest(BaseModel):
    phone: str
    password: Optional[str] = None

class ActivationRequest(BaseModel):
    phone: str
    password: str

def _session_body(session: Session) -> dict:
    if isinstance(session, WorkerSession):
        return {"kind": session.kind, "user": session.employee.public()}
    return {"kind": session.kind, "user": None}

def _token_response(container: AppContainer, session: Union[AdminSession, WorkerSession], message: str) -> dict:
    return {
        "success": True,
        "data": {
            "token": container.auth.issue_token(session),
            **_session_body(session)
        },
        "message": message
    }

@router.post("/login")
async def login(login_data: LoginRequest, container: AppContainer = Depends(get_container)):
    """Login with phone and password, or with the admin code"""
    session = container.auth.login(login_data.phone, login_data.password)
    return _token_response(container, session, "Login successful")

@router.post("/activate")
async def activate(activation: ActivationRequest, container: AppContainer = Depends(get_container)):
    """One-time activation of a pre-registered employee: sets the password"""
    session = container.auth.activate(activation.phone, activation.password)
    return _token_response(container, session, "Account activated")

@router.get("/me")
async def get_current_session(session: Session = Depends(get_session)):
    """Get current session"""
    return {
        "success": True,
        "data": _session_body(session),
        "message": "Session retrieved successfully"
    }

@router.get("/health")
async def auth_health_check():
    """Auth service health check"""
    return {
        "status": "healthy",
        "service": "authentication",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
