# routes/__init__.py

from .auth import router as auth_router
from .attendance import router as attendance_router
from .reports import router as reports_router
from .chat import router as chat_router
from .workspace import router as workspace_router
from .admin import router as admin_router

__all__ = [
    'auth_router',
    'attendance_router',
    'reports_router',
    'chat_router',
    'workspace_router',
    'admin_router'
]
