"""
Phone-based login, one-time account activation and session tokens.

A request is served as exactly one of three session kinds: the admin
surface (entered with the sentinel admin code), a worker bound to an
employee record, or anonymous. Route guards dispatch on the type.

Passwords are compared in plain text as stored by the hosted backend.
Hashing them is an open hardening item.
"""

import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import jwt

from config import settings
from schemas.employee import Employee
from services.stores import EmployeeStore
from utils.exceptions import AuthError, ValidationError

logger = logging.getLogger(__name__)

ADMIN_SUBJECT = "ADMIN"


@dataclass(frozen=True)
class AdminSession:
    kind: str = "admin"


@dataclass(frozen=True)
class WorkerSession:
    employee: Employee
    kind: str = "worker"


@dataclass(frozen=True)
class AnonymousSession:
    kind: str = "anonymous"


Session = Union[AdminSession, WorkerSession, AnonymousSession]


def _same(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


class AuthService:
    def __init__(self, employees: EmployeeStore, admin_pin: Optional[str] = None,
                 secret_key: Optional[str] = None, algorithm: Optional[str] = None,
                 ttl_hours: Optional[int] = None):
        self.employees = employees
        self.admin_pin = admin_pin or settings.ADMIN_PIN
        self.secret_key = secret_key or settings.SECRET_KEY
        self.algorithm = algorithm or settings.ALGORITHM
        self.ttl_hours = ttl_hours or settings.TOKEN_TTL_HOURS

    def login(self, phone: str, password: Optional[str]) -> Union[AdminSession, WorkerSession]:
        phone = (phone or "").strip()
        if not phone:
            raise AuthError("Phone is required")

        if _same(phone, self.admin_pin):
            logger.info("🔐 Admin session opened")
            return AdminSession()

        employee = self.employees.find_by_phone(phone)
        if (
            employee is None
            or not employee.is_registered
            or employee.password is None
            or not _same(employee.password, password or "")
        ):
            raise AuthError("Invalid credentials")

        logger.info(f"🔐 Worker {employee.id} logged in")
        return WorkerSession(employee)

    def activate(self, phone: str, password: str) -> WorkerSession:
        """Set the password of a pre-registered employee. One way, once."""
        if not password or not password.strip():
            raise ValidationError("Password is required")

        employee = self.employees.find_by_phone((phone or "").strip())
        if employee is None or employee.is_registered:
            raise AuthError("Invalid credentials")

        activated = employee.model_copy(update={"password": password, "is_registered": True})
        self.employees.upsert([activated])
        logger.info(f"✅ Employee {employee.id} activated")
        return WorkerSession(activated)

    def issue_token(self, session: Union[AdminSession, WorkerSession]) -> str:
        if isinstance(session, AdminSession):
            subject = ADMIN_SUBJECT
        elif isinstance(session, WorkerSession):
            subject = session.employee.id
        else:
            raise AuthError("Anonymous sessions have no token")

        payload = {
            "sub": subject,
            "kind": session.kind,
            "exp": datetime.now(timezone.utc) + timedelta(hours=self.ttl_hours),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def resolve(self, token: Optional[str]) -> Session:
        if not token:
            return AnonymousSession()
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid token")

        kind = payload.get("kind")
        if kind == "admin" and payload.get("sub") == ADMIN_SUBJECT:
            return AdminSession()
        if kind == "worker":
            employee = self.employees.get(payload.get("sub"))
            if employee is not None and employee.is_registered:
                return WorkerSession(employee)
        raise AuthError("Invalid token")
