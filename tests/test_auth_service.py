from datetime import datetime, timedelta, timezone

import jwt
import pytest

from services.auth_service import AdminSession, AnonymousSession, AuthService, WorkerSession
from utils.exceptions import AuthError, ValidationError
from tests.fakes import make_employee, make_stores

SECRET = "unit-test-secret-key-0123456789abcdef"


@pytest.fixture
def service():
    stores = make_stores()
    stores.employees.upsert([
        make_employee(),
        make_employee(id="EMP-2", phone="0500000002", is_registered=False, password=None),
    ])
    return AuthService(stores.employees, admin_pin="000", secret_key=SECRET, algorithm="HS256", ttl_hours=1)


def test_admin_code_opens_admin_session(service):
    assert isinstance(service.login("000", None), AdminSession)


def test_registered_worker_logs_in_with_phone_and_password(service):
    session = service.login(" 0500000001 ", "secret")
    assert isinstance(session, WorkerSession)
    assert session.employee.id == "EMP-1"


@pytest.mark.parametrize("phone,password", [
    ("0500000001", "wrong"),
    ("0599999999", "secret"),
    ("0500000002", ""),
    ("0500000002", None),
])
def test_login_failures_are_indistinguishable(service, phone, password):
    with pytest.raises(AuthError) as exc:
        service.login(phone, password)
    assert exc.value.detail == "Invalid credentials"


def test_activation_sets_password_once(service):
    session = service.activate("0500000002", "new-pass")

    assert session.employee.is_registered
    assert isinstance(service.login("0500000002", "new-pass"), WorkerSession)

    with pytest.raises(AuthError):
        service.activate("0500000002", "other-pass")
    assert isinstance(service.login("0500000002", "new-pass"), WorkerSession)


def test_activation_rejects_blank_password_and_unknown_phone(service):
    with pytest.raises(ValidationError):
        service.activate("0500000002", "   ")
    with pytest.raises(AuthError):
        service.activate("0599999999", "pass")


def test_tokens_resolve_back_to_their_session(service):
    admin_token = service.issue_token(AdminSession())
    worker_token = service.issue_token(service.login("0500000001", "secret"))

    assert isinstance(service.resolve(admin_token), AdminSession)
    resolved = service.resolve(worker_token)
    assert isinstance(resolved, WorkerSession)
    assert resolved.employee.id == "EMP-1"
    assert isinstance(service.resolve(None), AnonymousSession)


def test_expired_and_forged_tokens_are_rejected(service):
    expired = jwt.encode(
        {"sub": "EMP-1", "kind": "worker", "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        SECRET, algorithm="HS256"
    )
    forged = jwt.encode({"sub": "ADMIN", "kind": "admin"}, "another-secret-key-0123456789abcdef", algorithm="HS256")

    with pytest.raises(AuthError):
        service.resolve(expired)
    with pytest.raises(AuthError):
        service.resolve(forged)
    with pytest.raises(AuthError):
        service.resolve("not-a-token")


def test_worker_token_stops_working_when_employee_is_removed(service):
    token = service.issue_token(service.login("0500000001", "secret"))
    service.employees.delete("EMP-1")
    with pytest.raises(AuthError):
        service.resolve(token)
