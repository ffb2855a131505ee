import base64

import pytest
from fastapi.testclient import TestClient

from main import app
from schemas.employee import Department, UserRole
from services.container import AppContainer, get_container
from utils.messages import TRANSLATIONS
from tests.fakes import FlakyTable, NORTH_OF_RIYADH, RIYADH, jpeg_base64, make_employee, make_stores


def seeded_container(log_table=None):
    stores = make_stores({"attendance_logs": log_table} if log_table else None)
    stores.departments.upsert([Department(id="d1", name="الموقع"), Department(id="d2", name="المكتب")])
    stores.employees.upsert([
        make_employee(),
        make_employee(id="EMP-2", name="Sara", phone="0500000002", department_id="d2",
                      is_registered=False, password=None, workplace_lat=None, workplace_lng=None),
        make_employee(id="EMP-3", name="Omar", phone="0500000003", user_role=UserRole.DEPT_HEAD),
    ])
    return AppContainer(stores)


@pytest.fixture
def container():
    return seeded_container()


@pytest.fixture
def client(container):
    app.dependency_overrides[get_container] = lambda: container
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, phone, password=None):
    response = client.post("/api/auth/login", json={"phone": phone, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


@pytest.fixture
def admin(client):
    return login(client, "000")


@pytest.fixture
def worker(client):
    return login(client, "0500000001", "secret")


def check_in(client, headers, coordinate=RIYADH, **overrides):
    body = {"direction": "IN", "photo": jpeg_base64(), "latitude": coordinate.lat, "longitude": coordinate.lng}
    body.update(overrides)
    return client.post("/api/attendance/check", json=body, headers=headers)


# Auth

def test_login_errors_are_generic_and_localized(client):
    response = client.post("/api/auth/login", json={"phone": "0500000001", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "auth_error",
        "detail": TRANSLATIONS["ar"]["auth_error"],
    }

    response = client.post("/api/auth/login", json={"phone": "0599999999", "password": "secret"},
                           headers={"Accept-Language": "en-US,en;q=0.9"})
    assert response.json()["detail"] == TRANSLATIONS["en"]["auth_error"]


def test_activation_then_login(client):
    response = client.post("/api/auth/activate", json={"phone": "0500000002", "password": "pw-2"})
    assert response.status_code == 200
    assert response.json()["data"]["kind"] == "worker"
    assert "password" not in response.json()["data"]["user"]

    assert client.post("/api/auth/activate", json={"phone": "0500000002", "password": "again"}).status_code == 401
    me = client.get("/api/auth/me", headers=login(client, "0500000002", "pw-2")).json()
    assert me["data"]["user"]["id"] == "EMP-2"


def test_me_is_anonymous_without_token(client):
    assert client.get("/api/auth/me").json()["data"] == {"kind": "anonymous", "user": None}


# Attendance

def test_check_in_at_site(client, worker):
    response = check_in(client, worker)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "PRESENT"
    assert data["confirmed"] is True
    assert data["photo"].startswith("data:image/jpeg;base64,")

    status = client.get("/api/attendance/status", headers=worker).json()["data"]
    assert status["current"] == "IN"
    logs = client.get("/api/attendance/logs", headers=worker).json()
    assert logs["count"] == 1


def test_check_in_away_from_site_is_out_of_bounds(client, worker):
    response = check_in(client, worker, NORTH_OF_RIYADH)
    assert response.json()["data"]["status"] == "OUT_OF_BOUNDS"


def test_location_and_camera_errors(client, worker):
    denied = check_in(client, worker, location_error="permission_denied", latitude=None, longitude=None)
    assert denied.status_code == 403
    assert denied.json()["error"] == "permission_denied"

    no_photo = check_in(client, worker, photo=None)
    assert no_photo.status_code == 503
    assert no_photo.json()["error"] == "device_unavailable"

    bad_photo = check_in(client, worker, photo=base64.b64encode(b"not an image").decode())
    assert bad_photo.status_code == 422


def test_unsaved_check_in_is_kept_and_can_be_retried():
    container = seeded_container(FlakyTable("attendance_logs", failures=1))
    app.dependency_overrides[get_container] = lambda: container
    try:
        client = TestClient(app)
        worker = login(client, "0500000001", "secret")

        response = check_in(client, worker)
        assert response.status_code == 202
        body = response.json()
        assert body["success"] is False and body["error"] == "persistence_error"
        entry_id = body["data"]["id"]

        logs = client.get("/api/attendance/logs", headers=worker).json()["data"]
        assert [(l["id"], l["confirmed"]) for l in logs] == [(entry_id, False)]
        assert client.get("/api/attendance/logs/pending", headers=worker).json()["count"] == 1

        retried = client.post(f"/api/attendance/logs/{entry_id}/retry", headers=worker).json()
        assert retried["success"] is True
        assert client.get("/api/admin/logs/pending", headers=login(client, "000")).json()["count"] == 0
        assert len(container.stores.tables["attendance_logs"].rows) == 1
    finally:
        app.dependency_overrides.clear()


def test_log_pages_never_exceed_the_limit():
    container = seeded_container(FlakyTable("attendance_logs", failures=1))
    app.dependency_overrides[get_container] = lambda: container
    try:
        client = TestClient(app)
        worker = login(client, "0500000001", "secret")

        assert check_in(client, worker).status_code == 202
        assert check_in(client, worker, direction="OUT").status_code == 201

        mine = client.get("/api/attendance/logs", headers=worker, params={"limit": 1}).json()
        assert mine["count"] == 1 and len(mine["data"]) == 1
        everyone = client.get("/api/admin/logs", headers=login(client, "000"), params={"limit": 1}).json()
        assert everyone["count"] == 1 and len(everyone["data"]) == 1
        assert len(client.get("/api/admin/logs", headers=login(client, "000")).json()["data"]) == 2
    finally:
        app.dependency_overrides.clear()


def test_department_head_sees_department_logs(client, worker):
    check_in(client, worker)
    head = login(client, "0500000003", "secret")

    assert client.get("/api/attendance/department-logs", headers=head).json()["count"] == 1
    assert client.get("/api/attendance/department-logs", headers=worker).status_code == 403


# Reports and chat

def test_reports_are_scoped_by_role(client, worker, admin):
    created = client.post("/api/reports", json={"content": "Pouring finished"}, headers=worker)
    assert created.status_code == 201
    assert client.post("/api/reports", json={"content": "x", "type": "link"}, headers=worker).status_code == 422

    assert client.get("/api/reports", headers=admin).json()["count"] == 1
    assert client.get("/api/reports", headers=admin, params={"department_id": "d2"}).json()["count"] == 0
    assert client.get("/api/reports", headers=worker).json()["count"] == 1
    assert client.get("/api/reports").status_code == 401


def test_chat_visibility(client, worker, admin):
    client.post("/api/auth/activate", json={"phone": "0500000002", "password": "pw-2"})
    sara = login(client, "0500000002", "pw-2")

    assert client.post("/api/chat", json={"text": "Crane arrives at 10"}, headers=worker).status_code == 201
    assert client.post("/api/chat", json={"text": "To all", "department_id": "all"}, headers=admin).status_code == 201
    private = {"text": "Call me", "type": "private", "recipient_ids": ["EMP-2"]}
    assert client.post("/api/chat", json=private, headers=worker).status_code == 201
    assert client.post("/api/chat", json={"text": "x", "type": "private"}, headers=worker).status_code == 422

    seen_by_sara = [m["text"] for m in client.get("/api/chat", headers=sara).json()["data"]]
    assert seen_by_sara == ["To all", "Call me"]


# Workspace and admin

def test_company_is_public_and_badge_is_png(client, worker):
    assert client.get("/api/workspace/company").json()["data"]["name"]
    badge = client.get("/api/workspace/badge", headers=worker)
    assert badge.headers["content-type"] == "image/png"
    assert badge.content[:4] == b"\x89PNG"


def test_admin_surface_requires_admin_session(client, worker):
    assert client.get("/api/admin/overview").status_code == 401
    assert client.get("/api/admin/overview", headers=worker).status_code == 403


def test_admin_employee_edit_keeps_credentials(client, admin):
    employees = client.get("/api/admin/employees", headers=admin).json()["data"]
    ahmed = next(e for e in employees if e["id"] == "EMP-1")
    ahmed["name"] = "Ahmed Ali"
    ahmed["password"] = "hijack"

    assert client.put("/api/admin/employees", json=[ahmed], headers=admin).status_code == 200
    assert login(client, "0500000001", "secret")
    assert client.post("/api/auth/login", json={"phone": "0500000001", "password": "hijack"}).status_code == 401

    ahmed["phone"] = "0500000002"
    assert client.put("/api/admin/employees", json=[ahmed], headers=admin).status_code == 422


def test_admin_departments_and_content(client, admin, worker):
    departments = client.get("/api/admin/departments", headers=admin).json()["data"]
    assert {d["id"]: d["employee_count"] for d in departments} == {"d1": 2, "d2": 1}
    assert client.delete("/api/admin/departments/d1", headers=admin).status_code == 422

    notices = [
        {"id": "a1", "title": "Safety", "content": "Helmets", "date": "2026-03-01"},
        {"id": "a2", "title": "Office", "content": "Closed", "date": "2026-03-02", "target_dept_id": "d2"},
    ]
    assert client.put("/api/admin/announcements", json=notices, headers=admin).status_code == 200
    seen = client.get("/api/workspace/announcements", headers=worker).json()["data"]
    assert [a["id"] for a in seen] == ["a1"]

    assert client.put("/api/admin/config", json={"name": "Acme", "logo": ""}, headers=admin).status_code == 200
    assert client.get("/api/workspace/company").json()["data"]["name"] == "Acme"


def test_admin_overview_logs_and_export(client, admin, worker):
    check_in(client, worker, NORTH_OF_RIYADH)

    overview = client.get("/api/admin/overview", headers=admin).json()["data"]
    assert overview["present_now"] == 1
    assert overview["out_of_bounds_alerts"] == 1

    logs = client.get("/api/admin/logs", headers=admin, params={"department_id": "d1"}).json()
    assert logs["count"] == 1

    export = client.get("/api/admin/logs/export", headers=admin)
    assert export.status_code == 200
    assert "attachment" in export.headers["content-disposition"]
    assert export.content.startswith("\ufeff".encode("utf-8"))


def test_admin_badge_scan(client, admin):
    scanned = client.post("/api/admin/badges/scan", json={"text": '{"id": "EMP-3", "name": "Omar", "dept": "d1"}'},
                          headers=admin)
    assert scanned.json()["data"]["name"] == "Omar"
    assert client.post("/api/admin/badges/scan", json={"text": '{"id": "nobody"}'}, headers=admin).status_code == 404
