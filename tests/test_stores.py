from datetime import datetime, timezone

import httpx
import pytest

from schemas.attendance import AttendanceStatus, CapturedPhoto, Coordinate, Direction, LogEntry
from schemas.records import CompanyConfig
from services.stores import SupabaseTable
from utils.exceptions import PersistenceError
from tests.fakes import make_employee, make_stores


def sample_entry():
    return LogEntry(
        id="log_1", employee_id="EMP-1", name="Ahmed",
        timestamp=datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc), direction=Direction.OUT,
        photo=CapturedPhoto(data=b"\xff\xd8jpeg"),
        location=Coordinate(lat=24.7136, lng=46.6753, address="Riyadh"),
        status=AttendanceStatus.OUT_OF_BOUNDS, department_id="d1",
    )


def test_log_row_flattens_location_and_photo():
    row = sample_entry().to_row()

    assert row["type"] == "OUT"
    assert row["location_lat"] == 24.7136 and row["location_lng"] == 46.6753
    assert row["photo"].startswith("data:image/jpeg;base64,")
    assert LogEntry.from_row(row) == sample_entry()


def test_append_is_keyed_on_entry_id():
    stores = make_stores()
    stores.logs.append(sample_entry())
    stores.logs.append(sample_entry())
    assert len(stores.logs.list_recent()) == 1


def test_employee_lookup_by_phone():
    stores = make_stores()
    stores.employees.upsert([make_employee()])
    assert stores.employees.find_by_phone("0500000001").id == "EMP-1"
    assert stores.employees.find_by_phone("0000") is None


def test_company_config_defaults_until_saved():
    stores = make_stores()
    assert stores.company_config.get().name
    stores.company_config.save(CompanyConfig(name="Acme Contracting", logo="https://cdn/logo.png"))
    assert stores.company_config.get() == CompanyConfig(name="Acme Contracting", logo="https://cdn/logo.png")


class _FailingQuery:
    def __getattr__(self, name):
        return lambda *args, **kwargs: self

    def execute(self):
        raise httpx.ConnectError("connection refused")


class _FailingClient:
    def table(self, name):
        return _FailingQuery()


def test_transport_errors_become_persistence_errors():
    table = SupabaseTable(_FailingClient(), "attendance_logs")
    with pytest.raises(PersistenceError):
        table.upsert([{"id": "log_1"}])
    with pytest.raises(PersistenceError):
        table.select(limit=10)
