"""
Store adapters over the hosted backend's tables.

``SupabaseTable`` is the only class that talks to the Supabase client.
Everything above it works with pydantic records; ``AttendanceLogStore``
additionally flattens a log's coordinate into two scalar columns.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel
from supabase import Client

from config import settings
from schemas.attendance import LogEntry
from schemas.employee import Department, Employee
from schemas.records import Announcement, ChatMessage, CompanyConfig, FileEntry, ReportEntry
from utils.exceptions import PersistenceError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
M = TypeVar("M", bound=BaseModel)


class SupabaseTable:
    """Thin wrapper around one remote table."""

    def __init__(self, client: Client, name: str, key: str = "id"):
        self.client = client
        self.name = name
        self.key = key

    def _run(self, query, action: str):
        try:
            return query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"❌ {action} on {self.name} failed: {str(e)}")
            raise PersistenceError(f"{action} on {self.name} failed: {str(e)}") from e

    def select(
        self,
        order_by: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
        **filters: Any,
    ) -> List[Row]:
        query = self.client.table(self.name).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=desc)
        if limit is not None:
            query = query.range(offset, offset + limit - 1)
        return self._run(query, "select").data or []

    def insert(self, row: Row) -> None:
        self._run(self.client.table(self.name).insert(row), "insert")

    def upsert(self, rows: List[Row]) -> None:
        if not rows:
            return
        self._run(self.client.table(self.name).upsert(rows, on_conflict=self.key), "upsert")

    def delete(self, key_value: Any) -> None:
        self._run(self.client.table(self.name).delete().eq(self.key, key_value), "delete")


class RecordStore(Generic[M]):
    """Generic CRUD over a table whose rows map one-to-one onto a model."""

    def __init__(self, table, model: Type[M], order_by: Optional[str] = None, desc: bool = False):
        self.table = table
        self.model = model
        self.order_by = order_by
        self.desc = desc

    def list(self, **filters: Any) -> List[M]:
        rows = self.table.select(order_by=self.order_by, desc=self.desc, **filters)
        return [self.model.model_validate(row) for row in rows]

    def get(self, key_value: Any) -> Optional[M]:
        rows = self.table.select(**{self.table.key: key_value})
        return self.model.model_validate(rows[0]) if rows else None

    def insert(self, record: M) -> None:
        self.table.insert(record.model_dump(mode="json"))

    def upsert(self, records: List[M]) -> None:
        self.table.upsert([r.model_dump(mode="json") for r in records])

    def delete(self, key_value: Any) -> None:
        self.table.delete(key_value)


class EmployeeStore(RecordStore[Employee]):
    def __init__(self, table):
        super().__init__(table, Employee)

    def find_by_phone(self, phone: str) -> Optional[Employee]:
        rows = self.table.select(phone=phone)
        return Employee.model_validate(rows[0]) if rows else None


class AttendanceLogStore:
    """Append-only attendance table, read newest first."""

    def __init__(self, table):
        self.table = table

    def append(self, entry: LogEntry) -> None:
        # Keyed on id, so re-sending an entry whose first write landed cannot duplicate it
        self.table.upsert([entry.to_row()])

    def list_recent(self, limit: int = 100, offset: int = 0, **filters: Any) -> List[LogEntry]:
        rows = self.table.select(order_by="timestamp", desc=True, limit=limit, offset=offset, **filters)
        return [LogEntry.from_row(row) for row in rows]


class CompanyConfigStore:
    ROW_ID = 1

    def __init__(self, table):
        self.table = table

    def get(self) -> CompanyConfig:
        rows = self.table.select(id=self.ROW_ID)
        if not rows:
            return CompanyConfig(name=settings.COMPANY_NAME)
        return CompanyConfig(name=rows[0].get("name") or settings.COMPANY_NAME, logo=rows[0].get("logo") or "")

    def save(self, config: CompanyConfig) -> None:
        self.table.upsert([{"id": self.ROW_ID, "name": config.name, "logo": config.logo}])


@dataclass
class Stores:
    employees: EmployeeStore
    departments: RecordStore[Department]
    logs: AttendanceLogStore
    reports: RecordStore[ReportEntry]
    messages: RecordStore[ChatMessage]
    files: RecordStore[FileEntry]
    announcements: RecordStore[Announcement]
    company_config: CompanyConfigStore


TABLE_NAMES = {
    "employees": "employees",
    "departments": "departments",
    "logs": "attendance_logs",
    "reports": "reports",
    "messages": "chat_messages",
    "files": "files",
    "announcements": "announcements",
    "company_config": "company_config",
}


def build_stores(make_table) -> Stores:
    """Wire every store onto tables produced by ``make_table(name)``."""
    return Stores(
        employees=EmployeeStore(make_table(TABLE_NAMES["employees"])),
        departments=RecordStore(make_table(TABLE_NAMES["departments"]), Department),
        logs=AttendanceLogStore(make_table(TABLE_NAMES["logs"])),
        reports=RecordStore(make_table(TABLE_NAMES["reports"]), ReportEntry, order_by="timestamp", desc=True),
        messages=RecordStore(make_table(TABLE_NAMES["messages"]), ChatMessage, order_by="timestamp"),
        files=RecordStore(make_table(TABLE_NAMES["files"]), FileEntry),
        announcements=RecordStore(make_table(TABLE_NAMES["announcements"]), Announcement),
        company_config=CompanyConfigStore(make_table(TABLE_NAMES["company_config"])),
    )


def supabase_stores(client: Client) -> Stores:
    return build_stores(lambda name: SupabaseTable(client, name))
