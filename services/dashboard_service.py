import csv
import io
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from schemas.attendance import AttendanceStatus, Direction, LogEntry, LogView
from services.log_book import LogBook
from services.stores import Stores

EXPORT_COLUMNS = [
    "id", "employee_id", "name", "timestamp", "direction",
    "status", "lat", "lng", "department_id", "confirmed",
]


class OverviewStats(BaseModel):
    total_employees: int
    total_departments: int
    present_now: int
    reports_count: int
    out_of_bounds_alerts: int
    pending_logs: int
    latest_logs: List[LogView]


def latest_directions(entries: List[LogEntry]) -> Dict[str, Direction]:
    """Latest direction per employee."""
    latest: Dict[str, LogEntry] = {}
    for entry in entries:
        current = latest.get(entry.employee_id)
        if current is None or entry.timestamp > current.timestamp:
            latest[entry.employee_id] = entry
    return {employee_id: entry.direction for employee_id, entry in latest.items()}


def current_direction(entries: List[LogEntry], employee_id: str) -> Direction:
    """Where the worker stands now; OUT when they have no log yet."""
    return latest_directions(entries).get(employee_id, Direction.OUT)


class DashboardService:
    """Admin counters and export, read from the full store plus unpersisted local entries."""

    PAGE_SIZE = 1000

    def __init__(self, stores: Stores, log_book: LogBook):
        self.stores = stores
        self.log_book = log_book

    def all_logs(self, department_id: Optional[str] = None) -> List[Tuple[LogEntry, bool]]:
        """Every stored log newest first, plus pending ones, paired with their confirmed flag."""
        filters = {"department_id": department_id} if department_id else {}
        remote: List[LogEntry] = []
        offset = 0
        while True:
            page = self.stores.logs.list_recent(limit=self.PAGE_SIZE, offset=offset, **filters)
            remote.extend(page)
            if len(page) < self.PAGE_SIZE:
                break
            offset += len(page)

        pending = [e for e in self.log_book.pending() if not department_id or e.department_id == department_id]
        pending_ids = {e.id for e in pending}
        pairs = [(e, True) for e in remote if e.id not in pending_ids] + [(e, False) for e in pending]
        pairs.sort(key=lambda p: p[0].timestamp, reverse=True)
        return pairs

    def overview(self, latest: int = 5) -> OverviewStats:
        pairs = self.all_logs()
        entries = [entry for entry, _ in pairs]
        directions = latest_directions(entries)
        return OverviewStats(
            total_employees=len(self.stores.employees.list()),
            total_departments=len(self.stores.departments.list()),
            present_now=sum(1 for d in directions.values() if d == Direction.IN),
            reports_count=len(self.stores.reports.list()),
            out_of_bounds_alerts=sum(1 for e in entries if e.status == AttendanceStatus.OUT_OF_BOUNDS),
            pending_logs=sum(1 for _, confirmed in pairs if not confirmed),
            latest_logs=[LogView.from_entry(e, confirmed) for e, confirmed in pairs[:latest]],
        )

    def export_csv(self, department_id: Optional[str] = None) -> str:
        """Attendance logs as CSV, UTF-8 with BOM so spreadsheet apps read Arabic names."""
        output = io.StringIO()
        output.write("\ufeff")
        writer = csv.writer(output)
        writer.writerow(EXPORT_COLUMNS)
        for entry, confirmed in self.all_logs(department_id):
            writer.writerow([
                entry.id,
                entry.employee_id,
                entry.name,
                entry.timestamp.isoformat(),
                entry.direction.value,
                entry.status.value,
                entry.location.lat,
                entry.location.lng,
                entry.department_id or "",
                "yes" if confirmed else "no",
            ])
        return output.getvalue()
