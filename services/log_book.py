"""
Optimistic attendance log collection.

A new entry is inserted locally first, then appended to the remote store.
If the append fails the entry stays in the book marked unconfirmed until the
caller retries or a reload finds it in the store. Nothing is dropped and a
retry re-sends the same entry id, so nothing is duplicated either.

Subscribers only hear about an entry once its write has been attempted, so a
misbehaving subscriber can never stand between an entry and the store.

The book is a bounded window: the newest ``capacity`` confirmed entries plus
every entry that is unconfirmed or still being written.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from config import settings
from schemas.attendance import LogEntry
from services.events import EventBus, LogConfirmed, LogCreated, LogUnconfirmed
from services.stores import AttendanceLogStore
from utils.exceptions import NotFound, PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    entry: LogEntry
    confirmed: bool
    error: Optional[PersistenceError] = None


class LogBook:
    def __init__(self, store: AttendanceLogStore, events: Optional[EventBus] = None,
                 capacity: Optional[int] = None):
        self.store = store
        self.events = events or EventBus()
        self.capacity = settings.RECENT_LOGS_LIMIT if capacity is None else capacity
        self._entries: Dict[str, LogEntry] = {}
        self._unconfirmed: Dict[str, str] = {}
        self._inflight: Set[str] = set()

    async def submit(self, entry: LogEntry) -> SubmissionResult:
        """Insert ``entry`` locally, try to persist it, then announce it."""
        self._entries[entry.id] = entry
        result = await self._commit(entry)
        await self.events.publish(LogCreated(entry))
        await self._announce(result)
        return result

    async def retry(self, entry_id: str) -> SubmissionResult:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFound(f"Log entry {entry_id} not found")
        if entry_id not in self._unconfirmed:
            return SubmissionResult(entry, confirmed=True)
        result = await self._commit(entry)
        await self._announce(result)
        return result

    async def _commit(self, entry: LogEntry) -> SubmissionResult:
        self._inflight.add(entry.id)
        try:
            await asyncio.to_thread(self.store.append, entry)
        except PersistenceError as e:
            # A reload may have replaced the book while the write was running
            self._entries.setdefault(entry.id, entry)
            self._unconfirmed[entry.id] = str(e)
            logger.warning(f"⚠️ Log {entry.id} kept unconfirmed: {str(e)}")
            return SubmissionResult(entry, confirmed=False, error=e)
        finally:
            self._inflight.discard(entry.id)

        self._entries.setdefault(entry.id, entry)
        self._unconfirmed.pop(entry.id, None)
        logger.info(f"✅ Log {entry.id} persisted ({entry.direction.value}, {entry.status.value})")
        self._trim()
        return SubmissionResult(entry, confirmed=True)

    async def _announce(self, result: SubmissionResult) -> None:
        if result.confirmed:
            await self.events.publish(LogConfirmed(result.entry))
        else:
            await self.events.publish(LogUnconfirmed(result.entry, str(result.error)))

    def _trim(self) -> None:
        held = set(self._unconfirmed) | self._inflight
        confirmed = sorted(
            (e for e in self._entries.values() if e.id not in held),
            key=lambda e: e.timestamp,
            reverse=True,
        )
        for entry in confirmed[self.capacity:]:
            del self._entries[entry.id]

    def is_confirmed(self, entry_id: str) -> bool:
        return entry_id in self._entries and entry_id not in self._unconfirmed

    def entries(self, limit: Optional[int] = None, employee_id: Optional[str] = None) -> List[Tuple[LogEntry, bool]]:
        """Entries newest first, each paired with its confirmed flag."""
        items = [e for e in self._entries.values() if employee_id is None or e.employee_id == employee_id]
        items.sort(key=lambda e: e.timestamp, reverse=True)
        if limit is not None:
            items = items[:limit]
        return [(e, e.id not in self._unconfirmed) for e in items]

    def pending(self) -> List[LogEntry]:
        return [self._entries[i] for i in self._unconfirmed if i in self._entries]

    async def reload(self, limit: Optional[int] = None) -> None:
        """
        Replace the book with the store's latest entries.

        Local entries the store did not return survive a reload when they are
        unconfirmed or still being written. Unconfirmed entries the store now
        has count as reconciled.
        """
        limit = self.capacity if limit is None else limit
        remote = await asyncio.to_thread(self.store.list_recent, limit)
        entries = {e.id: e for e in remote}
        for entry_id in list(self._unconfirmed):
            if entry_id in entries:
                del self._unconfirmed[entry_id]
        for entry_id in set(self._unconfirmed) | self._inflight:
            if entry_id not in entries and entry_id in self._entries:
                entries[entry_id] = self._entries[entry_id]
        self._entries = entries
        self._trim()
