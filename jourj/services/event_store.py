"""
Event data store - in-memory read model of one event.

One store is opened per user when they select an event and closed when they
switch event or log out. Each collection is fully replaced on refresh (every
REFRESH_INTERVAL_SECONDS and on demand). Writes go through explicit entry
points: a change is pending until the database confirms it, then committed;
scheduled refreshes are skipped while anything is pending.
"""
import asyncio
import logging
from collections import deque
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import select

from jourj.config import get_settings
from jourj.database import AsyncSessionLocal
from jourj.models import Document, Event, Person, Task, TimelineItem, Vendor
from jourj.services.documents import document_stats
from jourj.utils.helpers import days_until, percentage

logger = logging.getLogger(__name__)

COLLECTIONS = ("tasks", "timeline_items", "people", "vendors", "documents")

COLLECTION_LABELS = {
    "tasks": "les tâches",
    "timeline_items": "le planning",
    "people": "les personnes",
    "vendors": "les prestataires",
    "documents": "les documents",
}


class Notice(BaseModel):
    level: str  # "info" | "error"
    title: str
    message: str
    created_at: datetime


class EventRepository:
    """Reads every row of one event, newest first (timeline in day order)"""

    MODELS = {
        "tasks": Task,
        "timeline_items": TimelineItem,
        "people": Person,
        "vendors": Vendor,
        "documents": Document,
    }

    def __init__(self, session_factory: Callable = AsyncSessionLocal):
        self.session_factory = session_factory

    async def load_event(self, event_id: int) -> Optional[Event]:
        async with self.session_factory() as session:
            result = await session.execute(select(Event).where(Event.id == event_id))
            return result.scalar_one_or_none()

    async def load(self, collection: str, event_id: int) -> List[Any]:
        model = self.MODELS[collection]
        query = select(model).where(model.event_id == event_id)
        if model is TimelineItem:
            query = query.order_by(TimelineItem.sort_order, TimelineItem.time)
        else:
            query = query.order_by(model.created_at.desc(), model.id.desc())
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())


class PendingChange:
    def __init__(self, collection: str, record_id: int, patch: Dict[str, Any]):
        self.collection = collection
        self.record_id = record_id
        self.patch = patch
        self.result: Any = None

    def resolve(self, record: Any) -> None:
        """Record the row the database confirmed"""
        self.result = record


class PendingView:
    """A committed record seen through its in-flight patch"""

    def __init__(self, record: Any, patch: Dict[str, Any]):
        self._record = record
        self._patch = patch

    def __getattr__(self, name: str) -> Any:
        if name in self._patch:
            return self._patch[name]
        return getattr(self._record, name)


class EventDataStore:
    def __init__(
        self,
        event_id: int,
        repository: EventRepository,
        refresh_interval: Optional[int] = None,
        max_notices: Optional[int] = None,
    ):
        settings = get_settings()
        self.event_id = event_id
        self.repository = repository
        self.refresh_interval = settings.REFRESH_INTERVAL_SECONDS if refresh_interval is None else refresh_interval
        self.event: Optional[Event] = None
        self.notices: deque = deque(maxlen=max_notices or settings.MAX_NOTICES)
        self.last_refreshed_at: Optional[datetime] = None
        self.closed = False

        self._committed: Dict[str, List[Any]] = {name: [] for name in COLLECTIONS}
        self._pending: List[PendingChange] = []
        # bumped by every local write, so a load that started earlier is not applied
        self._generation: Dict[str, int] = {name: 0 for name in COLLECTIONS}
        self._in_flight = 0
        self._task: Optional[asyncio.Task] = None

    # ─── Lifecycle ───

    def start(self) -> None:
        if self.refresh_interval > 0 and self._task is None:
            self._task = asyncio.create_task(self._refresh_loop())

    async def _refresh_loop(self) -> None:
        while not self.closed:
            await asyncio.sleep(self.refresh_interval)
            try:
                await self.refresh(scheduled=True)
            except Exception as e:
                logger.error(f"Scheduled refresh of event {self.event_id} failed: {e}")

    async def close(self) -> None:
        self.closed = True
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info(f"Event store {self.event_id} closed")

    # ─── Refresh ───

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    async def refresh(self, scheduled: bool = False) -> bool:
        """
        Re-fetch the event and every collection. A collection keeps its
        current rows when its load fails or when it was written locally in
        the meantime. Returns False when nothing was applied.
        """
        if self.closed:
            return False
        if scheduled and self._pending:
            logger.debug(f"Skipping scheduled refresh of event {self.event_id}: {len(self._pending)} pending change(s)")
            return False

        self._in_flight += 1
        try:
            try:
                event = await self.repository.load_event(self.event_id)
            except Exception as e:
                logger.warning(f"Could not load event {self.event_id}: {e}")
                self.notify("error", "Erreur", "Impossible de charger l'événement")
            else:
                if self.closed:
                    return False
                self.event = event

            for name in COLLECTIONS:
                generation = self._generation[name]
                try:
                    rows = await self.repository.load(name, self.event_id)
                except Exception as e:
                    logger.warning(f"Could not load {name} for event {self.event_id}: {e}")
                    self.notify("error", "Erreur", f"Impossible de charger {COLLECTION_LABELS[name]}")
                    continue
                if self.closed:
                    return False
                if self._generation[name] != generation or self._has_pending(name):
                    logger.debug(f"Keeping local {name} of event {self.event_id}: changed during refresh")
                    continue
                self._committed[name] = rows
        finally:
            self._in_flight -= 1

        self.last_refreshed_at = datetime.utcnow()
        return True

    def _has_pending(self, collection: str) -> bool:
        return any(change.collection == collection for change in self._pending)

    def _touch(self, collection: str) -> None:
        self._generation[collection] += 1

    def notify(self, level: str, title: str, message: str) -> None:
        self.notices.append(Notice(level=level, title=title, message=message, created_at=datetime.utcnow()))

    # ─── Read model ───

    def committed(self, collection: str) -> List[Any]:
        return list(self._committed[collection])

    def view(self, collection: str) -> List[Any]:
        """Committed rows with pending patches laid over them"""
        patches: Dict[int, Dict[str, Any]] = {}
        for change in self._pending:
            if change.collection == collection:
                patches.setdefault(change.record_id, {}).update(change.patch)
        if not patches:
            return self.committed(collection)
        return [
            PendingView(row, patches[row.id]) if row.id in patches else row
            for row in self._committed[collection]
        ]

    @property
    def tasks(self) -> List[Any]:
        return self.view("tasks")

    @property
    def timeline_items(self) -> List[Any]:
        return self.view("timeline_items")

    @property
    def people(self) -> List[Any]:
        return self.view("people")

    @property
    def vendors(self) -> List[Any]:
        return self.view("vendors")

    @property
    def documents(self) -> List[Any]:
        return self.view("documents")

    # ─── Mutation entry points ───

    def publish(self, collection: str, record: Any) -> None:
        """Replace the row with the same id, or add it as the newest row"""
        self._touch(collection)
        rows = self._committed[collection]
        for index, row in enumerate(rows):
            if row.id == record.id:
                rows[index] = record
                return
        if collection == "timeline_items":
            rows.append(record)
        else:
            rows.insert(0, record)

    def replace(self, collection: str, rows: List[Any]) -> None:
        self._touch(collection)
        self._committed[collection] = list(rows)

    def discard(self, collection: str, record_id: int) -> None:
        self._touch(collection)
        self._committed[collection] = [row for row in self._committed[collection] if row.id != record_id]

    def begin(self, collection: str, record_id: int, patch: Dict[str, Any]) -> PendingChange:
        change = PendingChange(collection, record_id, patch)
        self._touch(collection)
        self._pending.append(change)
        return change

    def commit(self, change: PendingChange) -> None:
        self._pending.remove(change)
        self._touch(change.collection)
        if change.result is not None:
            self.publish(change.collection, change.result)
            return
        for row in self._committed[change.collection]:
            if row.id == change.record_id:
                for key, value in change.patch.items():
                    setattr(row, key, value)

    def rollback(self, change: PendingChange, error: Exception) -> None:
        self._pending.remove(change)
        logger.warning(f"Change to {change.collection}:{change.record_id} rolled back: {error}")
        self.notify("error", "Erreur", "La modification n'a pas pu être enregistrée")

    @asynccontextmanager
    async def pending_change(self, collection: str, record_id: int, patch: Dict[str, Any]):
        change = self.begin(collection, record_id, patch)
        try:
            yield change
        except Exception as e:
            self.rollback(change, e)
            raise
        self.commit(change)

    # ─── Derived statistics ───

    def progress_stats(self) -> Dict[str, int]:
        tasks = self.tasks
        completed = sum(1 for t in tasks if t.status == "completed")
        return {
            "total_tasks": len(tasks),
            "completed_tasks": completed,
            "progress_percentage": percentage(completed, len(tasks)),
            "critical_tasks": sum(1 for t in tasks if t.priority == "high" and t.status != "completed"),
        }

    def document_stats(self) -> Dict[str, int]:
        return document_stats(self.documents)

    def days_until_event(self, now: Optional[datetime] = None) -> int:
        if self.event is None:
            return 0
        return days_until(self.event.event_date, now)

    def snapshot(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_name": self.event.name if self.event else None,
            "event_date": self.event.event_date if self.event else None,
            "loading": self.loading,
            "last_refreshed_at": self.last_refreshed_at,
            "progress": self.progress_stats(),
            "documents": self.document_stats(),
            "days_until_event": self.days_until_event(now),
            "counts": {name: len(self._committed[name]) for name in COLLECTIONS},
            "pending_changes": len(self._pending),
            "notices": [n.model_dump() for n in self.notices],
        }


class EventStoreRegistry:
    """The event store each user currently has open"""

    def __init__(
        self,
        repository: Optional[EventRepository] = None,
        refresh_interval: Optional[int] = None,
    ):
        self.repository = repository or EventRepository()
        self.refresh_interval = refresh_interval
        self._stores: Dict[int, EventDataStore] = {}

    def current(self, user_id: int) -> Optional[EventDataStore]:
        return self._stores.get(user_id)

    async def select(self, user_id: int, event_id: int) -> EventDataStore:
        existing = self._stores.get(user_id)
        if existing is not None and existing.event_id == event_id:
            return existing
        if existing is not None:
            await existing.close()

        store = EventDataStore(event_id, self.repository, refresh_interval=self.refresh_interval)
        self._stores[user_id] = store
        await store.refresh()
        store.start()
        logger.info(f"User {user_id} opened event store {event_id}")
        return store

    async def release(self, user_id: int) -> None:
        store = self._stores.pop(user_id, None)
        if store is not None:
            await store.close()

    async def release_event(self, event_id: int) -> None:
        for user_id, store in list(self._stores.items()):
            if store.event_id == event_id:
                await self.release(user_id)

    def for_event(self, event_id: int) -> List[EventDataStore]:
        return [s for s in self._stores.values() if s.event_id == event_id]

    def publish(self, event_id: int, collection: str, record: Any) -> None:
        for store in self.for_event(event_id):
            store.publish(collection, record)

    def replace(self, event_id: int, collection: str, rows: List[Any]) -> None:
        for store in self.for_event(event_id):
            store.replace(collection, rows)

    def discard(self, event_id: int, collection: str, record_id: int) -> None:
        for store in self.for_event(event_id):
            store.discard(collection, record_id)

    @asynccontextmanager
    async def track(self, user_id: int, event_id: int, collection: str, record_id: int, patch: Dict[str, Any]):
        """Pending change on the user's store when it shows this event, else a no-op"""
        store = self.current(user_id)
        if store is None or store.event_id != event_id:
            yield None
            return
        async with store.pending_change(collection, record_id, patch) as change:
            yield change

    async def close_all(self) -> None:
        for user_id in list(self._stores):
            await self.release(user_id)
