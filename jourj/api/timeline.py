"""
Timeline API - the schedule of the wedding day, with drag-and-drop reordering
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Dict, List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, field_validator

from jourj.database import get_db
from jourj.models import User, TimelineItem, Person, Vendor
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.api.events import get_event_or_404
from jourj.services.event_store import EventStoreRegistry
from jourj.services.planning import assignee_summary
from jourj.services.timeline_reorder import (
    PreviewSlot,
    ReorderPersistError,
    ReorderResult,
    ReorderStateError,
    TimelineReorderSession,
)
from jourj.utils.helpers import calculate_end_time, format_duration, format_time
from jourj.utils.validators import (
    PRIORITIES,
    TIMELINE_STATUSES,
    blank_to_none,
    validate_choice,
    validate_duration,
    validate_time_string,
    validate_title,
)

logger = logging.getLogger(__name__)
router = APIRouter()

CATEGORIES = ["Préparation", "Logistique", "Cérémonie", "Photos", "Réception"]


# --- Form schemas ---

class TimelineItemCreate(BaseModel):
    event_id: int
    title: str
    description: Optional[str] = None
    time: str = "08:00"
    duration: int = 60
    category: str = "Préparation"
    priority: str = "medium"
    status: str = "scheduled"
    assigned_person_ids: List[int] = []
    assigned_vendor_ids: List[int] = []
    # single-vendor select of the modal; "none" means no vendor
    assigned_vendor_id: Optional[Union[int, str]] = None
    assigned_role: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return validate_title(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return validate_time_string(v)

    @field_validator("duration")
    @classmethod
    def check_duration(cls, v: int) -> int:
        return validate_duration(v)

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v: str) -> str:
        return validate_choice(v, PRIORITIES, "priority")

    @field_validator("status")
    @classmethod
    def check_status(cls, v: str) -> str:
        return validate_choice(v, TIMELINE_STATUSES, "status")

    @field_validator("description", "notes")
    @classmethod
    def blank_is_null(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)

    @field_validator("assigned_vendor_id", mode="before")
    @classmethod
    def none_sentinel(cls, v):
        if v in (None, "", "none"):
            return None
        return int(v)

    def vendor_ids(self) -> List[int]:
        ids = list(self.assigned_vendor_ids)
        if self.assigned_vendor_id is not None and self.assigned_vendor_id not in ids:
            ids.insert(0, self.assigned_vendor_id)
        return ids

    def to_fields(self) -> dict:
        fields = self.model_dump(exclude={"assigned_vendor_id", "assigned_vendor_ids"})
        fields["assigned_vendor_ids"] = self.vendor_ids()
        return fields


class TimelineItemUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[int] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    assigned_person_ids: Optional[List[int]] = None
    assigned_vendor_ids: Optional[List[int]] = None
    assigned_vendor_id: Optional[Union[int, str]] = None
    assigned_role: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else validate_title(v)

    @field_validator("time")
    @classmethod
    def check_time(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else validate_time_string(v)

    @field_validator("duration")
    @classmethod
    def check_duration(cls, v: Optional[int]) -> Optional[int]:
        return v if v is None else validate_duration(v)

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else validate_choice(v, PRIORITIES, "priority")

    @field_validator("status")
    @classmethod
    def check_status(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else validate_choice(v, TIMELINE_STATUSES, "status")

    @field_validator("assigned_vendor_id", mode="before")
    @classmethod
    def none_sentinel(cls, v):
        if v is None:
            return None
        if v in ("", "none"):
            return "none"
        return int(v)

    def to_fields(self) -> dict:
        fields = self.model_dump(exclude_unset=True, exclude={"assigned_vendor_id"})
        for key in ("description", "notes"):
            if key in fields:
                fields[key] = blank_to_none(fields[key])
        if "assigned_vendor_id" in self.model_fields_set:
            vendor = self.assigned_vendor_id
            fields["assigned_vendor_ids"] = [] if vendor in (None, "none") else [vendor]
        return {k: v for k, v in fields.items() if v is not None or k in ("description", "notes")}


class TimelineItemResponse(BaseModel):
    id: int
    event_id: int
    title: str
    description: Optional[str]
    time: str
    end_time: str
    duration: int
    duration_label: str
    sort_order: int
    category: str
    priority: str
    status: str
    assigned_person_ids: List[int]
    assigned_vendor_ids: List[int]
    assigned_role: Optional[str]
    assigned_display: str
    vendor_name: Optional[str] = None
    notes: Optional[str]
    created_at: Optional[datetime]


class ReorderRequest(BaseModel):
    event_id: int
    source_index: int
    target_index: int


class ReorderPreviewResponse(BaseModel):
    order: List[int]
    slots: List[PreviewSlot]


# --- Helpers ---

async def _load_timeline(db: AsyncSession, event_id: int) -> List[TimelineItem]:
    result = await db.execute(
        select(TimelineItem)
        .where(TimelineItem.event_id == event_id)
        .order_by(TimelineItem.sort_order, TimelineItem.time, TimelineItem.id)
    )
    return list(result.scalars().all())


def _renumber(items: List[TimelineItem]) -> None:
    """Contiguous sort_order 0..n-1 following list order"""
    for position, item in enumerate(items):
        if item.sort_order != position:
            item.sort_order = position


async def _name_lookups(db: AsyncSession, event_id: int) -> tuple[Dict[int, str], Dict[int, str]]:
    people = await db.execute(select(Person.id, Person.name).where(Person.event_id == event_id))
    vendors = await db.execute(select(Vendor.id, Vendor.name).where(Vendor.event_id == event_id))
    return dict(people.all()), dict(vendors.all())


def _build_item_response(
    item: TimelineItem,
    person_names: Dict[int, str],
    vendor_names: Dict[int, str],
) -> TimelineItemResponse:
    names = [person_names[pid] for pid in (item.assigned_person_ids or []) if pid in person_names]
    vendor_ids = item.assigned_vendor_ids or []
    vendor_name = vendor_names.get(vendor_ids[0]) if vendor_ids else None
    return TimelineItemResponse(
        id=item.id,
        event_id=item.event_id,
        title=item.title,
        description=item.description,
        time=format_time(item.time),
        end_time=calculate_end_time(item.time, item.duration),
        duration=item.duration,
        duration_label=format_duration(item.duration),
        sort_order=item.sort_order,
        category=item.category,
        priority=item.priority,
        status=item.status,
        assigned_person_ids=list(item.assigned_person_ids or []),
        assigned_vendor_ids=list(vendor_ids),
        assigned_role=item.assigned_role,
        assigned_display=f"Prestataire: {vendor_name}" if vendor_name else assignee_summary(names, item.assigned_role),
        vendor_name=vendor_name,
        notes=item.notes,
        created_at=item.created_at,
    )


async def _get_item_or_404(db: AsyncSession, item_id: int) -> TimelineItem:
    result = await db.execute(select(TimelineItem).where(TimelineItem.id == item_id))
    item = result.scalar_one_or_none()
    if not item:
        raise HTTPException(status_code=404, detail="Timeline item not found")
    return item


# --- Endpoints ---

@router.get("/", response_model=List[TimelineItemResponse])
async def list_timeline(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """The event's timeline in day order"""
    items = await _load_timeline(db, event_id)
    person_names, vendor_names = await _name_lookups(db, event_id)
    return [_build_item_response(i, person_names, vendor_names) for i in items]


@router.get("/categories", response_model=List[str])
async def list_categories(current_user: User = Depends(get_current_user)):
    return CATEGORIES


@router.post("/", response_model=TimelineItemResponse)
async def create_timeline_item(
    data: TimelineItemCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Add a step, slotted in before the first step that starts later"""
    await get_event_or_404(db, data.event_id)
    items = await _load_timeline(db, data.event_id)

    new_start = format_time(data.time)
    position = next((i for i, it in enumerate(items) if format_time(it.time) > new_start), len(items))

    item = TimelineItem(**data.to_fields())
    items.insert(position, item)
    _renumber(items)
    db.add(item)
    await db.commit()
    await db.refresh(item)

    stores.replace(item.event_id, "timeline_items", items)
    person_names, vendor_names = await _name_lookups(db, item.event_id)
    return _build_item_response(item, person_names, vendor_names)


@router.put("/{item_id}", response_model=TimelineItemResponse)
async def update_timeline_item(
    item_id: int,
    data: TimelineItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    item = await _get_item_or_404(db, item_id)
    for key, value in data.to_fields().items():
        setattr(item, key, value)

    item.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(item)

    stores.publish(item.event_id, "timeline_items", item)
    person_names, vendor_names = await _name_lookups(db, item.event_id)
    return _build_item_response(item, person_names, vendor_names)


@router.delete("/{item_id}")
async def delete_timeline_item(
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    item = await _get_item_or_404(db, item_id)
    event_id = item.event_id

    await db.delete(item)
    remaining = [i for i in await _load_timeline(db, event_id) if i.id != item_id]
    _renumber(remaining)
    await db.commit()

    stores.replace(event_id, "timeline_items", remaining)
    return {"message": "Timeline item deleted"}


@router.post("/reorder/preview", response_model=ReorderPreviewResponse)
async def preview_reorder(
    data: ReorderRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Times the day would get if the dragged step were dropped at target_index"""
    session = TimelineReorderSession(await _load_timeline(db, data.event_id))
    try:
        session.drag_start(data.source_index)
        slots = session.drag_over(data.target_index)
    except ReorderStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        session.drag_end()
    return ReorderPreviewResponse(order=[s.id for s in slots], slots=slots)


@router.post("/reorder", response_model=ReorderResult)
async def reorder_timeline(
    data: ReorderRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Move a step and save the new start time of every step that shifted"""
    items = await _load_timeline(db, data.event_id)
    by_id = {item.id: item for item in items}
    session = TimelineReorderSession(items)

    async def persist(changed: List[PreviewSlot]) -> None:
        for slot in changed:
            item = by_id[slot.id]
            item.time = slot.start_time
            item.sort_order = slot.position
            item.updated_at = datetime.utcnow()
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    try:
        session.drag_start(data.source_index)
        result = await session.drop(data.target_index, persist)
    except ReorderStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReorderPersistError as e:
        raise HTTPException(
            status_code=409,
            detail={"message": str(e), "attempted": e.attempted.model_dump()},
        )

    stores.replace(data.event_id, "timeline_items", sorted(items, key=lambda i: i.sort_order))
    return result
