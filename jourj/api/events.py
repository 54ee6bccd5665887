"""
Events API - the weddings managed from the admin portal
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel

from jourj.database import get_db
from jourj.models import User, Event, Task, TimelineItem, Person, Vendor, Document
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.services.event_store import EventStoreRegistry

router = APIRouter()


class EventResponse(BaseModel):
    id: int
    name: str
    event_date: Optional[date]
    location: Optional[str]
    description: Optional[str]
    owner_id: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class EventCreate(BaseModel):
    name: str
    event_date: Optional[date] = None
    location: Optional[str] = None
    description: Optional[str] = None


class EventUpdate(BaseModel):
    name: Optional[str] = None
    event_date: Optional[date] = None
    location: Optional[str] = None
    description: Optional[str] = None


async def get_event_or_404(db: AsyncSession, event_id: int) -> Event:
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/", response_model=List[EventResponse])
async def list_events(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List events, newest first"""
    result = await db.execute(select(Event).order_by(Event.created_at.desc(), Event.id.desc()))
    return result.scalars().all()


@router.post("/", response_model=EventResponse)
async def create_event(
    data: EventCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    event = Event(**data.model_dump(exclude_none=True), owner_id=current_user.id)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


@router.get("/current", response_model=Optional[EventResponse])
async def current_event(
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """The event the user has selected, if any"""
    store = stores.current(current_user.id)
    return store.event if store else None


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await get_event_or_404(db, event_id)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: int,
    data: EventUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    event = await get_event_or_404(db, event_id)
    for key, value in data.model_dump(exclude_none=True).items():
        setattr(event, key, value)

    await db.commit()
    await db.refresh(event)
    for store in stores.for_event(event_id):
        store.event = event
    return event


@router.delete("/{event_id}")
async def delete_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Delete an event and everything planned for it"""
    event = await get_event_or_404(db, event_id)

    for model in (Task, TimelineItem, Document):
        await db.execute(delete(model).where(model.event_id == event_id))
    await db.execute(delete(Vendor).where(Vendor.event_id == event_id))
    await db.execute(delete(Person).where(Person.event_id == event_id))
    await db.delete(event)
    await db.commit()

    await stores.release_event(event_id)
    return {"message": "Event deleted"}


@router.post("/{event_id}/select", response_model=EventResponse)
async def select_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Open the event's data store for this user (closing any other one)"""
    event = await get_event_or_404(db, event_id)
    await stores.select(current_user.id, event_id)
    return event
