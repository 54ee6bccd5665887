"""
People API - the couple, their witnesses, family and helpers
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, field_validator

from jourj.database import get_db
from jourj.models import User, Person
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.api.events import get_event_or_404
from jourj.services.event_store import EventStoreRegistry
from jourj.services.planning import role_label
from jourj.utils.validators import validate_title

router = APIRouter()


class PersonResponse(BaseModel):
    id: int
    event_id: int
    name: str
    role: Optional[str]
    role_label: Optional[str] = None
    email: Optional[str]
    phone: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class PersonCreate(BaseModel):
    event_id: int
    name: str
    role: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_title(v)


class PersonUpdate(BaseModel):
    name: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


def _build_person_response(p: Person) -> PersonResponse:
    response = PersonResponse.model_validate(p)
    response.role_label = role_label(p.role)
    return response


async def _get_person_or_404(db: AsyncSession, person_id: int) -> Person:
    result = await db.execute(select(Person).where(Person.id == person_id))
    person = result.scalar_one_or_none()
    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return person


@router.get("/", response_model=List[PersonResponse])
async def list_people(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Person)
        .where(Person.event_id == event_id)
        .order_by(Person.created_at.desc(), Person.id.desc())
    )
    return [_build_person_response(p) for p in result.scalars().all()]


@router.get("/{person_id}", response_model=PersonResponse)
async def get_person(
    person_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _build_person_response(await _get_person_or_404(db, person_id))


@router.post("/", response_model=PersonResponse)
async def create_person(
    data: PersonCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    await get_event_or_404(db, data.event_id)
    person = Person(**data.model_dump(exclude_none=True))
    db.add(person)
    await db.commit()
    await db.refresh(person)

    stores.publish(person.event_id, "people", person)
    return _build_person_response(person)


@router.put("/{person_id}", response_model=PersonResponse)
async def update_person(
    person_id: int,
    data: PersonUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    person = await _get_person_or_404(db, person_id)
    for key, value in data.model_dump(exclude_none=True).items():
        setattr(person, key, value)

    await db.commit()
    await db.refresh(person)

    stores.publish(person.event_id, "people", person)
    return _build_person_response(person)


@router.delete("/{person_id}")
async def delete_person(
    person_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    person = await _get_person_or_404(db, person_id)
    event_id = person.event_id

    await db.delete(person)
    await db.commit()

    stores.discard(event_id, "people", person_id)
    return {"message": "Person deleted"}
