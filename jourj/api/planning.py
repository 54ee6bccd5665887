"""
Personal planning API - what one person or vendor has to do on the day
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from jourj.database import get_db
from jourj.models import User, Person, Vendor, Task, TimelineItem
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.services.event_store import EventStoreRegistry
from jourj.services.planning import PlanningSummary, build_personal_planning, role_label
from jourj.utils.validators import USER_TYPES

router = APIRouter()


class PersonalPlanningResponse(PlanningSummary):
    event_id: int
    display_name: Optional[str] = None
    role: Optional[str] = None


@router.get("/{user_type}/{user_id}", response_model=PersonalPlanningResponse)
async def get_personal_planning(
    user_type: str,
    user_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Timeline steps (by time) then tasks (by priority) assigned to the user"""
    if user_type not in USER_TYPES:
        raise HTTPException(status_code=400, detail=f"user_type must be one of: {', '.join(USER_TYPES)}")

    model = Person if user_type == "person" else Vendor
    result = await db.execute(select(model).where(model.id == user_id))
    owner = result.scalar_one_or_none()
    if not owner:
        raise HTTPException(status_code=404, detail=f"{user_type.capitalize()} not found")

    store = stores.current(current_user.id)
    if store is not None and store.event_id == event_id:
        timeline_items, tasks = store.timeline_items, store.tasks
    else:
        timeline_result = await db.execute(
            select(TimelineItem)
            .where(TimelineItem.event_id == event_id)
            .order_by(TimelineItem.sort_order, TimelineItem.time)
        )
        task_result = await db.execute(
            select(Task)
            .where(Task.event_id == event_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        timeline_items, tasks = timeline_result.scalars().all(), task_result.scalars().all()

    summary = build_personal_planning(user_id, user_type, timeline_items, tasks)
    role = owner.role if user_type == "person" else owner.service_type
    return PersonalPlanningResponse(
        **summary.model_dump(),
        event_id=event_id,
        display_name=owner.name,
        role=role_label(role) if user_type == "person" else role,
    )
