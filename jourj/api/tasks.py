"""
Tasks API - to-dos assigned to people or vendors of an event
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, field_validator

from jourj.database import get_db
from jourj.models import User, Task
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.api.events import get_event_or_404
from jourj.services.event_store import EventStoreRegistry
from jourj.services.planning import toggle_task
from jourj.utils.validators import PRIORITIES, TASK_STATUSES, validate_choice, validate_title

logger = logging.getLogger(__name__)
router = APIRouter()


# --- Pydantic Schemas ---

class TaskResponse(BaseModel):
    id: int
    event_id: int
    title: str
    description: Optional[str]
    priority: str
    status: str
    assigned_person_id: Optional[int]
    assigned_vendor_id: Optional[int]
    duration_minutes: Optional[int]
    due_date: Optional[date]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    is_overdue: bool = False

    class Config:
        from_attributes = True


class TaskCreate(BaseModel):
    event_id: int
    title: str
    description: Optional[str] = None
    priority: str = "medium"
    assigned_person_id: Optional[int] = None
    assigned_vendor_id: Optional[int] = None
    duration_minutes: Optional[int] = None
    due_date: Optional[date] = None

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        return validate_title(v)

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v: str) -> str:
        return validate_choice(v, PRIORITIES, "priority")


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    assigned_person_id: Optional[int] = None
    assigned_vendor_id: Optional[int] = None
    duration_minutes: Optional[int] = None
    due_date: Optional[date] = None

    @field_validator("priority")
    @classmethod
    def check_priority(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else validate_choice(v, PRIORITIES, "priority")

    @field_validator("status")
    @classmethod
    def check_status(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else validate_choice(v, TASK_STATUSES, "status")


class TaskToggle(BaseModel):
    completed: bool


# --- Helpers ---

def _build_task_response(t: Task) -> TaskResponse:
    response = TaskResponse.model_validate(t)
    response.is_overdue = (
        t.due_date is not None
        and t.status != "completed"
        and t.due_date < date.today()
    )
    return response


async def _get_task_or_404(db: AsyncSession, task_id: int) -> Task:
    result = await db.execute(select(Task).where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _apply_status(task: Task, status: str) -> None:
    if status == "completed" and task.status != "completed":
        task.completed_at = datetime.utcnow()
    elif status != "completed":
        task.completed_at = None
    task.status = status


# --- Endpoints ---

@router.get("/", response_model=List[TaskResponse])
async def list_tasks(
    event_id: int,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_person_id: Optional[int] = None,
    assigned_vendor_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List an event's tasks, newest first"""
    query = (
        select(Task)
        .where(Task.event_id == event_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    if status:
        query = query.where(Task.status == status)
    if priority:
        query = query.where(Task.priority == priority)
    if assigned_person_id is not None:
        query = query.where(Task.assigned_person_id == assigned_person_id)
    if assigned_vendor_id is not None:
        query = query.where(Task.assigned_vendor_id == assigned_vendor_id)

    result = await db.execute(query)
    return [_build_task_response(t) for t in result.scalars().all()]


@router.post("/", response_model=TaskResponse)
async def create_task(
    data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    await get_event_or_404(db, data.event_id)
    task = Task(**data.model_dump(exclude_none=True), status="pending")
    db.add(task)
    await db.commit()
    await db.refresh(task)

    stores.publish(task.event_id, "tasks", task)
    logger.info(f"User {current_user.id} created task {task.id} for event {task.event_id}")
    return _build_task_response(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    task = await _get_task_or_404(db, task_id)

    updates = data.model_dump(exclude_none=True)
    status = updates.pop("status", None)
    for key, value in updates.items():
        setattr(task, key, value)
    if status:
        _apply_status(task, status)

    task.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(task)

    stores.publish(task.event_id, "tasks", task)
    return _build_task_response(task)


@router.put("/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task_status(
    task_id: int,
    data: TaskToggle,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Check or uncheck a task from the personal planning view"""
    task = await _get_task_or_404(db, task_id)

    async def persist(t: Task, status: str) -> Task:
        _apply_status(t, status)
        t.updated_at = datetime.utcnow()
        await db.commit()
        await db.refresh(t)
        return t

    new_status = "completed" if data.completed else "pending"
    try:
        async with stores.track(current_user.id, task.event_id, "tasks", task.id, {"status": new_status}) as change:
            updated = await toggle_task(task, data.completed, persist)
            if change is not None:
                change.resolve(updated)
    except Exception as e:
        await db.rollback()
        raise HTTPException(status_code=500, detail="Could not update task") from e

    stores.publish(updated.event_id, "tasks", updated)
    return _build_task_response(updated)


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    task = await _get_task_or_404(db, task_id)
    event_id = task.event_id

    await db.delete(task)
    await db.commit()

    stores.discard(event_id, "tasks", task_id)
    return {"message": "Task deleted"}
