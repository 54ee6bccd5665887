"""
Personal planning - one ordered list of the timeline steps and tasks
assigned to a single person or vendor.
"""
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Literal, Optional

from pydantic import BaseModel

from jourj.utils.helpers import format_time_range, percentage

logger = logging.getLogger(__name__)

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
DEFAULT_PRIORITY_RANK = 1

ROLE_LABELS = {
    "bride": "Mariée",
    "groom": "Marié",
    "best-man": "Témoin",
    "maid-of-honor": "Demoiselle d'honneur",
    "wedding-planner": "Wedding Planner",
    "photographer": "Photographe",
    "caterer": "Traiteur",
    "guest": "Invité",
    "family": "Famille",
}


class UnifiedPlanningItem(BaseModel):
    id: int
    type: Literal["timeline", "task"]
    title: str
    description: Optional[str] = None
    time: Optional[str] = None
    time_range: Optional[str] = None
    duration: Optional[int] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    completed: Optional[bool] = None
    category: Optional[str] = None

    @property
    def is_done(self) -> bool:
        if self.type == "timeline":
            return self.status == "completed"
        return bool(self.completed)


class PlanningSummary(BaseModel):
    user_id: int
    user_type: str
    items: List[UnifiedPlanningItem]
    completed_count: int
    total: int
    progress_percentage: int


def priority_rank(priority: Optional[str]) -> int:
    return PRIORITY_RANK.get(priority, DEFAULT_PRIORITY_RANK)


def role_label(role: Optional[str]) -> Optional[str]:
    if not role:
        return None
    return ROLE_LABELS.get(role, role.replace("-", " "))


def assignee_summary(names: List[str], role: Optional[str] = None) -> str:
    """Short "assigned to" caption for a timeline card"""
    if not names:
        return role_label(role) or "Non assigné"
    if len(names) <= 2:
        return ", ".join(names)
    others = len(names) - 2
    return f"{', '.join(names[:2])} et {others} autre{'s' if others > 1 else ''}"


def _timeline_matches(item: Any, user_id: int, user_type: str) -> bool:
    if user_type == "person":
        return user_id in (item.assigned_person_ids or [])
    return user_id in (item.assigned_vendor_ids or []) or item.assigned_role == str(user_id)


def _task_matches(task: Any, user_id: int, user_type: str) -> bool:
    if user_type == "person":
        return task.assigned_person_id == user_id
    return task.assigned_vendor_id == user_id


def project_timeline_item(item: Any) -> UnifiedPlanningItem:
    return UnifiedPlanningItem(
        id=item.id,
        type="timeline",
        title=item.title,
        description=item.description or None,
        time=item.time,
        time_range=format_time_range(item.time, item.duration) if item.time and item.duration else None,
        duration=item.duration,
        status=item.status,
        category=item.category,
        priority=item.priority,
    )


def project_task(task: Any) -> UnifiedPlanningItem:
    return UnifiedPlanningItem(
        id=task.id,
        type="task",
        title=task.title,
        description=task.description or None,
        priority=task.priority,
        status=task.status,
        completed=task.status == "completed",
        duration=task.duration_minutes,
    )


def sort_unified(items: Iterable[UnifiedPlanningItem]) -> List[UnifiedPlanningItem]:
    """
    Timeline steps first, by start time; then tasks by priority rank.
    sorted() is stable so equal keys keep their insertion order.
    """
    def key(item: UnifiedPlanningItem):
        if item.type == "timeline":
            return (0, item.time or "", 0)
        return (1, "", priority_rank(item.priority))

    return sorted(items, key=key)


def build_personal_planning(
    user_id: int,
    user_type: str,
    timeline_items: Iterable[Any],
    tasks: Iterable[Any],
) -> PlanningSummary:
    """Select, project, merge and order everything assigned to one user"""
    unified = [
        project_timeline_item(item)
        for item in timeline_items
        if _timeline_matches(item, user_id, user_type)
    ] + [
        project_task(task)
        for task in tasks
        if _task_matches(task, user_id, user_type)
    ]

    ordered = sort_unified(unified)
    completed = sum(1 for item in ordered if item.is_done)

    return PlanningSummary(
        user_id=user_id,
        user_type=user_type,
        items=ordered,
        completed_count=completed,
        total=len(ordered),
        progress_percentage=percentage(completed, len(ordered)),
    )


async def toggle_task(
    task: Any,
    completed: bool,
    persist: Callable[[Any, str], Awaitable[Any]],
) -> Any:
    """
    Flip a task between completed and pending through `persist`.
    Only the given task is touched; a persistence error propagates to the caller.
    """
    new_status = "completed" if completed else "pending"
    try:
        return await persist(task, new_status)
    except Exception as e:
        logger.error(f"Error toggling task {task.id}: {e}")
        raise
