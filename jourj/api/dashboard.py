"""
Dashboard API - figures from the selected event's data store
"""
from fastapi import APIRouter, Depends, HTTPException
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from jourj.models import User
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.services.event_store import EventDataStore, EventStoreRegistry, Notice
from jourj.services.documents import format_file_size

router = APIRouter()


class ProgressStats(BaseModel):
    total_tasks: int
    completed_tasks: int
    progress_percentage: int
    critical_tasks: int


class DocumentStats(BaseModel):
    total_documents: int
    total_size: int
    total_size_label: str
    categories_count: int
    google_drive_count: int
    manual_count: int


class DashboardResponse(BaseModel):
    event_id: int
    event_name: Optional[str]
    event_date: Optional[date]
    days_until_event: int
    loading: bool
    last_refreshed_at: Optional[datetime]
    progress: ProgressStats
    documents: DocumentStats
    counts: Dict[str, int]
    pending_changes: int
    notices: List[Notice]


def _require_store(stores: EventStoreRegistry, user: User) -> EventDataStore:
    store = stores.current(user.id)
    if store is None:
        raise HTTPException(status_code=400, detail="No event selected")
    return store


def _build_dashboard(store: EventDataStore) -> DashboardResponse:
    snapshot: Dict[str, Any] = store.snapshot()
    documents = snapshot.pop("documents")
    return DashboardResponse(
        **snapshot,
        documents=DocumentStats(**documents, total_size_label=format_file_size(documents["total_size"])),
    )


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Progress, document figures and countdown for the selected event"""
    return _build_dashboard(_require_store(stores, current_user))


@router.post("/refresh", response_model=DashboardResponse)
async def refresh_dashboard(
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Re-fetch every collection of the selected event now"""
    store = _require_store(stores, current_user)
    await store.refresh()
    return _build_dashboard(store)
