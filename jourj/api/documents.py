"""
Documents API - uploads, Google Drive links and the presented document lists
"""
import os
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form
from fastapi.responses import FileResponse, RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, field_validator

from jourj.config import get_settings
from jourj.database import get_db
from jourj.models import User, Document
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.api.events import get_event_or_404
from jourj.services.documents import (
    DocumentView, present_document, split_quick_access, personal_documents, document_stats,
    format_file_size, view_url,
)
from jourj.services.event_store import EventStoreRegistry
from jourj.services.storage import ALLOWED_EXTENSIONS, LocalFileStorage, StorageError, get_storage
from jourj.utils.validators import DOCUMENT_SOURCES, validate_title

logger = logging.getLogger(__name__)
router = APIRouter()


# ─── Schemas ───

class DocumentListResponse(BaseModel):
    quick_access: List[DocumentView]
    others: List[DocumentView]


class DocumentStatsResponse(BaseModel):
    total_documents: int
    total_size: int
    total_size_label: str
    categories_count: int
    google_drive_count: int
    manual_count: int


class DriveLinkCreate(BaseModel):
    event_id: int
    name: str
    google_drive_url: str
    category: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = None
    vendor_id: Optional[int] = None
    assigned_to: List[int] = []

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return validate_title(v)


class AssignmentUpdate(BaseModel):
    assigned_to: List[int]


# ─── Helpers ───

def _parse_ids(raw: Optional[str]) -> List[int]:
    """'1, 2,3' -> [1, 2, 3]"""
    if not raw:
        return []
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail="assigned_to must be a comma-separated list of ids")


async def _load_documents(db: AsyncSession, event_id: int) -> List[Document]:
    result = await db.execute(
        select(Document)
        .where(Document.event_id == event_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
    )
    return list(result.scalars().all())


async def _get_document_or_404(db: AsyncSession, document_id: int) -> Document:
    result = await db.execute(select(Document).where(Document.id == document_id))
    document = result.scalar_one_or_none()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    return document


# ─── Endpoints ───

@router.get("/", response_model=DocumentListResponse)
async def list_documents(
    event_id: int,
    category: Optional[str] = None,
    vendor_id: Optional[int] = None,
    source: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """An event's documents, quick-access ones (planning, legal, contracts) first"""
    documents = await _load_documents(db, event_id)
    if category:
        documents = [d for d in documents if d.category == category]
    if vendor_id is not None:
        documents = [d for d in documents if d.vendor_id == vendor_id]
    if source:
        if source not in DOCUMENT_SOURCES:
            raise HTTPException(status_code=400, detail=f"source must be one of: {', '.join(DOCUMENT_SOURCES)}")
        documents = [d for d in documents if d.source == source]

    split = split_quick_access(documents)
    return DocumentListResponse(
        quick_access=[present_document(d) for d in split["quick_access"]],
        others=[present_document(d) for d in split["others"]],
    )


@router.get("/stats", response_model=DocumentStatsResponse)
async def get_document_stats(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    stats = document_stats(await _load_documents(db, event_id))
    return DocumentStatsResponse(**stats, total_size_label=format_file_size(stats["total_size"]))


@router.get("/person/{person_id}", response_model=List[DocumentView])
async def list_person_documents(
    person_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Documents shared with one person in their personal space"""
    documents = await _load_documents(db, event_id)
    return [present_document(d) for d in personal_documents(documents, person_id)]


@router.post("/upload", response_model=DocumentView)
async def upload_document(
    event_id: int = Form(...),
    name: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    vendor_id: Optional[int] = Form(None),
    assigned_to: Optional[str] = Form(None),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
    storage: LocalFileStorage = Depends(get_storage),
):
    """Upload a file to local storage and register it on the event"""
    settings = get_settings()
    await get_event_or_404(db, event_id)

    ext = os.path.splitext(file.filename or "file")[1].lower()
    if ext and ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(400, f"File type '{ext}' not allowed.")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(413, f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB")

    assigned_ids = _parse_ids(assigned_to)
    path = storage.save(storage.build_path(event_id, file.filename), content)

    document = Document(
        event_id=event_id,
        vendor_id=vendor_id,
        name=(name or "").strip() or file.filename or "file",
        description=(description or "").strip() or None,
        category=category or None,
        mime_type=file.content_type,
        file_size=len(content),
        file_path=path,
        file_url=storage.public_url(path),
        source="manual",
        assigned_to=assigned_ids,
        uploaded_by=current_user.full_name or current_user.email,
    )
    try:
        db.add(document)
        await db.commit()
    except Exception:
        await db.rollback()
        storage.delete(path)
        raise
    await db.refresh(document)

    stores.publish(event_id, "documents", document)
    logger.info(f"User {current_user.id} uploaded '{file.filename}' to event {event_id} ({len(content)} bytes)")
    return present_document(document)


@router.post("/link", response_model=DocumentView)
async def link_drive_document(
    data: DriveLinkCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Register a document that lives on Google Drive"""
    await get_event_or_404(db, data.event_id)
    document = Document(
        **data.model_dump(exclude_none=True),
        source="google_drive",
        uploaded_by=current_user.full_name or current_user.email,
    )
    db.add(document)
    await db.commit()
    await db.refresh(document)

    stores.publish(document.event_id, "documents", document)
    return present_document(document)


@router.put("/{document_id}/assign", response_model=DocumentView)
async def assign_document(
    document_id: int,
    data: AssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    """Choose which people see the document in their personal space"""
    document = await _get_document_or_404(db, document_id)
    document.assigned_to = list(dict.fromkeys(data.assigned_to))
    await db.commit()
    await db.refresh(document)

    stores.publish(document.event_id, "documents", document)
    return present_document(document)


@router.get("/files/{path:path}")
async def serve_file(
    path: str,
    storage: LocalFileStorage = Depends(get_storage),
):
    """Raw stored bytes behind a document's file URL"""
    try:
        full_path = storage.absolute_path(path)
    except StorageError:
        raise HTTPException(403, "Access denied")
    if not os.path.exists(full_path):
        raise HTTPException(404, "File not found")
    return FileResponse(full_path)


@router.get("/{document_id}/download")
async def download_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: LocalFileStorage = Depends(get_storage),
):
    document = await _get_document_or_404(db, document_id)
    if not document.file_path:
        if document.google_drive_url:
            return RedirectResponse(document.google_drive_url)
        raise HTTPException(404, "File not found on disk")

    try:
        full_path = storage.absolute_path(document.file_path)
    except StorageError:
        raise HTTPException(403, "Access denied")
    if not os.path.exists(full_path):
        raise HTTPException(404, "File not found on disk")

    ext = os.path.splitext(document.file_path)[1]
    filename = document.name if document.name.lower().endswith(ext.lower()) else f"{document.name}{ext}"
    return FileResponse(full_path, filename=filename, media_type=document.mime_type)


@router.get("/{document_id}/view")
async def view_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Redirect to the Google Drive viewer, or the stored file"""
    document = await _get_document_or_404(db, document_id)
    url = view_url(document)
    if not url:
        raise HTTPException(404, "Document has no viewable file")
    return RedirectResponse(url)


@router.delete("/{document_id}")
async def delete_document(
    document_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
    storage: LocalFileStorage = Depends(get_storage),
) -> Dict[str, str]:
    document = await _get_document_or_404(db, document_id)
    event_id = document.event_id
    file_path = document.file_path

    await db.delete(document)
    await db.commit()

    if file_path:
        try:
            storage.delete(file_path)
        except StorageError as e:
            logger.warning(f"Could not remove file of document {document_id}: {e}")

    stores.discard(event_id, "documents", document_id)
    logger.info(f"User {current_user.id} deleted document {document_id}")
    return {"message": "Document deleted"}
