"""
Vendors API endpoints
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from jourj.database import get_db
from jourj.models import User, Vendor
from jourj.api.auth import get_current_user
from jourj.api.dependencies import get_store_registry
from jourj.services.event_store import EventStoreRegistry

logger = logging.getLogger(__name__)
router = APIRouter()


class VendorResponse(BaseModel):
    id: int
    event_id: Optional[int]
    name: str
    service_type: Optional[str]
    contact_person: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    website: Optional[str]
    notes: Optional[str]
    contract_status: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class VendorCreate(BaseModel):
    event_id: Optional[int] = None
    name: str
    service_type: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    contract_status: Optional[str] = None


class VendorUpdate(BaseModel):
    name: Optional[str] = None
    service_type: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    contract_status: Optional[str] = None


async def _get_vendor_or_404(db: AsyncSession, vendor_id: int) -> Vendor:
    result = await db.execute(select(Vendor).where(Vendor.id == vendor_id))
    vendor = result.scalar_one_or_none()
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return vendor


@router.get("/", response_model=List[VendorResponse])
async def list_vendors(
    event_id: Optional[int] = None,
    service_type: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List vendors, newest first"""
    query = select(Vendor).order_by(Vendor.created_at.desc(), Vendor.id.desc())
    if event_id is not None:
        query = query.where(Vendor.event_id == event_id)
    if service_type:
        query = query.where(Vendor.service_type == service_type)

    result = await db.execute(query)
    return result.scalars().all()


@router.get("/{vendor_id}", response_model=VendorResponse)
async def get_vendor(
    vendor_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await _get_vendor_or_404(db, vendor_id)


@router.post("/", response_model=VendorResponse)
async def create_vendor(
    data: VendorCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    vendor = Vendor(**data.model_dump(exclude_none=True))
    db.add(vendor)
    await db.commit()
    await db.refresh(vendor)

    if vendor.event_id is not None:
        stores.publish(vendor.event_id, "vendors", vendor)
    logger.info(f"User {current_user.id} added vendor {vendor.id} ({vendor.name})")
    return vendor


@router.put("/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: int,
    data: VendorUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    vendor = await _get_vendor_or_404(db, vendor_id)
    for key, value in data.model_dump(exclude_none=True).items():
        setattr(vendor, key, value)

    vendor.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(vendor)

    if vendor.event_id is not None:
        stores.publish(vendor.event_id, "vendors", vendor)
    return vendor


@router.delete("/{vendor_id}")
async def delete_vendor(
    vendor_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    stores: EventStoreRegistry = Depends(get_store_registry),
):
    vendor = await _get_vendor_or_404(db, vendor_id)
    event_id = vendor.event_id

    await db.delete(vendor)
    await db.commit()

    if event_id is not None:
        stores.discard(event_id, "vendors", vendor_id)
    logger.info(f"User {current_user.id} deleted vendor {vendor_id}")
    return {"message": "Vendor deleted"}
